from __future__ import annotations

import logging
import logging.handlers

from docrecon.infrastructure.config import Settings

_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def setup_logging(settings: Settings, verbose: bool = False) -> None:
    """Configure the ``docrecon`` logger: stderr always, a rotating file if configured."""
    level = logging.DEBUG if verbose else logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logger = logging.getLogger("docrecon")
    logger.setLevel(level)
    formatter = logging.Formatter(_FORMAT)

    # one console handler per process, bound to the current stderr
    for handler in [h for h in logger.handlers if getattr(h, "_docrecon", False)]:
        logger.removeHandler(handler)
    console = logging.StreamHandler()
    console.setFormatter(formatter)
    console._docrecon = True  # type: ignore[attr-defined]
    logger.addHandler(console)

    if settings.log_file is not None:
        path = settings.log_file.expanduser()
        if not any(
            getattr(h, "baseFilename", None) == str(path.resolve()) for h in logger.handlers
        ):
            path.parent.mkdir(parents=True, exist_ok=True)
            handler = logging.handlers.RotatingFileHandler(
                path, maxBytes=5_000_000, backupCount=3, encoding="utf-8"
            )
            handler.setFormatter(formatter)
            logger.addHandler(handler)
