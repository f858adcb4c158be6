"""Domain-level exceptions.

All failures the engine knows how to isolate are subclasses of
DomainException, so reconcilers can catch them per record and the CLI
layer can display them uniformly.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested document does not exist."""


class StoreError(DomainException):
    """A read or write against the backing document store failed."""
