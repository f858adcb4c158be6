"""Tests for the `docrecon reconcile` commands."""

import json

import pytest
from click.testing import CliRunner

from docrecon.infrastructure.cli.main import cli


@pytest.fixture
def data_dir(tmp_path):
    collections = {
        "products": [{"id": "P", "status": "active", "brand_id": "B1"}],
        "units": [
            {"id": "u1", "product_id": "P", "state": "available_destination"},
            {"id": "u2", "product_id": "GONE", "state": "available_destination"},
        ],
        "brands": [{"id": "B1", "total_products": 0, "active_products": 0}],
    }
    for name, records in collections.items():
        (tmp_path / f"{name}.json").write_text(json.dumps(records), encoding="utf-8")
    return tmp_path


def _load(data_dir, collection):
    return json.loads((data_dir / f"{collection}.json").read_text(encoding="utf-8"))


class TestReconcileRun:

    def test_json_summary(self, data_dir):
        result = CliRunner().invoke(cli, ["reconcile", "run", "--json", "--data-dir", str(data_dir)])

        assert result.exit_code == 0, result.output
        summary = json.loads(result.stdout)
        assert summary["success"] is True
        assert summary["totals"]["deleted"] == 1
        assert [r["module_name"] for r in summary["results"]][:2] == ["Units", "Products"]
        assert _load(data_dir, "products")[0]["destination_stock"] == 1
        assert _load(data_dir, "brands")[0]["total_products"] == 1

    def test_table_and_progress(self, data_dir):
        result = CliRunner().invoke(cli, ["reconcile", "run", "--data-dir", str(data_dir)])

        assert result.exit_code == 0, result.output
        assert "Reconciliation completed successfully." in result.stdout
        assert "Products" in result.stdout
        assert "Reconciling Units..." in result.stderr

    def test_dry_run_leaves_files_untouched(self, data_dir):
        before = _load(data_dir, "units")

        result = CliRunner().invoke(
            cli, ["reconcile", "run", "--dry-run", "--data-dir", str(data_dir)]
        )

        assert result.exit_code == 0, result.output
        assert "write(s) not applied" in result.stdout
        assert _load(data_dir, "units") == before

    def test_errors_exit_non_zero(self, data_dir):
        (data_dir / "suppliers.json").write_text("[1, 2", encoding="utf-8")

        result = CliRunner().invoke(cli, ["reconcile", "run", "--data-dir", str(data_dir)])

        assert result.exit_code == 1
        assert "Reconciliation completed with 1 error(s)." in result.stdout
        assert _load(data_dir, "products")[0]["available_stock"] == 1


class TestReconcileModule:

    def test_runs_single_module(self, data_dir):
        result = CliRunner().invoke(
            cli, ["reconcile", "module", "units", "--data-dir", str(data_dir)]
        )

        assert result.exit_code == 0, result.output
        assert [u["id"] for u in _load(data_dir, "units")] == ["u1"]
        assert "destination_stock" not in _load(data_dir, "products")[0]

    def test_unknown_module(self, data_dir):
        result = CliRunner().invoke(
            cli, ["reconcile", "module", "invoices", "--data-dir", str(data_dir)]
        )

        assert result.exit_code == 1
        assert "Unknown module 'invoices'" in result.output


class TestReconcileModules:

    def test_lists_modules_in_order(self):
        result = CliRunner().invoke(cli, ["reconcile", "modules"])

        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert lines[0] == " 1. Units"
        assert lines[-1] == "14. Competitors"
