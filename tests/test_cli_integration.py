"""Integration tests for CLI."""

import json
import os
import subprocess
import sys
from datetime import date
from pathlib import Path

import pytest

from genrental.engine import LifecycleEngine
from genrental.rental_store import RentalStore
from genrental.unit_pool import UnitPool

from .conftest import make_draft


def run_genrental(args: list[str], data_dir: Path) -> subprocess.CompletedProcess:
    """Run genrental CLI command against data_dir."""
    env = dict(os.environ, GENRENTAL_DATA_DIR=str(data_dir), GENRENTAL_LOG_LEVEL="WARNING")
    env.pop("GENRENTAL_SMTP_HOST", None)
    return subprocess.run(
        [sys.executable, "-m", "genrental.cli"] + args,
        capture_output=True,
        text=True,
        env=env,
    )


@pytest.fixture
def seeded(temp_dir):
    """Data directory with a seeded pool and two pending rentals."""
    run_genrental(["init"], temp_dir)
    engine = LifecycleEngine(
        RentalStore(temp_dir / "rentals.json"), UnitPool(temp_dir / "generators.json")
    )
    first = engine.create_rental(make_draft(name="Ensimmäinen", start=date(2025, 6, 2), end=date(2025, 6, 3)))
    second = engine.create_rental(make_draft(name="Toinen", start=date(2025, 7, 2), end=date(2025, 7, 3)))
    return temp_dir, first.id, second.id


class TestCLIIntegration:
    """Integration tests for CLI commands."""

    def test_init_seeds_generators(self, temp_dir):
        result = run_genrental(["init"], temp_dir)

        assert result.returncode == 0
        assert "Generators: 3" in result.stdout
        assert (temp_dir / "generators.json").exists()
        assert json.loads((temp_dir / "rentals.json").read_text()) == []

    def test_list_empty(self, temp_dir):
        result = run_genrental(["list"], temp_dir)
        assert result.returncode == 0
        assert "No rentals found." in result.stdout

    def test_list_json(self, seeded):
        data_dir, first, second = seeded
        result = run_genrental(["list", "--json"], data_dir)

        assert result.returncode == 0
        assert [r["id"] for r in json.loads(result.stdout)] == [second, first]

    def test_list_bad_status(self, seeded):
        data_dir, _, _ = seeded
        result = run_genrental(["list", "--status", "shipped"], data_dir)
        assert result.returncode == 1
        assert "Unknown rental status" in result.stderr

    def test_list_malformed_record(self, temp_dir):
        (temp_dir / "rentals.json").write_text(json.dumps([{"id": 1, "status": "pending"}]))
        result = run_genrental(["list"], temp_dir)

        assert result.returncode == 1
        assert "bad record" in result.stderr
        assert "Traceback" not in result.stderr

    def test_lifecycle(self, seeded):
        data_dir, first, _ = seeded

        result = run_genrental(["approve", str(first)], data_dir)
        assert result.returncode == 0
        assert "Assigned generator: 1" in result.stdout

        assert run_genrental(["invoice", str(first)], data_dir).returncode == 0

        result = run_genrental(["paid", str(first)], data_dir)
        assert result.returncode == 0
        assert "Released generator: 1" in result.stdout

        result = run_genrental(["show", str(first), "--json"], data_dir)
        assert json.loads(result.stdout)["status"] == "paid"

    def test_invalid_transition_fails(self, seeded):
        data_dir, first, _ = seeded
        result = run_genrental(["invoice", str(first)], data_dir)

        assert result.returncode == 1
        assert "expected approved" in result.stderr

    def test_delete_releases(self, seeded):
        data_dir, first, _ = seeded
        run_genrental(["approve", str(first)], data_dir)

        result = run_genrental(["delete", str(first)], data_dir)
        assert result.returncode == 0
        assert "Released generator: 1" in result.stdout

        result = run_genrental(["availability", "--json"], data_dir)
        assert json.loads(result.stdout)["available"] == 3

    def test_units_toggle(self, seeded):
        data_dir, _, _ = seeded

        result = run_genrental(["units", "toggle", "2"], data_dir)
        assert result.returncode == 0
        assert "out of service" in result.stdout

        result = run_genrental(["availability"], data_dir)
        assert "Available: 2/3" in result.stdout

        result = run_genrental(["units", "toggle", "9"], data_dir)
        assert result.returncode == 1

    def test_units_list_json(self, seeded):
        data_dir, _, _ = seeded
        result = run_genrental(["units", "list", "--json"], data_dir)
        assert [u["id"] for u in json.loads(result.stdout)] == [1, 2, 3]

    def test_export_to_file(self, seeded):
        data_dir, first, _ = seeded
        output = data_dir / "june.csv"

        result = run_genrental(["export", "2025-06-01", "30.6.2025", "-o", str(output)], data_dir)

        assert result.returncode == 0
        lines = output.read_text().strip().split("\n")
        assert len(lines) == 2
        assert lines[1].startswith(str(first))

    def test_check_consistent(self, seeded):
        data_dir, first, _ = seeded
        run_genrental(["approve", str(first)], data_dir)

        result = run_genrental(["check"], data_dir)
        assert result.returncode == 0
        assert "consistent" in result.stdout

    def test_check_reports_problems(self, seeded):
        data_dir, _, _ = seeded
        UnitPool(data_dir / "generators.json").set_availability(3, False)

        result = run_genrental(["check"], data_dir)
        assert result.returncode == 2
        assert "Unit 3 is unavailable" in result.stdout
