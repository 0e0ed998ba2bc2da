"""
Command line checks for scripts/migrate_medical_records.py.
"""

import importlib.util
from pathlib import Path

import pytest

from apitherapy.core.config import reset_settings
from apitherapy.core.exceptions import DatabaseError

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "migrate_medical_records.py"


@pytest.fixture
def script():
    spec = importlib.util.spec_from_file_location("migrate_medical_records", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("MONGO_URI", "")
    reset_settings()
    yield
    reset_settings()


def test_migration_requires_mode(script, capsys):
    assert script.main(["restructure"]) == 2
    assert "--execute" in capsys.readouterr().out


def test_modes_are_exclusive(script):
    with pytest.raises(SystemExit):
        script.main(["restructure", "--dry-run", "--execute"])


def test_missing_mongo_uri_is_reported(script):
    assert script.main(["restructure", "--dry-run"]) == 2


class _UnreachableStore:
    closed = False

    def __init__(self, client, db_name, use_transactions=True):
        pass

    async def list_documents(self, collection):
        raise DatabaseError(f"Failed to list {collection}: server selection timed out")

    def close(self):
        _UnreachableStore.closed = True


@pytest.mark.parametrize(
    "argv",
    [["restructure", "--execute"], ["rename-record", "--dry-run"], ["verify"]],
)
def test_database_errors_exit_with_failure(script, monkeypatch, argv):
    monkeypatch.setattr(script, "create_motor_client", lambda settings: object())
    monkeypatch.setattr(script, "MongoDocumentStore", _UnreachableStore)
    _UnreachableStore.closed = False

    assert script.main(argv) == 1
    assert _UnreachableStore.closed is True
