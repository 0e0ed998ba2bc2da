"""
Test settings and environment file loading.

Already-set environment variables take precedence over .env values, and the
migration batch threshold must stay below the hard batch limit.
"""

import os

import pytest
from dotenv import load_dotenv
from pydantic import ValidationError

from apitherapy.core.config import (
    MigrationSettings,
    SessionSettings,
    _load_env_file_if_available,
    get_settings,
    reset_settings,
)


@pytest.fixture(autouse=True)
def fresh_settings():
    reset_settings()
    yield
    reset_settings()


def test_defaults(monkeypatch, tmp_path):
    for name in ("SESSION_STORAGE_KEY", "SESSION_AUTOSAVE_SETTLE_MS", "MIGRATION_BATCH_THRESHOLD"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)

    settings = get_settings()
    assert settings.session.storage_key == "apitherapy_current_session"
    assert settings.session.autosave_settle_seconds == pytest.approx(0.4)
    assert settings.migration.batch_threshold == 450
    assert settings.migration.max_batch_operations == 500
    assert settings.migration.record_id == "v1"
    assert settings.migration.renamed_record_id == "patient_level_data"
    assert settings.azure_openai.is_configured is False


def test_env_file_is_discovered_in_parent_directory(monkeypatch, tmp_path):
    # setenv first so teardown removes whatever load_dotenv adds
    for name in ("MIGRATION_BATCH_THRESHOLD", "SESSION_STORAGE_KEY"):
        monkeypatch.setenv(name, "unset")
        monkeypatch.delenv(name)
    (tmp_path / ".env").write_text(
        "MIGRATION_BATCH_THRESHOLD=300\nSESSION_STORAGE_KEY=from_env_file\n"
    )
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    monkeypatch.chdir(nested)

    settings = get_settings()
    assert settings.migration.batch_threshold == 300
    assert settings.session.storage_key == "from_env_file"


def test_already_set_env_vars_take_precedence(monkeypatch, tmp_path):
    """Test that already-set environment variables are not overridden."""
    monkeypatch.setenv("MONGO_URI", "mongodb://already-set:27017/test")
    monkeypatch.setenv("MONGO_DB_NAME", "already_set")

    env_file = tmp_path / "test.env"
    env_file.write_text(
        "MONGO_URI=mongodb://from-env-file:27017/test\nMONGO_DB_NAME=from_env_file\n"
    )
    load_dotenv(dotenv_path=str(env_file), override=False)

    assert os.getenv("MONGO_URI") == "mongodb://already-set:27017/test"
    assert get_settings().database.db_name == "already_set"


def test_no_env_files_no_crash(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    _load_env_file_if_available()


@pytest.mark.parametrize("threshold,limit", [(500, 500), (600, 500), (0, 500)])
def test_threshold_must_stay_below_limit(threshold, limit):
    with pytest.raises(ValidationError):
        MigrationSettings(batch_threshold=threshold, max_batch_operations=limit)


def test_settle_delay_converts_to_seconds():
    assert SessionSettings(autosave_settle_ms=250).autosave_settle_seconds == pytest.approx(0.25)


def test_invalid_mongo_uri_is_rejected(monkeypatch):
    monkeypatch.setenv("MONGO_URI", "postgres://nope")
    with pytest.raises(ValidationError):
        get_settings()
