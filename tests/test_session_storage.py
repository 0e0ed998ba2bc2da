"""
Durable session slot tests.
"""

import json

import pytest

from apitherapy.adapters.storage.local_session_storage import (
    FileSessionRepository,
    InMemorySessionRepository,
)
from apitherapy.core.constants import find_protocol
from apitherapy.core.exceptions import SessionStorageError
from apitherapy.domain.entities.patient import PatientRecord
from apitherapy.domain.entities.session import SessionState


@pytest.fixture
def state():
    return SessionState(
        patient=PatientRecord(full_name="Ana", age=52, condition="Osteoarthritis",
                              severity="Severe", allergies_confirmed=True),
        selected_protocol=find_protocol("p1"),
        applied_points=["li4_l", "st36_r"],
    )


def test_file_slot_missing_loads_none(tmp_path):
    assert FileSessionRepository(tmp_path, "slot").load() is None


def test_file_slot_save_load_clear(tmp_path, state):
    repo = FileSessionRepository(tmp_path / "nested", "apitherapy_current_session")
    assert repo.save(state) is True
    assert repo.path.name == "apitherapy_current_session.json"
    assert not repo.path.with_name(repo.path.name + ".tmp").exists()

    raw = json.loads(repo.path.read_text(encoding="utf-8"))
    assert set(raw) == {"patient", "selectedProtocol", "appliedPoints"}
    assert raw["selectedProtocol"]["recommendedPoints"] == ["st36_l", "st36_r", "li4_l", "li4_r"]
    assert raw["patient"]["severity"] == "severe"

    assert repo.load() == state

    repo.clear()
    assert repo.load() is None
    repo.clear()


def test_file_slot_overwrites_wholesale(tmp_path, state):
    repo = FileSessionRepository(tmp_path, "slot")
    repo.save(state)
    repo.save(SessionState.empty())
    assert repo.load() == SessionState.empty()


def test_corrupt_file_loads_none(tmp_path):
    repo = FileSessionRepository(tmp_path, "slot")
    repo.path.write_text("{\"patient\": ", encoding="utf-8")
    assert repo.load() is None


def test_unwritable_slot_raises_storage_error(tmp_path, state):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    repo = FileSessionRepository(blocker, "slot")
    with pytest.raises(SessionStorageError):
        repo.save(state)


def test_in_memory_slot_keeps_raw_json(state):
    repo = InMemorySessionRepository()
    repo.save(state)
    assert json.loads(repo.raw)["appliedPoints"] == ["li4_l", "st36_r"]
    assert repo.load() == state
    assert repo.save_count == 1
    repo.clear()
    assert repo.raw is None
