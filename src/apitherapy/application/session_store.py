"""
Treatment session store.

Owns the single in-memory ``SessionState`` of a caretaker session, mirrors
every mutation to the durable slot through the injected repository, and
restores it on start. Storage failures are logged and never interrupt the
session: the in-memory state stays authoritative and the next mutation
simply writes again.
"""

import copy
import json
import logging
import secrets
import string
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Union

from ..core.constants import EXPORT_FILE_PREFIX, SUMMARY_REFERENCE_PREFIX, find_point
from ..core.exceptions import SessionStorageError
from ..core.utils.datetime_utils import epoch_millis, get_current_timestamp, minutes_between
from ..domain.entities.patient import PatientRecord
from ..domain.entities.protocol import Protocol
from ..domain.entities.session import SessionState, TreatmentSummary
from ..domain.enums.workflow import AppView, TreatmentStep
from ..domain.errors import PreconditionViolationError, SessionFinalizedError
from ..domain.value_objects.point_id import PointId
from .autosave import AutosaveIndicator
from .ports.repositories.session_repo import SessionRepository

logger = logging.getLogger(__name__)

_REFERENCE_ALPHABET = string.ascii_uppercase + string.digits


class SessionStore:
    """Single authoritative caretaker session with debounced autosave."""

    def __init__(
        self,
        repository: SessionRepository,
        indicator: AutosaveIndicator,
        clock: Callable[[], datetime] = get_current_timestamp,
    ) -> None:
        self._repository = repository
        self._indicator = indicator
        self._clock = clock
        self._summary: Optional[TreatmentSummary] = None
        self.active_view = AppView.TREATMENT
        self.started_at = clock()
        self.ended_at: Optional[datetime] = None
        self.state = SessionState.empty()
        self.step = TreatmentStep.INTAKE
        self.restore()

    # ------------------------------------------------------------------
    # Restore / persistence
    # ------------------------------------------------------------------

    def restore(self) -> SessionState:
        """Adopt the durable session, or the empty default when there is none."""
        try:
            restored = self._repository.load()
        except SessionStorageError as e:
            logger.warning(f"Could not read stored session, starting empty: {e.message}")
            restored = None

        self.state = restored if restored is not None else SessionState.empty()
        self.step = self.state.derive_step()
        self._summary = None
        self.ended_at = None
        logger.info(f"Session restored at step '{self.step.value}'")
        return self.state

    @property
    def autosave_active(self) -> bool:
        return self.active_view == AppView.TREATMENT

    @property
    def is_saving(self) -> bool:
        return self._indicator.is_saving

    @property
    def last_saved_at(self) -> Optional[datetime]:
        return self._indicator.last_saved_at

    def _autosave(self) -> None:
        if not self.autosave_active:
            logger.debug(f"Autosave suspended while '{self.active_view.value}' is in focus")
            return
        self._indicator.begin()
        try:
            self._repository.save(self.state)
        except SessionStorageError as e:
            logger.warning(f"Autosave failed, keeping in-memory session: {e.message}")

    # ------------------------------------------------------------------
    # Treatment flow
    # ------------------------------------------------------------------

    def _ensure_not_finalized(self, operation: str) -> None:
        if self.step == TreatmentStep.SUMMARY:
            raise SessionFinalizedError(operation)

    def submit_patient(self, record: Optional[PatientRecord]) -> bool:
        """Set the patient and advance to protocol selection.

        Incomplete records are ignored: nothing changes and False is returned.
        """
        self._ensure_not_finalized("submit a patient")
        if record is None or not record.is_complete():
            logger.debug("Ignoring incomplete patient record")
            return False

        self.state.patient = record
        self.step = TreatmentStep.SELECTION
        self._autosave()
        return True

    def select_protocol(self, protocol: Protocol) -> None:
        """Set the protocol and advance to the interactive map."""
        self._ensure_not_finalized("select a protocol")
        if self.state.patient is None:
            raise PreconditionViolationError(
                "select a protocol", "patient intake must be submitted first"
            )

        self.state.selected_protocol = protocol
        self.step = TreatmentStep.INTERACTIVE_MAP
        self._autosave()

    def toggle_point(self, point_id: Union[str, PointId]) -> bool:
        """Apply or un-apply a point. Returns True when the point is now applied."""
        self._ensure_not_finalized("toggle a point")
        if self.step != TreatmentStep.INTERACTIVE_MAP:
            raise PreconditionViolationError(
                "toggle a point", "a patient and a protocol must be selected first"
            )
        key = point_id.value if isinstance(point_id, PointId) else PointId(point_id).value
        applied = self.state.toggle_point(key)
        self._autosave()
        return applied

    def finalize(self) -> TreatmentSummary:
        """Record the end time and move to the summary phase."""
        self._ensure_not_finalized("finalize")
        patient = self.state.patient
        protocol = self.state.selected_protocol
        if patient is None or protocol is None:
            raise PreconditionViolationError(
                "finalize", "a patient and a protocol must be selected first"
            )

        self.ended_at = self._clock()
        self._summary = TreatmentSummary(
            reference_id=SUMMARY_REFERENCE_PREFIX
            + "".join(secrets.choice(_REFERENCE_ALPHABET) for _ in range(9)),
            patient=copy.deepcopy(patient),
            protocol=protocol,
            applied_points=tuple(
                (point_id, self._point_name(point_id)) for point_id in self.state.applied_points
            ),
            started_at=self.started_at,
            ended_at=self.ended_at,
            duration_minutes=minutes_between(self.started_at, self.ended_at),
        )
        self.step = TreatmentStep.SUMMARY
        logger.info(
            f"Session finalized: {self._summary.reference_id} "
            f"({self._summary.sting_count} stings, {self._summary.duration_minutes}m)"
        )
        return self._summary

    def summary(self) -> Optional[TreatmentSummary]:
        return self._summary

    def reset(self, confirmed: bool) -> bool:
        """Clear the durable slot and start over at intake.

        Destructive, so it only proceeds when ``confirmed`` is true; otherwise
        nothing is touched and False is returned.
        """
        if not confirmed:
            logger.info("Session reset declined")
            return False

        try:
            self._repository.clear()
        except SessionStorageError as e:
            logger.warning(f"Could not clear stored session: {e.message}")

        self._indicator.cancel()
        self.state = SessionState.empty()
        self.step = TreatmentStep.INTAKE
        self._summary = None
        self.started_at = self._clock()
        self.ended_at = None
        logger.info("Session reset")
        return True

    def set_active_view(self, view: Union[str, AppView]) -> None:
        """Switch the top-level view. Autosave runs only while the treatment view is in focus."""
        view = AppView(view)
        previous = self.active_view
        self.active_view = view
        if view == previous:
            return
        if view == AppView.TREATMENT:
            self._autosave()
        else:
            self._indicator.cancel()

    # ------------------------------------------------------------------
    # Snapshot / export
    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        return self.state.to_dict()

    def export_filename(self) -> str:
        return f"{EXPORT_FILE_PREFIX}{epoch_millis(self._clock())}.json"

    def export_json(self) -> str:
        """Serialize a read-only copy of the in-memory state. Not part of the persistence contract."""
        return json.dumps(self.snapshot(), ensure_ascii=False)

    def status(self) -> Dict[str, Any]:
        return {
            "step": self.step.value,
            "active_view": self.active_view.value,
            "autosave_active": self.autosave_active,
            "is_saving": self.is_saving,
            "last_saved_at": self.last_saved_at.isoformat() if self.last_saved_at else None,
        }

    @staticmethod
    def _point_name(point_id: str) -> str:
        point = find_point(point_id)
        return point.name if point else point_id
