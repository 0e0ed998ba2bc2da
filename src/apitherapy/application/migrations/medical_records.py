"""
One-time medical record migrations.

``MedicalRecordMigration`` moves the flat clinical fields of every patient
(``condition``, ``severity``, ``lastTreatment``) into a nested
``medical_records/<record_id>`` document and relocates the patient's
``treatments`` under it. ``RecordRenameMigration`` later renames that nested
document, moving its treatments along.

Both walk the patients in enumeration order and stage each patient's
operations as one group, so a batch boundary only falls between patients.
A failed commit aborts the run with ``MigrationCommitError``; there is no
resume checkpoint. Re-running after a partial failure rewrites the same
records and re-deletes absent fields, which is harmless but not atomic
across the collection.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ...core.config import MigrationSettings
from ...core.structured_logger import get_logger
from ..ports.repositories.document_store import (
    DELETE_FIELD,
    CollectionPath,
    DeleteDocument,
    DocumentPath,
    DocumentSnapshot,
    DocumentStore,
    SetDocument,
    UpdateDocument,
    WriteOperation,
)
from .batch import WriteBatchAccumulator

logger = get_logger(__name__)

PATIENTS = CollectionPath.root("patients")
MEDICAL_RECORDS = "medical_records"
TREATMENTS = "treatments"
CLINICAL_FIELDS = ("condition", "severity", "lastTreatment")


@dataclass
class MigrationReport:
    """Outcome of a migration run."""

    name: str
    dry_run: bool = False
    patients_processed: int = 0
    patients_skipped: int = 0
    treatments_moved: int = 0
    batch_sizes: List[int] = field(default_factory=list)

    @property
    def batches_committed(self) -> int:
        return len(self.batch_sizes)

    @property
    def operations_committed(self) -> int:
        return sum(self.batch_sizes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "dry_run": self.dry_run,
            "patients_processed": self.patients_processed,
            "patients_skipped": self.patients_skipped,
            "treatments_moved": self.treatments_moved,
            "batches_committed": self.batches_committed,
            "operations_committed": self.operations_committed,
            "batch_sizes": list(self.batch_sizes),
        }


class _BatchedPatientMigration(ABC):
    """Walks every patient and stages the operations planned for it."""

    name = "migration"

    def __init__(
        self,
        store: DocumentStore,
        settings: Optional[MigrationSettings] = None,
        dry_run: bool = False,
    ) -> None:
        self.store = store
        self.settings = settings or MigrationSettings()
        self.dry_run = dry_run
        self._treatments_in_plan = 0

    @abstractmethod
    async def plan_patient(self, patient: DocumentSnapshot) -> Optional[List[WriteOperation]]:
        """Operations for one patient, or None to skip it."""

    async def run(self) -> MigrationReport:
        report = MigrationReport(name=self.name, dry_run=self.dry_run)
        patients = await self.store.list_documents(PATIENTS)
        if not patients:
            logger.info("no_patients", migration=self.name)
            return report

        accumulator = WriteBatchAccumulator(
            self.store,
            threshold=self.settings.batch_threshold,
            max_operations=self.settings.max_batch_operations,
            dry_run=self.dry_run,
        )
        for patient in patients:
            self._treatments_in_plan = 0
            operations = await self.plan_patient(patient)
            if operations is None:
                report.patients_skipped += 1
                logger.info("patient_skipped", migration=self.name, patient_id=patient.id)
                continue

            await accumulator.add_group(operations)
            report.patients_processed += 1
            report.treatments_moved += self._treatments_in_plan
            logger.info(
                "patient_processed",
                migration=self.name,
                patient_id=patient.id,
                operations=len(operations),
                treatments=self._treatments_in_plan,
            )

        await accumulator.flush()
        report.batch_sizes = list(accumulator.batch_sizes)
        logger.info("migration_done", **report.to_dict())
        return report

    async def _move_treatments(
        self, source: CollectionPath, target: CollectionPath
    ) -> List[WriteOperation]:
        """Copy each treatment to ``target`` and delete the original: two operations per treatment."""
        operations: List[WriteOperation] = []
        for treatment in await self.store.list_documents(source):
            operations.append(SetDocument(target.document(treatment.id), dict(treatment.data)))
            operations.append(DeleteDocument(treatment.path))
        self._treatments_in_plan += len(operations) // 2
        return operations


class MedicalRecordMigration(_BatchedPatientMigration):
    """Flat patient clinical fields -> nested medical record owning the treatments."""

    name = "medical_records"

    async def plan_patient(self, patient: DocumentSnapshot) -> List[WriteOperation]:
        record_path = patient.path.collection(MEDICAL_RECORDS).document(self.settings.record_id)

        # Every key is written; missing or empty values become null
        record_data = {name: patient.data.get(name) or None for name in CLINICAL_FIELDS}
        operations: List[WriteOperation] = [SetDocument(record_path, record_data)]

        operations.extend(
            await self._move_treatments(
                patient.path.collection(TREATMENTS), record_path.collection(TREATMENTS)
            )
        )

        operations.append(
            UpdateDocument(patient.path, {name: DELETE_FIELD for name in CLINICAL_FIELDS})
        )
        return operations


class RecordRenameMigration(_BatchedPatientMigration):
    """Rename ``medical_records/<record_id>`` to ``medical_records/<renamed_record_id>``."""

    name = "rename_medical_record"

    async def plan_patient(self, patient: DocumentSnapshot) -> Optional[List[WriteOperation]]:
        records = patient.path.collection(MEDICAL_RECORDS)
        old_path: DocumentPath = records.document(self.settings.record_id)
        old_record = await self.store.get_document(old_path)
        if old_record is None:
            return None

        new_path = records.document(self.settings.renamed_record_id)
        operations: List[WriteOperation] = [SetDocument(new_path, dict(old_record.data))]
        operations.extend(
            await self._move_treatments(
                old_path.collection(TREATMENTS), new_path.collection(TREATMENTS)
            )
        )
        operations.append(DeleteDocument(old_path))
        return operations


async def verify_medical_records(
    store: DocumentStore, record_id: str
) -> Dict[str, Any]:
    """Count patients still carrying flat clinical fields, top-level treatments,
    or no ``medical_records/<record_id>`` document."""
    result = {
        "patients": 0,
        "flat_fields_remaining": 0,
        "treatments_remaining": 0,
        "missing_record": 0,
    }
    for patient in await store.list_documents(PATIENTS):
        result["patients"] += 1
        if any(name in patient.data for name in CLINICAL_FIELDS):
            result["flat_fields_remaining"] += 1
        if await store.list_documents(patient.path.collection(TREATMENTS)):
            result["treatments_remaining"] += 1
        record = patient.path.collection(MEDICAL_RECORDS).document(record_id)
        if await store.get_document(record) is None:
            result["missing_record"] += 1
    logger.info("verification_done", record_id=record_id, **result)
    return result
