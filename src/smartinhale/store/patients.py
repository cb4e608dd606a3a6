"""Patient registry persisted alongside the event store."""

import logging

from pydantic import ValidationError

from smartinhale.constants import DEFAULT_PATIENT, PATIENTS_KEY
from smartinhale.models.event import Patient
from smartinhale.store.blob_store import BlobStore, PersistenceError

logger = logging.getLogger(__name__)


class PatientRegistry:
    """Static patient list; defaults to a single patient."""

    def __init__(self, blob_store: BlobStore, key: str = PATIENTS_KEY) -> None:
        self._blob_store = blob_store
        self._key = key
        self._patients: tuple[Patient, ...] = ()

    @property
    def key(self) -> str:
        return self._key

    def load_initial(self) -> tuple[Patient, ...]:
        """Restore patients, falling back to the default patient."""
        try:
            stored = self._blob_store.load(self._key)
        except PersistenceError as e:
            logger.error(f"Could not load patient registry: {e}")
            stored = None

        patients: list[Patient] = []
        if isinstance(stored, list):
            for record in stored:
                try:
                    patients.append(Patient.model_validate(record))
                except ValidationError as e:
                    logger.warning(f"Skipping malformed patient {record!r}: {e}")

        if not patients:
            patients = [Patient.model_validate(DEFAULT_PATIENT)]
            self._patients = tuple(patients)
            self.save()
        else:
            self._patients = tuple(patients)
        return self._patients

    def all(self) -> tuple[Patient, ...]:
        return self._patients

    def default(self) -> Patient | None:
        return self._patients[0] if self._patients else None

    def save(self) -> None:
        """Write the full registry snapshot."""
        try:
            self._blob_store.save(self._key, [p.to_record() for p in self._patients])
        except PersistenceError as e:
            logger.error(f"Patient registry write failed: {e}")
