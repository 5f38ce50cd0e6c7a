"""
In-memory registry of the operator's tracked objects.

The matcher and RIC decomposition read from it. The only feed that writes
to it is the TLE refresh, which replaces element sets by NORAD id.
Objects carrying a TLE get their state vector and altitude refreshed with
SGP4 on demand.
"""
import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from eyewitness.models.tracked_object import TrackedObject
from eyewitness.schemas.feeds import TleRecord, TrackedObjectRecord, validate_records
from eyewitness.services.propagation import PropagationError, state_vector_at

logger = logging.getLogger(__name__)


class ObjectRegistry:
    def __init__(self, objects: Optional[Iterable[TrackedObject]] = None):
        self._lock = threading.Lock()
        self._objects: Dict[str, TrackedObject] = {}
        for obj in objects or []:
            self._objects[obj.id] = obj

    def add(self, obj: TrackedObject) -> TrackedObject:
        with self._lock:
            self._objects[obj.id] = obj
        return obj

    def get(self, object_id: str) -> Optional[TrackedObject]:
        with self._lock:
            return self._objects.get(object_id)

    def list(self) -> List[TrackedObject]:
        with self._lock:
            return list(self._objects.values())

    def remove(self, object_id: str) -> bool:
        with self._lock:
            return self._objects.pop(object_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._objects.clear()

    def update_tles(self, records: Iterable[TleRecord]) -> int:
        """
        Attach fresh element sets to tracked objects by NORAD catalog number.
        Records for objects the operator does not track are ignored.
        """
        by_norad = {record.norad_id: record for record in records}
        updated = 0

        with self._lock:
            for object_id, obj in list(self._objects.items()):
                record = by_norad.get(obj.norad_id)
                if record is None:
                    continue
                if (obj.tle_line1, obj.tle_line2) == (record.line1, record.line2):
                    continue
                self._objects[object_id] = obj.model_copy(
                    update={"tle_line1": record.line1, "tle_line2": record.line2}
                )
                updated += 1

        logger.info(f"Updated TLEs for {updated} of {len(by_norad)} received element sets")
        return updated

    def refresh_states(self, when: Optional[datetime] = None) -> int:
        """
        Propagate every object that has a TLE to `when`.
        Returns how many objects were updated; failures are logged and skipped.
        """
        when = when or datetime.now(timezone.utc)
        updated = 0

        for obj in self.list():
            if not obj.has_tle:
                continue
            try:
                state = state_vector_at(obj.tle_line1, obj.tle_line2, when)
            except PropagationError as e:
                logger.warning(f"Propagation failed for {obj.id} ({obj.name}): {e}")
                continue

            self.add(
                obj.model_copy(
                    update={
                        "position": state.position,
                        "velocity": state.velocity,
                        "altitude_km": state.altitude_km,
                        "state_epoch": state.epoch,
                    }
                )
            )
            updated += 1

        logger.info(f"Refreshed state vectors for {updated} tracked objects")
        return updated


def load_tracked_objects(path: str) -> List[TrackedObject]:
    """Read a JSON array of tracked-object records; invalid entries are skipped."""
    file_path = Path(path)
    if not file_path.exists():
        logger.warning(f"Tracked objects file not found: {file_path}")
        return []

    rows = json.loads(file_path.read_text(encoding="utf-8"))
    if not isinstance(rows, list):
        logger.warning(f"Tracked objects file {file_path} is not a JSON array")
        return []

    records, _ = validate_records(rows, TrackedObjectRecord)
    return [TrackedObject(**record.model_dump()) for record in records]
