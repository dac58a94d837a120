"""
Record stores for the vehicle model catalog.

Handlers only talk to ``RecordStore``; the backend is picked when the
application is built. Both backends insert atomically: a create for an
``id`` that already exists raises ``Conflict`` no matter how many
requests race for it.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.engine import Engine

from keitruckhub.database import Base, build_session_factory
from keitruckhub.database_models import VehicleModelRecord
from keitruckhub.errors import Conflict, NotFound, StorageError
from keitruckhub.models.vehicle_model import VehicleModel

logger = logging.getLogger(__name__)

# Fields an update may change; id is never among them
MUTABLE_FIELDS = ("name", "year", "description", "image_url")


def _merge_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: fields[key] for key in MUTABLE_FIELDS if key in fields and fields[key] is not None}


class RecordStore(ABC):
    """Persistence contract for VehicleModel records."""

    def initialize(self) -> None:
        """Prepare the backend (create tables, ...). Safe to call twice."""

    @abstractmethod
    def list_all(self) -> List[VehicleModel]:
        """Every record, sorted by id ascending."""

    @abstractmethod
    def find_by_id(self, model_id: str) -> Optional[VehicleModel]:
        ...

    @abstractmethod
    def create(self, record: VehicleModel) -> VehicleModel:
        """Insert ``record``; raise ``Conflict`` if its id is taken."""

    @abstractmethod
    def update(self, model_id: str, fields: Mapping[str, Any]) -> VehicleModel:
        """Merge the mutable ``fields`` into the record; raise ``NotFound`` if absent."""

    @abstractmethod
    def delete(self, model_id: str) -> None:
        """Remove the record; raise ``NotFound`` if absent."""

    @abstractmethod
    def count(self) -> int:
        ...


class MemoryRecordStore(RecordStore):
    """Dict-backed store. The lock makes check-then-insert atomic."""

    def __init__(self):
        self._records: Dict[str, VehicleModel] = {}
        self._lock = threading.Lock()

    def list_all(self) -> List[VehicleModel]:
        with self._lock:
            return [self._records[key].model_copy() for key in sorted(self._records)]

    def find_by_id(self, model_id: str) -> Optional[VehicleModel]:
        with self._lock:
            record = self._records.get(model_id)
            return record.model_copy() if record else None

    def create(self, record: VehicleModel) -> VehicleModel:
        with self._lock:
            if record.id in self._records:
                raise Conflict(record.id)
            self._records[record.id] = record.model_copy()
            return record.model_copy()

    def update(self, model_id: str, fields: Mapping[str, Any]) -> VehicleModel:
        with self._lock:
            current = self._records.get(model_id)
            if current is None:
                raise NotFound()
            updated = current.model_copy(update=_merge_fields(fields))
            self._records[model_id] = updated
            return updated.model_copy()

    def delete(self, model_id: str) -> None:
        with self._lock:
            if self._records.pop(model_id, None) is None:
                raise NotFound()

    def count(self) -> int:
        with self._lock:
            return len(self._records)


class SqlRecordStore(RecordStore):
    """SQLAlchemy-backed store; uniqueness comes from the primary key."""

    def __init__(self, engine: Engine):
        self._engine = engine
        self._session_factory = build_session_factory(engine)

    @staticmethod
    def _to_model(row: VehicleModelRecord) -> VehicleModel:
        return VehicleModel(
            id=row.id,
            name=row.name,
            year=row.year,
            description=row.description or "",
            image_url=row.image_url or "",
        )

    def initialize(self) -> None:
        try:
            Base.metadata.create_all(bind=self._engine)
        except SQLAlchemyError as e:
            logger.exception("Could not create catalog tables")
            raise StorageError(str(e)) from e

    def list_all(self) -> List[VehicleModel]:
        db = self._session_factory()
        try:
            rows = db.query(VehicleModelRecord).order_by(VehicleModelRecord.id).all()
            return [self._to_model(row) for row in rows]
        except SQLAlchemyError as e:
            logger.error("Error listing models: %s", e)
            raise StorageError(str(e)) from e
        finally:
            db.close()

    def find_by_id(self, model_id: str) -> Optional[VehicleModel]:
        db = self._session_factory()
        try:
            row = db.get(VehicleModelRecord, model_id)
            return self._to_model(row) if row else None
        except SQLAlchemyError as e:
            logger.error("Error loading model %r: %s", model_id, e)
            raise StorageError(str(e)) from e
        finally:
            db.close()

    def create(self, record: VehicleModel) -> VehicleModel:
        db = self._session_factory()
        try:
            row = VehicleModelRecord(
                id=record.id,
                name=record.name,
                year=record.year,
                description=record.description,
                image_url=record.image_url,
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            return self._to_model(row)
        except IntegrityError:
            db.rollback()
            raise Conflict(record.id) from None
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Error creating model %r: %s", record.id, e)
            raise StorageError(str(e)) from e
        finally:
            db.close()

    def update(self, model_id: str, fields: Mapping[str, Any]) -> VehicleModel:
        db = self._session_factory()
        try:
            row = db.get(VehicleModelRecord, model_id)
            if row is None:
                raise NotFound()
            for key, value in _merge_fields(fields).items():
                setattr(row, key, value)
            db.commit()
            db.refresh(row)
            return self._to_model(row)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Error updating model %r: %s", model_id, e)
            raise StorageError(str(e)) from e
        finally:
            db.close()

    def delete(self, model_id: str) -> None:
        db = self._session_factory()
        try:
            row = db.get(VehicleModelRecord, model_id)
            if row is None:
                raise NotFound()
            db.delete(row)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Error deleting model %r: %s", model_id, e)
            raise StorageError(str(e)) from e
        finally:
            db.close()

    def count(self) -> int:
        db = self._session_factory()
        try:
            return db.query(VehicleModelRecord).count()
        except SQLAlchemyError as e:
            logger.error("Error counting models: %s", e)
            raise StorageError(str(e)) from e
        finally:
            db.close()
