"""
Record store

Generic CRUD over named collections backed by SQLModel tables. Every update
bumps the record version; callers that read a version can pass it back as
expected_version to get a compare-and-set write.
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Type, Union
import uuid

from sqlalchemy import update as sa_update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select
import structlog

from kitchenflow.core.clock import utcnow
from kitchenflow.core.exceptions import NotFound, StoreError, VersionConflict
from kitchenflow.models import KdsTicket, MenuCategory, MenuItem, Order, OrderItem, Tenant

logger = structlog.get_logger(__name__)

COLLECTIONS: Dict[str, Type[SQLModel]] = {
    "orders": Order,
    "orderItem": OrderItem,
    "kdsTicket": KdsTicket,
    "menuCategory": MenuCategory,
    "menuItem": MenuItem,
    "tenant": Tenant,
}


def _as_uuid(value: Any) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


class RecordStore:
    """CRUD facade over the collections the order pipeline reads and writes"""

    def __init__(self, session: Session):
        self.session = session

    def _model(self, collection: str) -> Type[SQLModel]:
        model = COLLECTIONS.get(collection)
        if model is None:
            raise StoreError(f"Unknown collection: {collection}")
        return model

    def _coerce(self, model: Type[SQLModel], fields: Dict[str, Any]) -> Dict[str, Any]:
        """Validate field names and turn raw enum values into enum members"""
        values = {}
        for name, value in fields.items():
            field = model.model_fields.get(name)
            if field is None:
                raise StoreError(f"Unknown field {name} for {model.__tablename__}")
            annotation = field.annotation
            if (
                value is not None
                and isinstance(annotation, type)
                and issubclass(annotation, Enum)
                and not isinstance(value, annotation)
            ):
                try:
                    value = annotation(value)
                except ValueError as e:
                    raise StoreError(f"Invalid value {value!r} for {name}") from e
            values[name] = value
        return values

    def _fail(self, action: str, collection: str, error: Exception) -> StoreError:
        self.session.rollback()
        logger.error(f"Record store {action} failed on {collection}: {error}")
        return StoreError(f"Failed to {action} {collection} record")

    def get(self, collection: str, record_id: Any, tenant_id: Optional[uuid.UUID] = None):
        """Fetch one record; records of another tenant are reported as missing"""
        model = self._model(collection)
        key = _as_uuid(record_id)
        if key is None:
            raise NotFound(collection, record_id)
        try:
            record = self.session.get(model, key)
        except SQLAlchemyError as e:
            raise self._fail("read", collection, e) from e
        if record is None:
            raise NotFound(collection, record_id)
        if tenant_id is not None and record.tenant_id != tenant_id:
            raise NotFound(collection, record_id)
        return record

    def list(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        sort: Union[str, Iterable[str], None] = None,
        limit: Optional[int] = None,
    ) -> List[Any]:
        """List records matching equality filters; sort keys use "-field" for descending"""
        model = self._model(collection)
        query = select(model)

        for name, value in (filters or {}).items():
            column = getattr(model, name, None)
            if column is None:
                raise StoreError(f"Unknown filter field {name} for {collection}")
            if isinstance(value, (list, tuple, set)):
                query = query.where(column.in_(list(value)))
            else:
                query = query.where(column == value)

        if isinstance(sort, str):
            sort = [sort]
        for key in sort or []:
            descending = key.startswith("-")
            column = getattr(model, key.lstrip("-"), None)
            if column is None:
                raise StoreError(f"Unknown sort field {key} for {collection}")
            query = query.order_by(column.desc() if descending else column.asc())

        if limit is not None:
            query = query.limit(limit)

        try:
            return list(self.session.exec(query).all())
        except SQLAlchemyError as e:
            raise self._fail("list", collection, e) from e

    def create(self, collection: str, fields: Dict[str, Any]):
        """Insert a record and return it refreshed"""
        model = self._model(collection)
        record = model(**self._coerce(model, fields))
        try:
            self.session.add(record)
            self.session.commit()
            self.session.refresh(record)
        except SQLAlchemyError as e:
            raise self._fail("create", collection, e) from e
        return record

    def update(
        self,
        collection: str,
        record_id: Any,
        fields: Dict[str, Any],
        expected_version: Optional[int] = None,
    ):
        """Apply fields to a record, bumping its version

        The write only lands if the stored version is still the one that was
        read, so two racing writers cannot silently overwrite each other.
        """
        model = self._model(collection)
        values = self._coerce(model, fields)
        record = self.get(collection, record_id)

        current_version = record.version
        if expected_version is not None and expected_version != current_version:
            raise VersionConflict(collection, record.id, expected_version)

        values["version"] = current_version + 1
        values["updated_at"] = utcnow()

        statement = (
            sa_update(model)
            .where(model.id == record.id, model.version == current_version)
            .values(**values)
        )
        try:
            result = self.session.execute(statement)
            if result.rowcount == 0:
                self.session.rollback()
                raise VersionConflict(collection, record.id, current_version)
            self.session.commit()
            self.session.refresh(record)
        except SQLAlchemyError as e:
            raise self._fail("update", collection, e) from e
        return record
