"""Persistence boundary for the schema engine

The store and the section manager only talk to these two interfaces. The
database implementations wrap the repositories and turn every storage
failure into a PersistenceError so callers can apply refetch-and-replace.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.errors import NotFoundError, PersistenceError
from core.logging_config import get_logger
from repositories.field_repository import FieldRepository
from repositories.section_repository import SectionRepository
from repositories.table_repository import TableRepository
from schemas.field import FieldDefinition
from schemas.section import PersistedSection
from schemas.table import TableDefinition
from services.reorder_engine import OrderUpdate

logger = get_logger(__name__)


class SchemaPersistence(ABC):
    """Reads and writes the authoritative field and section state of tables"""

    @abstractmethod
    def load_fields(self, table_id) -> list[FieldDefinition]:
        ...

    @abstractmethod
    def find_field(self, field_id) -> Optional[FieldDefinition]:
        ...

    @abstractmethod
    def save_field(self, table_id, field_id, patch: dict) -> FieldDefinition:
        """Create a field when `field_id` is None, otherwise apply `patch`"""

    @abstractmethod
    def delete_field(self, table_id, field_id) -> None:
        ...

    @abstractmethod
    def save_field_order(self, table_id, updates: list[OrderUpdate]) -> None:
        """Store order_index and section (the update's container) of each field"""

    @abstractmethod
    def load_sections(self, table_id) -> list[PersistedSection]:
        ...

    @abstractmethod
    def save_section(self, table_id, section_id, patch: dict) -> PersistedSection:
        """Create a section when `section_id` is None, otherwise apply `patch`"""

    @abstractmethod
    def delete_section(self, table_id, section_id) -> None:
        ...

    @abstractmethod
    def save_section_order(self, table_id, updates: list[OrderUpdate]) -> None:
        ...

    @abstractmethod
    def load_table(self, table_id) -> TableDefinition:
        ...

    @abstractmethod
    def save_primary_field(self, table_id, primary_field_name: Optional[str]) -> TableDefinition:
        ...


class TableCatalog(ABC):
    """Read-only view of all tables, used to configure links and lookups"""

    @abstractmethod
    def list_tables(self) -> list[TableDefinition]:
        ...

    @abstractmethod
    def list_fields_of(self, table_id) -> list[FieldDefinition]:
        ...


@contextmanager
def storage_errors(session: Session, action: str) -> Iterator[None]:
    """Roll back and re-raise storage failures as PersistenceError"""
    try:
        yield
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Failed to {action}: {e}")
        raise PersistenceError(f"Could not {action}. Please try again.") from e


def _uuid(value) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise NotFoundError(f"'{value}' is not a valid id")


class DatabaseSchemaPersistence(SchemaPersistence):
    def __init__(self, session: Session):
        self.session = session
        self.tables = TableRepository(session)
        self.fields = FieldRepository(session)
        self.sections = SectionRepository(session)

    def load_fields(self, table_id) -> list[FieldDefinition]:
        with storage_errors(self.session, "load fields"):
            self.tables.get_or_404(_uuid(table_id))
            rows = self.fields.get_all_by_table(_uuid(table_id))
            return [FieldDefinition.model_validate(row) for row in rows]

    def find_field(self, field_id) -> Optional[FieldDefinition]:
        with storage_errors(self.session, "load field"):
            row = self.fields.get(_uuid(field_id))
            return FieldDefinition.model_validate(row) if row else None

    def save_field(self, table_id, field_id, patch: dict) -> FieldDefinition:
        with storage_errors(self.session, "save field"):
            if field_id is None:
                row = self.fields.create(_uuid(table_id), patch)
            else:
                row = self.fields.get_or_404(_uuid(field_id), _uuid(table_id))
                row = self.fields.update(row, patch)
            return FieldDefinition.model_validate(row)

    def delete_field(self, table_id, field_id) -> None:
        with storage_errors(self.session, "delete field"):
            row = self.fields.get_or_404(_uuid(field_id), _uuid(table_id))
            self.fields.delete(row)

    def save_field_order(self, table_id, updates: list[OrderUpdate]) -> None:
        if not updates:
            return
        with storage_errors(self.session, "save field order"):
            self.fields.bulk_update_order(
                _uuid(table_id),
                [
                    {
                        "id": _uuid(update.item_id),
                        "order_index": update.order_index,
                        "group_name": update.container_id,
                    }
                    for update in updates
                ],
            )

    def load_sections(self, table_id) -> list[PersistedSection]:
        with storage_errors(self.session, "load sections"):
            rows = self.sections.get_all_by_table(_uuid(table_id))
            return [PersistedSection.model_validate(row) for row in rows]

    def save_section(self, table_id, section_id, patch: dict) -> PersistedSection:
        with storage_errors(self.session, "save section"):
            if section_id is None:
                row = self.sections.create(_uuid(table_id), patch)
            else:
                row = self.sections.get_or_404(_uuid(section_id), _uuid(table_id))
                row = self.sections.update(row, patch)
            return PersistedSection.model_validate(row)

    def delete_section(self, table_id, section_id) -> None:
        with storage_errors(self.session, "delete section"):
            row = self.sections.get_or_404(_uuid(section_id), _uuid(table_id))
            self.sections.delete(row)

    def save_section_order(self, table_id, updates: list[OrderUpdate]) -> None:
        if not updates:
            return
        with storage_errors(self.session, "save section order"):
            self.sections.bulk_update_order(
                _uuid(table_id),
                [{"id": _uuid(update.item_id), "order_index": update.order_index} for update in updates],
            )

    def load_table(self, table_id) -> TableDefinition:
        with storage_errors(self.session, "load table"):
            return TableDefinition.model_validate(self.tables.get_or_404(_uuid(table_id)))

    def save_primary_field(self, table_id, primary_field_name: Optional[str]) -> TableDefinition:
        with storage_errors(self.session, "save primary field"):
            table = self.tables.get_or_404(_uuid(table_id))
            return TableDefinition.model_validate(self.tables.set_primary_field(table, primary_field_name))


class DatabaseTableCatalog(TableCatalog):
    def __init__(self, session: Session):
        self.session = session
        self.tables = TableRepository(session)
        self.fields = FieldRepository(session)

    def list_tables(self) -> list[TableDefinition]:
        with storage_errors(self.session, "list tables"):
            return [TableDefinition.model_validate(row) for row in self.tables.get_all()]

    def list_fields_of(self, table_id) -> list[FieldDefinition]:
        with storage_errors(self.session, "list fields"):
            return [FieldDefinition.model_validate(row) for row in self.fields.get_all_by_table(_uuid(table_id))]
