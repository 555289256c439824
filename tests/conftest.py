import os
import uuid
from datetime import datetime, timezone
from typing import Generator, Optional

# Keep the app engine off postgres while tests import main
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite:///:memory:")

import pytest
from sqlalchemy import create_engine, StaticPool
from sqlalchemy.orm import sessionmaker, Session
from fastapi.testclient import TestClient
from faker import Faker

from main import app
from models.base import Base
from models import DataTable
from db.session import get_db
from core.errors import NotFoundError, PersistenceError
from schemas.field import FieldDefinition
from schemas.section import PersistedSection
from schemas.table import TableDefinition
from services.field_schema_store import FieldSchemaStore
from services.schema_persistence import SchemaPersistence, TableCatalog
from services.section_manager import SectionManager

fake = Faker()

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={
        "check_same_thread": False,
    },
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a test database session."""
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database session override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def sample_table(db_session: Session) -> DataTable:
    """Create a sample data table for testing."""
    table = DataTable(name=fake.unique.word(), description=fake.sentence())
    db_session.add(table)
    db_session.commit()
    db_session.refresh(table)
    return table


def make_field(table_id, name: str, type: str = "text", **kwargs) -> FieldDefinition:
    """Build a FieldDefinition without touching any storage."""
    return FieldDefinition(
        id=kwargs.pop("id", uuid.uuid4()),
        table_id=table_id,
        name=name,
        type=type,
        options=kwargs.pop("options", {}),
        **kwargs,
    )


class InMemorySchemaPersistence(SchemaPersistence):
    """
    Dict-backed persistence for store and section manager tests.

    Set `fail_on` to the name of a method to make its next call raise
    PersistenceError.
    """

    def __init__(self):
        self.tables: dict[str, TableDefinition] = {}
        self.fields: dict[str, FieldDefinition] = {}
        self.sections: dict[str, PersistedSection] = {}
        self.fail_on: Optional[str] = None
        self.calls: list[str] = []

    def _call(self, name: str) -> None:
        self.calls.append(name)
        if self.fail_on == name:
            self.fail_on = None
            raise PersistenceError(f"Could not {name.replace('_', ' ')}. Please try again.")

    def add_table(self, name: Optional[str] = None) -> TableDefinition:
        table = TableDefinition(id=uuid.uuid4(), name=name or fake.unique.word())
        self.tables[str(table.id)] = table
        return table

    def add_field(self, table_id, name: str, type: str = "text", **kwargs) -> FieldDefinition:
        field = make_field(table_id, name, type, **kwargs)
        self.fields[str(field.id)] = field
        return field

    def add_section(self, table_id, name: str, order_index: int = 0) -> PersistedSection:
        section = PersistedSection(
            id=uuid.uuid4(), table_id=table_id, name=name, display_name=name, order_index=order_index
        )
        self.sections[str(section.id)] = section
        return section

    def load_fields(self, table_id) -> list[FieldDefinition]:
        self._call("load_fields")
        if str(table_id) not in self.tables:
            raise NotFoundError(f"Table '{table_id}' not found")
        return [field for field in self.fields.values() if str(field.table_id) == str(table_id)]

    def find_field(self, field_id) -> Optional[FieldDefinition]:
        self._call("find_field")
        return self.fields.get(str(field_id))

    def save_field(self, table_id, field_id, patch: dict) -> FieldDefinition:
        self._call("save_field")
        if field_id is None:
            field = FieldDefinition(
                id=uuid.uuid4(),
                table_id=table_id,
                created_at=datetime.now(timezone.utc),
                **patch,
            )
        else:
            field = self.fields[str(field_id)].model_copy(update=patch)
        self.fields[str(field.id)] = field
        return field

    def delete_field(self, table_id, field_id) -> None:
        self._call("delete_field")
        del self.fields[str(field_id)]

    def save_field_order(self, table_id, updates) -> None:
        self._call("save_field_order")
        for update in updates:
            key = str(update.item_id)
            self.fields[key] = self.fields[key].model_copy(
                update={"order_index": update.order_index, "group_name": update.container_id}
            )

    def load_sections(self, table_id) -> list[PersistedSection]:
        self._call("load_sections")
        return sorted(
            (s for s in self.sections.values() if str(s.table_id) == str(table_id)),
            key=lambda s: (s.order_index, s.name),
        )

    def save_section(self, table_id, section_id, patch: dict) -> PersistedSection:
        self._call("save_section")
        if section_id is None:
            section = PersistedSection(id=uuid.uuid4(), table_id=table_id, **patch)
        else:
            section = self.sections[str(section_id)].model_copy(update=patch)
        self.sections[str(section.id)] = section
        return section

    def delete_section(self, table_id, section_id) -> None:
        self._call("delete_section")
        del self.sections[str(section_id)]

    def save_section_order(self, table_id, updates) -> None:
        self._call("save_section_order")
        for update in updates:
            key = str(update.item_id)
            self.sections[key] = self.sections[key].model_copy(update={"order_index": update.order_index})

    def load_table(self, table_id) -> TableDefinition:
        self._call("load_table")
        return self.tables[str(table_id)]

    def save_primary_field(self, table_id, primary_field_name) -> TableDefinition:
        self._call("save_primary_field")
        table = self.tables[str(table_id)].model_copy(update={"primary_field_name": primary_field_name})
        self.tables[str(table_id)] = table
        return table


class InMemoryTableCatalog(TableCatalog):
    def __init__(self, persistence: InMemorySchemaPersistence):
        self.persistence = persistence

    def list_tables(self) -> list[TableDefinition]:
        return list(self.persistence.tables.values())

    def list_fields_of(self, table_id) -> list[FieldDefinition]:
        return [f for f in self.persistence.fields.values() if str(f.table_id) == str(table_id)]


@pytest.fixture
def persistence() -> InMemorySchemaPersistence:
    return InMemorySchemaPersistence()


@pytest.fixture
def table(persistence: InMemorySchemaPersistence) -> TableDefinition:
    return persistence.add_table("projects")


@pytest.fixture
def store(persistence: InMemorySchemaPersistence) -> FieldSchemaStore:
    return FieldSchemaStore(persistence, InMemoryTableCatalog(persistence))


@pytest.fixture
def section_manager(persistence: InMemorySchemaPersistence, store: FieldSchemaStore) -> SectionManager:
    return SectionManager(persistence, store)
