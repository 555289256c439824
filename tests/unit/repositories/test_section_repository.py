import pytest
from unittest.mock import Mock
from uuid import uuid4

from core.errors import NotFoundError, ValidationError
from models import FieldSection
from repositories.section_repository import SectionRepository


@pytest.mark.unit
class TestSectionRepository:

    def setup_method(self):
        """Set up test data for each test."""
        self.mock_db = Mock()
        self.repository = SectionRepository(self.mock_db)

        self.table_id = uuid4()
        self.section_id = uuid4()

        self.mock_section = Mock(spec=FieldSection)
        self.mock_section.id = self.section_id
        self.mock_section.table_id = self.table_id
        self.mock_section.name = "Billing"
        self.mock_section.order_index = 0

    def test_get_or_404_not_found(self):
        self.mock_db.scalar.return_value = None

        with pytest.raises(NotFoundError):
            self.repository.get_or_404(self.section_id, self.table_id)

    def test_create(self):
        self.mock_db.scalar.return_value = None

        result = self.repository.create(self.table_id, {"name": "Notes", "order_index": 2, "kind": "virtual"})

        assert isinstance(result, FieldSection)
        assert result.name == "Notes"
        assert result.order_index == 2
        assert result.permissions == {}
        self.mock_db.add.assert_called_once_with(result)
        self.mock_db.commit.assert_called_once()

    def test_create_duplicate_name(self):
        self.mock_db.scalar.return_value = self.mock_section

        with pytest.raises(ValidationError) as exc_info:
            self.repository.create(self.table_id, {"name": "Billing"})

        assert "already exists" in exc_info.value.message
        self.mock_db.add.assert_not_called()

    def test_update(self):
        result = self.repository.update(self.mock_section, {"display_name": "Payment details", "id": uuid4()})

        assert result.display_name == "Payment details"
        assert result.id == self.section_id
        self.mock_db.commit.assert_called_once()

    def test_bulk_update_order(self):
        self.mock_db.scalars.return_value.all.return_value = [self.mock_section]

        self.repository.bulk_update_order(self.table_id, [{"id": self.section_id, "order_index": 5}])

        assert self.mock_section.order_index == 5
        self.mock_db.commit.assert_called_once()
