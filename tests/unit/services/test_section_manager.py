import pytest
from uuid import uuid4

from conftest import make_field
from core.errors import NotFoundError, ValidationError
from schemas.section import PersistedSection, VirtualSection
from services.section_manager import resolve_sections, validate_section_settings


def _names(sections):
    return [section.name for section in sections]


@pytest.mark.unit
class TestResolveSections:

    def setup_method(self):
        self.table_id = uuid4()

    def _persisted(self, name, order_index):
        return PersistedSection(id=uuid4(), table_id=self.table_id, name=name, order_index=order_index)

    def test_default_section_is_synthesised_for_ungrouped_fields(self):
        sections = resolve_sections(self.table_id, [], [make_field(self.table_id, "a")])

        assert len(sections) == 1
        assert isinstance(sections[0], VirtualSection)
        assert sections[0].name == "General"
        assert sections[0].is_default

    def test_no_default_without_ungrouped_fields(self):
        sections = resolve_sections(
            self.table_id, [self._persisted("Billing", 0)], [make_field(self.table_id, "a", group_name="Billing")]
        )

        assert _names(sections) == ["Billing"]

    def test_default_first_regardless_of_order_index(self):
        persisted = [self._persisted("Billing", 0), self._persisted("General", 7), self._persisted("Address", 0)]

        sections = resolve_sections(self.table_id, persisted, [])

        assert _names(sections) == ["General", "Address", "Billing"]
        assert sections[0].is_default

    def test_implied_sections_follow_persisted_ones(self):
        fields = [
            make_field(self.table_id, "a", group_name="Notes"),
            make_field(self.table_id, "b", group_name="Billing"),
            make_field(self.table_id, "c", group_name="Extra"),
            make_field(self.table_id, "d"),
        ]

        sections = resolve_sections(self.table_id, [self._persisted("Billing", 3)], fields)

        assert _names(sections) == ["General", "Billing", "Notes", "Extra"]
        assert [s.order_index for s in sections[1:]] == [3, 4, 5]
        assert [s.is_persisted for s in sections] == [False, True, False, False]

    def test_names_are_case_sensitive(self):
        fields = [make_field(self.table_id, "a", group_name="billing")]

        sections = resolve_sections(self.table_id, [self._persisted("Billing", 0)], fields)

        assert _names(sections) == ["Billing", "billing"]


@pytest.mark.unit
class TestSectionSettings:

    def test_trims_name(self):
        assert validate_section_settings({"name": "  Billing "})["name"] == "Billing"

    @pytest.mark.parametrize("patch", [{"name": " "}, {"name": None}, {"order_index": -1}])
    def test_rejects_bad_settings(self, patch):
        with pytest.raises(ValidationError):
            validate_section_settings(patch)

    def test_blank_display_name_becomes_none(self):
        assert validate_section_settings({"display_name": "  "})["display_name"] is None


@pytest.mark.unit
class TestSectionManager:

    def _fields(self, persistence, table_id):
        return {f.name: f for f in persistence.fields.values() if f.table_id == table_id}

    def test_ensure_section_exists_creates_row_once(self, persistence, table, section_manager):
        first = section_manager.ensure_section_exists(table.id, "Billing")
        second = section_manager.ensure_section_exists(table.id, "Billing")

        assert first.is_persisted
        assert first.id == second.id
        assert len(persistence.sections) == 1

    def test_ensure_default_section_is_not_materialised(self, persistence, table, section_manager):
        section = section_manager.ensure_section_exists(table.id, "General")

        assert section.is_default
        assert persistence.sections == {}

    def test_ensure_blank_name_fails(self, table, section_manager):
        with pytest.raises(ValidationError):
            section_manager.ensure_section_exists(table.id, "  ")

    def test_reorder_materialises_implied_sections(self, persistence, table, store, section_manager):
        billing = persistence.add_section(table.id, "Billing", 0)
        persistence.add_field(table.id, "n", group_name="Notes", order_index=0)
        store.create_field(table.id, {"label": "A", "type": "text"})

        sections = section_manager.reorder_sections(table.id, ["Notes", str(billing.id)])

        assert _names(sections) == ["General", "Notes", "Billing"]
        assert all(s.is_persisted for s in sections[1:])
        assert [s.order_index for s in sections[1:]] == [0, 1]

    def test_reorder_ignores_default_section_moves(self, persistence, table, store, section_manager):
        store.create_field(table.id, {"label": "A", "type": "text"})
        persistence.add_section(table.id, "Billing", 0)
        persistence.add_section(table.id, "Notes", 1)

        sections = section_manager.reorder_sections(table.id, ["Notes", "General", "Billing"])

        assert _names(sections) == ["General", "Billing", "Notes"]
        assert "save_section_order" not in persistence.calls

    def test_reorder_tolerates_default_listed_first(self, persistence, table, store, section_manager):
        store.create_field(table.id, {"label": "A", "type": "text"})
        persistence.add_section(table.id, "Billing", 0)
        persistence.add_section(table.id, "Notes", 1)

        sections = section_manager.reorder_sections(table.id, ["General", "Notes", "Billing"])

        assert _names(sections) == ["General", "Notes", "Billing"]

    def test_reorder_unknown_section(self, table, section_manager):
        with pytest.raises(NotFoundError):
            section_manager.reorder_sections(table.id, ["Nope"])

    def test_move_section_before_another(self, persistence, table, section_manager):
        persistence.add_section(table.id, "Address", 0)
        persistence.add_section(table.id, "Billing", 1)
        persistence.add_section(table.id, "Notes", 2)

        sections = section_manager.move_section(table.id, "Notes", "Address")

        assert _names(sections) == ["Notes", "Address", "Billing"]

    def test_move_section_to_end(self, persistence, table, section_manager):
        persistence.add_section(table.id, "Address", 0)
        persistence.add_section(table.id, "Billing", 1)

        sections = section_manager.move_section(table.id, "Address")

        assert _names(sections) == ["Billing", "Address"]

    def test_default_section_cannot_move(self, persistence, table, store, section_manager):
        store.create_field(table.id, {"label": "A", "type": "text"})
        persistence.add_section(table.id, "Billing", 0)

        sections = section_manager.move_section(table.id, "General")

        assert _names(sections) == ["General", "Billing"]
        assert "save_section_order" not in persistence.calls

    def test_create_section_appends(self, persistence, table, section_manager):
        persistence.add_section(table.id, "Billing", 4)

        section = section_manager.create_section(table.id, {"name": " Notes "})

        assert section.name == "Notes"
        assert section.display_name == "Notes"
        assert section.order_index == 5

    def test_create_duplicate_or_default_section_fails(self, persistence, table, section_manager):
        persistence.add_section(table.id, "Billing", 0)

        with pytest.raises(ValidationError):
            section_manager.create_section(table.id, {"name": "Billing"})
        with pytest.raises(ValidationError):
            section_manager.create_section(table.id, {"name": "General"})

    def test_rename_section_moves_fields(self, persistence, table, store, section_manager):
        store.create_field(table.id, {"label": "Iban", "type": "text", "group_name": "Billing"})
        billing = section_manager.ensure_section_exists(table.id, "Billing")

        renamed = section_manager.rename_section(table.id, billing.id, "Payment")

        assert renamed.name == "Payment"
        assert self._fields(persistence, table.id)["iban"].group_name == "Payment"
        assert _names(section_manager.list_sections(table.id)) == ["Payment"]

    def test_rename_to_existing_name_fails(self, persistence, table, section_manager):
        billing = persistence.add_section(table.id, "Billing", 0)
        persistence.add_section(table.id, "Notes", 1)

        with pytest.raises(ValidationError):
            section_manager.rename_section(table.id, billing.id, "Notes")

    def test_delete_section_moves_fields_to_default(self, persistence, table, store, section_manager):
        store.create_field(table.id, {"label": "A", "type": "text"})
        store.create_field(table.id, {"label": "X", "type": "text", "group_name": "Billing"})
        store.create_field(table.id, {"label": "Y", "type": "text", "group_name": "Billing"})
        billing = section_manager.ensure_section_exists(table.id, "Billing")

        section_manager.delete_section(table.id, billing.id)

        fields = self._fields(persistence, table.id)
        assert [(n, fields[n].group_name, fields[n].order_index) for n in ("a", "x", "y")] == [
            ("a", None, 0),
            ("x", None, 1),
            ("y", None, 2),
        ]
        assert _names(section_manager.list_sections(table.id)) == ["General"]

    def test_default_section_cannot_be_deleted(self, persistence, table, section_manager):
        general = persistence.add_section(table.id, "General", 0)

        with pytest.raises(ValidationError):
            section_manager.delete_section(table.id, general.id)

    def test_delete_unknown_section(self, table, section_manager):
        with pytest.raises(NotFoundError):
            section_manager.delete_section(table.id, uuid4())
