import pytest
from uuid import uuid4

from conftest import make_field
from services.relationship_resolver import (
    candidate_result_fields,
    formula_eligible_siblings,
    lookup_dependents,
    reconcile_lookup_options,
    resolve_link_target,
    validate_lookup_relationship,
)


@pytest.mark.unit
class TestRelationshipResolver:

    def setup_method(self):
        self.table_id = uuid4()
        self.clients_id = uuid4()
        self.invoices_id = uuid4()

        self.client_name = make_field(self.clients_id, "name")
        self.client_total = make_field(self.clients_id, "total", "formula", options={"formula": "1"})
        self.client_lookup = make_field(self.clients_id, "country_code", "lookup")
        self.invoice_number = make_field(self.invoices_id, "number", "number")

        self.title = make_field(self.table_id, "title")
        self.client = make_field(
            self.table_id, "client", "link_to_table", options={"linked_table_id": str(self.clients_id)}
        )
        self.invoice = make_field(
            self.table_id, "invoice", "link_to_table", options={"linked_table_id": str(self.invoices_id)}
        )
        self.price = make_field(self.table_id, "price", "number")
        self.total = make_field(self.table_id, "total", "formula", options={"formula": "{price}"})
        self.fields = [self.title, self.client, self.invoice, self.price, self.total]
        self.target_fields = [self.client_name, self.client_total, self.client_lookup, self.invoice_number]

    def test_resolve_link_target(self):
        assert resolve_link_target(self.client) == str(self.clients_id)
        assert resolve_link_target(self.title) is None

    def test_resolve_link_target_of_lookup_reads_stored_target(self):
        lookup = make_field(self.table_id, "l", "lookup", options={"lookup_table_id": str(self.clients_id)})

        assert resolve_link_target(lookup) == str(self.clients_id)

    def test_link_without_target(self):
        assert resolve_link_target(make_field(self.table_id, "l", "link_to_table")) is None

    def test_candidate_result_fields_exclude_nested_lookups(self):
        lookup = make_field(self.table_id, "l", "lookup", options={"lookup_table_id": str(self.clients_id)})

        candidates = candidate_result_fields(lookup, self.target_fields)

        assert candidates == [self.client_name, self.client_total]

    def test_candidate_result_fields_skip_unknown_kinds(self):
        broken = make_field(self.clients_id, "legacy", "barcode")
        lookup = make_field(self.table_id, "l", "lookup", options={"lookup_table_id": str(self.clients_id)})

        assert broken not in candidate_result_fields(lookup, [broken, self.client_name])

    def test_formula_siblings_exclude_self_and_formulas(self):
        other = make_field(self.table_id, "margin", "formula")
        siblings = formula_eligible_siblings(self.fields + [other], self.total.id)

        assert siblings == [self.title, self.client, self.invoice, self.price]

    def test_lookup_dependents(self):
        lookup = make_field(self.table_id, "client_name", "lookup", options={"lookup_field_id": str(self.client.id)})
        back_reference = make_field(
            self.table_id, "back", "link_to_table", options={"linked_field_id": str(self.client.id)}
        )

        assert lookup_dependents(self.fields + [lookup, back_reference], self.client.id) == [lookup, back_reference]
        assert lookup_dependents(self.fields + [lookup], self.invoice.id) == []

    def test_reconcile_copies_target_from_link(self):
        options = reconcile_lookup_options(None, {"lookup_field_id": str(self.client.id)}, self.fields)

        assert options["lookup_table_id"] == str(self.clients_id)

    def test_reconcile_ignores_declared_target(self):
        options = reconcile_lookup_options(
            None,
            {"lookup_field_id": str(self.client.id), "lookup_table_id": str(self.invoices_id)},
            self.fields,
        )

        assert options["lookup_table_id"] == str(self.clients_id)

    def test_changing_source_resets_result(self):
        previous = {
            "lookup_field_id": str(self.client.id),
            "lookup_table_id": str(self.clients_id),
            "lookup_result_field_id": str(self.client_name.id),
        }

        options = reconcile_lookup_options(previous, {"lookup_field_id": str(self.invoice.id)}, self.fields)

        assert "lookup_result_field_id" not in options
        assert options["lookup_table_id"] == str(self.invoices_id)

    def test_changing_source_keeps_result_given_in_same_change(self):
        previous = {"lookup_field_id": str(self.client.id), "lookup_result_field_id": str(self.client_name.id)}

        options = reconcile_lookup_options(
            previous,
            {"lookup_field_id": str(self.invoice.id), "lookup_result_field_id": str(self.invoice_number.id)},
            self.fields,
        )

        assert options["lookup_result_field_id"] == str(self.invoice_number.id)

    def test_same_source_keeps_result(self):
        previous = {"lookup_field_id": str(self.client.id), "lookup_result_field_id": str(self.client_name.id)}

        options = reconcile_lookup_options(previous, {"lookup_filters": []}, self.fields)

        assert options["lookup_result_field_id"] == str(self.client_name.id)

    def _lookup_options(self, result_field):
        return reconcile_lookup_options(
            None,
            {"lookup_field_id": str(self.client.id), "lookup_result_field_id": str(result_field.id)},
            self.fields,
        )

    def test_valid_lookup_relationship(self):
        result = validate_lookup_relationship(self._lookup_options(self.client_name), self.fields, self.target_fields)

        assert result.valid is True

    def test_result_from_other_table_is_invalid(self):
        result = validate_lookup_relationship(
            self._lookup_options(self.invoice_number), self.fields, self.target_fields
        )

        assert result.valid is False
        assert "linked table" in result.error

    def test_lookup_of_lookup_is_invalid(self):
        result = validate_lookup_relationship(
            self._lookup_options(self.client_lookup), self.fields, self.target_fields
        )

        assert result.valid is False

    def test_missing_result_is_invalid(self):
        options = reconcile_lookup_options(None, {"lookup_field_id": str(self.client.id)}, self.fields)

        assert validate_lookup_relationship(options, self.fields, self.target_fields).valid is False

    def test_source_must_be_a_link_field(self):
        options = {"lookup_field_id": str(self.price.id), "lookup_result_field_id": str(self.client_name.id)}

        result = validate_lookup_relationship(options, self.fields, self.target_fields)

        assert result.valid is False
        assert "not a link field" in result.error

    def test_deleted_source_is_invalid(self):
        options = {"lookup_field_id": str(uuid4()), "lookup_result_field_id": str(self.client_name.id)}

        assert validate_lookup_relationship(options, self.fields, self.target_fields).valid is False
