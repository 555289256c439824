"""Option Validator - checks a field's configured options against its kind"""

from dataclasses import dataclass
from typing import Optional

from services.field_type_registry import FieldKind, SELECT_KINDS, to_kind

RELATIONSHIP_TYPES = ("one-to-one", "one-to-many", "many-to-many")
MAX_PRECISION = 10


@dataclass(frozen=True)
class OptionValidation:
    valid: bool
    error: Optional[str] = None

    @classmethod
    def ok(cls) -> "OptionValidation":
        return cls(valid=True)

    @classmethod
    def fail(cls, error: str) -> "OptionValidation":
        return cls(valid=False, error=error)


def _label_of(choice) -> str:
    if isinstance(choice, dict):
        choice = choice.get("label")
    if choice is None:
        return ""
    return str(choice).strip()


def normalize_choices(options: dict | None) -> list[str]:
    """
    Return the trimmed, de-duplicated choice labels of a select field.

    The canonical `select_options` list wins over the legacy `choices` list
    and is ordered by `sort_index`, falling back to list position.
    """
    options = options or {}
    select_options = options.get("select_options")
    if isinstance(select_options, list) and select_options:
        indexed = [
            (opt.get("sort_index") if isinstance(opt, dict) and isinstance(opt.get("sort_index"), int) else i, i, opt)
            for i, opt in enumerate(select_options)
        ]
        raw = [opt for _, _, opt in sorted(indexed, key=lambda entry: (entry[0], entry[1]))]
    else:
        raw = options.get("choices") or []

    labels: list[str] = []
    for choice in raw:
        label = _label_of(choice)
        if label and label not in labels:
            labels.append(label)
    return labels


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _validate_select(options: dict) -> OptionValidation:
    if not normalize_choices(options):
        return OptionValidation.fail("Select fields must have at least one choice")
    return OptionValidation.ok()


def _validate_numeric(options: dict) -> OptionValidation:
    precision = options.get("precision")
    if precision is not None:
        if isinstance(precision, bool) or not isinstance(precision, int) or not 0 <= precision <= MAX_PRECISION:
            return OptionValidation.fail(f"Precision must be a whole number between 0 and {MAX_PRECISION}")
    return OptionValidation.ok()


def _validate_currency(options: dict) -> OptionValidation:
    result = _validate_numeric(options)
    if not result.valid:
        return result
    symbol = options.get("currency_symbol")
    if symbol is not None and not isinstance(symbol, str):
        return OptionValidation.fail("Currency symbol must be text")
    return OptionValidation.ok()


def _validate_date(options: dict) -> OptionValidation:
    date_format = options.get("date_format")
    if date_format is not None and not isinstance(date_format, str):
        return OptionValidation.fail("Date format must be text")
    return OptionValidation.ok()


def _validate_link(options: dict) -> OptionValidation:
    if _blank(options.get("linked_table_id")):
        return OptionValidation.fail("Link fields must reference a target table")

    relationship_type = options.get("relationship_type")
    if relationship_type is not None and relationship_type not in RELATIONSHIP_TYPES:
        return OptionValidation.fail(
            f"Relationship type must be one of: {', '.join(RELATIONSHIP_TYPES)}"
        )

    max_selections = options.get("max_selections")
    if max_selections is not None:
        if isinstance(max_selections, bool) or not isinstance(max_selections, int) or max_selections < 1:
            return OptionValidation.fail("Max selections must be a positive whole number")
        if relationship_type == "one-to-one":
            return OptionValidation.fail("Max selections only applies to one-to-many or many-to-many links")
    return OptionValidation.ok()


def _validate_lookup(options: dict) -> OptionValidation:
    if _blank(options.get("lookup_field_id")):
        return OptionValidation.fail("Lookup fields must select a linked field")
    if not _blank(options.get("lookup_table_id")) and _blank(options.get("lookup_result_field_id")):
        return OptionValidation.fail("Lookup fields must select a field to display from the linked table")
    return OptionValidation.ok()


def _validate_formula(options: dict) -> OptionValidation:
    formula = options.get("formula")
    if formula is not None and not isinstance(formula, str):
        return OptionValidation.fail("Formula must be text")
    return OptionValidation.ok()


def _no_requirements(options: dict) -> OptionValidation:
    return OptionValidation.ok()


_VALIDATORS = {
    FieldKind.TEXT: _no_requirements,
    FieldKind.LONG_TEXT: _no_requirements,
    FieldKind.NUMBER: _validate_numeric,
    FieldKind.PERCENT: _validate_numeric,
    FieldKind.CURRENCY: _validate_currency,
    FieldKind.DATE: _validate_date,
    FieldKind.SINGLE_SELECT: _validate_select,
    FieldKind.MULTI_SELECT: _validate_select,
    FieldKind.CHECKBOX: _no_requirements,
    FieldKind.ATTACHMENT: _no_requirements,
    FieldKind.URL: _no_requirements,
    FieldKind.EMAIL: _no_requirements,
    FieldKind.JSON: _no_requirements,
    FieldKind.LINK_TO_TABLE: _validate_link,
    FieldKind.FORMULA: _validate_formula,
    FieldKind.LOOKUP: _validate_lookup,
}


def validate_options(kind, options: dict | None) -> OptionValidation:
    """Validate `options` for `kind`. Raises UnknownKindError for an unknown kind."""
    kind = to_kind(kind)
    options = options or {}
    if not isinstance(options, dict):
        return OptionValidation.fail("Field options must be an object")

    read_only = options.get("read_only")
    if read_only is not None and not isinstance(read_only, bool):
        return OptionValidation.fail("read_only must be true or false")

    return _VALIDATORS[kind](options)


def normalize_options(kind, options: dict | None) -> dict:
    """Return a copy of `options` with select choices trimmed and de-duplicated."""
    kind = to_kind(kind)
    normalized = dict(options or {})
    if kind in SELECT_KINDS:
        normalized["choices"] = normalize_choices(normalized)
    return normalized
