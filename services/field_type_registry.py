"""Field Type Registry - static catalog of field kinds and their option shapes"""

import re
from dataclasses import dataclass
from enum import Enum

from core.errors import UnknownKindError, ValidationError
from core.settings import settings


class FieldKind(str, Enum):
    TEXT = "text"
    LONG_TEXT = "long_text"
    NUMBER = "number"
    PERCENT = "percent"
    CURRENCY = "currency"
    DATE = "date"
    SINGLE_SELECT = "single_select"
    MULTI_SELECT = "multi_select"
    CHECKBOX = "checkbox"
    ATTACHMENT = "attachment"
    URL = "url"
    EMAIL = "email"
    JSON = "json"
    LINK_TO_TABLE = "link_to_table"
    FORMULA = "formula"
    LOOKUP = "lookup"


@dataclass(frozen=True)
class KindDescriptor:
    kind: FieldKind
    label: str
    is_virtual: bool
    storage_hint: str | None
    option_schema: tuple[str, ...] = ()
    requires_options: bool = False

    @property
    def is_stored_as_column(self) -> bool:
        return not self.is_virtual


_COMMON_OPTIONS = ("read_only", "system", "fieldColor")
_NUMERIC_OPTIONS = ("precision",)
_SELECT_OPTIONS = ("choices", "select_options", "choiceColors", "choiceColorTheme")
_LINK_OPTIONS = (
    "linked_table_id",
    "linked_field_id",
    "relationship_type",
    "max_selections",
    "allow_create",
    "primary_label_field",
    "secondary_label_fields",
)
_LOOKUP_OPTIONS = ("lookup_table_id", "lookup_field_id", "lookup_result_field_id", "lookup_filters")


def _kind(kind, label, storage_hint, options=(), requires_options=False) -> KindDescriptor:
    return KindDescriptor(
        kind=kind,
        label=label,
        is_virtual=storage_hint is None,
        storage_hint=storage_hint,
        option_schema=tuple(options) + _COMMON_OPTIONS,
        requires_options=requires_options,
    )


FIELD_KINDS: dict[FieldKind, KindDescriptor] = {
    d.kind: d for d in (
        _kind(FieldKind.TEXT, "Single line text", "text"),
        _kind(FieldKind.LONG_TEXT, "Long text", "text"),
        _kind(FieldKind.NUMBER, "Number", "numeric", _NUMERIC_OPTIONS),
        _kind(FieldKind.PERCENT, "Percent", "numeric", _NUMERIC_OPTIONS),
        _kind(FieldKind.CURRENCY, "Currency", "numeric", _NUMERIC_OPTIONS + ("currency_symbol",)),
        _kind(FieldKind.DATE, "Date", "timestamptz", ("date_format",)),
        _kind(FieldKind.SINGLE_SELECT, "Single select", "text", _SELECT_OPTIONS, requires_options=True),
        _kind(FieldKind.MULTI_SELECT, "Multiple select", "text[]", _SELECT_OPTIONS, requires_options=True),
        _kind(FieldKind.CHECKBOX, "Checkbox", "boolean"),
        _kind(
            FieldKind.ATTACHMENT,
            "Attachment",
            "jsonb",
            ("attachment_display_style", "attachment_preview_size", "attachment_max_visible"),
        ),
        _kind(FieldKind.URL, "URL", "text"),
        _kind(FieldKind.EMAIL, "Email", "text"),
        _kind(FieldKind.JSON, "JSON", "jsonb"),
        _kind(FieldKind.LINK_TO_TABLE, "Link to table", "uuid", _LINK_OPTIONS, requires_options=True),
        _kind(FieldKind.FORMULA, "Formula", None, ("formula", "precision")),
        _kind(FieldKind.LOOKUP, "Lookup", None, _LOOKUP_OPTIONS + _LINK_OPTIONS, requires_options=True),
    )
}

# Kinds whose stored values convert between each other by reformatting only
SIMPLE_KINDS = frozenset({
    FieldKind.TEXT,
    FieldKind.LONG_TEXT,
    FieldKind.NUMBER,
    FieldKind.DATE,
    FieldKind.CHECKBOX,
    FieldKind.CURRENCY,
    FieldKind.PERCENT,
    FieldKind.URL,
    FieldKind.EMAIL,
})

SELECT_KINDS = frozenset({FieldKind.SINGLE_SELECT, FieldKind.MULTI_SELECT})

RESERVED_WORDS = frozenset({
    'id', 'created_at', 'updated_at', 'created_by', 'updated_by',
    'select', 'insert', 'update', 'delete', 'from', 'where', 'order', 'group', 'by',
    'table', 'view', 'field', 'column', 'row', 'data',
})

# Audit columns every data table carries; never user-editable
SYSTEM_FIELD_NAMES = frozenset({'created_at', 'created_by', 'updated_at', 'updated_by'})


def to_kind(kind) -> FieldKind:
    """Coerce a kind identifier to FieldKind, raising UnknownKindError if unrecognised."""
    if isinstance(kind, FieldKind):
        return kind
    try:
        return FieldKind(str(kind).strip())
    except ValueError:
        raise UnknownKindError(kind) from None


def describe_kind(kind) -> KindDescriptor:
    return FIELD_KINDS[to_kind(kind)]


def is_virtual_kind(kind) -> bool:
    return describe_kind(kind).is_virtual


def list_kinds() -> list[KindDescriptor]:
    return list(FIELD_KINDS.values())


def is_system_field(field) -> bool:
    """System fields are audit columns or fields flagged `system` in options."""
    options = getattr(field, "options", None) or {}
    return field.name.lower() in SYSTEM_FIELD_NAMES or bool(options.get("system"))


def sanitize_field_name(label: str) -> str:
    """
    Turn a human label into a column-safe internal name.

    "Due Date!" -> "due_date"; "2nd try" -> "f_2nd_try"; "order" -> "order_field"
    """
    name = re.sub(r"[^a-z0-9_]+", "_", label.strip().lower())
    name = re.sub(r"_+", "_", name).strip("_")
    if name and name[0].isdigit():
        name = f"f_{name}"
    if name in RESERVED_WORDS:
        name = f"{name}_field"
    return name[:settings.MAX_FIELD_NAME_LENGTH]


def validate_field_name(name: str, existing_names) -> None:
    """Raise ValidationError if `name` cannot be used as a new column name."""
    if not name:
        raise ValidationError("Field name cannot be empty")
    if len(name) > settings.MAX_FIELD_NAME_LENGTH:
        raise ValidationError(
            f"Field name cannot be longer than {settings.MAX_FIELD_NAME_LENGTH} characters"
        )
    if not re.fullmatch(r"[a-z][a-z0-9_]*", name):
        raise ValidationError(
            "Field name must start with a letter and contain only lowercase letters, digits and underscores"
        )
    if name in SYSTEM_FIELD_NAMES:
        raise ValidationError(f'Field name "{name}" is reserved for system audit fields.')
    if name.lower() in {n.lower() for n in existing_names}:
        raise ValidationError(f'A field named "{name}" already exists in this table')
