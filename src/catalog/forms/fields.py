"""
Form declarations: which payload keys an entity accepts, what shape each one has,
and which validation rules apply to it.

A `FormType` is pure data. The Binder reads it to populate an entity from a
payload; the Validator reads it to check the populated entity. Field order is
significant: it is the order in which fields are bound and in which violations
are reported.
"""

from dataclasses import dataclass
from typing import Literal, Optional

from catalog.validators.rules import Rule

FieldKind = Literal["string", "number", "integer", "collection"]

DEFAULT_EXTRA_FIELDS_MESSAGE = "This request contains unsupported fields."


@dataclass(frozen=True)
class Field:
    name: str
    kind: FieldKind
    rules: tuple[Rule, ...] = ()
    # form used for each element of a "collection" field
    entry_form: Optional["FormType"] = None
    # NUMERIC(precision, scale) bounds checked by the binder for "number" fields
    precision: int | None = None
    scale: int | None = None

    def __post_init__(self):
        if self.kind == "collection" and self.entry_form is None:
            raise ValueError(f"collection field {self.name!r} needs an entry_form")


@dataclass(frozen=True)
class FormType:
    """
    Declaration of an entity form.

    Attributes:
        name: short name used in logs.
        model: the ORM class instantiated when binding without a target.
        fields: ordered field declarations.
        extra_fields_message: message reported for unrecognized payload keys.
        identity_field: key that, inside a collection element, references an
            existing row instead of describing a new one.
    """
    name: str
    model: type
    fields: tuple[Field, ...]
    extra_fields_message: str = DEFAULT_EXTRA_FIELDS_MESSAGE
    identity_field: str = "id"

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    def get_field(self, name: str) -> Field | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None
