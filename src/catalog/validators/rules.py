"""
Validation rule descriptors and the function that interprets them.

Rules are plain frozen dataclasses attached, in order, to form fields (see
`catalog.forms.fields.Field`). `apply_rule` is the single interpreter: it takes a
rule and a field value and returns an error message, or None when the value
passes.

Messages may contain `{{ limit }}` / `{{ value }}` placeholders, which are
substituted when a violation is produced.
"""

from dataclasses import dataclass
from typing import Any, Union

from sqlalchemy.ext.asyncio import AsyncSession

from .model_validators import has_unique_conflict


@dataclass(frozen=True)
class Violation:
    """A single field-level validation failure."""
    field: str
    message: str


@dataclass(frozen=True)
class NotBlank:
    """Fails when the value is None or an empty string."""
    message: str = "This value should not be blank."


@dataclass(frozen=True)
class Length:
    """
    Fails when a string is shorter than `min` or longer than `max` characters.
    None and "" are not checked; pair with NotBlank to require a value.
    """
    min: int | None = None
    max: int | None = None
    min_message: str = "This value is too short. It should have {{ limit }} characters or more."
    max_message: str = "This value is too long. It should have {{ limit }} characters or less."

    def __post_init__(self):
        if self.min is None and self.max is None:
            raise ValueError("Length needs at least one of min / max")
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"Length min ({self.min}) cannot exceed max ({self.max})")


@dataclass(frozen=True)
class Unique:
    """
    Fails when another persisted row shares this value.

    `fields` names the columns of the unique set; empty means "the field this rule
    is attached to". The entity's own id (if persisted) is excluded.
    """
    fields: tuple[str, ...] = ()
    message: str = "This value is already used."


Rule = Union[NotBlank, Length, Unique]


def format_message(template: str, **params: Any) -> str:
    """Substitute `{{ name }}` placeholders in a message template."""
    message = template
    for name, value in params.items():
        message = message.replace("{{ %s }}" % name, str(value))
    return message


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


async def apply_rule(
    rule: Rule,
    value: Any,
    *,
    entity: Any,
    field: str,
    db: AsyncSession | None = None,
) -> str | None:
    """
    Evaluate `rule` against `value` (the current value of `entity.<field>`).

    Returns:
        The rendered error message, or None if the value is valid.

    Raises:
        TypeError: for an unknown rule type.
        ValueError: when a Unique rule is evaluated without a database session.
    """
    if isinstance(rule, NotBlank):
        return rule.message if _is_blank(value) else None

    if isinstance(rule, Length):
        if _is_blank(value):
            return None
        size = len(value)
        if rule.min is not None and size < rule.min:
            return format_message(rule.min_message, limit=rule.min, value=value)
        if rule.max is not None and size > rule.max:
            return format_message(rule.max_message, limit=rule.max, value=value)
        return None

    if isinstance(rule, Unique):
        if db is None:
            raise ValueError("Unique rule requires a database session")
        columns = rule.fields or (field,)
        values = {c: getattr(entity, c, None) for c in columns}
        # nothing to collide with until every column has a value
        if any(_is_blank(v) for v in values.values()):
            return None
        conflict = await has_unique_conflict(
            db, type(entity), values, exclude_id=getattr(entity, "id", None)
        )
        return format_message(rule.message, value=value) if conflict else None

    raise TypeError(f"Unsupported rule: {rule!r}")
