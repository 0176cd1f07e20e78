"""
Binder: untyped payload -> populated entity.

The binder walks a form's fields in declaration order and, for each key present in
the payload, checks the value's shape and assigns it to the target entity. It never
writes to the database; the only I/O is resolving `{"id": ...}` references inside
collections through the matching repository.

Submit modes:
    partial=False  full submit: recognized fields missing from the payload are cleared
    partial=True   patch: missing fields are left as they are on the target
"""

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Generic, Mapping, Protocol, TypeVar

from catalog.exceptions.request import BindingError, ExtraFieldsError

from .fields import Field, FormType

logger = logging.getLogger(__name__)

EntityType = TypeVar("EntityType")

_INTEGER_RE = re.compile(r"^[+-]?\d+$")

# bounds of a 32-bit INTEGER column
INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1


class ReferenceLoader(Protocol):
    async def get_by_id(self, entity_id: Any) -> Any | None: ...


@dataclass(frozen=True)
class BindingWarning:
    """Non-fatal binding problem (currently: unrecognized payload keys)."""
    message: str
    fields: tuple[str, ...]


@dataclass
class BindingResult(Generic[EntityType]):
    entity: EntityType
    warnings: list[BindingWarning] = field(default_factory=list)


# =================================================================================================================
# Scalar converters
# =================================================================================================================
# Each converter takes the raw JSON value and the field path, returns the value to
# assign, and raises BindingError instead of coercing an incompatible type.

def to_string(value: Any, path: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise BindingError(path, "This value should be of type string.")
    return value.strip()


def to_number(value: Any, path: str) -> Decimal | None:
    if value is None:
        return None
    # bool is an int subclass; true/false are not prices
    if isinstance(value, bool):
        raise BindingError(path, "This value should be of type number.")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        number = Decimal(str(value))
    elif isinstance(value, str):
        if not value.strip():
            return None
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            raise BindingError(path, "This value should be of type number.") from None
    else:
        raise BindingError(path, "This value should be of type number.")

    if not number.is_finite():
        raise BindingError(path, "This value should be a finite number.")
    return number


def to_integer(value: Any, path: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise BindingError(path, "This value should be of type integer.")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and not value.strip():
        return None
    elif isinstance(value, str) and _INTEGER_RE.match(value.strip()):
        number = int(value.strip())
    else:
        raise BindingError(path, "This value should be of type integer.")

    if not INT32_MIN <= number <= INT32_MAX:
        raise BindingError(path, f"This value should be between {INT32_MIN} and {INT32_MAX}.")
    return number


def check_decimal_fits(number: Decimal | None, path: str, *, precision: int, scale: int) -> Decimal | None:
    """
    Reject a number a NUMERIC(precision, scale) column cannot hold exactly:
    more than `scale` decimal places, or `precision - scale` integer digits or more.
    """
    if number is None:
        return None
    limit = Decimal(10) ** (precision - scale)
    if abs(number) >= limit:
        raise BindingError(path, f"This value should be less than {limit:f} in absolute value.")
    # magnitude first: quantize cannot handle values past the context precision
    if number.as_tuple().exponent < -scale and number != number.quantize(Decimal(1).scaleb(-scale)):
        raise BindingError(path, f"This value should have at most {scale} decimal places.")
    return number


CONVERTERS: dict[str, Callable[[Any, str], Any]] = {
    "string": to_string,
    "number": to_number,
    "integer": to_integer,
}


# =================================================================================================================
# Binder
# =================================================================================================================

class Binder:
    """
    Populate entities from decoded JSON payloads according to a FormType.

    Args:
        references: model class -> loader used to resolve `{"id": ...}` elements of
            collection fields (typically the model's repository).
        extra_fields_fatal: raise ExtraFieldsError on unrecognized keys instead of
            returning a warning.
    """

    def __init__(self, references: Mapping[type, ReferenceLoader] | None = None,
                 *, extra_fields_fatal: bool = False):
        self.references = dict(references or {})
        self.extra_fields_fatal = extra_fields_fatal

    async def bind(
        self,
        form: FormType,
        payload: Mapping[str, Any],
        target: EntityType | None = None,
        *,
        partial: bool = False,
    ) -> BindingResult[EntityType]:
        """
        Bind `payload` onto `target` (or a new `form.model()` when target is None).

        Raises:
            BindingError: a value has the wrong shape, or a referenced row does not exist.
            ExtraFieldsError: unrecognized keys while extra_fields_fatal is set.
        """
        warnings: list[BindingWarning] = []
        entity = await self._bind_form(form, payload, target, partial=partial, path="", warnings=warnings)
        logger.debug(
            "form.bind.done",
            extra={
                "form": form.name,
                "partial": partial,
                "provided_keys": sorted(payload.keys()),
                "warnings": len(warnings),
            },
        )
        return BindingResult(entity=entity, warnings=warnings)

    async def _bind_form(self, form, payload, target, *, partial, path, warnings, allowed_extra=()):
        entity = target if target is not None else form.model()

        unknown = [k for k in payload if k not in form.field_names and k not in allowed_extra]
        if unknown:
            self._report_extra_fields(form, [f"{path}{k}" for k in unknown], warnings)

        for form_field in form.fields:
            key = f"{path}{form_field.name}"

            if form_field.name not in payload:
                if not partial:
                    setattr(entity, form_field.name, [] if form_field.kind == "collection" else None)
                continue

            raw = payload[form_field.name]
            if form_field.kind == "collection":
                value = await self._bind_collection(form_field, raw, key, partial=partial, warnings=warnings)
            else:
                value = CONVERTERS[form_field.kind](raw, key)
                if form_field.precision is not None:
                    value = check_decimal_fits(value, key, precision=form_field.precision, scale=form_field.scale or 0)

            setattr(entity, form_field.name, value)

        return entity

    async def _bind_collection(self, form_field: Field, raw, path: str, *, partial: bool, warnings) -> list:
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise BindingError(path, "This value should be of type array.")

        entry_form = form_field.entry_form
        identity = entry_form.identity_field
        items = []
        seen_ids = set()

        for index, element in enumerate(raw):
            item_path = f"{path}[{index}]"
            if not isinstance(element, Mapping):
                raise BindingError(item_path, "This value should be of type object.")

            ref_id = to_integer(element.get(identity), f"{item_path}.{identity}")
            if ref_id is None:
                # new row, bound like any fresh entity
                item = await self._bind_form(
                    entry_form, element, None, partial=partial,
                    path=f"{item_path}.", warnings=warnings, allowed_extra=(identity,),
                )
            else:
                if ref_id in seen_ids:
                    raise BindingError(f"{item_path}.{identity}", "This item is referenced more than once.")
                seen_ids.add(ref_id)
                existing = await self._resolve(entry_form, ref_id, f"{item_path}.{identity}")
                # existing row: only the keys sent alongside the id are applied
                item = await self._bind_form(
                    entry_form, element, existing, partial=True,
                    path=f"{item_path}.", warnings=warnings, allowed_extra=(identity,),
                )
            items.append(item)

        return items

    async def _resolve(self, form: FormType, entity_id: int, path: str):
        loader = self.references.get(form.model)
        if loader is None:
            raise BindingError(path, f"{form.model.__name__} references are not supported here.")

        entity = await loader.get_by_id(entity_id)
        if entity is None:
            logger.info(
                "form.bind.unknown_reference",
                extra={"form": form.name, "field": path, "id": entity_id},
            )
            raise BindingError(path, f"{form.model.__name__} with id {entity_id} does not exist.")
        return entity

    def _report_extra_fields(self, form: FormType, keys: list[str], warnings: list[BindingWarning]) -> None:
        # INFO: client sent something we ignore; key names only, never values
        logger.info(
            "form.bind.extra_fields",
            extra={"form": form.name, "extra_fields": keys, "fatal": self.extra_fields_fatal},
        )
        if self.extra_fields_fatal:
            raise ExtraFieldsError(form.extra_fields_message, fields=keys)
        warnings.append(BindingWarning(message=form.extra_fields_message, fields=tuple(keys)))
