"""
Validator: runs a form's rule set against a bound entity.

Order is deterministic: fields in declaration order, rules in declaration order per
field, collection elements by index (their violations prefixed with
`<field>[<index>].`). The only I/O is the read-only lookup behind Unique rules.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from catalog.forms.fields import FormType

from .rules import Violation, apply_rule

logger = logging.getLogger(__name__)


class Validator:
    """
    Args:
        db: session used for Unique lookups; may be None for rule sets without
            Unique rules.
    """

    def __init__(self, db: AsyncSession | None = None):
        self.db = db

    async def validate(self, form: FormType, entity) -> list[Violation]:
        """
        Return the ordered violations for `entity`; an empty list means valid.
        Calling it twice on the same entity yields the same result.
        """
        violations = await self._validate(form, entity, path="")
        if violations:
            logger.debug(
                "form.validate.failed",
                extra={"form": form.name, "violations": len(violations)},
            )
        return violations

    async def _validate(self, form: FormType, entity, *, path: str) -> list[Violation]:
        violations: list[Violation] = []

        for form_field in form.fields:
            key = f"{path}{form_field.name}"
            value = getattr(entity, form_field.name, None)

            for rule in form_field.rules:
                message = await apply_rule(rule, value, entity=entity, field=form_field.name, db=self.db)
                if message is not None:
                    violations.append(Violation(field=key, message=message))

            if form_field.kind == "collection":
                for index, item in enumerate(value or []):
                    violations.extend(
                        await self._validate(form_field.entry_form, item, path=f"{key}[{index}].")
                    )

        return violations
