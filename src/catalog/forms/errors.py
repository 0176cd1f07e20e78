from typing import Iterable

from catalog.validators.rules import Violation


def aggregate_violations(violations: Iterable[Violation]) -> dict[str, list[str]]:
    """
    Group violations into a response-ready mapping `field -> [messages]`.

    Keys keep the order in which each field first appears; messages keep the order
    in which they were produced. Nothing is deduplicated: two identical messages
    for the same field are both kept.

    Example:
        >>> aggregate_violations([Violation("title", "too short"),
        ...                       Violation("title", "required"),
        ...                       Violation("price", "must be numeric")])
        {'title': ['too short', 'required'], 'price': ['must be numeric']}
    """
    errors: dict[str, list[str]] = {}
    for violation in violations:
        errors.setdefault(violation.field, []).append(violation.message)
    return errors
