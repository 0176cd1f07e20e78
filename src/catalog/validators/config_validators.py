def to_uppercase(value: str | None) -> str | None:
    """
    Upper-case a string value, passing None through untouched.
    """
    if value is None:
        return None
    return value.strip().upper()


def to_lowercase(value: str | None) -> str | None:
    """
    Lower-case a string value, passing None through untouched.
    """
    if value is None:
        return None
    return value.strip().lower()


def check_length_bounds(minimum: int, maximum: int, *, name: str = "length",
                        ceiling: int | None = None) -> tuple[int, int]:
    """
    Ensure a configured (min, max) length pair is usable by a Length rule.
    `ceiling` is the size of the column the value is stored in, if any.

    Raises:
        ValueError: if min < 1, min > max, or max > ceiling.
    """
    if minimum < 1:
        raise ValueError(f"{name} minimum must be at least 1, got {minimum}")
    if minimum > maximum:
        raise ValueError(f"{name} minimum ({minimum}) cannot exceed maximum ({maximum})")
    if ceiling is not None and maximum > ceiling:
        raise ValueError(f"{name} maximum ({maximum}) cannot exceed the column length ({ceiling})")
    return minimum, maximum
