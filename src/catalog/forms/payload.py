import json
from typing import Any

from catalog.exceptions.request import DecodeError


def decode_payload(raw: bytes | str) -> dict[str, Any]:
    """
    Decode a request body into a JSON object.

    Raises:
        DecodeError: empty body, malformed JSON, or a JSON value that is not an object.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError("Request body is not valid UTF-8.") from exc

    if not raw.strip():
        raise DecodeError("Request body is empty.")

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise DecodeError() from exc

    if not isinstance(payload, dict):
        raise DecodeError("Request body must be a JSON object.")

    return payload
