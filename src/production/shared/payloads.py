"""Decoding of JSON-encoded command fields."""

import json

from production.errors import InvalidRequest


def load_json(raw, field: str):
    """Decode ``raw`` when it is a JSON string; pass decoded values through.

    Malformed JSON is a request error on ``field``.
    """
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InvalidRequest({field: [f"{field} is not valid JSON: {exc.msg} at position {exc.pos}"]}) from exc
