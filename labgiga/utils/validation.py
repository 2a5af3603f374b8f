from flask import request

from labgiga.errors import ValidationError


def json_body() -> dict:
    """Request body as a dict; a missing body reads as empty."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def clean_text(value, field: str) -> str:
    """Stripped string value of ``field``, ``""`` when absent."""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    return value.strip()


def parse_int(value, field: str) -> int:
    """Whole numbers only; ``1.5`` and ``True`` are rejected, ``"3"`` is accepted."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            return int(text)
    raise ValidationError(f"{field} must be an integer")
