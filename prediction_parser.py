import json
from typing import Any, Iterator

from pydantic import ValidationError as PydanticValidationError

from middleware.error_handler import ParseFailure, SchemaMismatch
from schemas import SLOT_NAMES, PredictionResult

_decoder = json.JSONDecoder()


def _object_starts(text: str) -> Iterator[int]:
    """Yield offsets of each ``{`` that is not nested inside an earlier brace."""
    depth = 0
    in_string = escaped = False
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == "{":
            if depth == 0:
                yield i
            depth += 1
        elif ch == "}":
            depth = max(depth - 1, 0)
        elif ch == '"' and depth > 0:
            # Quotes in surrounding prose are not tracked.
            in_string = True


def extract_json_object(text: str) -> dict[str, Any]:
    """
    Return the first JSON object embedded in ``text``.

    Only top-level ``{`` are tried as the start of an object, so a broken
    object never yields one of its nested values. Decoding stops at the
    matching close brace, so commentary after the object is ignored even
    when it contains braces of its own.
    """
    if "{" not in text:
        raise ParseFailure("Could not find JSON in the AI response.")

    first_error: json.JSONDecodeError | None = None
    for start in _object_starts(text):
        try:
            value, _ = _decoder.raw_decode(text, start)
        except json.JSONDecodeError as exc:
            first_error = first_error or exc
        else:
            return value

    raise ParseFailure(
        "Could not parse JSON in the AI response.",
        details=str(first_error) if first_error else None,
    )


def validate_prediction(data: dict[str, Any]) -> PredictionResult:
    missing = [name for name in SLOT_NAMES if name not in data]
    unexpected = sorted(set(data) - set(SLOT_NAMES))
    if missing or unexpected:
        parts = []
        if missing:
            parts.append(f"missing: {', '.join(missing)}")
        if unexpected:
            parts.append(f"unexpected: {', '.join(unexpected)}")
        raise SchemaMismatch(details="; ".join(parts))

    try:
        return PredictionResult.model_validate(data)
    except PydanticValidationError as exc:
        bad = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
        raise SchemaMismatch(details=f"malformed: {', '.join(bad)}") from exc


def parse_prediction(text: str) -> PredictionResult:
    return validate_prediction(extract_json_object(text))
