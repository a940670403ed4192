"""Property values: classification, emptiness and canonical text.

Every value passed as a node property falls into exactly one ``PropertyKind``.
Normalization and the "is this property missing" rule are both a ``match``
over that kind, so adding a kind means adding a case to each.

String folding follows Go's ``strings.TrimSpace`` and ``strings.ToLower``, so
IDs agree with other implementations of the same scheme: only Unicode
``White_Space`` characters are trimmed (the ``\\x1c``-``\\x1f`` separators are
kept), and each character is lowercased on its own with the simple mapping
(``İ`` becomes ``i``, a final ``Σ`` becomes ``σ``).
"""

from __future__ import annotations

import base64
import dataclasses
import json
import math
from collections.abc import Mapping
from decimal import Decimal
from enum import StrEnum
from typing import Any

from pydantic import BaseModel

from nodeforge.knowledge.errors import UnrepresentableValueError

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}

# Unicode White_Space, as trimmed by Go's strings.TrimSpace
_TRIM_CHARS = (
    "\t\n\v\f\r \x85\xa0\u1680"
    "\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000"
)


class PropertyKind(StrEnum):
    NULL = "null"
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    COMPOSITE = "composite"


def classify(value: Any) -> PropertyKind:
    """Return the kind of a property value.

    ``bool`` is checked before ``int`` because it is a subclass of it.
    Raises UnrepresentableValueError for values with no kind (sets, arbitrary
    objects).
    """
    if value is None:
        return PropertyKind.NULL
    if isinstance(value, bool):
        return PropertyKind.BOOLEAN
    if isinstance(value, int):
        return PropertyKind.INTEGER
    if isinstance(value, float):
        return PropertyKind.FLOAT
    if isinstance(value, str):
        return PropertyKind.STRING
    if isinstance(value, Mapping | list | tuple | bytes | bytearray | BaseModel):
        return PropertyKind.COMPOSITE
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return PropertyKind.COMPOSITE
    raise UnrepresentableValueError(f"unsupported property type {type(value).__name__}")


def is_blank(value: Any) -> bool:
    """True when a value counts as absent for identifying purposes.

    Only null and whitespace-only strings are blank; ``0``, ``False`` and
    empty containers are real values.
    """
    try:
        kind = classify(value)
    except UnrepresentableValueError:
        # present but unencodable; canonicalize() reports it with the property name
        return False
    match kind:
        case PropertyKind.NULL:
            return True
        case PropertyKind.STRING:
            return value.strip(_TRIM_CHARS) == ""
        case (
            PropertyKind.INTEGER
            | PropertyKind.FLOAT
            | PropertyKind.BOOLEAN
            | PropertyKind.COMPOSITE
        ):
            return False


def reject_bool(value: Any) -> Any:
    """Before-validator for numeric model fields.

    pydantic reads ``True`` as ``1`` in lax mode, while ``canonicalize``
    keeps it a boolean; numeric fields refuse booleans so both agree.
    """
    if isinstance(value, bool):
        msg = f"expected a number, got boolean {value}"
        raise ValueError(msg)
    return value


def canonicalize(value: Any) -> str:
    """Canonical text of a single property value.

    ============  ===========================================
    null          ``null``
    string        trimmed, lowercased
    integer       base-10, sign preserved
    float         six decimal places
    boolean       ``true`` / ``false``
    composite     compact JSON, sorted keys
    ============  ===========================================
    """
    match classify(value):
        case PropertyKind.NULL:
            return "null"
        case PropertyKind.STRING:
            return _require_utf8(fold_string(value))
        case PropertyKind.INTEGER:
            return str(int(value))
        case PropertyKind.FLOAT:
            return _fixed_float(value)
        case PropertyKind.BOOLEAN:
            return "true" if value else "false"
        case PropertyKind.COMPOSITE:
            return _require_utf8(canonical_json(value))


def _fixed_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    return f"{value:.6f}"


def fold_string(text: str) -> str:
    """Trim Unicode whitespace and lowercase one character at a time."""
    return "".join(_lower_char(ch) for ch in text.strip(_TRIM_CHARS))


def _lower_char(ch: str) -> str:
    lowered = ch.lower()
    # U+0130 is the only character whose full lowercase is two characters
    return lowered if len(lowered) == 1 else lowered[0]


def _require_utf8(text: str) -> str:
    try:
        text.encode("utf-8")
    except UnicodeEncodeError as e:
        msg = f"text is not encodable as UTF-8 ({e.reason} at position {e.start})"
        raise UnrepresentableValueError(msg) from e
    return text


def canonical_json(value: Any) -> str:
    """Compact JSON with sorted keys and HTML-significant characters escaped."""
    return "".join(_encode(value))


def _encode(value: Any) -> list[str]:
    if value is None:
        return ["null"]
    if isinstance(value, bool):
        return ["true" if value else "false"]
    if isinstance(value, int):
        return [str(int(value))]
    if isinstance(value, float):
        return [_json_number(value)]
    if isinstance(value, str):
        return [_json_string(value)]
    if isinstance(value, bytes | bytearray):
        return [_json_string(base64.b64encode(bytes(value)).decode("ascii"))]
    if isinstance(value, BaseModel):
        return _encode(value.model_dump(mode="json"))
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _encode(dataclasses.asdict(value))
    if isinstance(value, Mapping):
        items = sorted(((_json_key(k), v) for k, v in value.items()), key=lambda kv: kv[0])
        parts = ["{"]
        for i, (key, item) in enumerate(items):
            if i:
                parts.append(",")
            parts.append(_json_string(key))
            parts.append(":")
            parts.extend(_encode(item))
        parts.append("}")
        return parts
    if isinstance(value, list | tuple):
        parts = ["["]
        for i, item in enumerate(value):
            if i:
                parts.append(",")
            parts.extend(_encode(item))
        parts.append("]")
        return parts
    raise UnrepresentableValueError(f"cannot encode {type(value).__name__} as JSON")


def _json_key(key: Any) -> str:
    if isinstance(key, str):
        return key
    if isinstance(key, int) and not isinstance(key, bool):
        return str(key)
    raise UnrepresentableValueError(f"unsupported JSON object key type {type(key).__name__}")


def _json_string(text: str) -> str:
    encoded = json.dumps(text, ensure_ascii=False)
    for raw, escaped in _HTML_ESCAPES.items():
        encoded = encoded.replace(raw, escaped)
    return encoded


def _json_number(value: float) -> str:
    """Shortest round-trip form; plain decimal between 1e-6 and 1e21."""
    if not math.isfinite(value):
        raise UnrepresentableValueError(f"unsupported float value {value!r}")
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"
    text = repr(value)
    magnitude = abs(value)
    if 1e-6 <= magnitude < 1e21:
        text = format(Decimal(text), "f")
        if "." in text:
            text = text.rstrip("0").rstrip(".")
        return text
    mantissa, _, exponent = text.partition("e")
    sign = "-" if exponent.startswith("-") else "+"
    return f"{mantissa}e{sign}{exponent.lstrip('+-').lstrip('0') or '0'}"
