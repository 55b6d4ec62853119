"""Browser-compatible value coercion.

Form definitions and answers were authored against a JavaScript client, so
rule comparisons and e-mail checks convert values the way ``String()`` and
``Number()`` do there.  Keeping the conversions here means the evaluator,
the validator and the models agree on a single rule set.
"""

from __future__ import annotations

import math
import re
from typing import Any

# Decimal literal as accepted by Number(): optional sign, digits with an
# optional fraction (or a bare fraction), optional exponent.
_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INFINITY_RE = re.compile(r"[+-]?Infinity")


def to_js_string(value: Any) -> str:
    """Stringify ``value`` like ``String(value ?? '')``."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (list, tuple)):
        # Array.prototype.toString: elements joined by commas, nullish → ""
        return ",".join(to_js_string(v) for v in value)
    return str(value)


def to_js_number(value: Any) -> float:
    """Convert ``value`` like ``Number(String(value))``; NaN when not numeric."""
    text = to_js_string(value).strip()
    if not text:
        return 0.0
    if _NUMBER_RE.fullmatch(text):
        return float(text)
    if _INFINITY_RE.fullmatch(text):
        return float("-inf") if text.startswith("-") else float("inf")
    return math.nan
