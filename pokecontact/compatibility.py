# pokecontact/compatibility.py
"""
Symmetric compatibility score between two entities, derived from their types.

For every (a, b) type pair the two directional multipliers are averaged, the
pair scores are averaged into one raw effectiveness percentage (100 = neutral),
and that is mapped piecewise-linearly onto 0..100 with neutral at 50.
"""

import math

from pokecontact.type_effectiveness import NEUTRAL, effectiveness

DEFAULT_TYPES = ("normal",)

# score -> label, highest first
LEVELS = [
    (80, "Excellent"),
    (60, "Good"),
    (40, "Fair"),
    (0, "Low"),
]


def _get(obj, name):
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def extract_types(entity) -> tuple:
    """Distinct, lower-cased type names of a profile/contact/dict/list; ('normal',) when none usable."""
    if isinstance(entity, (list, tuple)):
        raw = entity
    else:
        raw = None
        for attr in ("profile", "pokemon"):
            inner = _get(entity, attr)
            if inner is not None:
                raw = _get(inner, "types")
                if raw:
                    break
        if not raw:
            raw = _get(entity, "types")

    if isinstance(raw, str):
        raw = [raw]
    seen = []
    try:
        for t in raw or ():
            if isinstance(t, str) and t.strip():
                key = t.strip().lower()
                if key not in seen:
                    seen.append(key)
    except TypeError:
        seen = []
    return tuple(seen) or DEFAULT_TYPES


def mutual_effectiveness(type_a: str, type_b: str) -> float:
    return (effectiveness(type_a, type_b) + effectiveness(type_b, type_a)) / 2


def raw_effectiveness(types_a, types_b) -> float:
    pairs = [mutual_effectiveness(a, b) for a in types_a for b in types_b]
    return sum(pairs) / len(pairs)


def renormalize(raw: float) -> int:
    """Map raw effectiveness (neutral 100) onto 0..100, rounding half up."""
    if raw >= NEUTRAL:
        pct = 50 + min(50, (raw - NEUTRAL) / 100 * 50)
    else:
        pct = (raw / 100) * 50
    pct = max(0.0, min(100.0, pct))
    return int(math.floor(pct + 0.5))


def compatibility(entity_a, entity_b):
    """Compatibility percentage of two entities, or None when either one is missing."""
    if entity_a is None or entity_b is None:
        return None
    return renormalize(raw_effectiveness(extract_types(entity_a), extract_types(entity_b)))


def compatibility_level(score):
    if score is None:
        return None
    for floor_, label in LEVELS:
        if score >= floor_:
            return label
    return LEVELS[-1][1]
