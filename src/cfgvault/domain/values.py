"""Tagged value variant for vault scalars.

A vault stores untyped JSON scalars. :class:`TaggedValue` classifies a
raw value once and exposes explicit conversions implementing the
narrowing rules used by the typed accessors:

- integers widen to float
- every scalar has a string form (its JSON text)
- booleans only narrow to bool
- ``None`` narrows to ``None`` for every type
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from cfgvault.errors import ValueTypeError

Scalar = bool | int | float | str | None

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class ValueKind(StrEnum):
    """JSON scalar kinds a vault value may have."""

    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    ABSENT = "absent"


def classify(raw: Any) -> ValueKind:
    """Return the kind of *raw*, raising ValueTypeError if it is not a vault scalar."""
    # bool before int: bool is an int subclass
    if raw is None:
        return ValueKind.ABSENT
    if isinstance(raw, bool):
        return ValueKind.BOOL
    if isinstance(raw, int):
        if not INT64_MIN <= raw <= INT64_MAX:
            msg = f"Integer {raw} is outside the 64-bit range"
            raise ValueTypeError(msg, value_type="int")
        return ValueKind.INT
    if isinstance(raw, float):
        if not math.isfinite(raw):
            msg = f"Float {raw!r} is not finite"
            raise ValueTypeError(msg, value_type="float")
        return ValueKind.FLOAT
    if isinstance(raw, str):
        return ValueKind.STRING
    msg = f"Unsupported vault value of type {type(raw).__name__}"
    raise ValueTypeError(msg, value_type=type(raw).__name__)


@dataclass(frozen=True)
class TaggedValue:
    """A vault scalar paired with its kind."""

    kind: ValueKind
    value: Scalar

    @classmethod
    def of(cls, raw: Any) -> TaggedValue:
        return cls(classify(raw), raw)

    @property
    def is_absent(self) -> bool:
        return self.kind is ValueKind.ABSENT

    def _mismatch(self, target: ValueKind) -> ValueTypeError:
        msg = f"Cannot read {self.kind} value as {target}"
        return ValueTypeError(msg, value_type=str(self.kind), requested=str(target))

    def as_bool(self) -> bool | None:
        if self.is_absent:
            return None
        if self.kind is ValueKind.BOOL:
            return bool(self.value)
        raise self._mismatch(ValueKind.BOOL)

    def as_int(self) -> int | None:
        if self.is_absent:
            return None
        if self.kind is ValueKind.INT:
            return int(self.value)  # type: ignore[arg-type]
        raise self._mismatch(ValueKind.INT)

    def as_float(self) -> float | None:
        """Return the value as float; integers widen."""
        if self.is_absent:
            return None
        if self.kind in (ValueKind.INT, ValueKind.FLOAT):
            return float(self.value)  # type: ignore[arg-type]
        raise self._mismatch(ValueKind.FLOAT)

    def as_string(self) -> str | None:
        """Return the value as a string; other scalars use their JSON text."""
        if self.is_absent:
            return None
        if self.kind is ValueKind.STRING:
            return str(self.value)
        return json.dumps(self.value)

    def convert(self, kind: ValueKind) -> Scalar:
        """Dispatch to the ``as_*`` conversion for *kind*."""
        converters = {
            ValueKind.BOOL: self.as_bool,
            ValueKind.INT: self.as_int,
            ValueKind.FLOAT: self.as_float,
            ValueKind.STRING: self.as_string,
        }
        if kind is ValueKind.ABSENT:
            return None
        return converters[kind]()


def validate_domain(value: Any) -> dict[str, Scalar]:
    """Check that *value* is a mapping of string keys to scalars.

    Returns a plain dict copy sorted by key. Raises ValueTypeError on the
    first offending entry.
    """
    if not isinstance(value, Mapping):
        msg = f"A domain must be a mapping, not {type(value).__name__}"
        raise ValueTypeError(msg, value_type=type(value).__name__)
    for key, item in value.items():
        if not isinstance(key, str):
            msg = f"Domain keys must be strings, got {key!r}"
            raise ValueTypeError(msg, value_type=type(key).__name__)
        classify(item)
    return dict(sorted(value.items()))
