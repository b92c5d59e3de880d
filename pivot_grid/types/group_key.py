"""
group_key.py - Structured identity for nodes in the row and column hierarchies

A GroupKey is the ordered sequence of (field_id, value) pairs leading from the
hierarchy root to a node. It doubles as the aggregation filter for that node
and as the expand/collapse state key, so it must never be flattened into a
delimiter-joined string. encode()/decode() exist for system boundaries only.
"""
import math
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Iterator, Tuple


class _Blank:
    """Reserved value for a record that lacks a dimension field."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "BLANK"

    def __str__(self) -> str:
        return "(blank)"

    def __reduce__(self):
        return (_Blank, ())


BLANK = _Blank()


def normalize_value(value: Any) -> Any:
    """
    Map missing dimension values onto the BLANK sentinel.

    NaN counts as missing since it never equals itself and could not be
    matched back to its own group.
    """
    if value is None:
        return BLANK
    if isinstance(value, float) and math.isnan(value):
        return BLANK
    if isinstance(value, Decimal) and value.is_nan():
        return BLANK
    return value


_TAGS = {
    bool: "b",
    int: "i",
    float: "f",
    Decimal: "d",
    str: "s",
    date: "D",
    datetime: "T",
    time: "H",
}

_PARSERS = {
    "b": lambda text: text == "True",
    "i": int,
    "f": float,
    "d": Decimal,
    "s": str,
    "D": date.fromisoformat,
    "T": datetime.fromisoformat,
    "H": time.fromisoformat,
}


def _encode_value(value: Any) -> Tuple[str, str]:
    if value is BLANK:
        return "z", ""
    tag = _TAGS.get(type(value))
    if tag is None:
        # Other scalar types travel as text only; callers resolve them
        # against the live hierarchy rather than decoding
        return "r", str(value)
    if isinstance(value, (date, time)):
        return tag, value.isoformat()
    return tag, str(value)


def _decode_value(tag: str, text: str) -> Any:
    if tag == "z":
        return BLANK
    if tag == "r":
        return text
    parser = _PARSERS.get(tag)
    if parser is not None:
        return parser(text)
    raise ValueError(f"Unknown value tag in encoded group key: {tag!r}")


def _write_chunk(text: str) -> str:
    return f"{len(text)}:{text}"


def _read_chunk(encoded: str, pos: int) -> Tuple[str, int]:
    sep = encoded.index(":", pos)
    length = int(encoded[pos:sep])
    start = sep + 1
    end = start + length
    if end > len(encoded):
        raise ValueError("Truncated encoded group key")
    return encoded[start:end], end


class GroupKey:
    """
    Immutable, hashable path of (field_id, value) pairs.

    Keys compare element-wise; K1 is an ancestor of K2 when K1's pairs are a
    strict prefix of K2's. The empty key is the hierarchy root and matches
    every record when used as aggregation criteria.
    """

    __slots__ = ("_parts",)

    def __init__(self, parts=()):
        self._parts = tuple((str(field_id), normalize_value(value)) for field_id, value in parts)

    @property
    def parts(self) -> Tuple[Tuple[str, Any], ...]:
        return self._parts

    @property
    def depth(self) -> int:
        return len(self._parts)

    @property
    def is_root(self) -> bool:
        return not self._parts

    @property
    def value(self) -> Any:
        """Value of the last pair; None for the root."""
        return self._parts[-1][1] if self._parts else None

    @property
    def field_id(self) -> Any:
        return self._parts[-1][0] if self._parts else None

    def child(self, field_id: str, value: Any) -> "GroupKey":
        return GroupKey(self._parts + ((field_id, value),))

    def parent(self) -> "GroupKey":
        if not self._parts:
            raise ValueError("The root group key has no parent")
        return GroupKey(self._parts[:-1])

    def ancestors(self) -> Iterator["GroupKey"]:
        """Yield every proper, non-root ancestor, outermost first."""
        for i in range(1, len(self._parts)):
            yield GroupKey(self._parts[:i])

    def is_ancestor_of(self, other: "GroupKey") -> bool:
        return len(self._parts) < len(other._parts) and other._parts[:len(self._parts)] == self._parts

    def matches(self, record) -> bool:
        """True when the record agrees with every pair of this key."""
        return all(normalize_value(record.get(field_id)) == value for field_id, value in self._parts)

    def encode(self) -> str:
        """
        Serialize to a collision-free string.

        Every field id and value is length-prefixed and values carry a type
        tag, so keys such as (("a_b", "c"),) and (("a", "b_c"),) or ("1" vs 1)
        never share an encoding.
        """
        out = [f"{len(self._parts)}#"]
        for field_id, value in self._parts:
            tag, text = _encode_value(value)
            out.append(_write_chunk(field_id))
            out.append(tag)
            out.append(_write_chunk(text))
        return "".join(out)

    @classmethod
    def decode(cls, encoded: str) -> "GroupKey":
        try:
            hash_pos = encoded.index("#")
            count = int(encoded[:hash_pos])
            pos = hash_pos + 1
            parts = []
            for _ in range(count):
                field_id, pos = _read_chunk(encoded, pos)
                tag = encoded[pos]
                text, pos = _read_chunk(encoded, pos + 1)
                parts.append((field_id, _decode_value(tag, text)))
        except (IndexError, ValueError) as e:
            raise ValueError(f"Malformed group key {encoded!r}: {e}") from e
        if pos != len(encoded):
            raise ValueError(f"Malformed group key {encoded!r}: trailing data")
        return cls(parts)

    def __len__(self) -> int:
        return len(self._parts)

    def __iter__(self):
        return iter(self._parts)

    def __eq__(self, other) -> bool:
        if not isinstance(other, GroupKey):
            return NotImplemented
        return self._parts == other._parts

    def __hash__(self) -> int:
        return hash(self._parts)

    def __repr__(self) -> str:
        inner = ", ".join(f"{field_id}={value!r}" for field_id, value in self._parts)
        return f"GroupKey({inner})"


ROOT = GroupKey()
