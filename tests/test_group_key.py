"""
Tests for GroupKey identity, ancestry and boundary encoding.
"""
import pytest
from datetime import date, datetime, time, timezone
from decimal import Decimal

from pivot_grid.types.group_key import BLANK, GroupKey, ROOT


def test_keys_compare_element_wise():
    """Keys built from the same pairs are equal and hash alike"""
    a = GroupKey([("Region", "East"), ("Rep", "A")])
    b = ROOT.child("Region", "East").child("Rep", "A")
    assert a == b
    assert hash(a) == hash(b)
    assert a != GroupKey([("Rep", "A"), ("Region", "East")])
    assert len({a, b}) == 1


def test_ancestry_is_strict_prefix():
    """Only strict prefixes count as ancestors"""
    east = GroupKey([("Region", "East")])
    east_a = east.child("Rep", "A")
    west_a = GroupKey([("Region", "West"), ("Rep", "A")])

    assert east.is_ancestor_of(east_a)
    assert not east.is_ancestor_of(east)
    assert not east_a.is_ancestor_of(east)
    assert not east.is_ancestor_of(west_a)
    assert ROOT.is_ancestor_of(east)
    assert east_a.parent() == east
    assert list(east_a.child("City", "NY").ancestors()) == [east, east_a]


def test_root_has_no_parent():
    with pytest.raises(ValueError):
        ROOT.parent()


def test_none_is_stored_as_blank():
    """Missing values are folded into the BLANK sentinel"""
    key = GroupKey([("Rep", None)])
    assert key.value is BLANK
    assert key.matches({"Region": "East"})
    assert not key.matches({"Rep": "A"})


def test_blank_is_not_the_blank_string():
    """The reserved sentinel never collides with a literal "(blank)" value"""
    assert GroupKey([("Rep", BLANK)]) != GroupKey([("Rep", "(blank)")])
    assert GroupKey([("Rep", BLANK)]).encode() != GroupKey([("Rep", "(blank)")]).encode()
    assert str(BLANK) == "(blank)"


def test_encoding_does_not_collide_on_delimiters():
    """Underscores, colons and hyphens inside ids or values stay unambiguous"""
    keys = [
        GroupKey([("a_b", "c")]),
        GroupKey([("a", "b_c")]),
        GroupKey([("a", "b"), ("c", "d")]),
        GroupKey([("a::b", "c-d")]),
        GroupKey([("a", "b::c"), ("d", "")]),
        GroupKey([("x", "1")]),
        GroupKey([("x", 1)]),
        GroupKey([("x", 1.0)]),
    ]
    encoded = [k.encode() for k in keys]
    assert len(set(encoded)) == len(keys)


def test_decode_restores_values_and_types():
    """Encoded keys come back with their original scalar types"""
    key = GroupKey([
        ("Region", "East:West"),
        ("Year", 2024),
        ("Share", 0.25),
        ("Flag", True),
        ("Amount", Decimal("1.50")),
        ("Rep", BLANK),
    ])
    decoded = GroupKey.decode(key.encode())
    assert decoded == key
    assert decoded.parts[1][1] == 2024 and isinstance(decoded.parts[1][1], int)
    assert decoded.parts[5][1] is BLANK
    assert GroupKey.decode(ROOT.encode()) == ROOT


def test_temporal_values_round_trip():
    """Dates, timestamps and times decode to the same type and value"""
    key = GroupKey([
        ("Day", date(2024, 1, 1)),
        ("At", datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc)),
        ("Slot", time(17, 45, 5)),
    ])
    decoded = GroupKey.decode(key.encode())
    assert decoded == key
    assert type(decoded.parts[0][1]) is date
    assert type(decoded.parts[1][1]) is datetime
    assert decoded.parts[1][1].tzinfo is not None
    # a date and its text form stay distinct
    assert GroupKey([("Day", date(2024, 1, 1))]).encode() != GroupKey([("Day", "2024-01-01")]).encode()


def test_nan_is_stored_as_blank():
    key = GroupKey([("Rep", float("nan"))])
    assert key.value is BLANK
    assert key == GroupKey([("Rep", float("nan"))])
    assert key.matches({"Rep": float("nan")})
    assert GroupKey([("Amount", Decimal("NaN"))]).value is BLANK


@pytest.mark.parametrize("bad", ["", "x#", "1#3:abcs1:", "1#6:Regions4:East trailing", "1#6:Regionq4:East"])
def test_decode_rejects_malformed_input(bad):
    with pytest.raises(ValueError):
        GroupKey.decode(bad)
