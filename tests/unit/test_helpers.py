"""Unit tests for helper functions."""

import pytest

from openhqm_rm.utils.helpers import ABSENT, get_nested_value, stringify


def test_get_nested_value():
    data = {"metadata": {"user": {"id": 123}}}

    assert get_nested_value(data, "metadata.user.id") == 123
    assert get_nested_value(data, "metadata.user") == {"id": 123}


@pytest.mark.parametrize(
    "data,path",
    [
        ({"a": 1}, "b"),
        ({"a": 1}, "a.b"),
        ({"a": None}, "a.b"),
        ({"a": [1, 2]}, "a.0"),
        ([1], "a"),
        ({"a": 1}, ""),
    ],
)
def test_get_nested_value_absent(data, path):
    assert get_nested_value(data, path) is ABSENT


def test_null_is_not_absent():
    assert get_nested_value({"a": None}, "a") is None


def test_absent_is_falsy_singleton():
    assert not ABSENT
    assert type(ABSENT)() is ABSENT
    assert repr(ABSENT) == "ABSENT"


@pytest.mark.parametrize(
    "value,text",
    [
        ("abc", "abc"),
        (True, "true"),
        (None, "null"),
        (42, "42"),
        (1.5, "1.5"),
        ({"a": 1}, '{"a":1}'),
        (["x", 2], '["x",2]'),
        ("héllo", "héllo"),
    ],
)
def test_stringify(value, text):
    assert stringify(value) == text
