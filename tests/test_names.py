# Tests for registration/names.py — device-name normalization.
# Created: 2026-10-07

import pytest

from authrelay.registration.names import MAX_NAME_LENGTH, VALID_NAME, normalize_device_name


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("My Device!!", "my-device"),
        ("My Device!", "my-device"),
        ("laptop", "laptop"),
        ("Kitchen--Pi  4", "kitchen-pi-4"),
        ("--edge--", "edge"),
        ("Émile's MacBook", "mile-s-macbook"),
        ("a_b.c", "a-b-c"),
        ("UPPER-123", "upper-123"),
    ],
)
def test_normalize(raw, expected):
    assert normalize_device_name(raw) == expected


@pytest.mark.parametrize("raw", ["", "!!!", "---", "   ", "日本語"])
def test_nothing_usable(raw):
    assert normalize_device_name(raw) == ""


def test_truncated_to_63():
    name = normalize_device_name("x" * 100)
    assert len(name) == MAX_NAME_LENGTH


def test_truncation_does_not_leave_trailing_hyphen():
    # Character 63 is a hyphen after normalization
    raw = "a" * 62 + " b"
    name = normalize_device_name(raw)
    assert name == "a" * 62
    assert not name.endswith("-")


@pytest.mark.parametrize(
    "raw",
    ["My Device!!", "--x--y--", "a" * 62 + "-b", "Émile's  MacBook Pro (2021)", "ok", "-" * 80],
)
def test_idempotent(raw):
    once = normalize_device_name(raw)
    assert normalize_device_name(once) == once


@pytest.mark.parametrize("raw", ["My Device!!", "x" * 200, "Hello World 2", "a" * 62 + "!b"])
def test_accepted_names_match_pattern(raw):
    name = normalize_device_name(raw)
    assert VALID_NAME.match(name)
