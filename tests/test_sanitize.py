import math

import pytest

from school_directory.app.sanitize import (
    MAX_EMAIL_LENGTH,
    MAX_PHONE_LENGTH,
    MAX_STRING_LENGTH,
    MAX_URL_LENGTH,
    sanitize_email,
    sanitize_number,
    sanitize_phone,
    sanitize_string,
    sanitize_url,
)


def test_sanitize_string_trims_and_strips_angle_brackets():
    assert sanitize_string("  <script>alert(1)</script>  ") == "scriptalert(1)/script"


def test_sanitize_string_handles_missing_values():
    assert sanitize_string(None) == ""
    assert sanitize_string("") == ""


def test_sanitize_string_caps_length():
    assert len(sanitize_string("a" * (MAX_STRING_LENGTH + 50))) == MAX_STRING_LENGTH


@pytest.mark.parametrize(
    "value",
    ["  plain  ", "<b>bold</b>", " " * 5 + "x" * (MAX_STRING_LENGTH - 2) + "   tail", "a <> b"],
)
def test_sanitize_string_is_idempotent(value):
    once = sanitize_string(value)

    assert sanitize_string(once) == once


@pytest.mark.parametrize(
    "value, expected",
    [
        ("https://school.ge", "https://school.ge"),
        ("  HTTP://School.ge/path  ", "HTTP://School.ge/path"),
        ("javascript:alert(1)", ""),
        ("ftp://files.test", ""),
        ("school.ge", ""),
        (None, ""),
    ],
)
def test_sanitize_url_keeps_only_http_schemes(value, expected):
    assert sanitize_url(value) == expected


def test_sanitize_url_caps_length():
    assert len(sanitize_url("https://" + "a" * MAX_URL_LENGTH)) == MAX_URL_LENGTH


def test_sanitize_phone_prefers_canonical_format():
    assert sanitize_phone("577 189 127") == "+995 577 18 91 27"


def test_sanitize_phone_strips_unsafe_characters_when_unformattable():
    assert sanitize_phone(" +1 (202) 555-0101 ") == "+1 202 555-0101"
    assert sanitize_phone("<b>12</b>") == "12"


def test_sanitize_phone_caps_length():
    assert len(sanitize_phone("1 " * 40)) <= MAX_PHONE_LENGTH


@pytest.mark.parametrize(
    "value, expected",
    [
        ("42", 42),
        (" 3.5 ", 3.5),
        (7, 7),
        (2.25, 2.25),
        ("1e3", 1000),
    ],
)
def test_sanitize_number_parses_numbers(value, expected):
    assert sanitize_number(value) == expected


@pytest.mark.parametrize("value", [None, "", "   ", "abc", "NaN", "inf", True, math.nan, [1]])
def test_sanitize_number_returns_none_for_absent_values(value):
    assert sanitize_number(value) is None


def test_sanitize_email_normalizes():
    assert sanitize_email("  Admin@Schools.GE ") == "admin@schools.ge"
    assert sanitize_email(None) == ""
    assert len(sanitize_email("a" * 300 + "@x.ge")) == MAX_EMAIL_LENGTH
