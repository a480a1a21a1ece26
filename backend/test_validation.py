import pytest

from errors import ValidationError
from validation import (
    is_valid_count, is_valid_region, parse_count, validate_batch, validate_update,
)


@pytest.mark.parametrize("value", [0, 1, 999999, "0", "42", " 7 ", 12.0, "+5"])
def test_valid_counts(value):
    assert is_valid_count(value)


@pytest.mark.parametrize("value", [
    -1, 1000000, 3.5, "3.5", "abc", "", None, True, False, "-1", "1e3", [1], "１２", "٣",
])
def test_invalid_counts(value):
    assert not is_valid_count(value)


def test_parse_count_returns_integer():
    assert parse_count("0012") == 12
    assert parse_count(7.0) == 7
    assert parse_count("x") is None


def test_is_valid_region():
    assert is_valid_region("Orissa")
    assert not is_valid_region("Narnia")
    assert not is_valid_region(None)


def test_validate_update_returns_canonical_values():
    assert validate_update("Uttaranchal", "12", 3) == ("uttarakhand", 12, 3)


@pytest.mark.parametrize("region, arrests, fir, field", [
    ("Narnia", 1, 1, "region"),
    ("goa", -1, 1, "arrests"),
    ("goa", "abc", 1, "arrests"),
    ("goa", 1, 1000000, "fir"),
    ("goa", 1, 2.5, "fir"),
])
def test_validate_update_names_failed_field(region, arrests, fir, field):
    with pytest.raises(ValidationError) as exc:
        validate_update(region, arrests, fir)
    assert exc.value.field == field


def test_region_checked_before_counts():
    with pytest.raises(ValidationError) as exc:
        validate_update("Narnia", "abc", "abc")
    assert exc.value.field == "region"


def test_validate_batch_accepts_up_to_fifty():
    updates = [{"region": "goa", "arrests": i, "fir": 0} for i in range(50)]
    assert len(validate_batch(updates)) == 50


def test_validate_batch_rejects_fifty_one():
    updates = [{"region": "goa", "arrests": 1, "fir": 0}] * 51
    with pytest.raises(ValidationError) as exc:
        validate_batch(updates)
    assert exc.value.field == "updates"
    assert "50" in exc.value.message


@pytest.mark.parametrize("updates", [[], None, "goa", {"region": "goa"}, ["goa"]])
def test_validate_batch_rejects_malformed(updates):
    with pytest.raises(ValidationError):
        validate_batch(updates)


def test_validate_batch_accepts_legacy_keys():
    assert validate_batch([{"state": "Orissa", "count": "9"}]) == [("odisha", 9, 0)]


def test_validate_batch_reports_bad_entry():
    updates = [
        {"region": "goa", "arrests": 1, "fir": 0},
        {"region": "kerala", "arrests": 1, "fir": "many"},
    ]
    with pytest.raises(ValidationError) as exc:
        validate_batch(updates)
    assert exc.value.field == "fir"
    assert "kerala" in exc.value.message
