"""
Tests for status codes and their bands.
"""
import pytest
from hypothesis import given, strategies as st

from gemclient.client import Category, StatusCode
from gemclient.client.exceptions import UnknownStatusError

DEFINED_CODES = {
    10, 11, 20, 30, 31, 40, 41, 42, 43, 44, 50, 51, 52, 53, 59, 60, 61, 62,
}


def test_closed_set_has_eighteen_codes():
    """Every defined code is a member and there are no others."""
    assert {code.value for code in StatusCode} == DEFINED_CODES


@given(raw=st.integers(min_value=0, max_value=99))
def test_decode_is_bijection_on_defined_codes(raw: int):
    """Defined codes decode to their own member, anything else is refused."""
    if raw in DEFINED_CODES:
        assert StatusCode.decode(raw).value == raw
    else:
        with pytest.raises(UnknownStatusError) as error:
            StatusCode.decode(raw)
        assert error.value.status == raw


def test_decode_names():
    """Spot check a few names against their numbers."""
    assert StatusCode.decode(11) is StatusCode.SENSITIVE_INPUT
    assert StatusCode.decode(44) is StatusCode.SLOW_DOWN
    assert StatusCode.decode(59) is StatusCode.BAD_REQUEST
    assert StatusCode.decode(62) is StatusCode.CERTIFICATE_NOT_VALID


@pytest.mark.parametrize(
    "predicate, category",
    [
        (StatusCode.is_input_required, Category.INPUT),
        (StatusCode.is_success, Category.SUCCESS),
        (StatusCode.is_redirect, Category.REDIRECT),
        (StatusCode.is_temporary_failure, Category.TEMPORARY_FAILURE),
        (StatusCode.is_permanent_failure, Category.PERMANENT_FAILURE),
        (StatusCode.is_cert_error, Category.CERTIFICATE_REQUIRED),
    ],
)
def test_band_predicates(predicate, category: Category):
    """Each predicate holds exactly for the codes sharing the leading digit."""
    for code in StatusCode:
        assert predicate(code) == (code.value // 10 == category.value)
        assert (code.category == category) == predicate(code)


def test_codes_are_ordered_by_value():
    """Codes compare numerically, so bands can be compared by range."""
    assert StatusCode.TEMPORARY_FAILURE < StatusCode.SLOW_DOWN < StatusCode.NOT_FOUND
    assert sorted(StatusCode) == sorted(StatusCode, key=lambda code: code.value)
