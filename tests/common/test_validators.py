from decimal import Decimal

import pytest

from volunteer_hours.common.validators import or_not_available, require_hours, require_non_empty
from volunteer_hours.core.exceptions import ValidationError


@pytest.mark.parametrize("value, expected", [("6.5", Decimal("6.5")), (0, Decimal("0")), ("1.500", Decimal("1.5")), ("9999.99", Decimal("9999.99"))])
def test_require_hours_accepts_values_that_fit_the_column(value, expected):
    assert require_hours(value) == expected


@pytest.mark.parametrize("value", ["-1", "abc", "NaN", "Infinity", "10000", "1.005"])
def test_require_hours_rejects_values_the_column_cannot_hold(value):
    with pytest.raises(ValidationError):
        require_hours(value)


def test_require_non_empty_strips_and_rejects_blank():
    assert require_non_empty("  late  ", "Reason") == "late"
    with pytest.raises(ValidationError, match="Reason is required"):
        require_non_empty("   ", "Reason")


def test_or_not_available():
    assert or_not_available(None) == "N/A"
    assert or_not_available(" ") == "N/A"
    assert or_not_available("CCS") == "CCS"
