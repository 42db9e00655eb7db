from decimal import Decimal

import pytest

from leasedesk.core.utils import MAX_AMOUNT, to_money, to_stored_money


class TestToMoney:
    def test_rounds_half_up_to_cents(self):
        assert to_money("10.005") == Decimal("10.01")
        assert to_money("10.004") == Decimal("10.00")

    def test_float_goes_through_repr(self):
        assert to_money(0.1) == Decimal("0.10")

    def test_int_and_padded_string(self):
        assert to_money(150) == Decimal("150.00")
        assert to_money(" 42.5 ") == Decimal("42.50")

    @pytest.mark.parametrize("bad", ["abc", "", "NaN", "Infinity", "1,000"])
    def test_malformed_raises_value_error(self, bad):
        with pytest.raises(ValueError):
            to_money(bad)

    @pytest.mark.parametrize("huge", ["1e30", Decimal("1e40"), 1e30])
    def test_too_many_digits_raises_value_error(self, huge):
        with pytest.raises(ValueError):
            to_money(huge)


class TestToStoredMoney:
    def test_column_maximum_is_accepted(self):
        assert to_stored_money("9999999999.99") == MAX_AMOUNT

    @pytest.mark.parametrize("amount", ["10000000000.00", "-10000000000", "1e20"])
    def test_beyond_column_raises_value_error(self, amount):
        with pytest.raises(ValueError):
            to_stored_money(amount)
