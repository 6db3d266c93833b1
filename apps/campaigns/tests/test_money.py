"""
Unit tests for cent-precise money arithmetic.

No database access: these functions are pure.
"""

import logging
import pytest
from decimal import Decimal

from apps.campaigns.services import (
    InvalidAmountError,
    allocate_by_weight,
    amounts_match,
    distribute_proportionally,
    money_sum,
    to_money,
)


def D(value):
    return Decimal(value)


class TestToMoney:
    """Tests for to_money rounding."""

    def test_rounds_half_up(self):
        """Half a cent rounds away from zero."""
        assert to_money(D('10.125')) == D('10.13')
        assert to_money(D('10.124')) == D('10.12')
        assert to_money(D('10.126')) == D('10.13')

    def test_float_input_has_no_binary_drift(self):
        """0.1 + 0.2 is 0.30, not 0.30000000000000004."""
        assert to_money(0.1 + 0.2) == D('0.30')
        assert to_money(10.125) == D('10.13')

    def test_whole_numbers_get_two_places(self):
        assert to_money(10) == D('10.00')
        assert str(to_money(10)) == '10.00'

    @pytest.mark.parametrize('value', ['abc', float('nan'), float('inf'), None])
    def test_rejects_non_numbers(self, value):
        with pytest.raises(InvalidAmountError):
            to_money(value)

    def test_money_sum(self):
        assert money_sum([D('0.10'), D('0.20'), 0.3]) == D('0.60')
        assert money_sum([]) == D('0.00')


class TestDistributeProportionally:
    """Tests for distribute_proportionally."""

    def test_three_orders_weights_one_two_three(self):
        """First shares round to the cent, the last absorbs the remainder."""
        result = distribute_proportionally(D('100.00'), [1, 2, 3])

        assert result == [D('16.67'), D('33.33'), D('50.00')]
        assert sum(result) == D('100.00')

    def test_equal_weights_last_absorbs_remainder(self):
        result = distribute_proportionally(D('10.00'), [1, 1, 1])

        assert result == [D('3.33'), D('3.33'), D('3.34')]

    def test_single_weight_gets_everything(self):
        assert distribute_proportionally(D('37.50'), [10]) == [D('37.50')]

    def test_empty_weights_returns_empty_list(self):
        assert distribute_proportionally(D('100.00'), []) == []

    def test_all_zero_weights_distributes_nothing(self, caplog):
        """Shipping is dropped, not split evenly, when nothing has weight."""
        with caplog.at_level(logging.WARNING, logger='apps.campaigns.services.money'):
            result = distribute_proportionally(D('100.00'), [0, 0, 0])

        assert result == [D('0.00'), D('0.00'), D('0.00')]
        assert 'undistributed' in caplog.text

    def test_keeps_input_order_instead_of_sorting(self):
        """The last entry absorbs the remainder regardless of its weight."""
        assert distribute_proportionally(D('10.00'), [3, 1]) == [D('7.50'), D('2.50')]
        assert distribute_proportionally(D('10.00'), [1, 3]) == [D('2.50'), D('7.50')]

    @pytest.mark.parametrize('total,weights', [
        (D('0.01'), [1, 1, 1]),
        (D('100.00'), [D('0.333'), D('1.5'), 0, D('2')]),
        (D('999.99'), [7, 11, 13, 17, 19]),
        (D('0.00'), [1, 2]),
        (D('12.345'), [1, 1]),
    ])
    def test_shares_always_sum_to_rounded_total(self, total, weights):
        result = distribute_proportionally(total, weights)

        assert len(result) == len(weights)
        assert sum(result) == to_money(total)

    def test_zero_weight_last_share_can_go_negative(self):
        """Earlier shares rounding up leave a negative remainder for the last."""
        result = distribute_proportionally(D('0.01'), [1, 1, 0])

        assert result == [D('0.01'), D('0.01'), D('-0.01')]
        assert sum(result) == D('0.01')

    def test_accepts_string_and_float_inputs(self):
        result = distribute_proportionally('50.00', [0.5, '1.5'])

        assert result == [D('12.50'), D('37.50')]

    def test_negative_total_rejected(self):
        with pytest.raises(InvalidAmountError):
            distribute_proportionally(D('-1.00'), [1])

    def test_negative_weight_rejected(self):
        with pytest.raises(InvalidAmountError):
            distribute_proportionally(D('10.00'), [1, -1])


class TestAllocateByWeight:
    """Tests for the keyed allocation form."""

    def test_keys_travel_with_their_shares(self):
        result = allocate_by_weight(D('3.00'), [('b', 2), ('a', 1)])

        assert result == [('b', D('2.00')), ('a', D('1.00'))]

    def test_zero_weights_keep_keys(self):
        result = allocate_by_weight(D('5.00'), [('a', 0), ('b', 0)])

        assert result == [('a', D('0.00')), ('b', D('0.00'))]


class TestAmountsMatch:

    def test_difference_below_tolerance_matches(self):
        assert amounts_match(D('10.00'), D('10.009'))

    def test_difference_of_one_cent_does_not_match(self):
        assert not amounts_match(D('10.00'), D('10.01'))

    def test_custom_tolerance(self):
        assert amounts_match(D('10.00'), D('14.99'), tolerance=D('5.00'))
