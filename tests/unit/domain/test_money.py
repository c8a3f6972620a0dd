"""Unit tests for integer-cent arithmetic and the agent cost markup"""

from decimal import Decimal

from src.domain.agent_cost_entry import AgentCostEntry
from src.domain.money import line_total_cents, round_cents, tax_cents


class TestRoundCents:
    def test_rounds_half_away_from_zero(self):
        assert round_cents(Decimal("2.5")) == 3
        assert round_cents(Decimal("3.5")) == 4
        assert round_cents(Decimal("2.4999")) == 2

    def test_whole_amount_unchanged(self):
        assert round_cents(Decimal("1500")) == 1500


class TestLineTotal:
    def test_fractional_quantity(self):
        # 1.5 hours at 3333 cents = 4999.5 -> 5000
        assert line_total_cents(Decimal("1.5"), 3333) == 5000

    def test_integer_quantity(self):
        assert line_total_cents(Decimal("2"), 5000) == 10000


class TestTax:
    def test_tax_rounded_on_subtotal(self):
        # 12345 * 8.25% = 1018.4625 -> 1018
        assert tax_cents(12345, Decimal("8.25")) == 1018

    def test_zero_rate(self):
        assert tax_cents(30000, Decimal("0")) == 0


class TestClientCharge:
    def test_default_markup(self):
        assert AgentCostEntry.compute_client_charge(1000, 50) == 1500

    def test_rounding(self):
        # 333 * 1.5 = 499.5 -> 500
        assert AgentCostEntry.compute_client_charge(333, 50) == 500

    def test_no_markup(self):
        assert AgentCostEntry.compute_client_charge(1234, 0) == 1234
