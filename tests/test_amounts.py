from decimal import Decimal

from app.core.amounts import compute_totals, line_amount, normalize_items, quantize


class TestLineAmount:
    def test_quantity_times_rate(self):
        assert line_amount({"quantity": "3", "rate": "12.50"}) == Decimal("37.50")

    def test_explicit_amount_wins(self):
        assert line_amount({"quantity": "3", "rate": "12.50", "amount": "30"}) == Decimal("30.00")

    def test_missing_values_are_zero(self):
        assert line_amount({}) == Decimal("0.00")

    def test_rounds_half_up(self):
        assert quantize("2.345") == Decimal("2.35")


class TestComputeTotals:
    items = [
        {"quantity": "2", "rate": "100", "discount": "10", "tax": "18"},
        {"quantity": "1", "rate": "50.50", "tax": "9.09"},
    ]

    def test_computed_from_items(self):
        totals = compute_totals(self.items)
        assert totals.taxable_amount == Decimal("250.50")
        assert totals.total_discount == Decimal("10.00")
        assert totals.total_tax == Decimal("27.09")
        assert totals.total_amount == Decimal("267.59")
        assert totals.overridden == ()

    def test_client_aggregate_overrides_single_field(self):
        totals = compute_totals(self.items, total_tax="20")
        assert totals.total_tax == Decimal("20.00")
        assert totals.total_amount == Decimal("260.50")
        assert totals.computed.total_tax == Decimal("27.09")
        assert totals.overridden == ("total_tax",)

    def test_client_total_is_kept_as_sent(self):
        totals = compute_totals(self.items, total_amount="999.99")
        assert totals.total_amount == Decimal("999.99")
        assert totals.computed.total_amount == Decimal("267.59")

    def test_round_off(self):
        totals = compute_totals(self.items, round_off=True)
        assert totals.total_amount == Decimal("268.00")

    def test_no_items(self):
        totals = compute_totals([])
        assert totals.total_amount == Decimal("0.00")


def test_normalize_items_fills_amount():
    items = normalize_items([{"name": "Bolt", "quantity": "4", "rate": "2.5"}])
    assert items == [{"name": "Bolt", "quantity": "4", "rate": "2.5", "amount": "10.00"}]
