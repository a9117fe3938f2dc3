"""
Unit Tests - Order Ledger
"""
from datetime import date

import pytest

from conftest import make_campaign, make_order
from src.data.models import OrderStatus, Unit
from src.statistics.exceptions import ContractViolationError
from src.statistics.ledger import resolve_order, round_currency, scan_ledger

UNIT = Unit(id="u1", label="1kg", price=10, cost_price=6)


class TestResolveOrder:
    """Tests for the refund policy"""
    
    @pytest.mark.parametrize("status", [OrderStatus.PAID, OrderStatus.COMPLETED])
    def test_paid_without_refund(self, status):
        """Paid orders book gross revenue and gross profit"""
        resolved = resolve_order(make_order("o1", "gb-1", status, quantity=2), UNIT)
        
        assert resolved.revenue == 20
        assert resolved.profit == 8
        assert resolved.refund_contribution == 0
        assert resolved.counts_toward_order_volume
        assert not resolved.is_full_refund
        assert not resolved.is_partial_refund
    
    @pytest.mark.parametrize("partial", [0.5, 4, 19.99])
    def test_partial_refund_reduces_revenue_and_profit(self, partial):
        """Partial refunds come off both revenue and profit"""
        order = make_order("o1", "gb-1", OrderStatus.COMPLETED, quantity=2, partial_refund_amount=partial)
        resolved = resolve_order(order, UNIT)
        
        assert resolved.revenue == round_currency(20 - partial)
        assert resolved.profit == round_currency(8 - partial)
        assert resolved.refund_contribution == partial
        assert resolved.is_partial_refund
    
    @pytest.mark.parametrize("partial", [0, 4])
    def test_full_refund_ignores_partial_amount(self, partial):
        """Refunded orders lose their cost and refund the gross amount"""
        order = make_order("o1", "gb-1", OrderStatus.REFUNDED, quantity=3, partial_refund_amount=partial)
        resolved = resolve_order(order, UNIT)
        
        assert resolved.revenue == 0
        assert resolved.profit == -18
        assert resolved.refund_contribution == 30
        assert resolved.is_full_refund
        assert not resolved.counts_toward_order_volume
    
    def test_unpaid_order_is_rejected(self):
        """Unpaid orders must be filtered out before resolution"""
        with pytest.raises(ContractViolationError):
            resolve_order(make_order("o1", "gb-1", OrderStatus.NOTPAID), UNIT)
    
    def test_fractional_prices_round_at_each_step(self):
        """Currency values stay at two decimals"""
        unit = Unit(id="u1", price=0.125, cost_price=0.005)
        resolved = resolve_order(make_order("o1", "gb-1", OrderStatus.PAID, quantity=1), unit)
        
        assert resolved.revenue == 0.13
        assert resolved.profit == 0.12


class TestRoundCurrency:
    """Tests for currency rounding"""
    
    def test_half_up(self):
        assert round_currency(2.675) == 2.68
        assert round_currency(-2.675) == -2.68
        assert round_currency(0.1 + 0.2) == 0.3
    
    def test_explicit_precision(self):
        assert round_currency(0.3335, 3) == 0.334
        assert round_currency(2.5, 0) == 3.0
    
    def test_resolve_with_precision(self):
        """The resolver rounds to the precision it is given"""
        unit = Unit(id="u1", price=0.333, cost_price=0.111)
        resolved = resolve_order(make_order("o1", "gb-1", quantity=1), unit, precision=3)
        
        assert resolved.revenue == 0.333
        assert resolved.profit == 0.222
    
    def test_scan_carries_precision(self):
        campaign = make_campaign(
            "gb-1",
            date(2024, 1, 1),
            units=[Unit(id="u1", price=0.333, cost_price=0.111)],
            orders=[make_order("o1", "gb-1", quantity=1)],
        )
        
        scan = scan_ledger([campaign], precision=3)
        
        assert scan.precision == 3
        assert scan.entries[0].resolved.revenue == 0.333


class TestScanLedger:
    """Tests for resolving whole campaigns"""
    
    def test_unresolved_unit_is_skipped(self):
        """Orders referencing a missing unit contribute nothing and are counted"""
        campaign = make_campaign(
            "gb-1",
            date(2024, 1, 1),
            orders=[
                make_order("o1", "gb-1"),
                make_order("o2", "gb-1", unit_id="deleted-unit"),
            ],
        )
        
        scan = scan_ledger([campaign])
        
        assert [e.order.id for e in scan.entries] == ["o1"]
        assert scan.skipped_order_ids == ["o2"]
        assert scan.skipped_order_count == 1
        assert scan.campaigns == [campaign]
    
    def test_campaign_without_orders(self):
        scan = scan_ledger([make_campaign("gb-1", date(2024, 1, 1))])
        
        assert scan.entries == []
        assert len(scan.campaigns) == 1
