"""
Unit Tests - Aggregation Accumulator
"""
from datetime import date

from conftest import make_campaign, make_order
from src.data.models import OrderStatus, Unit
from src.statistics.accumulator import (
    Accumulator,
    Totals,
    accumulate,
    by_customer,
    by_launch_day,
    by_merged_name,
)
from src.statistics.ledger import scan_ledger


class TestAccumulate:
    """Tests for the totals fold"""
    
    def test_refund_scenario_totals(self, scenario_campaign):
        """Paid, partially refunded, completed and refunded orders"""
        totals = accumulate(scan_ledger([scenario_campaign]).entries)[None]
        
        assert totals.revenue == 56
        assert totals.profit == 8
        assert totals.order_count == 3
        assert totals.refund_amount == 24
        assert totals.partial_refund_order_count == 1
        assert totals.full_refund_order_count == 1
    
    def test_refunded_customers_do_not_participate(self, scenario_campaign):
        """Customers with only refunded orders are not unique participants"""
        totals = accumulate(scan_ledger([scenario_campaign]).entries)[None]
        
        assert totals.unique_customer_ids == {"cust-1", "cust-2", "cust-3"}
        assert totals.unique_customer_count == 3
    
    def test_idempotent(self, scenario_campaign):
        """Folding the same entries twice gives identical totals"""
        entries = scan_ledger([scenario_campaign]).entries
        
        assert accumulate(entries, by_customer) == accumulate(entries, by_customer)
    
    def test_empty_stream(self):
        assert accumulate([]) == {}
    
    def test_group_by_launch_day(self):
        campaigns = [
            make_campaign("gb-1", date(2024, 1, 1), orders=[make_order("o1", "gb-1")]),
            make_campaign("gb-2", date(2024, 1, 1), orders=[make_order("o2", "gb-2")]),
            make_campaign("gb-3", date(2024, 1, 2), orders=[make_order("o3", "gb-3")]),
        ]
        
        groups = accumulate(scan_ledger(campaigns).entries, by_launch_day)
        
        assert groups[date(2024, 1, 1)].revenue == 40
        assert groups[date(2024, 1, 1)].group_count == 2
        assert groups[date(2024, 1, 2)].order_count == 1
    
    def test_purchase_counts_by_order(self):
        """Every PAID or COMPLETED order counts as one purchase"""
        campaigns = [
            make_campaign("gb-1", date(2024, 1, 1), orders=[
                make_order("o1", "gb-1", customer_id="a"),
                make_order("o2", "gb-1", OrderStatus.COMPLETED, customer_id="a"),
            ]),
            make_campaign("gb-2", date(2024, 1, 8), orders=[
                make_order("o3", "gb-2", customer_id="a"),
                make_order("o4", "gb-2", OrderStatus.REFUNDED, customer_id="b"),
            ]),
        ]
        
        totals = accumulate(scan_ledger(campaigns).entries)[None]
        
        assert totals.purchase_counts() == {"a": 3}
        assert totals.purchase_count("b") == 0
    
    def test_precision_applies_to_running_totals(self):
        """Totals keep as many decimals as the scan they fold"""
        units = [Unit(id="u1", label="1g", price=0.333, cost_price=0.111)]
        campaign = make_campaign("gb-1", date(2024, 1, 1), units=units, orders=[
            make_order("o1", "gb-1", quantity=1),
            make_order("o2", "gb-1", quantity=1),
        ])
        
        coarse = accumulate(scan_ledger([campaign]).entries)[None]
        fine = accumulate(scan_ledger([campaign], precision=3).entries, precision=3)[None]
        
        assert coarse.revenue == 0.66
        assert fine.revenue == 0.666
        assert fine.profit == 0.444


class TestAccumulator:
    """Tests for campaign registration"""
    
    def test_merged_name_keys(self):
        campaigns = [
            make_campaign("gb-1", date(2024, 1, 1), orders=[make_order("o1", "gb-1")]),
            make_campaign("gb-2", date(2024, 2, 1)),
            make_campaign("gb-3", date(2024, 2, 1), supplier_id="sup-2"),
        ]
        scan = scan_ledger(campaigns)
        
        acc = Accumulator(by_merged_name)
        acc.add_campaigns(scan.campaigns, lambda c: (c.name, c.supplier_id))
        acc.add_all(scan.entries)
        
        assert set(acc.groups) == {("Apples", "sup-1"), ("Apples", "sup-2")}
        assert acc.groups[("Apples", "sup-1")].group_count == 2
        assert acc.groups[("Apples", "sup-2")] == Totals(campaign_ids={"gb-3"})
