"""
Unit Tests - Row Models, Sources and Synthetic Data
"""
import json
from datetime import date

import pytest
from pydantic import ValidationError

from src.data.generators import DataGenerator
from src.data.models import MONETARY_STATUSES, PARTICIPATION_STATUSES, Campaign, Order, Unit
from src.data.repository import CampaignFilter, InMemoryStatisticsSource
from src.statistics import ReportBuilder, ReportQuery


class TestRowModels:
    """Tests for boundary row parsing"""
    
    def test_camel_case_payload(self):
        campaign = Campaign.model_validate({
            "id": "gb-1",
            "name": "Apples",
            "groupBuyStartDate": "2024-03-01T09:30:00Z",
            "supplierId": "sup-1",
            "productId": "prod-1",
            "units": [{"id": "u1", "unit": "1kg", "price": 10, "costPrice": 6}],
            "order": [{
                "id": "o1",
                "groupBuyId": "gb-1",
                "unitId": "u1",
                "customerId": "c1",
                "quantity": 1,
                "status": "PAID",
                "partialRefundAmount": None,
            }],
        })
        
        assert campaign.group_buy_start_date == date(2024, 3, 1)
        assert campaign.units[0].label == "1kg"
        assert campaign.orders[0].partial_refund_amount == 0.0
    
    def test_unit_index_first_wins(self):
        campaign = Campaign(
            id="gb-1",
            name="Apples",
            group_buy_start_date=date(2024, 1, 1),
            supplier_id="s",
            product_id="p",
            units=[Unit(id="u1", price=1, cost_price=0), Unit(id="u1", price=2, cost_price=0)],
        )
        
        assert campaign.unit_index()["u1"].price == 1
    
    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            Order(id="o1", group_buy_id="g", unit_id="u", customer_id="c", quantity=0)


class TestInMemorySource:
    """Tests for the in-memory row source"""
    
    def test_filters_deleted_rows_and_statuses(self, sample_source):
        campaigns = sample_source.fetch_campaigns(None, None, PARTICIPATION_STATUSES)
        
        assert [c.id for c in campaigns] == ["gb-1", "gb-3", "gb-2"]
        assert [o.id for o in campaigns[0].orders] == ["o1", "o2", "o3"]
        assert [o.id for o in campaigns[1].orders] == ["o7", "o8"]
    
    def test_window_is_inclusive(self, sample_source):
        campaigns = sample_source.fetch_campaigns(date(2024, 3, 5), date(2024, 3, 10), MONETARY_STATUSES)
        
        assert [c.id for c in campaigns] == ["gb-3", "gb-2"]
    
    def test_customer_filter_keeps_only_their_orders(self, sample_source):
        campaigns = sample_source.fetch_campaigns(
            None, None, MONETARY_STATUSES, CampaignFilter(customer_id="cust-2")
        )
        
        assert [o.id for c in campaigns for o in c.orders] == ["o2"]
    
    def test_loose_orders_payload(self):
        source = InMemoryStatisticsSource.from_dict({
            "groupBuys": [{
                "id": "gb-1",
                "name": "Apples",
                "groupBuyStartDate": "2024-03-01",
                "supplierId": "s",
                "productId": "p",
                "units": [{"id": "u1", "price": 10, "costPrice": 6}],
            }],
            "orders": [{
                "id": "o1",
                "groupBuyId": "gb-1",
                "unitId": "u1",
                "customerId": "c1",
                "quantity": 2,
                "status": "COMPLETED",
            }],
        })
        
        assert ReportBuilder(source).overview().total_price == 20
    
    def test_json_round_trip(self, sample_source, tmp_path):
        path = tmp_path / "dataset.json"
        path.write_text(json.dumps(sample_source.to_dict()), encoding="utf-8")
        
        loaded = InMemoryStatisticsSource.from_json(path)
        
        assert loaded.campaigns == sample_source.campaigns
        assert loaded.customers == sample_source.customers


class TestDataGenerator:
    """Tests for synthetic datasets"""
    
    @pytest.fixture
    def generated(self):
        return DataGenerator(seed=7).generate_all(
            n_suppliers=4,
            n_customers=30,
            n_group_buys=24,
            start_date=date(2024, 1, 1),
            days=120,
        )
    
    def test_deterministic(self, generated):
        again = DataGenerator(seed=7).generate_all(
            n_suppliers=4,
            n_customers=30,
            n_group_buys=24,
            start_date=date(2024, 1, 1),
            days=120,
        )
        
        assert again.to_dict() == generated.to_dict()
    
    def test_rows_reference_their_campaign(self, generated):
        assert len(generated.campaigns) == 24
        for campaign in generated.campaigns:
            assert all(order.group_buy_id == campaign.id for order in campaign.orders)
            assert date(2024, 1, 1) <= campaign.group_buy_start_date < date(2024, 4, 30)
    
    def test_dimension_reports_agree_with_overview(self, generated):
        builder = ReportBuilder(generated)
        overview = builder.overview()
        
        for view in (builder.supplier_overview, builder.product_overview, builder.product_type_overview):
            page = view(ReportQuery(page_size=100))
            assert sum(row.total_revenue for row in page.data) == pytest.approx(overview.total_price)
            assert sum(row.total_order_count for row in page.data) == overview.order_count
    
    def test_save(self, generated, tmp_path):
        path = DataGenerator().save(generated, str(tmp_path / "out" / "dataset.json"))
        
        assert InMemoryStatisticsSource.from_json(path).to_dict() == generated.to_dict()
