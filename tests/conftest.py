"""
Test Suite Configuration
"""
from datetime import date

import pytest

from src.config import Settings
from src.data.models import (
    Campaign,
    Customer,
    CustomerAddress,
    Order,
    OrderStatus,
    Product,
    ProductType,
    Supplier,
    Unit,
)
from src.data.repository import InMemoryStatisticsSource
from src.statistics import ReportBuilder


def make_order(
    order_id: str,
    campaign_id: str,
    status: OrderStatus = OrderStatus.PAID,
    quantity: int = 2,
    unit_id: str = "u1",
    customer_id: str = "cust-1",
    partial_refund_amount: float = 0.0,
    **kwargs,
) -> Order:
    return Order(
        id=order_id,
        group_buy_id=campaign_id,
        unit_id=unit_id,
        customer_id=customer_id,
        quantity=quantity,
        status=status,
        partial_refund_amount=partial_refund_amount,
        **kwargs,
    )


def make_campaign(
    campaign_id: str,
    launch: date,
    orders=(),
    name: str = "Apples",
    supplier_id: str = "sup-1",
    product_id: str = "prod-1",
    units=None,
    **kwargs,
) -> Campaign:
    return Campaign(
        id=campaign_id,
        name=name,
        group_buy_start_date=launch,
        supplier_id=supplier_id,
        product_id=product_id,
        units=units if units is not None else [Unit(id="u1", label="1kg", price=10, cost_price=6)],
        orders=list(orders),
        **kwargs,
    )


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(
        APP_ENV="testing",
        DEBUG=True,
    )


@pytest.fixture
def scenario_campaign() -> Campaign:
    """One campaign with a paid, a partially refunded, a completed and a refunded order"""
    return make_campaign(
        "gb-1",
        date(2024, 3, 1),
        orders=[
            make_order("o1", "gb-1", OrderStatus.PAID, customer_id="cust-1"),
            make_order("o2", "gb-1", OrderStatus.PAID, customer_id="cust-2", partial_refund_amount=4),
            make_order("o3", "gb-1", OrderStatus.COMPLETED, customer_id="cust-3"),
            make_order("o4", "gb-1", OrderStatus.REFUNDED, customer_id="cust-4"),
        ],
    )


@pytest.fixture
def dimensions() -> dict:
    """Supplier, product, customer and address rows shared by report tests"""
    return {
        "suppliers": [
            Supplier(id="sup-1", name="Orchard Co"),
            Supplier(id="sup-2", name="Sea Harvest"),
            Supplier(id="sup-3", name="Idle Farms"),
        ],
        "product_types": [
            ProductType(id="type-fruit", name="Fruit"),
            ProductType(id="type-sea", name="Seafood"),
        ],
        "products": [
            Product(id="prod-1", name="Apples", product_type_id="type-fruit"),
            Product(id="prod-2", name="Cherries", product_type_id="type-fruit"),
            Product(id="prod-3", name="Prawns", product_type_id="type-sea"),
        ],
        "customer_addresses": [
            CustomerAddress(id="addr-n", name="North Gate"),
            CustomerAddress(id="addr-s", name="South Gate"),
        ],
        "customers": [
            Customer(id="cust-1", name="Alice", customer_address_id="addr-n"),
            Customer(id="cust-2", name="Bob", customer_address_id="addr-n"),
            Customer(id="cust-3", name="Carol", customer_address_id="addr-s"),
            Customer(id="cust-4", name="Dave", customer_address_id="addr-s"),
        ],
    }


@pytest.fixture
def sample_campaigns(scenario_campaign) -> list:
    """Campaigns across suppliers, products and dates"""
    return [
        scenario_campaign,
        make_campaign(
            "gb-2",
            date(2024, 3, 10),
            orders=[
                make_order("o5", "gb-2", OrderStatus.COMPLETED, quantity=1, customer_id="cust-1"),
                make_order("o6", "gb-2", OrderStatus.NOTPAID, quantity=1, customer_id="cust-2"),
            ],
        ),
        make_campaign(
            "gb-3",
            date(2024, 3, 5),
            name="Prawns",
            supplier_id="sup-2",
            product_id="prod-3",
            units=[Unit(id="p1", label="500g", price=30, cost_price=20)],
            orders=[
                make_order("o7", "gb-3", OrderStatus.PAID, quantity=1, unit_id="p1", customer_id="cust-3"),
                make_order("o8", "gb-3", OrderStatus.PAID, quantity=1, unit_id="gone", customer_id="cust-4"),
                make_order("o9", "gb-3", OrderStatus.PAID, quantity=3, unit_id="p1", customer_id="cust-1", delete=1),
            ],
        ),
        make_campaign(
            "gb-4",
            date(2024, 2, 20),
            name="Cherries",
            product_id="prod-2",
            units=[Unit(id="c1", label="1kg", price=25, cost_price=15)],
            orders=[make_order("o10", "gb-4", OrderStatus.COMPLETED, quantity=1, unit_id="c1", customer_id="cust-2")],
            delete=1,
        ),
    ]


@pytest.fixture
def sample_source(sample_campaigns, dimensions) -> InMemoryStatisticsSource:
    return InMemoryStatisticsSource(campaigns=sample_campaigns, **dimensions)


@pytest.fixture
def builder(sample_source, test_settings) -> ReportBuilder:
    return ReportBuilder(sample_source, test_settings)
