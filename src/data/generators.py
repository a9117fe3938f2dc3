"""
Synthetic Data Generator

Generates realistic group-buy back-office data for demos and tests.
Includes:
- Suppliers, product types and products
- Customers spread over delivery addresses
- Campaigns with unit price tables
- Orders across the full status lifecycle, with partial refunds
"""

import json
import random
import uuid
from datetime import date, timedelta
from pathlib import Path
from typing import List, Optional, Tuple

import structlog
from faker import Faker

from .models import (
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
from .repository import InMemoryStatisticsSource

logger = structlog.get_logger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

PRODUCT_TYPES = {
    "Fruit": ["Apples", "Cherries", "Mangoes", "Grapes", "Oranges"],
    "Vegetables": ["Tomatoes", "Spinach", "Carrots", "Mushrooms"],
    "Seafood": ["Prawns", "Salmon", "Crab"],
    "Dairy": ["Milk", "Yogurt", "Cheese"],
    "Bakery": ["Sourdough", "Croissants"],
}

UNIT_LABELS = [("1kg", 1.0), ("2.5kg box", 2.3), ("5kg box", 4.4)]

ORDER_STATUSES = [
    (OrderStatus.NOTPAID, 0.08),
    (OrderStatus.PAID, 0.22),
    (OrderStatus.COMPLETED, 0.62),
    (OrderStatus.REFUNDED, 0.08),
]

PARTIAL_REFUND_RATE = 0.07
DELETED_RATE = 0.02


# =============================================================================
# GENERATORS
# =============================================================================

class CatalogGenerator:
    """Generate suppliers, product types and products"""

    def __init__(self, rng: random.Random, fake: Faker):
        self.rng = rng
        self.fake = fake

    def generate(self, n_suppliers: int = 8) -> Tuple[List[Supplier], List[ProductType], List[Product]]:
        suppliers = [
            Supplier(id=str(uuid.UUID(int=self.rng.getrandbits(128))), name=self.fake.company())
            for _ in range(n_suppliers)
        ]
        product_types = []
        products = []
        for type_name, product_names in PRODUCT_TYPES.items():
            product_type = ProductType(id=str(uuid.UUID(int=self.rng.getrandbits(128))), name=type_name)
            product_types.append(product_type)
            for product_name in product_names:
                products.append(
                    Product(
                        id=str(uuid.UUID(int=self.rng.getrandbits(128))),
                        name=product_name,
                        product_type_id=product_type.id,
                    )
                )
        return suppliers, product_types, products


class CustomerGenerator:
    """Generate customers spread over delivery addresses"""

    def __init__(self, rng: random.Random, fake: Faker):
        self.rng = rng
        self.fake = fake

    def generate(self, n: int = 200, n_addresses: int = 12) -> Tuple[List[CustomerAddress], List[Customer]]:
        addresses = [
            CustomerAddress(id=str(uuid.UUID(int=self.rng.getrandbits(128))), name=self.fake.street_name())
            for _ in range(n_addresses)
        ]
        customers = [
            Customer(
                id=str(uuid.UUID(int=self.rng.getrandbits(128))),
                name=self.fake.name(),
                phone=self.fake.phone_number(),
                customer_address_id=self.rng.choice(addresses).id,
            )
            for _ in range(n)
        ]
        return addresses, customers


class GroupBuyGenerator:
    """Generate campaigns with unit tables and orders"""

    def __init__(
        self,
        rng: random.Random,
        suppliers: List[Supplier],
        products: List[Product],
        customers: List[Customer],
    ):
        self.rng = rng
        self.suppliers = suppliers
        self.products = products
        self.customers = customers

    def _units(self) -> List[Unit]:
        base_price = round(self.rng.uniform(8, 60), 2)
        units = []
        for label, factor in self.rng.sample(UNIT_LABELS, k=self.rng.randint(1, len(UNIT_LABELS))):
            price = round(base_price * factor, 2)
            units.append(
                Unit(
                    id=str(uuid.UUID(int=self.rng.getrandbits(128))),
                    label=label,
                    price=price,
                    cost_price=round(price * self.rng.uniform(0.55, 0.85), 2),
                )
            )
        return units

    def _order(self, campaign_id: str, units: List[Unit]) -> Order:
        status = self.rng.choices(
            [s[0] for s in ORDER_STATUSES],
            weights=[s[1] for s in ORDER_STATUSES],
        )[0]
        unit = self.rng.choice(units)
        quantity = self.rng.choices([1, 2, 3, 4], weights=[0.6, 0.25, 0.1, 0.05])[0]

        partial = 0.0
        if status in (OrderStatus.PAID, OrderStatus.COMPLETED) and self.rng.random() < PARTIAL_REFUND_RATE:
            partial = round(unit.price * quantity * self.rng.uniform(0.1, 0.5), 2)

        return Order(
            id=str(uuid.UUID(int=self.rng.getrandbits(128))),
            group_buy_id=campaign_id,
            unit_id=unit.id,
            customer_id=self.rng.choice(self.customers).id,
            quantity=quantity,
            status=status,
            partial_refund_amount=partial,
            delete=int(self.rng.random() < DELETED_RATE),
        )

    def generate(self, n: int = 120, start_date: Optional[date] = None, days: int = 365) -> List[Campaign]:
        """Generate n campaigns launched over ``days`` days"""
        start_date = start_date or date.today() - timedelta(days=days)
        # Recurring names under one supplier produce merged groups
        lineup = [(self.rng.choice(self.products), self.rng.choice(self.suppliers)) for _ in range(max(1, n // 3))]

        campaigns = []
        for _ in range(n):
            product, supplier = self.rng.choice(lineup)
            campaign_id = str(uuid.UUID(int=self.rng.getrandbits(128)))
            units = self._units()
            orders = [self._order(campaign_id, units) for _ in range(self.rng.randint(0, 25))]
            campaigns.append(
                Campaign(
                    id=campaign_id,
                    name=product.name,
                    group_buy_start_date=start_date + timedelta(days=self.rng.randint(0, days - 1)),
                    supplier_id=supplier.id,
                    product_id=product.id,
                    units=units,
                    orders=orders,
                    delete=int(self.rng.random() < DELETED_RATE),
                )
            )
        return campaigns


# =============================================================================
# MAIN GENERATOR
# =============================================================================

class DataGenerator:
    """Main data generator orchestrator"""

    def __init__(self, seed: int = 42):
        self.rng = random.Random(seed)
        self.fake = Faker()
        self.fake.seed_instance(seed)

    def generate_all(
        self,
        n_suppliers: int = 8,
        n_customers: int = 200,
        n_group_buys: int = 120,
        start_date: Optional[date] = None,
        days: int = 365,
    ) -> InMemoryStatisticsSource:
        """Generate a complete dataset"""
        suppliers, product_types, products = CatalogGenerator(self.rng, self.fake).generate(n_suppliers)
        addresses, customers = CustomerGenerator(self.rng, self.fake).generate(n_customers)
        campaigns = GroupBuyGenerator(self.rng, suppliers, products, customers).generate(
            n_group_buys, start_date=start_date, days=days
        )

        logger.info(
            "Synthetic dataset generated",
            suppliers=len(suppliers),
            products=len(products),
            customers=len(customers),
            group_buys=len(campaigns),
            orders=sum(len(c.orders) for c in campaigns),
        )
        return InMemoryStatisticsSource(
            campaigns=campaigns,
            suppliers=suppliers,
            products=products,
            product_types=product_types,
            customers=customers,
            customer_addresses=addresses,
        )

    def save(self, source: InMemoryStatisticsSource, output_path: str) -> Path:
        """Write a dataset as JSON loadable by ``InMemoryStatisticsSource.from_json``"""
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(source.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
        logger.info("Dataset written", path=str(path))
        return path
