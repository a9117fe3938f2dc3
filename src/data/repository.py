"""
Statistics Row Source

Contract between the statistics engine and the persistence layer, plus an
in-memory implementation used by the command line tool and the tests.

The source is responsible for:
- dropping soft-deleted campaigns and orders
- restricting orders to the requested status set
- restricting campaigns to the launch-date window (inclusive, open-ended
  on any side whose bound is absent)
"""

import json
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Protocol, Union

import structlog

from .models import (
    Campaign,
    Customer,
    CustomerAddress,
    Order,
    OrderStatus,
    Product,
    ProductType,
    Supplier,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CampaignFilter:
    """Optional narrowing of the campaigns and orders a report reads"""
    name: Optional[str] = None
    # substring of the campaign name; ``name`` is an exact match
    name_contains: Optional[str] = None
    supplier_ids: Optional[FrozenSet[str]] = None
    product_ids: Optional[FrozenSet[str]] = None
    campaign_ids: Optional[FrozenSet[str]] = None
    customer_id: Optional[str] = None

    def matches(self, campaign: Campaign) -> bool:
        if self.name is not None and campaign.name != self.name:
            return False
        if self.name_contains is not None and self.name_contains not in campaign.name:
            return False
        if self.supplier_ids is not None and campaign.supplier_id not in self.supplier_ids:
            return False
        if self.product_ids is not None and campaign.product_id not in self.product_ids:
            return False
        if self.campaign_ids is not None and campaign.id not in self.campaign_ids:
            return False
        return True


class StatisticsSource(Protocol):
    """Rows the statistics engine reads"""

    def fetch_campaigns(
        self,
        start: Optional[date],
        end: Optional[date],
        statuses: FrozenSet[OrderStatus],
        campaign_filter: Optional[CampaignFilter] = None,
    ) -> List[Campaign]:
        ...

    def list_suppliers(self) -> List[Supplier]:
        ...

    def list_products(self) -> List[Product]:
        ...

    def list_product_types(self) -> List[ProductType]:
        ...

    def list_customers(self) -> List[Customer]:
        ...

    def list_customer_addresses(self) -> List[CustomerAddress]:
        ...


def _live(rows: Iterable[Any]) -> List[Any]:
    return [row for row in rows if not row.delete]


class InMemoryStatisticsSource:
    """
    Statistics source over rows held in memory.

    Example:
        source = InMemoryStatisticsSource.from_json("dataset.json")
        campaigns = source.fetch_campaigns(None, None, MONETARY_STATUSES)
    """

    def __init__(
        self,
        campaigns: Iterable[Campaign] = (),
        suppliers: Iterable[Supplier] = (),
        products: Iterable[Product] = (),
        product_types: Iterable[ProductType] = (),
        customers: Iterable[Customer] = (),
        customer_addresses: Iterable[CustomerAddress] = (),
    ):
        self.campaigns = list(campaigns)
        self.suppliers = list(suppliers)
        self.products = list(products)
        self.product_types = list(product_types)
        self.customers = list(customers)
        self.customer_addresses = list(customer_addresses)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "InMemoryStatisticsSource":
        """
        Build a source from a JSON-like payload.

        Orders may be embedded in each group buy (``order``/``orders``) or
        given as a top-level ``orders`` list linked by ``groupBuyId``.
        """
        campaigns = [Campaign.model_validate(row) for row in payload.get("groupBuys", [])]
        loose_orders = [Order.model_validate(row) for row in payload.get("orders", [])]
        if loose_orders:
            by_campaign: Dict[str, List[Order]] = {}
            for order in loose_orders:
                by_campaign.setdefault(order.group_buy_id, []).append(order)
            campaigns = [
                campaign.model_copy(update={"orders": campaign.orders + by_campaign.get(campaign.id, [])})
                for campaign in campaigns
            ]

        source = cls(
            campaigns=campaigns,
            suppliers=[Supplier.model_validate(row) for row in payload.get("suppliers", [])],
            products=[Product.model_validate(row) for row in payload.get("products", [])],
            product_types=[ProductType.model_validate(row) for row in payload.get("productTypes", [])],
            customers=[Customer.model_validate(row) for row in payload.get("customers", [])],
            customer_addresses=[
                CustomerAddress.model_validate(row) for row in payload.get("customerAddresses", [])
            ],
        )
        logger.info(
            "Loaded in-memory dataset",
            group_buys=len(source.campaigns),
            orders=sum(len(c.orders) for c in source.campaigns),
            customers=len(source.customers),
        )
        return source

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "InMemoryStatisticsSource":
        with open(path, "r", encoding="utf-8") as fh:
            return cls.from_dict(json.load(fh))

    def to_dict(self) -> Dict[str, Any]:
        """Inverse of ``from_dict`` with orders embedded in their group buys"""
        def dump(rows):
            return [row.model_dump(mode="json", by_alias=True) for row in rows]

        return {
            "suppliers": dump(self.suppliers),
            "productTypes": dump(self.product_types),
            "products": dump(self.products),
            "customerAddresses": dump(self.customer_addresses),
            "customers": dump(self.customers),
            "groupBuys": dump(self.campaigns),
        }

    def fetch_campaigns(
        self,
        start: Optional[date],
        end: Optional[date],
        statuses: FrozenSet[OrderStatus],
        campaign_filter: Optional[CampaignFilter] = None,
    ) -> List[Campaign]:
        """Live campaigns launched in the window, with live orders in ``statuses``"""
        selected = []
        for campaign in self.campaigns:
            if campaign.is_deleted:
                continue
            launch = campaign.group_buy_start_date
            if start is not None and launch < start:
                continue
            if end is not None and launch > end:
                continue
            if campaign_filter is not None and not campaign_filter.matches(campaign):
                continue

            orders = [
                order for order in campaign.orders
                if not order.is_deleted and order.status in statuses
                and (campaign_filter is None or campaign_filter.customer_id is None
                     or order.customer_id == campaign_filter.customer_id)
            ]
            selected.append(campaign.model_copy(update={"orders": orders}))

        selected.sort(key=lambda c: (c.group_buy_start_date, c.id))
        logger.debug(
            "Fetched group buys",
            start=str(start) if start else None,
            end=str(end) if end else None,
            statuses=sorted(s.value for s in statuses),
            group_buys=len(selected),
        )
        return selected

    def list_suppliers(self) -> List[Supplier]:
        return _live(self.suppliers)

    def list_products(self) -> List[Product]:
        return _live(self.products)

    def list_product_types(self) -> List[ProductType]:
        return _live(self.product_types)

    def list_customers(self) -> List[Customer]:
        return _live(self.customers)

    def list_customer_addresses(self) -> List[CustomerAddress]:
        return _live(self.customer_addresses)
