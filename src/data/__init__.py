"""
Group-Buy Rows Module
"""
from .models import (
    MONETARY_STATUSES,
    PARTICIPATION_STATUSES,
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
from .repository import CampaignFilter, InMemoryStatisticsSource, StatisticsSource

__all__ = [
    "MONETARY_STATUSES",
    "PARTICIPATION_STATUSES",
    "Campaign",
    "Customer",
    "CustomerAddress",
    "Order",
    "OrderStatus",
    "Product",
    "ProductType",
    "Supplier",
    "Unit",
    "CampaignFilter",
    "InMemoryStatisticsSource",
    "StatisticsSource",
]
