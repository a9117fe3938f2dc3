"""
Group-Buy Row Models

Pydantic models for the rows handed to the statistics engine by the
persistence collaborator. Field names are snake_case in Python; boundary
payloads may use the camelCase keys of the back-office API
(``groupBuyStartDate``, ``unitId``, ``costPrice``, ``partialRefundAmount``).
"""

from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class OrderStatus(str, Enum):
    """Order lifecycle states"""
    NOTPAID = "NOTPAID"
    PAID = "PAID"
    COMPLETED = "COMPLETED"
    REFUNDED = "REFUNDED"


# Status sets requested from the collaborator
MONETARY_STATUSES = frozenset({OrderStatus.PAID, OrderStatus.COMPLETED, OrderStatus.REFUNDED})
PARTICIPATION_STATUSES = frozenset({OrderStatus.PAID, OrderStatus.COMPLETED})


class RowModel(BaseModel):
    """Base for all input rows"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class Unit(RowModel):
    """Purchasable variant of a campaign"""
    id: str
    label: str = Field(default="", validation_alias="unit")
    price: float = Field(ge=0)
    cost_price: float = Field(ge=0)

    @field_validator("label", mode="before")
    @classmethod
    def none_label(cls, v):
        return v or ""


class Order(RowModel):
    """A customer's purchase of one unit within one campaign"""
    id: str
    group_buy_id: str
    unit_id: str
    customer_id: str
    quantity: int = Field(gt=0)
    status: OrderStatus = OrderStatus.NOTPAID
    partial_refund_amount: float = Field(default=0.0, ge=0)
    customer_address_id: Optional[str] = None
    created_at: Optional[datetime] = None
    delete: int = 0

    @field_validator("partial_refund_amount", mode="before")
    @classmethod
    def none_refund(cls, v):
        return 0.0 if v is None else v

    @property
    def is_deleted(self) -> bool:
        return bool(self.delete)


class Campaign(RowModel):
    """Group-buy campaign with its embedded unit table and filtered orders"""
    id: str
    name: str
    group_buy_start_date: date
    supplier_id: str
    product_id: str
    units: List[Unit] = Field(default_factory=list)
    orders: List[Order] = Field(default_factory=list, validation_alias="order")
    delete: int = 0

    @field_validator("group_buy_start_date", mode="before")
    @classmethod
    def launch_day(cls, v):
        """Launch timestamps are reduced to their calendar day"""
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str) and len(v) > 10:
            return datetime.fromisoformat(v.replace("Z", "+00:00")).date()
        return v

    @property
    def is_deleted(self) -> bool:
        return bool(self.delete)

    def unit_index(self) -> Dict[str, Unit]:
        """Units by id, first occurrence wins"""
        index: Dict[str, Unit] = {}
        for unit in self.units:
            index.setdefault(unit.id, unit)
        return index


class Supplier(RowModel):
    id: str
    name: str
    delete: int = 0


class ProductType(RowModel):
    id: str
    name: str
    delete: int = 0


class Product(RowModel):
    id: str
    name: str
    product_type_id: Optional[str] = None
    delete: int = 0


class CustomerAddress(RowModel):
    id: str
    name: str
    delete: int = 0


class Customer(RowModel):
    id: str
    name: str
    phone: Optional[str] = None
    customer_address_id: Optional[str] = None
    delete: int = 0
