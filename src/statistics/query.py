"""
Report query parameters.
"""

from dataclasses import dataclass
from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .exceptions import InvalidQueryError


@dataclass(frozen=True)
class DateWindow:
    """
    Launch-date window. A missing bound leaves that side open; both bounds
    missing means all time, never an implicit recent window.
    """
    start: Optional[date] = None
    end: Optional[date] = None

    def __post_init__(self):
        if self.start is not None and self.end is not None and self.start > self.end:
            raise InvalidQueryError(f"Window start {self.start} is after end {self.end}")

    @property
    def is_explicit(self) -> bool:
        return self.start is not None and self.end is not None


class ReportQuery(BaseModel):
    """
    Window, filters, sorting and pagination of a dimension report.

    ``name`` is a substring match on the entity name of the view being
    built (campaign, product, product type, supplier or customer name).
    ``page_size`` falls back to the builder's configured default and is
    checked against its configured maximum when the page is cut.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    page: int = Field(default=1, ge=1)
    page_size: Optional[int] = Field(default=None, ge=1)
    # Defaults to the view's own sort field when absent
    sort_field: Optional[str] = None
    sort_order: Literal["asc", "desc"] = "desc"
    merge_same_name: bool = True
    name: Optional[str] = None
    supplier_ids: Optional[List[str]] = None
    product_ids: Optional[List[str]] = None
    product_type_ids: Optional[List[str]] = None

    @property
    def window(self) -> DateWindow:
        return DateWindow(self.start_date, self.end_date)

    def matches_name(self, name: Optional[str]) -> bool:
        return self.name is None or self.name in (name or "")
