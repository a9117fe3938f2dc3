"""
Report Output Records

Plain aggregate structures returned to the caller. Serialize with
``model_dump(by_alias=True)`` for the camelCase wire names.
"""

from datetime import date
from typing import Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .frequency import FrequencyBucket
from .trends import BucketedTrendPoint, TrendPoint


class ReportModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TrendPointOut(ReportModel):
    """Daily or monthly point; bucketed points also carry their bucket bounds"""
    date: date
    count: Union[int, float]
    bucket_start: Optional[date] = None
    bucket_end: Optional[date] = None

    @classmethod
    def from_point(cls, point: Union[TrendPoint, BucketedTrendPoint]) -> "TrendPointOut":
        return cls(
            date=point.date,
            count=point.count,
            bucket_start=getattr(point, "bucket_start", None),
            bucket_end=getattr(point, "bucket_end", None),
        )


def trend_out(points) -> List[TrendPointOut]:
    return [TrendPointOut.from_point(p) for p in points]


class FrequencyBucketOut(ReportModel):
    min_frequency: int
    max_frequency: Optional[int] = None
    count: int
    label: str

    @classmethod
    def from_bucket(cls, bucket: FrequencyBucket) -> "FrequencyBucketOut":
        return cls(
            min_frequency=bucket.min_frequency,
            max_frequency=bucket.max_frequency,
            count=bucket.count,
            label=bucket.label,
        )


class SummaryMetrics(ReportModel):
    """Totals and derived ratios shared by all dimension views"""
    total_revenue: float = 0.0
    total_profit: float = 0.0
    total_refund_amount: float = 0.0
    partial_refund_order_count: int = 0
    full_refund_order_count: int = 0
    total_order_count: int = 0
    total_group_buy_count: int = 0
    unique_customer_count: int = 0
    profit_margin: float = 0.0
    average_order_value: float = 0.0
    average_group_buy_revenue: float = 0.0
    average_group_buy_profit: float = 0.0
    average_group_buy_order_count: float = 0.0


# =============================================================================
# OVERVIEW & RANKINGS
# =============================================================================

class OverviewReport(ReportModel):
    """Global totals and trends over a launch-date window"""
    group_buy_count: int = 0
    order_count: int = 0
    total_price: float = 0.0
    total_profit: float = 0.0
    total_refund_amount: float = 0.0
    partial_refund_order_count: int = 0
    full_refund_order_count: int = 0
    unique_customer_count: int = 0
    profit_margin: float = 0.0
    average_order_value: float = 0.0
    skipped_order_count: int = 0
    bucket_size: int = 1

    group_buy_trend: List[TrendPointOut] = Field(default_factory=list)
    order_trend: List[TrendPointOut] = Field(default_factory=list)
    price_trend: List[TrendPointOut] = Field(default_factory=list)
    profit_trend: List[TrendPointOut] = Field(default_factory=list)

    cumulative_group_buy_trend: List[TrendPointOut] = Field(default_factory=list)
    cumulative_order_trend: List[TrendPointOut] = Field(default_factory=list)
    cumulative_price_trend: List[TrendPointOut] = Field(default_factory=list)
    cumulative_profit_trend: List[TrendPointOut] = Field(default_factory=list)

    monthly_group_buy_trend: List[TrendPointOut] = Field(default_factory=list)
    monthly_order_trend: List[TrendPointOut] = Field(default_factory=list)
    monthly_price_trend: List[TrendPointOut] = Field(default_factory=list)
    monthly_profit_trend: List[TrendPointOut] = Field(default_factory=list)


class RankItem(ReportModel):
    id: str
    name: str
    value: Union[int, float]
    group_buy_start_date: Optional[date] = None


class RankingsReport(ReportModel):
    group_buy_rank_by_order_count: List[RankItem] = Field(default_factory=list)
    group_buy_rank_by_total_sales: List[RankItem] = Field(default_factory=list)
    group_buy_rank_by_total_profit: List[RankItem] = Field(default_factory=list)
    supplier_rank_by_group_buy_count: List[RankItem] = Field(default_factory=list)


class CustomerRankings(ReportModel):
    """Top customers; ``RankItem.id`` is the customer id"""
    customer_rank_by_order_count: List[RankItem] = Field(default_factory=list)
    customer_rank_by_total_amount: List[RankItem] = Field(default_factory=list)
    customer_rank_by_average_order_amount: List[RankItem] = Field(default_factory=list)


class MergedRankItem(ReportModel):
    name: str
    supplier_id: str
    supplier_name: str = ""
    value: Union[int, float]


class MergedGroupBuyRankings(ReportModel):
    merged_group_buy_rank_by_order_count: List[MergedRankItem] = Field(default_factory=list)
    merged_group_buy_rank_by_total_sales: List[MergedRankItem] = Field(default_factory=list)
    merged_group_buy_rank_by_total_profit: List[MergedRankItem] = Field(default_factory=list)


class CustomerOrderRankRow(ReportModel):
    customer_id: str
    customer_name: str = ""
    order_count: int = 0
    total_amount: float = 0.0


class MergedGroupBuyCustomerRank(ReportModel):
    """Customers of one merged campaign ordered by their PAID/COMPLETED orders"""
    group_buy_name: str
    supplier_id: Optional[str] = None
    customer_rank: List[CustomerOrderRankRow] = Field(default_factory=list)


# =============================================================================
# DIMENSION ROWS
# =============================================================================

RowT = TypeVar("RowT", bound=BaseModel)


class Page(ReportModel, Generic[RowT]):
    """One page of a sorted dimension report"""
    data: List[RowT] = Field(default_factory=list)
    page: int = 1
    page_size: int = 10
    total_count: int = 0
    total_pages: int = 0
    skipped_order_count: int = 0


class MergedGroupBuyRow(SummaryMetrics):
    name: str
    supplier_id: str
    supplier_name: str = ""
    group_buy_ids: List[str] = Field(default_factory=list)
    latest_launch_date: Optional[date] = None


class ProductRow(SummaryMetrics):
    product_id: str
    product_name: str = ""
    product_type_id: Optional[str] = None
    product_type_name: str = ""


class ProductTypeRow(SummaryMetrics):
    product_type_id: Optional[str] = None
    product_type_name: str = ""
    product_count: int = 0


class SupplierRow(SummaryMetrics):
    supplier_id: str
    supplier_name: str = ""


class RegionalSalesRow(ReportModel):
    address_id: Optional[str] = None
    address_name: str = ""
    revenue: float = 0.0
    profit: float = 0.0
    order_count: int = 0
    unique_customer_count: int = 0
    revenue_share: float = 0.0


class RegionalDistribution(ReportModel):
    rows: List[RegionalSalesRow] = Field(default_factory=list)
    total_revenue: float = 0.0
    skipped_order_count: int = 0


class GroupBuyHistoryRow(ReportModel):
    """One launch of a campaign inside a detail view"""
    group_buy_id: str
    name: str
    group_buy_start_date: date
    revenue: float = 0.0
    profit: float = 0.0
    refund_amount: float = 0.0
    order_count: int = 0
    partial_refund_order_count: int = 0
    full_refund_order_count: int = 0
    unique_customer_count: int = 0
    profit_margin: float = 0.0


class DimensionDetail(SummaryMetrics):
    """Drill-down of one entity (merged campaign name, product, product type, supplier)"""
    dimension: str
    entity_id: Optional[str] = None
    entity_name: str = ""
    supplier_id: Optional[str] = None
    supplier_name: Optional[str] = None
    multi_purchase_customer_count: int = 0
    multi_purchase_customer_ratio: float = 0.0
    average_customer_order_value: float = 0.0
    skipped_order_count: int = 0
    purchase_frequency: List[FrequencyBucketOut] = Field(default_factory=list)
    group_buy_history: List[GroupBuyHistoryRow] = Field(default_factory=list)
    regional_sales: List[RegionalSalesRow] = Field(default_factory=list)
    order_trend: List[TrendPointOut] = Field(default_factory=list)
    price_trend: List[TrendPointOut] = Field(default_factory=list)
    profit_trend: List[TrendPointOut] = Field(default_factory=list)


# =============================================================================
# CUSTOMERS
# =============================================================================

class CustomerRow(ReportModel):
    customer_id: str
    customer_name: str = ""
    customer_address_name: str = ""
    order_count: int = 0
    purchase_count: int = 0
    total_amount: float = 0.0
    total_profit: float = 0.0
    total_refund_amount: float = 0.0
    average_price_per_order: float = 0.0
    latest_launch_date: Optional[date] = None


class CustomerLoyalty(ReportModel):
    unique_customer_count: int = 0
    total_group_buy_count: int = 0
    multi_purchase_customer_count: int = 0
    multi_purchase_customer_ratio: float = 0.0
    purchase_frequency: List[FrequencyBucketOut] = Field(default_factory=list)


class CustomerOverview(ReportModel):
    customers: Page[CustomerRow]
    loyalty: CustomerLoyalty


class ProductConsumptionRow(ReportModel):
    product_id: str
    product_name: str = ""
    order_count: int = 0
    total_amount: float = 0.0


class GroupBuyConsumptionRow(ReportModel):
    name: str
    order_count: int = 0
    purchase_count: int = 0
    total_amount: float = 0.0


class PeriodMetrics(ReportModel):
    order_count: int = 0
    total_amount: float = 0.0


class PeriodComparison(ReportModel):
    current: PeriodMetrics = Field(default_factory=PeriodMetrics)
    previous: PeriodMetrics = Field(default_factory=PeriodMetrics)
    diff: PeriodMetrics = Field(default_factory=PeriodMetrics)


class ProductPeriodComparison(PeriodComparison):
    product_id: str
    product_name: str = ""


class CustomerConsumptionDetail(ReportModel):
    customer_id: str
    customer_name: str = ""
    order_count: int = 0
    purchase_count: int = 0
    total_amount: float = 0.0
    total_refund_amount: float = 0.0
    partial_refund_order_count: int = 0
    full_refund_order_count: int = 0
    average_price_per_order: float = 0.0
    skipped_order_count: int = 0
    top_products: List[ProductConsumptionRow] = Field(default_factory=list)
    top_group_buys: List[GroupBuyConsumptionRow] = Field(default_factory=list)
    current_period_start: date
    current_period_end: date
    previous_period_start: date
    previous_period_end: date
    period_comparison: PeriodComparison = Field(default_factory=PeriodComparison)
    product_period_comparisons: List[ProductPeriodComparison] = Field(default_factory=list)


class CustomerBasicInfo(ReportModel):
    customer_id: str
    customer_name: str = ""
    customer_address_name: str = ""
    purchase_count: int = 0


class CustomerList(ReportModel):
    """Customers behind one bar of a frequency or regional chart"""
    customers: List[CustomerBasicInfo] = Field(default_factory=list)
