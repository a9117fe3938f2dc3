"""
Multi-Dimensional Report Builder

Orchestrates the ledger, accumulator, trend builder and frequency
bucketer for each reporting view. Every view reads pre-filtered rows from
a ``StatisticsSource``, folds them once, derives ratios, then sorts and
paginates the fully materialized groups in memory (sort fields include
derived values the persistence layer does not hold).
"""

import math
from collections import Counter, defaultdict
from datetime import date, timedelta
from typing import Callable, Dict, FrozenSet, Hashable, Iterable, List, Optional, Sequence, Type, TypeVar

import structlog
from pydantic import BaseModel

from src.config import Settings, get_settings
from src.data.models import (
    MONETARY_STATUSES,
    PARTICIPATION_STATUSES,
    Campaign,
    OrderStatus,
    Product,
)
from src.data.repository import CampaignFilter, StatisticsSource
from .accumulator import (
    Accumulator,
    Totals,
    accumulate,
    by_customer,
    by_launch_day,
    by_product,
    merged_name_key,
)
from .contract import enforce_row_contract
from .exceptions import InvalidQueryError
from .frequency import bucket_frequencies, multi_purchase_stats
from .ledger import LedgerEntry, LedgerScan, round_currency, scan_ledger
from .metrics import profit_margin, safe_divide, summarize
from .query import DateWindow, ReportQuery
from .schemas import (
    CustomerBasicInfo,
    CustomerConsumptionDetail,
    CustomerList,
    CustomerLoyalty,
    CustomerOrderRankRow,
    CustomerOverview,
    CustomerRankings,
    CustomerRow,
    DimensionDetail,
    FrequencyBucketOut,
    GroupBuyConsumptionRow,
    GroupBuyHistoryRow,
    MergedGroupBuyCustomerRank,
    MergedGroupBuyRankings,
    MergedGroupBuyRow,
    MergedRankItem,
    OverviewReport,
    Page,
    PeriodComparison,
    PeriodMetrics,
    ProductConsumptionRow,
    ProductPeriodComparison,
    ProductRow,
    ProductTypeRow,
    RankingsReport,
    RankItem,
    RegionalDistribution,
    RegionalSalesRow,
    SupplierRow,
    trend_out,
)
from .trends import build_trends

logger = structlog.get_logger(__name__)

RowT = TypeVar("RowT", bound=BaseModel)


def resolve_sort_field(row_type: Type[BaseModel], sort_field: str) -> str:
    """Attribute name for a snake_case or camelCase sort field"""
    fields = row_type.model_fields
    if sort_field in fields:
        return sort_field
    for name, info in fields.items():
        if info.alias == sort_field:
            return name
    raise InvalidQueryError(f"Unknown sort field '{sort_field}' for {row_type.__name__}")


def sort_rows(rows: Sequence[RowT], row_type: Type[BaseModel], sort_field: str, descending: bool = True) -> List[RowT]:
    """Stable sort with missing values last in either direction"""
    attr = resolve_sort_field(row_type, sort_field)
    present = [row for row in rows if getattr(row, attr) is not None]
    missing = [row for row in rows if getattr(row, attr) is None]
    present.sort(key=lambda row: getattr(row, attr), reverse=descending)
    return present + missing


def paginate(rows: Sequence[RowT], page: int, page_size: int) -> List[RowT]:
    offset = (page - 1) * page_size
    return list(rows[offset:offset + page_size])


class ReportBuilder:
    """
    Builds every statistics view from a row source.

    Example:
        builder = ReportBuilder(InMemoryStatisticsSource.from_json("data.json"))
        overview = builder.overview(date(2024, 1, 1), date(2024, 3, 31))
        page = builder.product_overview(ReportQuery(sort_field="profitMargin"))
    """

    def __init__(self, source: StatisticsSource, settings: Optional[Settings] = None):
        self.source = source
        self.settings = settings or get_settings()

    @property
    def precision(self) -> int:
        return self.settings.statistics.currency_precision

    # -------------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------------

    def _scan(
        self,
        window: DateWindow,
        statuses: FrozenSet[OrderStatus] = MONETARY_STATUSES,
        campaign_filter: Optional[CampaignFilter] = None,
    ) -> LedgerScan:
        campaigns = self.source.fetch_campaigns(window.start, window.end, statuses, campaign_filter)
        if self.settings.statistics.validate_input_rows:
            enforce_row_contract(campaigns, statuses)
        return scan_ledger(campaigns, self.precision)

    def _check_ceiling(self, view: str, group_count: int) -> None:
        ceiling = self.settings.statistics.max_report_entities
        if group_count > ceiling:
            logger.warning(
                "Report materializes more groups than the configured ceiling",
                view=view,
                groups=group_count,
                ceiling=ceiling,
            )

    def _page_size(self, query: ReportQuery) -> int:
        page_size = query.page_size or self.settings.statistics.default_page_size
        limit = self.settings.statistics.max_page_size
        if page_size > limit:
            raise InvalidQueryError(f"page_size {page_size} exceeds the maximum of {limit}")
        return page_size

    def _page(
        self,
        rows: List[RowT],
        row_type: Type[RowT],
        query: ReportQuery,
        default_sort: str,
        view: str,
        skipped_order_count: int = 0,
    ) -> Page:
        page_size = self._page_size(query)
        self._check_ceiling(view, len(rows))
        ordered = sort_rows(rows, row_type, query.sort_field or default_sort, query.sort_order == "desc")
        total_count = len(ordered)
        logger.info(
            "Dimension report built",
            view=view,
            groups=total_count,
            page=query.page,
            page_size=page_size,
            skipped_orders=skipped_order_count,
        )
        return Page[row_type](
            data=paginate(ordered, query.page, page_size),
            page=query.page,
            page_size=page_size,
            total_count=total_count,
            total_pages=math.ceil(total_count / page_size),
            skipped_order_count=skipped_order_count,
        )

    @staticmethod
    def _ids(values: Optional[Iterable[str]]) -> Optional[FrozenSet[str]]:
        return frozenset(values) if values is not None else None

    def _filter_for(self, query: ReportQuery, match_campaign_name: bool = True) -> CampaignFilter:
        """Campaign filter of a list view; product type ids narrow the product ids"""
        product_ids = self._ids(query.product_ids)
        if query.product_type_ids is not None:
            typed = frozenset(
                p.id for p in self.source.list_products() if p.product_type_id in query.product_type_ids
            )
            product_ids = typed if product_ids is None else product_ids & typed
        return CampaignFilter(
            name_contains=query.name if match_campaign_name else None,
            supplier_ids=self._ids(query.supplier_ids),
            product_ids=product_ids,
        )

    @staticmethod
    def _group(
        scan: LedgerScan,
        campaign_key: Callable[[Campaign], Hashable],
    ) -> Dict[Hashable, Totals]:
        """Totals per campaign-derived key; every campaign registers its group"""
        acc = Accumulator(lambda entry: campaign_key(entry.campaign), scan.precision)
        acc.add_campaigns(scan.campaigns, campaign_key)
        acc.add_all(scan.entries)
        return acc.groups

    @staticmethod
    def _total(scan: LedgerScan) -> Totals:
        return ReportBuilder._group(scan, lambda campaign: None).get(None) or Totals(precision=scan.precision)

    def _names(self, rows: Iterable) -> Dict[str, str]:
        return {row.id: row.name for row in rows}

    def _region_of(self) -> Callable[[LedgerEntry], Optional[str]]:
        customer_regions = {c.id: c.customer_address_id for c in self.source.list_customers()}

        def region(entry: LedgerEntry) -> Optional[str]:
            return entry.order.customer_address_id or customer_regions.get(entry.order.customer_id)

        return region

    def _dimension_products(self, dimension: str, entity_id: Optional[str]) -> FrozenSet[str]:
        """Product ids behind a ``product`` or ``productType`` drill-down"""
        key = dimension.replace("-", "_")
        if not entity_id:
            raise InvalidQueryError(f"An entity id is required for the '{dimension}' dimension")
        if key == "product":
            return frozenset({entity_id})
        if key in ("productType", "product_type"):
            return frozenset(p.id for p in self.source.list_products() if p.product_type_id == entity_id)
        raise InvalidQueryError(f"Unknown dimension '{dimension}', expected 'product' or 'productType'")

    def _customer_infos(self, purchase_counts: Dict[str, int]) -> List[CustomerBasicInfo]:
        """Known customers with their purchase counts, most purchases first"""
        customers = {c.id: c for c in self.source.list_customers()}
        address_names = self._names(self.source.list_customer_addresses())
        infos = []
        for customer_id, purchases in purchase_counts.items():
            customer = customers.get(customer_id)
            if customer is None:
                continue
            address_id = customer.customer_address_id
            infos.append(
                CustomerBasicInfo(
                    customer_id=customer_id,
                    customer_name=customer.name,
                    customer_address_name=address_names.get(address_id, "") if address_id else "",
                    purchase_count=purchases,
                )
            )
        return sorted(infos, key=lambda info: info.purchase_count, reverse=True)

    # -------------------------------------------------------------------------
    # Overview
    # -------------------------------------------------------------------------

    def overview(self, start: Optional[date] = None, end: Optional[date] = None) -> OverviewReport:
        """
        Global totals and the four launch-day trend series.

        When both bounds are given the raw daily series is returned for
        each metric; otherwise the downsampled series is. Cumulative series
        are always rebuilt from the downsampled series.
        """
        window = DateWindow(start, end)
        scan = self._scan(window)
        totals = self._total(scan)

        per_day = Accumulator(by_launch_day, scan.precision).add_all(scan.entries).groups
        trends = build_trends(
            {
                "group_buy": Counter(c.group_buy_start_date for c in scan.campaigns),
                "order": {day: t.order_count for day, t in per_day.items()},
                "price": {day: t.revenue for day, t in per_day.items()},
                "profit": {day: t.profit for day, t in per_day.items()},
            },
            window.start,
            window.end,
            zeros={"price": 0.0, "profit": 0.0},
            precision=scan.precision,
        )
        explicit = window.is_explicit

        logger.info(
            "Overview built",
            start=str(start) if start else None,
            end=str(end) if end else None,
            group_buys=len(scan.campaigns),
            orders=totals.order_count,
            skipped_orders=scan.skipped_order_count,
        )
        return OverviewReport(
            group_buy_count=len(scan.campaigns),
            order_count=totals.order_count,
            total_price=totals.revenue,
            total_profit=totals.profit,
            total_refund_amount=totals.refund_amount,
            partial_refund_order_count=totals.partial_refund_order_count,
            full_refund_order_count=totals.full_refund_order_count,
            unique_customer_count=totals.unique_customer_count,
            profit_margin=profit_margin(totals.profit, totals.revenue),
            average_order_value=safe_divide(totals.revenue, totals.unique_customer_count),
            skipped_order_count=scan.skipped_order_count,
            bucket_size=trends["order"].bucket_size,
            group_buy_trend=trend_out(trends["group_buy"].for_display(explicit)),
            order_trend=trend_out(trends["order"].for_display(explicit)),
            price_trend=trend_out(trends["price"].for_display(explicit)),
            profit_trend=trend_out(trends["profit"].for_display(explicit)),
            cumulative_group_buy_trend=trend_out(trends["group_buy"].cumulative),
            cumulative_order_trend=trend_out(trends["order"].cumulative),
            cumulative_price_trend=trend_out(trends["price"].cumulative),
            cumulative_profit_trend=trend_out(trends["profit"].cumulative),
            monthly_group_buy_trend=trend_out(trends["group_buy"].monthly),
            monthly_order_trend=trend_out(trends["order"].monthly),
            monthly_price_trend=trend_out(trends["price"].monthly),
            monthly_profit_trend=trend_out(trends["profit"].monthly),
        )

    def rankings(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        top_n: Optional[int] = None,
    ) -> RankingsReport:
        """Top campaigns by order count, revenue and profit; top suppliers by launches"""
        limit = top_n or self.settings.statistics.ranking_size
        scan = self._scan(DateWindow(start, end))
        per_campaign = self._group(scan, lambda campaign: campaign.id)

        def top(value: Callable[[Totals], float]) -> List[RankItem]:
            items = [
                RankItem(
                    id=campaign.id,
                    name=campaign.name,
                    value=value(per_campaign[campaign.id]),
                    group_buy_start_date=campaign.group_buy_start_date,
                )
                for campaign in scan.campaigns
            ]
            return sorted(items, key=lambda item: item.value, reverse=True)[:limit]

        launches = Counter(campaign.supplier_id for campaign in scan.campaigns)
        suppliers = [
            RankItem(id=supplier.id, name=supplier.name, value=launches.get(supplier.id, 0))
            for supplier in self.source.list_suppliers()
        ]

        return RankingsReport(
            group_buy_rank_by_order_count=top(lambda t: t.order_count),
            group_buy_rank_by_total_sales=top(lambda t: t.revenue),
            group_buy_rank_by_total_profit=top(lambda t: t.profit),
            supplier_rank_by_group_buy_count=sorted(suppliers, key=lambda item: item.value, reverse=True)[:limit],
        )

    def customer_rankings(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        top_n: Optional[int] = None,
    ) -> CustomerRankings:
        """Top customers by order count, spend and average spend per order"""
        limit = top_n or self.settings.statistics.ranking_size
        scan = self._scan(DateWindow(start, end))
        groups = Accumulator(by_customer, scan.precision).add_all(scan.entries).groups
        names = self._names(self.source.list_customers())
        buyers = {customer_id: t for customer_id, t in groups.items() if t.order_count > 0}

        def top(value: Callable[[Totals], float]) -> List[RankItem]:
            items = [
                RankItem(id=customer_id, name=names.get(customer_id, ""), value=value(t))
                for customer_id, t in buyers.items()
            ]
            return sorted(items, key=lambda item: item.value, reverse=True)[:limit]

        logger.info("Customer rankings built", customers=len(buyers), skipped_orders=scan.skipped_order_count)
        return CustomerRankings(
            customer_rank_by_order_count=top(lambda t: t.order_count),
            customer_rank_by_total_amount=top(lambda t: t.revenue),
            customer_rank_by_average_order_amount=top(lambda t: safe_divide(t.revenue, t.order_count)),
        )

    def merged_group_buy_rankings(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        top_n: Optional[int] = None,
    ) -> MergedGroupBuyRankings:
        """Top (name, supplier) campaign groups by order count, revenue and profit"""
        limit = top_n or self.settings.statistics.ranking_size
        scan = self._scan(DateWindow(start, end))
        groups = self._group(scan, merged_name_key)
        suppliers = self._names(self.source.list_suppliers())

        def top(value: Callable[[Totals], float]) -> List[MergedRankItem]:
            items = [
                MergedRankItem(
                    name=name,
                    supplier_id=supplier_id,
                    supplier_name=suppliers.get(supplier_id, ""),
                    value=value(t),
                )
                for (name, supplier_id), t in groups.items()
            ]
            return sorted(items, key=lambda item: item.value, reverse=True)[:limit]

        return MergedGroupBuyRankings(
            merged_group_buy_rank_by_order_count=top(lambda t: t.order_count),
            merged_group_buy_rank_by_total_sales=top(lambda t: t.revenue),
            merged_group_buy_rank_by_total_profit=top(lambda t: t.profit),
        )

    def merged_group_buy_customer_rank(
        self,
        group_buy_name: str,
        supplier_id: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> MergedGroupBuyCustomerRank:
        """
        Customers of every launch named ``group_buy_name``, most orders first.

        Only PAID and COMPLETED orders are read. Without ``supplier_id`` the
        launches of every supplier using that name are included.
        """
        campaign_filter = CampaignFilter(
            name=group_buy_name,
            supplier_ids=frozenset({supplier_id}) if supplier_id else None,
        )
        scan = self._scan(DateWindow(start, end), PARTICIPATION_STATUSES, campaign_filter)
        groups = Accumulator(by_customer, scan.precision).add_all(scan.entries).groups
        names = self._names(self.source.list_customers())

        rows = sorted(
            (
                CustomerOrderRankRow(
                    customer_id=customer_id,
                    customer_name=names.get(customer_id, ""),
                    order_count=t.order_count,
                    total_amount=t.revenue,
                )
                for customer_id, t in groups.items()
            ),
            key=lambda row: row.order_count,
            reverse=True,
        )
        return MergedGroupBuyCustomerRank(group_buy_name=group_buy_name, supplier_id=supplier_id, customer_rank=rows)

    # -------------------------------------------------------------------------
    # Dimension lists
    # -------------------------------------------------------------------------

    def merged_group_buy_overview(self, query: ReportQuery) -> Page:
        """Campaigns grouped by (name, supplier), or one row per campaign without merging"""
        scan = self._scan(query.window, campaign_filter=self._filter_for(query))
        key = merged_name_key if query.merge_same_name else (lambda campaign: campaign.id)
        groups = self._group(scan, key)
        suppliers = self._names(self.source.list_suppliers())

        members: Dict[Hashable, List[Campaign]] = defaultdict(list)
        for campaign in scan.campaigns:
            members[key(campaign)].append(campaign)

        rows = []
        for group_key, totals in groups.items():
            campaigns = members[group_key]
            head = campaigns[0]
            rows.append(
                MergedGroupBuyRow(
                    name=head.name,
                    supplier_id=head.supplier_id,
                    supplier_name=suppliers.get(head.supplier_id, ""),
                    group_buy_ids=[c.id for c in campaigns],
                    latest_launch_date=max(c.group_buy_start_date for c in campaigns),
                    **summarize(totals),
                )
            )
        return self._page(rows, MergedGroupBuyRow, query, "total_revenue", "merged_group_buys", scan.skipped_order_count)

    def _listed_products(self, query: ReportQuery) -> List[Product]:
        product_ids = self._ids(query.product_ids)
        type_ids = self._ids(query.product_type_ids)
        return [
            product for product in self.source.list_products()
            if query.matches_name(product.name)
            and (product_ids is None or product.id in product_ids)
            and (type_ids is None or product.product_type_id in type_ids)
        ]

    def product_overview(self, query: ReportQuery) -> Page:
        """One row per live product, including products without campaigns in the window"""
        products = self._listed_products(query)
        campaign_filter = CampaignFilter(
            supplier_ids=self._ids(query.supplier_ids),
            product_ids=frozenset(p.id for p in products),
        )
        scan = self._scan(query.window, campaign_filter=campaign_filter)
        groups = self._group(scan, lambda campaign: campaign.product_id)
        type_names = self._names(self.source.list_product_types())

        rows = [
            ProductRow(
                product_id=product.id,
                product_name=product.name,
                product_type_id=product.product_type_id,
                product_type_name=type_names.get(product.product_type_id, "") if product.product_type_id else "",
                **summarize(groups.get(product.id) or Totals()),
            )
            for product in products
        ]
        return self._page(rows, ProductRow, query, "total_revenue", "products", scan.skipped_order_count)

    def product_type_overview(self, query: ReportQuery) -> Page:
        """One row per live product type; ``product_count`` is its live product count"""
        type_ids = self._ids(query.product_type_ids)
        product_types = [
            product_type for product_type in self.source.list_product_types()
            if query.matches_name(product_type.name) and (type_ids is None or product_type.id in type_ids)
        ]
        products_of: Dict[Optional[str], List[str]] = defaultdict(list)
        for product in self.source.list_products():
            products_of[product.product_type_id].append(product.id)

        product_ids = frozenset(pid for t in product_types for pid in products_of[t.id])
        if query.product_ids is not None:
            product_ids &= frozenset(query.product_ids)
        campaign_filter = CampaignFilter(supplier_ids=self._ids(query.supplier_ids), product_ids=product_ids)
        scan = self._scan(query.window, campaign_filter=campaign_filter)
        type_of = {pid: type_id for type_id, pids in products_of.items() for pid in pids}
        groups = self._group(scan, lambda campaign: type_of.get(campaign.product_id))

        rows = [
            ProductTypeRow(
                product_type_id=product_type.id,
                product_type_name=product_type.name,
                product_count=len(products_of[product_type.id]),
                **summarize(groups.get(product_type.id) or Totals()),
            )
            for product_type in product_types
        ]
        return self._page(rows, ProductTypeRow, query, "total_revenue", "product_types", scan.skipped_order_count)

    def supplier_overview(self, query: ReportQuery) -> Page:
        """Suppliers with campaigns in the window; ``name`` matches the supplier name"""
        scan = self._scan(query.window, campaign_filter=self._filter_for(query, match_campaign_name=False))
        groups = self._group(scan, lambda campaign: campaign.supplier_id)
        suppliers = self._names(self.source.list_suppliers())

        rows = [
            SupplierRow(
                supplier_id=supplier_id,
                supplier_name=suppliers.get(supplier_id, ""),
                **summarize(totals),
            )
            for supplier_id, totals in groups.items()
            if query.matches_name(suppliers.get(supplier_id))
        ]
        return self._page(rows, SupplierRow, query, "total_revenue", "suppliers", scan.skipped_order_count)

    def dimension_overview(self, dimension: str, query: ReportQuery):
        """Dispatch a list view by dimension name (``products``, ``product-types``, ...)"""
        views = {
            "group-buys": self.merged_group_buy_overview,
            "products": self.product_overview,
            "product-types": self.product_type_overview,
            "suppliers": self.supplier_overview,
            "customers": self.customer_overview,
        }
        view = views.get(dimension.replace("_", "-"))
        if view is None:
            raise InvalidQueryError(f"Unknown dimension '{dimension}', expected one of {sorted(views)}")
        return view(query)

    # -------------------------------------------------------------------------
    # Drill-downs
    # -------------------------------------------------------------------------

    def _detail(
        self,
        dimension: str,
        window: DateWindow,
        campaign_filter: CampaignFilter,
        entity_id: Optional[str],
        entity_name: str,
        **extra,
    ) -> DimensionDetail:
        scan = self._scan(window, campaign_filter=campaign_filter)
        totals = self._total(scan)
        per_campaign = self._group(scan, lambda campaign: campaign.id)
        purchase_counts = totals.purchase_counts()
        multi = multi_purchase_stats(purchase_counts, totals.unique_customer_count)

        history = []
        for campaign in scan.campaigns:
            t = per_campaign[campaign.id]
            history.append(
                GroupBuyHistoryRow(
                    group_buy_id=campaign.id,
                    name=campaign.name,
                    group_buy_start_date=campaign.group_buy_start_date,
                    revenue=t.revenue,
                    profit=t.profit,
                    refund_amount=t.refund_amount,
                    order_count=t.order_count,
                    partial_refund_order_count=t.partial_refund_order_count,
                    full_refund_order_count=t.full_refund_order_count,
                    unique_customer_count=t.unique_customer_count,
                    profit_margin=profit_margin(t.profit, t.revenue),
                )
            )

        per_day = Accumulator(by_launch_day, scan.precision).add_all(scan.entries).groups
        trends = build_trends(
            {
                "order": {day: t.order_count for day, t in per_day.items()},
                "price": {day: t.revenue for day, t in per_day.items()},
                "profit": {day: t.profit for day, t in per_day.items()},
            },
            window.start,
            window.end,
            zeros={"price": 0.0, "profit": 0.0},
            precision=scan.precision,
        )
        explicit = window.is_explicit
        metrics = summarize(totals, group_count=len(scan.campaigns))

        logger.info(
            "Detail report built",
            dimension=dimension,
            entity_id=entity_id,
            group_buys=len(scan.campaigns),
            skipped_orders=scan.skipped_order_count,
        )
        return DimensionDetail(
            dimension=dimension,
            entity_id=entity_id,
            entity_name=entity_name,
            multi_purchase_customer_count=multi.multi_purchase_count,
            multi_purchase_customer_ratio=multi.multi_purchase_ratio,
            average_customer_order_value=metrics["average_order_value"],
            skipped_order_count=scan.skipped_order_count,
            purchase_frequency=[
                FrequencyBucketOut.from_bucket(b)
                for b in bucket_frequencies(purchase_counts, len(scan.campaigns))
            ],
            group_buy_history=history,
            regional_sales=self._regional_rows(scan.entries),
            order_trend=trend_out(trends["order"].for_display(explicit)),
            price_trend=trend_out(trends["price"].for_display(explicit)),
            profit_trend=trend_out(trends["profit"].for_display(explicit)),
            **metrics,
            **extra,
        )

    def merged_group_buy_detail(
        self,
        name: str,
        supplier_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> DimensionDetail:
        """Drill-down of all launches sharing a name under one supplier"""
        supplier_name = self._names(self.source.list_suppliers()).get(supplier_id, "")
        return self._detail(
            "group_buy_name",
            DateWindow(start, end),
            CampaignFilter(name=name, supplier_ids=frozenset({supplier_id})),
            entity_id=name,
            entity_name=name,
            supplier_id=supplier_id,
            supplier_name=supplier_name,
        )

    def product_detail(self, product_id: str, start: Optional[date] = None, end: Optional[date] = None) -> DimensionDetail:
        product_name = self._names(self.source.list_products()).get(product_id, "")
        return self._detail(
            "product",
            DateWindow(start, end),
            CampaignFilter(product_ids=frozenset({product_id})),
            entity_id=product_id,
            entity_name=product_name,
        )

    def product_type_detail(
        self,
        product_type_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> DimensionDetail:
        product_ids = frozenset(
            p.id for p in self.source.list_products() if p.product_type_id == product_type_id
        )
        type_name = self._names(self.source.list_product_types()).get(product_type_id, "")
        return self._detail(
            "product_type",
            DateWindow(start, end),
            CampaignFilter(product_ids=product_ids),
            entity_id=product_type_id,
            entity_name=type_name,
        )

    def supplier_detail(self, supplier_id: str, start: Optional[date] = None, end: Optional[date] = None) -> DimensionDetail:
        supplier_name = self._names(self.source.list_suppliers()).get(supplier_id, "")
        return self._detail(
            "supplier",
            DateWindow(start, end),
            CampaignFilter(supplier_ids=frozenset({supplier_id})),
            entity_id=supplier_id,
            entity_name=supplier_name,
            supplier_id=supplier_id,
            supplier_name=supplier_name,
        )

    # -------------------------------------------------------------------------
    # Regions
    # -------------------------------------------------------------------------

    def _regional_rows(self, entries: Sequence[LedgerEntry]) -> List[RegionalSalesRow]:
        groups = Accumulator(self._region_of(), self.precision).add_all(entries).groups
        address_names = self._names(self.source.list_customer_addresses())
        total_revenue = sum(t.revenue for t in groups.values())

        rows = [
            RegionalSalesRow(
                address_id=address_id,
                address_name=address_names.get(address_id, "") if address_id else "",
                revenue=t.revenue,
                profit=t.profit,
                order_count=t.order_count,
                unique_customer_count=t.unique_customer_count,
                revenue_share=round(t.revenue / total_revenue * 100, 2) if total_revenue > 0 else 0.0,
            )
            for address_id, t in groups.items()
        ]
        return sorted(rows, key=lambda row: row.revenue, reverse=True)

    def regional_distribution(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        campaign_filter: Optional[CampaignFilter] = None,
    ) -> RegionalDistribution:
        """Revenue, profit and participation per customer address"""
        scan = self._scan(DateWindow(start, end), campaign_filter=campaign_filter)
        rows = self._regional_rows(scan.entries)
        return RegionalDistribution(
            rows=rows,
            total_revenue=self._total(scan).revenue,
            skipped_order_count=scan.skipped_order_count,
        )

    # -------------------------------------------------------------------------
    # Chart drill-downs
    # -------------------------------------------------------------------------

    def frequency_customers(
        self,
        dimension: str,
        entity_id: str,
        min_frequency: int,
        max_frequency: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> CustomerList:
        """
        Customers behind one purchase frequency bar of a product or product type.

        Args:
            dimension: ``product`` or ``productType``
            entity_id: Product id or product type id
            min_frequency: Smallest purchase count, inclusive
            max_frequency: Largest purchase count, inclusive; open-ended when None
            start: Launch window start
            end: Launch window end

        Returns:
            Customers whose PAID/COMPLETED order count lies in the range

        Raises:
            InvalidQueryError: for an unknown dimension or a missing entity id
        """
        product_ids = self._dimension_products(dimension, entity_id)
        scan = self._scan(DateWindow(start, end), PARTICIPATION_STATUSES, CampaignFilter(product_ids=product_ids))
        purchase_counts = {
            customer_id: purchases
            for customer_id, purchases in self._total(scan).purchase_counts().items()
            if purchases >= min_frequency and (max_frequency is None or purchases <= max_frequency)
        }
        customers = self._customer_infos(purchase_counts)
        logger.info(
            "Frequency customers listed",
            dimension=dimension,
            entity_id=entity_id,
            min_frequency=min_frequency,
            max_frequency=max_frequency,
            customers=len(customers),
        )
        return CustomerList(customers=customers)

    def regional_customers(
        self,
        dimension: str,
        entity_id: str,
        address_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> CustomerList:
        """
        Customers of one region for a product or product type drill-down.

        Only PAID and COMPLETED orders are read; ``purchase_count`` is the
        number of those orders attributed to ``address_id``.
        """
        product_ids = self._dimension_products(dimension, entity_id)
        scan = self._scan(DateWindow(start, end), PARTICIPATION_STATUSES, CampaignFilter(product_ids=product_ids))
        region = self._region_of()
        totals = accumulate(
            (entry for entry in scan.entries if region(entry) == address_id),
            precision=scan.precision,
        ).get(None) or Totals(precision=scan.precision)
        customers = self._customer_infos(totals.purchase_counts())
        logger.info(
            "Regional customers listed",
            dimension=dimension,
            entity_id=entity_id,
            address_id=address_id,
            customers=len(customers),
        )
        return CustomerList(customers=customers)

    # -------------------------------------------------------------------------
    # Customers
    # -------------------------------------------------------------------------

    def customer_overview(self, query: ReportQuery) -> CustomerOverview:
        """Paginated per-customer rows plus the loyalty distribution"""
        scan = self._scan(query.window, campaign_filter=self._filter_for(query, match_campaign_name=False))
        groups = Accumulator(by_customer, scan.precision).add_all(scan.entries).groups
        customers = {c.id: c for c in self.source.list_customers()}
        address_names = self._names(self.source.list_customer_addresses())
        launches = {c.id: c.group_buy_start_date for c in scan.campaigns}

        rows = []
        purchase_counts: Dict[str, int] = {}
        for customer_id, t in groups.items():
            customer = customers.get(customer_id)
            if not query.matches_name(customer.name if customer else None):
                continue
            address_id = customer.customer_address_id if customer else None
            purchases = t.purchase_count(customer_id)
            if purchases:
                purchase_counts[customer_id] = purchases
            rows.append(
                CustomerRow(
                    customer_id=customer_id,
                    customer_name=customer.name if customer else "",
                    customer_address_name=address_names.get(address_id, "") if address_id else "",
                    order_count=t.order_count,
                    purchase_count=purchases,
                    total_amount=t.revenue,
                    total_profit=t.profit,
                    total_refund_amount=t.refund_amount,
                    average_price_per_order=safe_divide(t.revenue, t.order_count),
                    latest_launch_date=max(launches[cid] for cid in t.campaign_ids),
                )
            )

        multi = multi_purchase_stats(purchase_counts)
        loyalty = CustomerLoyalty(
            unique_customer_count=len(purchase_counts),
            total_group_buy_count=len(scan.campaigns),
            multi_purchase_customer_count=multi.multi_purchase_count,
            multi_purchase_customer_ratio=multi.multi_purchase_ratio,
            purchase_frequency=[
                FrequencyBucketOut.from_bucket(b)
                for b in bucket_frequencies(purchase_counts, len(scan.campaigns))
            ],
        )
        page = self._page(rows, CustomerRow, query, "total_amount", "customers", scan.skipped_order_count)
        return CustomerOverview(customers=page, loyalty=loyalty)

    def customer_consumption_detail(
        self,
        customer_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        today: Optional[date] = None,
    ) -> CustomerConsumptionDetail:
        """
        Spending of one customer with a period-over-period comparison.

        The comparison windows end on ``today`` (inclusive) and are
        attributed by campaign launch day, independent of ``start``/``end``.
        """
        customer_filter = CampaignFilter(customer_id=customer_id)
        scan = self._scan(DateWindow(start, end), campaign_filter=customer_filter)
        totals = self._total(scan)
        product_names = self._names(self.source.list_products())
        limit = self.settings.statistics.ranking_size

        per_product = Accumulator(by_product, scan.precision).add_all(scan.entries).groups
        top_products = sorted(
            (
                ProductConsumptionRow(
                    product_id=product_id,
                    product_name=product_names.get(product_id, ""),
                    order_count=t.order_count,
                    total_amount=t.revenue,
                )
                for product_id, t in per_product.items()
            ),
            key=lambda row: row.total_amount,
            reverse=True,
        )[:limit]

        per_name = Accumulator(lambda entry: entry.campaign.name, scan.precision).add_all(scan.entries).groups
        top_group_buys = sorted(
            (
                GroupBuyConsumptionRow(
                    name=name,
                    order_count=t.order_count,
                    purchase_count=t.purchase_count(customer_id),
                    total_amount=t.revenue,
                )
                for name, t in per_name.items()
            ),
            key=lambda row: row.total_amount,
            reverse=True,
        )[:limit]

        days = self.settings.statistics.comparison_window_days
        current_end = today or date.today()
        current_start = current_end - timedelta(days=days - 1)
        previous_end = current_start - timedelta(days=1)
        previous_start = current_start - timedelta(days=days)

        recent = self._scan(DateWindow(previous_start, current_end), campaign_filter=customer_filter)

        def period_of(entry: LedgerEntry) -> Hashable:
            return "current" if entry.campaign.group_buy_start_date >= current_start else "previous"

        def comparison(groups: Dict[Hashable, Totals], cls=PeriodComparison, **fields) -> PeriodComparison:
            current = groups.get("current") or Totals(precision=recent.precision)
            previous = groups.get("previous") or Totals(precision=recent.precision)
            return cls(
                current=PeriodMetrics(order_count=current.order_count, total_amount=current.revenue),
                previous=PeriodMetrics(order_count=previous.order_count, total_amount=previous.revenue),
                diff=PeriodMetrics(
                    order_count=current.order_count - previous.order_count,
                    total_amount=round_currency(current.revenue - previous.revenue, recent.precision),
                ),
                **fields,
            )

        overall = Accumulator(period_of, recent.precision).add_all(recent.entries).groups
        by_product_period: Dict[str, List[LedgerEntry]] = defaultdict(list)
        for entry in recent.entries:
            by_product_period[entry.campaign.product_id].append(entry)

        product_comparisons = sorted(
            (
                comparison(
                    Accumulator(period_of, recent.precision).add_all(entries).groups,
                    cls=ProductPeriodComparison,
                    product_id=product_id,
                    product_name=product_names.get(product_id, ""),
                )
                for product_id, entries in by_product_period.items()
            ),
            key=lambda row: row.current.total_amount,
            reverse=True,
        )

        customer = next((c for c in self.source.list_customers() if c.id == customer_id), None)
        logger.info(
            "Customer consumption detail built",
            customer_id=customer_id,
            orders=totals.order_count,
            skipped_orders=scan.skipped_order_count,
        )
        return CustomerConsumptionDetail(
            customer_id=customer_id,
            customer_name=customer.name if customer else "",
            order_count=totals.order_count,
            purchase_count=totals.purchase_count(customer_id),
            total_amount=totals.revenue,
            total_refund_amount=totals.refund_amount,
            partial_refund_order_count=totals.partial_refund_order_count,
            full_refund_order_count=totals.full_refund_order_count,
            average_price_per_order=safe_divide(totals.revenue, totals.order_count),
            skipped_order_count=scan.skipped_order_count,
            top_products=top_products,
            top_group_buys=top_group_buys,
            current_period_start=current_start,
            current_period_end=current_end,
            previous_period_start=previous_start,
            previous_period_end=previous_end,
            period_comparison=comparison(overall),
            product_period_comparisons=product_comparisons,
        )
