"""
Time-Bucketed Trend Builder

Turns day-keyed totals into chart series:
- contiguous daily series (gaps filled with zero)
- downsampled series whose bucket width grows with the covered span
- cumulative series rebuilt from the downsampled points
- monthly roll-up of the daily series

All four overview series are keyed by the campaign launch day, including
orders placed long after the launch.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import polars as pl
import structlog

from .ledger import DEFAULT_CURRENCY_PRECISION, round_currency

logger = structlog.get_logger(__name__)

Number = Union[int, float]

# (max span in days, bucket width in days); spans beyond the last row use 30
BUCKET_SIZE_THRESHOLDS: Tuple[Tuple[int, int], ...] = (
    (90, 1),
    (180, 3),
    (365, 7),
    (730, 14),
)
LONG_RANGE_BUCKET_SIZE = 30


@dataclass(frozen=True)
class TrendPoint:
    """One point of a daily or monthly series"""
    date: date
    count: Number


@dataclass(frozen=True)
class BucketedTrendPoint:
    """One point of a downsampled series, dated by the last day in its bucket"""
    date: date
    count: Number
    bucket_start: date
    bucket_end: date


def _normalize(value: Number, precision: int = DEFAULT_CURRENCY_PRECISION) -> Number:
    return round_currency(value, precision) if isinstance(value, float) else value


def _is_money(points: Sequence) -> bool:
    return any(isinstance(p.count, float) for p in points)


def _frame(points: Sequence) -> pl.DataFrame:
    dtype = pl.Float64 if _is_money(points) else pl.Int64
    return pl.DataFrame(
        {
            "date": [p.date for p in points],
            "count": [p.count for p in points],
        },
        schema={"date": pl.Date, "count": dtype},
    )


def day_span(start: date, end: date) -> int:
    """Number of calendar days in the inclusive range"""
    return (end - start).days + 1


def infer_range(*series: Mapping[date, Number]) -> Optional[Tuple[date, date]]:
    """Earliest and latest day present across all mappings"""
    days = [day for mapping in series for day in mapping]
    if not days:
        return None
    return min(days), max(days)


def materialize_daily(
    values: Mapping[date, Number],
    start: date,
    end: date,
    zero: Number = 0,
    precision: int = DEFAULT_CURRENCY_PRECISION,
) -> List[TrendPoint]:
    """One point per day of ``[start, end]``, missing days filled with ``zero``"""
    points = []
    current = start
    while current <= end:
        points.append(TrendPoint(date=current, count=_normalize(values.get(current, zero), precision)))
        current += timedelta(days=1)
    return points


def cumulative(points: Sequence[TrendPoint], precision: int = DEFAULT_CURRENCY_PRECISION) -> List[TrendPoint]:
    """Running sum in day order"""
    running: Number = 0
    result = []
    for point in sorted(points, key=lambda p: p.date):
        running = _normalize(running + point.count, precision)
        result.append(TrendPoint(date=point.date, count=running))
    return result


def select_bucket_size(span_days: int) -> int:
    """Bucket width in days for a series covering ``span_days`` days"""
    for max_span, size in BUCKET_SIZE_THRESHOLDS:
        if span_days <= max_span:
            return size
    return LONG_RANGE_BUCKET_SIZE


def bucket_series(
    points: Sequence[TrendPoint],
    bucket_size: int,
    precision: int = DEFAULT_CURRENCY_PRECISION,
) -> List[BucketedTrendPoint]:
    """
    Downsample a daily series into fixed-width day buckets.

    Bucket index is the number of days since the first point divided by
    the bucket size. Counts are summed and each bucket is dated by the
    last day observed in it.

    Args:
        points: Daily points, any order
        bucket_size: Bucket width in days
        precision: Decimal places kept on money buckets

    Returns:
        Bucketed points in ascending date order
    """
    ordered = sorted(points, key=lambda p: p.date)
    if bucket_size <= 1 or not ordered:
        return [
            BucketedTrendPoint(date=p.date, count=p.count, bucket_start=p.date, bucket_end=p.date)
            for p in ordered
        ]

    first_day = ordered[0].date
    grouped = (
        _frame(ordered)
        .with_columns(
            ((pl.col("date") - pl.lit(first_day)).dt.total_days() // bucket_size).alias("bucket")
        )
        .group_by("bucket", maintain_order=True)
        .agg(
            pl.col("count").sum().alias("count"),
            pl.col("date").min().alias("bucket_start"),
            pl.col("date").max().alias("bucket_end"),
        )
        .sort("bucket")
    )

    return [
        BucketedTrendPoint(
            date=row["bucket_end"],
            count=_normalize(row["count"], precision),
            bucket_start=row["bucket_start"],
            bucket_end=row["bucket_end"],
        )
        for row in grouped.iter_rows(named=True)
    ]


def rebuild_cumulative(
    points: Sequence[BucketedTrendPoint],
    precision: int = DEFAULT_CURRENCY_PRECISION,
) -> List[BucketedTrendPoint]:
    """Running sum over a bucketed series, keeping bucket bounds"""
    running: Number = 0
    result = []
    for point in sorted(points, key=lambda p: p.date):
        running = _normalize(running + point.count, precision)
        result.append(
            BucketedTrendPoint(
                date=point.date,
                count=running,
                bucket_start=point.bucket_start,
                bucket_end=point.bucket_end,
            )
        )
    return result


def monthly_rollup(points: Sequence[TrendPoint], precision: int = DEFAULT_CURRENCY_PRECISION) -> List[TrendPoint]:
    """
    Sum a daily series per calendar month.

    Every month between the earliest and latest observed month is present,
    dated by its first day, with zero where nothing was observed.
    """
    if not points:
        return []

    monthly = (
        _frame(points)
        .with_columns(pl.col("date").dt.truncate("1mo").alias("month"))
        .group_by("month")
        .agg(pl.col("count").sum().alias("count"))
    )
    first_month = monthly["month"].min()
    last_month = monthly["month"].max()

    months = pl.date_range(first_month, last_month, interval="1mo", eager=True).alias("month").to_frame()
    filled = (
        months.join(monthly, on="month", how="left")
        .with_columns(pl.col("count").fill_null(0))
        .sort("month")
    )

    return [
        TrendPoint(date=row["month"], count=_normalize(row["count"], precision))
        for row in filled.iter_rows(named=True)
    ]


@dataclass
class TrendSeries:
    """All representations of one metric over time"""
    daily: List[TrendPoint] = field(default_factory=list)
    bucketed: List[BucketedTrendPoint] = field(default_factory=list)
    cumulative: List[BucketedTrendPoint] = field(default_factory=list)
    monthly: List[TrendPoint] = field(default_factory=list)
    bucket_size: int = 1

    def for_display(self, explicit_range: bool) -> Union[List[TrendPoint], List[BucketedTrendPoint]]:
        """Raw daily points for an explicit range, bucketed points for all-time queries"""
        return self.daily if explicit_range else self.bucketed


def build_trend_series(
    values: Mapping[date, Number],
    start: date,
    end: date,
    zero: Number = 0,
    precision: int = DEFAULT_CURRENCY_PRECISION,
) -> TrendSeries:
    """Materialize, downsample and roll up one day-keyed metric"""
    daily = materialize_daily(values, start, end, zero=zero, precision=precision)
    size = select_bucket_size(day_span(start, end))
    bucketed = bucket_series(daily, size, precision)
    return TrendSeries(
        daily=daily,
        bucketed=bucketed,
        cumulative=rebuild_cumulative(bucketed, precision),
        monthly=monthly_rollup(daily, precision),
        bucket_size=size,
    )


def build_trends(
    series: Mapping[str, Mapping[date, Number]],
    start: Optional[date] = None,
    end: Optional[date] = None,
    zeros: Optional[Mapping[str, Number]] = None,
    precision: int = DEFAULT_CURRENCY_PRECISION,
) -> Dict[str, TrendSeries]:
    """
    Build trend series for several metrics sharing one day axis.

    Args:
        series: Metric name -> day -> value
        start: Window start; inferred from the data when absent
        end: Window end; inferred from the data when absent
        zeros: Metric name -> fill value for missing days (default 0)
        precision: Decimal places kept on money series

    Returns:
        Metric name -> TrendSeries; every series is empty when there is
        neither an explicit window nor any data
    """
    zeros = zeros or {}
    inferred = infer_range(*series.values())
    if start is None or end is None:
        if inferred is None:
            return {name: TrendSeries() for name in series}
        start = start or inferred[0]
        end = end or inferred[1]

    if start > end:
        return {name: TrendSeries() for name in series}

    logger.debug("Building trend series", start=str(start), end=str(end), metrics=list(series))
    return {
        name: build_trend_series(values, start, end, zero=zeros.get(name, 0), precision=precision)
        for name, values in series.items()
    }
