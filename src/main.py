"""
Command Line Entry Point

Usage:
    groupbuy-stats generate --output data/dataset.json
    groupbuy-stats overview --dataset data/dataset.json --start 2024-01-01 --end 2024-03-31
    groupbuy-stats rankings --dataset data/dataset.json
    groupbuy-stats report products --dataset data/dataset.json --sort-field profitMargin
"""

import argparse
import sys
from datetime import date
from typing import List, Optional

import structlog
from pydantic import ValidationError

from src.config.logging import configure_logging
from src.data.generators import DataGenerator
from src.data.repository import InMemoryStatisticsSource
from src.statistics import ReportBuilder, ReportQuery, StatisticsError

logger = structlog.get_logger(__name__)

DIMENSIONS = ("customers", "group-buys", "product-types", "products", "suppliers")


def _date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="groupbuy-stats", description="Group-buy statistics reports")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    generate = sub.add_parser("generate", help="Write a synthetic dataset")
    generate.add_argument("--output", required=True)
    generate.add_argument("--seed", type=int, default=42)
    generate.add_argument("--group-buys", type=int, default=120)
    generate.add_argument("--customers", type=int, default=200)

    def windowed(p: argparse.ArgumentParser) -> None:
        p.add_argument("--dataset", required=True, help="JSON dataset path")
        p.add_argument("--start", type=_date, default=None)
        p.add_argument("--end", type=_date, default=None)

    windowed(sub.add_parser("overview", help="Totals and trends"))
    windowed(sub.add_parser("rankings", help="Top campaigns and suppliers"))

    report = sub.add_parser("report", help="Paginated dimension report")
    report.add_argument("dimension", choices=DIMENSIONS)
    windowed(report)
    report.add_argument("--page", type=int, default=1)
    report.add_argument("--page-size", type=int, default=None)
    report.add_argument("--sort-field", default=None)
    report.add_argument("--sort-order", choices=["asc", "desc"], default="desc")
    report.add_argument("--no-merge", action="store_true", help="One row per campaign")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "generate":
        generator = DataGenerator(seed=args.seed)
        source = generator.generate_all(n_customers=args.customers, n_group_buys=args.group_buys)
        generator.save(source, args.output)
        return 0

    builder = ReportBuilder(InMemoryStatisticsSource.from_json(args.dataset))
    try:
        if args.command == "overview":
            result = builder.overview(args.start, args.end)
        elif args.command == "rankings":
            result = builder.rankings(args.start, args.end)
        else:
            params = dict(
                start_date=args.start,
                end_date=args.end,
                page=args.page,
                sort_field=args.sort_field,
                sort_order=args.sort_order,
                merge_same_name=not args.no_merge,
            )
            if args.page_size is not None:
                params["page_size"] = args.page_size
            result = builder.dimension_overview(args.dimension, ReportQuery(**params))
    except (StatisticsError, ValidationError) as e:
        logger.error("Report failed", error=str(e))
        return 1

    sys.stdout.write(result.model_dump_json(by_alias=True, indent=2) + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
