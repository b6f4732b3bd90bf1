"""Command line entry point: look up supplier prices for a product query."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Sequence, Set

from renovation_pricing.configs import settings
from renovation_pricing.logger_config import get_logger
from renovation_pricing.services.price_discovery.service import create_price_service


def parse_ids(raw: Optional[str]) -> Set[int]:
    """Parse ``"1,3"`` into ``{1, 3}``, ignoring blanks and non-numeric parts."""
    if not raw:
        return set()
    return {int(part) for part in raw.split(",") if part.strip().isdigit()}


def parse_sale_price(raw: str) -> Decimal:
    try:
        value = Decimal(raw.replace(",", "."))
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"invalid sale price: {raw}") from exc
    if not value.is_finite() or value < 0:
        raise argparse.ArgumentTypeError(f"invalid sale price: {raw}")
    return value


def positive_int(raw: str) -> int:
    value = int(raw)
    if value < 1:
        raise argparse.ArgumentTypeError("limit must be at least 1")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="renovation-pricing",
        description="Find the price of a product on each supplier storefront.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("scrape", "List supplier prices, cheapest first."),
        ("compare", "Convert supplier prices to EUR and compute margins."),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("query", help="Product to look for, e.g. 'visseuse'.")
        sub.add_argument("--limit", type=positive_int, help="Maximum number of suppliers.")
        sub.add_argument("--ids", help="Comma separated supplier ids, e.g. 1,3.")
        if name == "compare":
            sub.add_argument(
                "--sell", type=parse_sale_price, help="Sale price in EUR for margins."
            )
    return parser


def _jsonable(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: float(value) if isinstance(value, Decimal) else value
        for key, value in row.items()
    }


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    level = logging.DEBUG if settings.DEBUG_SCRAPE else logging.INFO
    get_logger("price_discovery", level)
    get_logger("renovation_pricing", level)

    query = args.query.strip()
    items: List[Dict[str, Any]] = []
    if query:
        service = create_price_service(settings)
        try:
            ids = parse_ids(args.ids)
            if args.command == "compare":
                rows = service.compare(query, args.sell, args.limit, ids)
                items = [_jsonable(asdict(row)) for row in rows]
            else:
                results = service.scrape(query, args.limit, ids)
                items = [_jsonable(result.model_dump()) for result in results]
        finally:
            service.close()

    print(json.dumps({"query": query, "items": items}, ensure_ascii=False, indent=2))
    return 0
