#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SellerWatch main runner.
- Loads and validates configuration once
- Discovers tracked seller accounts (unless listed in config/CLI)
- Fetches listings and payouts for the date range
- Writes one chart JSON payload per entity and prints a summary

Usage examples:
  python -m sellerwatch.main --help
  python -m sellerwatch.main --config config/sellerwatch_config.yaml
  python -m sellerwatch.main --from 2025-01-01 --to 2025-06-30 --theme ebay
  python -m sellerwatch.main --entities seller_a,seller_b --status Active
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Dict, Optional

from .core.chart_service import ChartService, EntityChart, build_chart_service
from .core.fanout import DateRangeError
from .core.series import ALL_STATUSES
from .shared.colored_logging import setup_colored_logging
from .shared.config import ClientConfig, ConfigError, apply_cli_overrides, load_client_config
from .shared.logging_setup import level_from_name
from .shared.marketplace_client import MarketplaceClient

EXIT_USAGE = 2


def write_chart_json(output_dir: Path, chart: EntityChart) -> Path:
    """Write one entity chart payload as chart_<entity>.json."""
    output_dir.mkdir(parents=True, exist_ok=True)
    safe_name = "".join(c if c.isalnum() or c in "-_." else "_" for c in chart.entity)
    path = output_dir / f"chart_{safe_name}.json"
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(chart.to_dict(), f, indent=2)
    return path


def summarize(chart: EntityChart) -> str:
    msg = (
        f"{chart.entity}: status={chart.status.value}, "
        f"listings={chart.listing_count} (${chart.listing_total:,.2f}), "
        f"payouts={chart.payout_count} (${chart.payout_total:,.2f})"
    )
    if chart.errors:
        msg += " [errors: " + "; ".join(f"{k}: {v}" for k, v in chart.errors.items()) + "]"
    return msg


async def run(config: ClientConfig, service: ChartService, theme: Optional[str] = None,
              status_filter: str = ALL_STATUSES) -> Dict[str, EntityChart]:
    """
    One full fetch-and-derive cycle

    Raises:
        DateRangeError: If the resolved range is inverted
        ConfigError: If the theme is unknown
    """
    log = logging.getLogger(__name__)
    if not service.entities:
        discovered = await service.discover_entities()
        if not discovered.success:
            log.error(f"Entity discovery failed: {discovered.error}")
            return {}

    date_range = config.date_range.resolve()
    await service.refresh(date_range.start, date_range.end)
    return service.build_all(theme=theme, status_filter=status_filter)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='SellerWatch listing/payout charts')
    parser.add_argument('--config', type=str, default=None, help='Path to sellerwatch_config.yaml')
    parser.add_argument('--from', dest='start', type=str, default=None, help='Range start (YYYY-MM-DD)')
    parser.add_argument('--to', dest='end', type=str, default=None, help='Range end (YYYY-MM-DD, inclusive)')
    parser.add_argument('--entities', type=str, default=None, help='Comma-separated seller accounts (skips discovery)')
    parser.add_argument('--theme', type=str, default=None, help='Chart theme name (e.g. default, ebay)')
    parser.add_argument('--status', type=str, default=ALL_STATUSES, help='Listing status filter (ALL, Active, Completed, Ended)')
    parser.add_argument('--output-dir', type=str, default=None, help='Directory for chart JSON files')
    parser.add_argument('--log-level', type=str, default=None, choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'], help='Logging level')
    args = parser.parse_args(argv)

    setup_colored_logging(
        level=level_from_name(args.log_level),
        fmt='%(asctime)s - %(levelname)s - [%(name)s:%(module)s.%(funcName)s:%(lineno)d] - %(message)s'
    )
    log = logging.getLogger(__name__)

    base = Path(__file__).resolve().parents[1]
    default_cfg = base / 'config' / 'sellerwatch_config.yaml'

    try:
        config = load_client_config(str(args.config or default_cfg))
        config = apply_cli_overrides(
            config,
            start=args.start,
            end=args.end,
            entities=args.entities,
            theme=args.theme,
            output_dir=args.output_dir,
            log_level=args.log_level,
        )
    except ConfigError as e:
        print(f"Configuration error: {e}")
        return EXIT_USAGE

    logging.getLogger().setLevel(level_from_name(config.logging_level))

    client = MarketplaceClient(config.api)
    service = build_chart_service(config, client)
    try:
        charts = asyncio.run(run(config, service, theme=args.theme, status_filter=args.status))
    except (ConfigError, DateRangeError) as e:
        print(f"Error: {e}")
        return EXIT_USAGE

    if not charts:
        log.warning("No entities to chart")
        return 1

    output_dir = Path(config.output.dir)
    for chart in charts.values():
        path = write_chart_json(output_dir, chart)
        log.debug(f"Wrote {path}")
        print(summarize(chart))
    return 0


if __name__ == '__main__':
    sys.exit(main())
