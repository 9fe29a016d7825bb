#!/usr/bin/env python3
"""Fetch a ticker, enrich it with indicators and print the latest snapshot."""

import argparse
import sys

from tickerlens.analysis.summary import Position, build_snapshot, to_lots
from tickerlens.core.config import DashboardConfig
from tickerlens.core.logging import setup_logging
from tickerlens.core.pipeline import DashboardPipeline
from tickerlens.data.base import is_taiwan_symbol
from tickerlens.data.csv_feed import CsvDataFeed
from tickerlens.data.finmind import FinMindFeed
from tickerlens.data.yahoo import YahooFinanceDataFeed
from tickerlens.errors import DataUnavailable


def _fmt(value: float | None) -> str:
    return "N/A" if value is None else f"{value:.2f}"


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the tickerlens indicator pipeline")
    parser.add_argument("symbol", nargs="?", default="2330", help="Ticker, e.g. 2330 or AAPL")
    parser.add_argument("--config", default="config/default.toml", help="Path to TOML config file")
    parser.add_argument("--feed.interval", dest="feed_interval",
                        choices=["15m", "60m", "1d", "1wk", "1mo"])
    parser.add_argument("--feed.display_range", dest="feed_display_range")
    parser.add_argument("--display.use_adjusted", dest="display_use_adjusted",
                        choices=["true", "false"])
    parser.add_argument("--logging.level", dest="logging_level")
    parser.add_argument("--csv", help="Read bars from a CSV file instead of Yahoo")
    parser.add_argument("--timezone", default="UTC", help="Exchange timezone for --csv")
    parser.add_argument("--cost", type=float, help="Average cost of a held position")
    parser.add_argument("--window", type=int, default=10, help="Trailing bars in the snapshot")
    args = parser.parse_args()

    overrides: dict[str, object] = {
        "feed.interval": args.feed_interval,
        "feed.display_range": args.feed_display_range,
        "display.use_adjusted": args.display_use_adjusted,
        "logging.level": args.logging_level,
    }
    cfg = DashboardConfig.load_with_overrides(args.config, **overrides)
    setup_logging(cfg.logging.level)

    if args.csv:
        price_feed = CsvDataFeed(args.csv, exchange_timezone=args.timezone)
    else:
        price_feed = YahooFinanceDataFeed()
    aux_feed = FinMindFeed(
        base_url=cfg.finmind.base_url,
        token=cfg.finmind.token or None,
        timeout=cfg.finmind.timeout_seconds,
    )

    pipeline = DashboardPipeline(price_feed, aux_feed=aux_feed, config=cfg)
    try:
        result = pipeline.run(args.symbol)
        position = Position(has_holding=True, cost_price=args.cost) if args.cost else None
        snap = build_snapshot(
            result.series,
            result.info.symbol,
            window=args.window,
            position=position,
            adjusted=cfg.display.use_adjusted,
        )
    except DataUnavailable as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    taiwan = is_taiwan_symbol(result.info.symbol)
    ind = snap.indicators
    print(f"{result.info.symbol} {result.info.name} ({result.interval}, {len(result.series)} bars)")
    print(f"  Close:   {ind.last_close:.2f}  ({snap.checks.price_change_pct:+.2f}%)")
    print(f"  Volume:  {to_lots(ind.last_volume):,} lots" if taiwan else f"  Volume:  {ind.last_volume:,}")
    print(f"  MA:      5={_fmt(ind.ma5)} 10={_fmt(ind.ma10)} 20={_fmt(ind.ma20)} 60={_fmt(ind.ma60)}")
    print(f"  RSI(14): {_fmt(ind.rsi)}")
    print(f"  MACD:    DIF={_fmt(ind.macd)} DEA={_fmt(ind.macd_signal)} Hist={_fmt(ind.macd_hist)}")
    print(f"  KDJ:     K={ind.k:.2f} D={ind.d:.2f} J={ind.j:.2f}")
    print(f"  Volume trend: {ind.volume_trend.value} (5-bar avg {ind.volume_avg5:,.0f})")
    if taiwan:
        print(f"  Foreign 5-bar net: {to_lots(snap.foreign_net_5):,} lots")
        print(f"  Trust 5-bar net:   {to_lots(snap.trust_net_5):,} lots")
    print(f"  Golden buy point: {'YES' if snap.checks.golden_buy_point else 'NO'}")
    if snap.profit_pct is not None:
        print(f"  Position P/L: {snap.profit_pct:+.2f}%")

    print(f"\nLast {len(snap.window)} bars:")
    for item in snap.window:
        b = item.bar
        print(f"  {b.label}  O={b.open:.2f} H={b.high:.2f} L={b.low:.2f} C={b.close:.2f} V={b.volume:,}")


if __name__ == "__main__":
    main()
