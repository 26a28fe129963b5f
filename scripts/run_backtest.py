from __future__ import annotations

import argparse
import csv
import json
import logging
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path

from tradecore.config import load_config, serialize_config, verify_config_lock
from tradecore.market import Candle
from tradecore.monitoring import AuditLog, create_run_context, trade_payload
from tradecore.rules import BlockingRulesGate
from tradecore.simulator import BacktestEngine

logger = logging.getLogger("run_backtest")


def _load_candles(path: Path) -> list[Candle]:
    with path.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.DictReader(handle)
        candles = [
            Candle(
                timestamp=int(row["timestamp"]),
                open=float(row["open"]),
                high=float(row["high"]),
                low=float(row["low"]),
                close=float(row["close"]),
                volume=float(row.get("volume") or 0.0),
            )
            for row in reader
        ]
    candles.sort(key=lambda candle: candle.timestamp)
    return candles


def main() -> None:
    parser = argparse.ArgumentParser(description="Replay historical candles through the backtest engine.")
    parser.add_argument("--config", required=True)
    parser.add_argument("--candles", required=True, help="CSV with timestamp,open,high,low,close,volume")
    parser.add_argument("--context", action="append", default=[], help="Higher-timeframe candle CSV")
    parser.add_argument("--output", required=True)
    parser.add_argument("--audit-log", help="Override monitoring.audit_log_path")
    parser.add_argument("--require-lock", action="store_true", help="Refuse to run unless the config lock matches")
    args = parser.parse_args()

    config_path = Path(args.config)
    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    config = load_config(config_path)
    logging.basicConfig(
        level=getattr(logging, config.monitoring.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.require_lock and not verify_config_lock(config_path):
        raise SystemExit(f"Config lock missing or stale for {config_path}")

    run = create_run_context(config_path, config)
    audit = None
    audit_path = args.audit_log or config.monitoring.audit_log_path
    if audit_path:
        audit = AuditLog(audit_path, run_id=run.run_id, config_hash=run.config_hash)
        audit.log("backtest_started", run.to_payload())

    candles = _load_candles(Path(args.candles))
    context = [_load_candles(Path(path)) for path in args.context]
    logger.info("Loaded %d candles and %d context series for %s", len(candles), len(context), run.symbol)

    engine = BacktestEngine(config.backtest, blocking_gate=BlockingRulesGate(config.blocking_rules))
    result = engine.run(candles, *context)

    if audit is not None:
        audit.log_trades(result.trades)
        audit.log_result(result)

    report = {
        "generated_at_utc": datetime.now(timezone.utc).isoformat(),
        "run": run.to_payload(),
        "config": serialize_config(config),
        "summary": asdict(result.statistics),
        "blocked_signals": result.blocked_signals,
        "trades": [trade_payload(trade) for trade in result.trades],
        "equity_curve": [asdict(point) for point in result.equity_curve],
    }
    output_path.write_text(json.dumps(report, indent=2, default=str), encoding="utf-8")
    print(
        f"Wrote {output_path}: {result.statistics.total_trades} trades, "
        f"net {result.statistics.net_pnl:.2f}, win rate {result.statistics.win_rate:.1f}%"
    )


if __name__ == "__main__":
    main()
