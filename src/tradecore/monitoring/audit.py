"""Append-only JSON-lines audit trail for backtest runs."""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from tradecore.simulator import BacktestResult, ClosedTrade


def trade_payload(trade: ClosedTrade) -> dict[str, Any]:
    payload = asdict(trade)
    payload["direction"] = trade.direction.value
    return payload


class AuditLog:
    def __init__(self, path: str | Path, run_id: str | None = None, config_hash: str | None = None) -> None:
        self.path = Path(path)
        self.run_id = run_id
        self.config_hash = config_hash
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def log(self, event: str, payload: dict[str, Any]) -> None:
        record = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "run_id": self.run_id,
            "config_hash": self.config_hash,
            "event": event,
            "payload": payload,
        }
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record, default=str))
            handle.write("\n")

    def log_trades(self, trades: Iterable[ClosedTrade]) -> int:
        count = 0
        for trade in trades:
            self.log("trade_closed", trade_payload(trade))
            count += 1
        return count

    def log_result(self, result: BacktestResult) -> None:
        self.log(
            "backtest_finished",
            {
                "symbol": result.symbol,
                "bars_processed": result.bars_processed,
                "statistics": asdict(result.statistics),
                "blocked_signals": result.blocked_signals,
            },
        )

    def read(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        with self.path.open("r", encoding="utf-8") as handle:
            return [json.loads(line) for line in handle if line.strip()]
