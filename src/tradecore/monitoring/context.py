"""Identity of a single backtest run: config fingerprint and run id."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from tradecore.config import EngineConfig, compute_config_hash


@dataclass(frozen=True)
class RunContext:
    run_id: str
    config_name: str
    config_version: str
    symbol: str
    config_path: Path
    config_hash: str
    started_at: datetime

    def to_payload(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "config": f"{self.config_name}@{self.config_version}",
            "symbol": self.symbol,
            "config_path": str(self.config_path),
            "config_hash": self.config_hash,
            "started_at_utc": self.started_at.isoformat(),
        }


def create_run_context(
    config_path: str | Path,
    config: EngineConfig,
    run_id: Optional[str] = None,
) -> RunContext:
    """Run ids look like ``<prefix>-<symbol>-<UTC stamp>-<first 8 hash chars>``."""
    path = Path(config_path)
    config_hash = compute_config_hash(path)
    started_at = datetime.now(timezone.utc)
    if run_id is None:
        prefix = config.run_id_prefix or config.name
        stamp = started_at.strftime("%Y%m%dT%H%M%SZ")
        run_id = f"{prefix}-{config.backtest.symbol}-{stamp}-{config_hash[:8]}"
    return RunContext(
        run_id=run_id,
        config_name=config.name,
        config_version=config.version,
        symbol=config.backtest.symbol,
        config_path=path,
        config_hash=config_hash,
        started_at=started_at,
    )
