from __future__ import annotations

import argparse
import csv
import json
import logging
from dataclasses import asdict
from pathlib import Path

from tradecore.config import load_config
from tradecore.market import Tick, TickSide
from tradecore.momentum import TickDeltaAnalyzer


def main() -> None:
    parser = argparse.ArgumentParser(description="Replay trade ticks through the tick-delta detector.")
    parser.add_argument("--config", required=True)
    parser.add_argument("--ticks", required=True, help="CSV with timestamp,price,size,side")
    parser.add_argument("--output", required=True)
    args = parser.parse_args()

    config = load_config(args.config)
    if config.momentum is None:
        raise SystemExit("Config has no momentum section")
    logging.basicConfig(level=getattr(logging, config.monitoring.log_level, logging.INFO))

    analyzer = TickDeltaAnalyzer(config.momentum)
    spikes = []
    last_spike_at = None
    with Path(args.ticks).open("r", encoding="utf-8", newline="") as handle:
        for row in csv.DictReader(handle):
            tick = Tick(
                timestamp=int(row["timestamp"]),
                price=float(row["price"]),
                size=float(row["size"]),
                side=TickSide(row["side"].upper()),
            )
            analyzer.add_tick(tick)
            # one report per detection window
            if last_spike_at is not None and tick.timestamp - last_spike_at < config.momentum.detection_window_ms:
                continue
            spike = analyzer.detect_spike()
            if spike is not None:
                last_spike_at = tick.timestamp
                payload = asdict(spike)
                payload["direction"] = spike.direction.value
                spikes.append(payload)

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps({"spikes": spikes}, indent=2), encoding="utf-8")
    print(f"Wrote {output_path}: {len(spikes)} spikes")


if __name__ == "__main__":
    main()
