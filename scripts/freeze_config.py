from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional, Sequence

from tradecore.config import compute_config_hash, freeze_config, load_config, verify_config_lock


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Pin a backtest config to its sha256 lock file.")
    parser.add_argument("config")
    parser.add_argument("--check", action="store_true", help="Only compare the config against its existing lock")
    args = parser.parse_args(argv)

    path = Path(args.config)
    config = load_config(path)
    digest = compute_config_hash(path)[:12]
    if args.check:
        if not verify_config_lock(path):
            print(f"{config.name}@{config.version}: lock missing or stale (sha256 {digest})")
            return 1
        print(f"{config.name}@{config.version}: lock matches (sha256 {digest})")
        return 0

    lock_path = freeze_config(path)
    if not verify_config_lock(path, lock_path):
        print(f"{config.name}@{config.version}: config changed while freezing {lock_path}")
        return 1
    print(f"{config.name}@{config.version} pinned at sha256 {digest} -> {lock_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
