from __future__ import annotations

import argparse
import json
from pathlib import Path

import redis  # type: ignore

from supplychain.contracts.validation import validate_envelope_dict


def load_valid_events(events_dir: Path) -> tuple[list[tuple[str, dict]], list[tuple[str, str]]]:
    """Split golden files into (name, event) pairs that validate and (name, error) pairs that don't."""

    valid: list[tuple[str, dict]] = []
    rejected: list[tuple[str, str]] = []
    for fp in sorted(events_dir.glob("*.json")):
        ev = json.loads(fp.read_text(encoding="utf-8"))
        try:
            validate_envelope_dict(ev)
        except ValueError as e:
            rejected.append((fp.name, str(e)))
        else:
            valid.append((fp.name, ev))
    return valid, rejected


def main() -> None:
    ap = argparse.ArgumentParser(description="Replay golden client events into Redis Streams.")
    ap.add_argument("--redis-url", required=True)
    ap.add_argument("--events-dir", default=str(Path("contracts") / "golden_events" / "v1"))
    ap.add_argument("--dry-run", action="store_true")
    args = ap.parse_args()

    valid, rejected = load_valid_events(Path(args.events_dir))
    if not valid and not rejected:
        raise SystemExit(f"no golden events found under {args.events_dir}")
    for name, error in rejected:
        print(f"[skip-invalid] {name}: {error}")

    r = None if args.dry_run else redis.Redis.from_url(args.redis_url, decode_responses=True)
    for name, ev in valid:
        if r is not None:
            r.xadd(ev["schema"], {"event": json.dumps(ev, ensure_ascii=False)})
        print(f"{'[dry-run] ' if r is None else ''}xadd {ev['schema']} <- {name}")
    print(f"done: {len(valid)} published, {len(rejected)} skipped")


if __name__ == "__main__":
    main()
