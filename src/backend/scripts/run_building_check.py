from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from datetime import datetime, timezone
from pathlib import Path


def _ensure_backend_on_path() -> None:
    backend_dir = Path(__file__).resolve().parents[1]
    if str(backend_dir) not in sys.path:
        sys.path.insert(0, str(backend_dir))


_ensure_backend_on_path()

from common.logging_config import setup_logging  # noqa: E402
from common.rules_engine.config import RulesConfig, load_rules_config  # noqa: E402
from common.rules_engine.models import CheckResult  # noqa: E402
from common.rules_engine.rules import build_registry  # noqa: E402
from common.rules_engine.runner import DEFAULT_CHUNK_LIMIT, BatchRunner, summarize  # noqa: E402
from pipelines.building_store import FixturesBuildingStore, get_building_store  # noqa: E402


async def run_chunked(runner: BatchRunner, *, chunk_size: int = DEFAULT_CHUNK_LIMIT) -> list[CheckResult]:
    """Walk the whole dataset chunk by chunk, the way a scheduler drives /check-all."""
    results: list[CheckResult] = []
    offset = 0
    while True:
        chunk = await runner.check_chunk(offset, chunk_size)
        results.extend(chunk.results)
        if not chunk.has_more:
            return results
        offset = chunk.offset + chunk.limit


async def run_building_check(
    runner: BatchRunner,
    *,
    building_id: str | None = None,
    chunk_size: int = DEFAULT_CHUNK_LIMIT,
) -> list[CheckResult]:
    if building_id:
        result = await runner.check_one(building_id)
        if result is None:
            raise SystemExit(f"Building '{building_id}' not found.")
        return [result]
    return await run_chunked(runner, chunk_size=chunk_size)


def _write_markdown(results: list[CheckResult], out_path: Path) -> None:
    counts = summarize(results)
    lines = [
        "# Building Check",
        "",
        f"Generated at: {datetime.now(timezone.utc).isoformat()}",
        "",
        "## Totals",
        f"- buildings: {len(results)}",
        f"- findings: {counts['total_errors']}",
    ]
    for level, count in counts["by_level"].items():
        lines.append(f"- {level}: {count}")
    lines.append("")
    lines.append("## Results")
    for res in results:
        lines.append("")
        lines.append(f"### {res.building_id} (confidence {res.confidence.total}%)")
        if not res.errors:
            lines.append("- No findings.")
        for finding in res.errors:
            lines.append(f"- [{finding.level.value}] {finding.check_id}: {finding.description}")
    out_path.write_text("\n".join(lines), encoding="utf-8")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Run the building rule engine against a data source and write JSON/MD outputs."
    )
    parser.add_argument(
        "--fixtures",
        default=None,
        help="Path to a buildings JSON file (fixtures data source).",
    )
    parser.add_argument(
        "--building-id",
        default=None,
        help="Check a single building (e.g. 1080/2020/AA) instead of the whole dataset.",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=DEFAULT_CHUNK_LIMIT,
        help=f"Buildings per chunk (default: {DEFAULT_CHUNK_LIMIT}, capped at 100).",
    )
    parser.add_argument(
        "--rules-config",
        default=None,
        help="Rules config file (.json/.yaml).",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Output directory for report files (defaults to the current directory).",
    )
    parser.add_argument(
        "--no-geocode",
        action="store_true",
        help="Skip the Swisstopo address lookup (GEO-003 passes silently).",
    )
    args = parser.parse_args()

    setup_logging(os.getenv("LOG_LEVEL", "INFO"))
    data_source = os.getenv("BUILDING_STORE", "fixtures").strip().lower()

    output_dir = Path(args.output_dir).resolve() if args.output_dir else Path(".").resolve()
    output_dir.mkdir(parents=True, exist_ok=True)

    if data_source == "fixtures":
        if not args.fixtures:
            raise SystemExit("Fixtures mode requires --fixtures.")
        store = FixturesBuildingStore(Path(args.fixtures).resolve())
    else:
        store = get_building_store(data_source)

    rules_config = load_rules_config(Path(args.rules_config)) if args.rules_config else RulesConfig()
    geocoder = None
    if not args.no_geocode:
        from connectors.swisstopo import SwisstopoGeocoder

        geocoder = SwisstopoGeocoder()

    runner = BatchRunner(build_registry(), store, geocoder=geocoder, rules_config=rules_config)
    results = asyncio.run(
        run_building_check(runner, building_id=args.building_id, chunk_size=args.chunk_size)
    )

    out_json = output_dir / "building_check.json"
    out_md = output_dir / "building_check.md"
    out_json.write_text(
        json.dumps([r.model_dump(mode="json", by_alias=True) for r in results], indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    _write_markdown(results, out_md)
    print(f"Wrote {out_json}")
    print(f"Wrote {out_md}")

    if isinstance(store, FixturesBuildingStore):
        out_store = output_dir / "building_check_store.json"
        store.dump(out_store)
        print(f"Wrote {out_store}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
