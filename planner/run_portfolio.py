import logging
import os
import sys

from dotenv import load_dotenv

from gardener.engine import GardenEngine
from gardener.strategies.greedy_allocator import GardenParams
from planner.build_snapshot import build_snapshot
from planner.report import summary_text, write_frames

log = logging.getLogger(__name__)


def params_from_env() -> GardenParams:
    params = GardenParams()
    params.WHAT_IF = os.getenv("GARDEN_WHAT_IF", "false").strip().lower() in ("1", "true", "yes")
    attempts = os.getenv("GARDEN_ATTEMPTS")
    if attempts:
        params.FIXED_ATTEMPTS = int(attempts)
    return params


def main(argv: list[str]) -> int:
    load_dotenv()
    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
        format="%(asctime)s %(levelname)s :: %(message)s",
    )

    data_dir = argv[1] if len(argv) > 1 else os.getenv("GARDEN_DATA_DIR", "planner/data/sample")
    output_dir = argv[2] if len(argv) > 2 else os.getenv("GARDEN_OUTPUT_DIR", "output")

    snapshot = build_snapshot(data_dir)
    result = GardenEngine(params_from_env()).run(snapshot)
    for path in write_frames(result, output_dir):
        log.info(f"Wrote {path}")
    print(summary_text(result))
    return 0


def cli() -> None:
    sys.exit(main(sys.argv))


if __name__ == "__main__":
    cli()
