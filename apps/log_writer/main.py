from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any, TextIO

from core.config import Config, load_config
from core.contracts import Level
from core.logging import setup_diagnostics
from logsink.logger import create_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Append stdin lines to a rotating log file"
    )
    parser.add_argument(
        "--config-dir",
        default=".",
        help="Directory holding config/base.yaml (default: current directory)",
    )
    parser.add_argument("--path", help="Override the log file path")
    parser.add_argument("--max-file-size", type=int, help="Rotate at this many bytes (<= 0: never)")
    parser.add_argument("--backup-count", type=int, help="Number of rotated files to keep")
    parser.add_argument(
        "--per-write",
        action="store_true",
        help="Open and close the file on every write instead of keeping it open",
    )
    parser.add_argument("--level", help="Minimum level written (default: from config)")
    parser.add_argument(
        "--message-level",
        default="INFO",
        help="Level assigned to each stdin line (default: INFO)",
    )
    parser.add_argument("--no-console", action="store_true", help="Do not echo to stdout")
    return parser


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    sink_updates: dict[str, Any] = {}
    if args.path:
        sink_updates["path"] = Path(args.path)
    if args.max_file_size is not None:
        sink_updates["max_file_size"] = args.max_file_size
    if args.backup_count is not None:
        sink_updates["backup_count"] = args.backup_count
    if args.per_write:
        sink_updates["persistent_handle"] = False

    data = config.model_dump()
    data["sink"].update(sink_updates)
    if args.level:
        data["logging"]["level"] = args.level
    if args.no_console:
        data["logging"]["console"] = False
    return Config.model_validate(data)


async def main(argv: Sequence[str] | None = None, stdin: TextIO | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = apply_overrides(load_config(Path(args.config_dir)), args)
    message_level = Level.from_name(args.message_level)

    log = setup_diagnostics(
        config.logging.diagnostics_level, json=config.logging.diagnostics_json
    )
    logger = create_logger(config, log=log)
    source = stdin or sys.stdin

    try:
        while True:
            line = await asyncio.to_thread(source.readline)
            if not line:
                break
            logger.log(message_level, line.rstrip("\n"))
    except KeyboardInterrupt:
        log.info("log_writer.interrupted")
    finally:
        await logger.close()

    return 0


def run() -> None:
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":
    run()
