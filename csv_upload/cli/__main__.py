from __future__ import annotations

import argparse
import asyncio
import importlib
import os
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from csv_upload.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from csv_upload.logging.error_log import ErrorLogBuffer
from csv_upload.logging.init import log_summary, set_debug, setup_logging
from csv_upload.models.parse_result import ParseResult
from csv_upload.services.progress import UploadProgressBar
from csv_upload.services.session import UploadSession, accept_files
from csv_upload.services.summary import render_summary_body

"""CLI entrypoint.

Flow:
- Load .env, then the YAML config (path from --config, CSV_UPLOAD_CONFIG or config/upload.yml)
- Select the given file(s) through the same single-file gate the session applies
- Parse + validate, print errors (first 9 + overflow) and the SUMMARY line
- With --transport module:function, hand the cleaned rows to that callable
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_BLOCKED = 2

CONFIG_ENV_VAR = "CSV_UPLOAD_CONFIG"


def _load_env_file(path: Path) -> None:
    """Load .env using python-dotenv (existing environment variables win)."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=False)


def _positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}") from None
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer: {value!r}")
    return n


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Validate a CSV file against a column schema and upload it")
    p.add_argument("files", nargs="*", type=Path, help="CSV file to upload (exactly one)")
    p.add_argument("--config", type=Path, default=None, help="YAML column config")
    p.add_argument("--max-rows", type=_positive_int, default=None, help="Only read the first N data rows")
    p.add_argument("--dedupe-on", default=None, help="Column input_name to deduplicate on")
    p.add_argument("--transport", default=None, help="Upload callable as module:function")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _load_transport(target: str) -> Callable[..., Any]:
    """Import an upload callable given as 'package.module:function'."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"transport must look like module:function, got {target!r}")
    module = importlib.import_module(module_name)
    fn = getattr(module, attr)
    if not callable(fn):
        raise ValueError(f"transport {target!r} is not callable")
    return fn


async def _run(
    session: UploadSession, files: list[Path], upload: bool
) -> tuple[ParseResult | None, bool | None]:
    """Pick + parse, then upload when asked and allowed.

    Returns:
        (parse result, upload outcome); outcome is None when no upload was tried
    """
    accepted, rejected = accept_files(files)
    result = await session.pick_files(accepted, rejected)
    if result is None or not upload or not session.can_upload:
        return result, None
    with UploadProgressBar(result.file_name) as bar:
        ok = await session.upload(progress_sink=bar)
        bar.finish(success=ok)
    return result, ok


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # Read sys.argv only when argv is None; tests pass []
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"))
    config_path = args.config or Path(os.getenv(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)
    try:
        options = load_config(config_path, max_rows=args.max_rows, dedupe_on=args.dedupe_on)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    transport = None
    if args.transport:
        try:
            transport = _load_transport(args.transport)
        except (ImportError, AttributeError, ValueError) as e:
            logger.error(f"transport: {e}")
            return EXIT_FATAL

    session = UploadSession(options, transport=transport)
    result, uploaded = asyncio.run(_run(session, list(args.files), upload=transport is not None))

    error_log = ErrorLogBuffer()
    error_log.extend(session.error_records)
    log_path = error_log.flush()

    if result is None:
        # Input selection or parse failure: nothing was validated
        for err in session.errors:
            logger.error(err)
        return EXIT_FATAL

    for note in result.notes:
        logger.info(note)
    for err in session.visible_errors:
        logger.error(err)
    if session.overflow_message:
        logger.error(session.overflow_message)
    if log_path is not None:
        logger.info(f"error log written to {log_path}")

    log_summary(render_summary_body(result))

    if uploaded is True:
        logger.info(f"uploaded {len(result.data)} rows from {result.file_name}")
        return EXIT_SUCCESS
    if uploaded is False:
        return EXIT_BLOCKED
    return EXIT_SUCCESS if session.can_upload else EXIT_BLOCKED


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
