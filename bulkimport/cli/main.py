from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from contextlib import ExitStack
from pathlib import Path

from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from ..errors import StoreError
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import log_summary, set_debug, setup_logging
from ..models.batch_result import BatchResult, RowOutcome
from ..models.config_models import ImportConfig
from ..models.import_kind import ImportKind
from ..models.row_data import RowData
from ..services.driver import run_batch
from ..services.progress import ProgressTracker
from ..services.summary import render_summary_line
from ..sheets.reader import SheetReadError, read_frame, read_rows
from ..store.base import ImportContext, ImportStore
from ..store.memory import InMemoryStore
from ..store.notify import LogInvitationNotifier
from ..store.postgres import connect, resolve_dsn

"""CLI entrypoint.

python -m bulkimport.cli --kind customer --file customers.xlsx [--config PATH] [--debug]

Flow: .env -> config -> read rows -> choose store (PostgreSQL or in-memory mock) ->
run the batch with a progress bar -> flush error log -> SUMMARY line -> exit code.
"""

__all__ = [
    "EXIT_SUCCESS_ALL",
    "EXIT_PARTIAL_FAILURE",
    "EXIT_FATAL",
    "main",
]

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

INSPECT_SAMPLE_ROWS = 3


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv.

    override=True により .env の値で既存環境変数を上書きし、PostgreSQL 接続情報を最優先化。
    """
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Spreadsheet -> organization records bulk importer")
    p.add_argument("--kind", help="team_member | customer | service | material")
    p.add_argument("--file", type=Path, help="Upload file (.csv / .xlsx)")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Config YAML path")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print headers & first rows then exit")
    return p.parse_args(argv)


def _inspect_data(path: Path) -> int:
    df = read_frame(path)
    print(f"FILE: {path.name} rows={len(df)}")
    print(f"  cols={list(df.columns)}")
    sample = df.head(INSPECT_SAMPLE_ROWS).to_dict(orient="records")
    # datetime を含むセルは isoformat で表示
    safe_rows = [
        {k: (v.isoformat() if hasattr(v, "isoformat") else v) for k, v in r.items()} for r in sample
    ]
    print("  sample_rows=", safe_rows)
    return EXIT_SUCCESS_ALL


def _select_store(cfg: ImportConfig, stack: ExitStack, logger: logging.Logger) -> tuple[ImportStore, str]:
    # DB 接続制御: テスト等で完全に無効化したい場合 DISABLE_DB_CONNECT=1
    if os.getenv("DISABLE_DB_CONNECT") == "1":
        logger.debug("DB connect disabled via DISABLE_DB_CONNECT=1 -> mock mode")
        return InMemoryStore(), "mock"
    try:
        store = stack.enter_context(connect(resolve_dsn(cfg.database)))
    except StoreError as e:
        logger.info(f"DB connection failed -> fallback to mock mode: {e}")
        return InMemoryStore(), "mock"
    return store, "live"


def _run(kind: ImportKind, rows: list[RowData], cfg: ImportConfig, store: ImportStore) -> BatchResult:
    context = ImportContext(
        organization_id=cfg.organization_id,
        invited_by=cfg.invited_by,
        importer_role=cfg.importer_role,
        organization_name=cfg.organization_name,
    )
    with ProgressTracker(len(rows), description=f"Importing {kind.label}") as tracker:
        result = asyncio.run(
            run_batch(
                rows,
                kind,
                tracker,
                store=store,
                context=context,
                settings=cfg.engine,
                notifier=LogInvitationNotifier(),
            )
        )
        tracker.set_postfix(failed=result.failed, duplicates=result.duplicates)
    return result


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみシステム引数を読む ([] は「引数なし」として扱う)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)

    if args.file is None:
        logger.error("--file is required")
        return EXIT_FATAL
    if not args.file.exists():
        logger.error(f"file not found: {args.file}")
        return EXIT_FATAL

    if args.inspect_data:
        try:
            return _inspect_data(args.file)
        except SheetReadError as e:
            logger.error(f"inspect: {e}")
            return EXIT_FATAL

    if args.kind is None:
        logger.error("--kind is required")
        return EXIT_FATAL
    try:
        kind = ImportKind.parse(args.kind)
    except ValueError as e:
        logger.error(str(e))
        return EXIT_FATAL

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    try:
        rows = read_rows(args.file)
    except SheetReadError as e:
        logger.error(f"read: {e}")
        return EXIT_FATAL

    logger.info(f"Importing {len(rows)} {kind.label} from: {args.file}")

    with ExitStack() as stack:
        store, db_mode = _select_store(cfg, stack, logger)
        result = _run(kind, rows, cfg, store)

    logger.info(f"mode={db_mode} organization={cfg.organization_id}")

    error_log = ErrorLogBuffer()
    if error_log.extend_from_result(result, file=args.file.name):
        for entry in result.errors:
            if entry.outcome is RowOutcome.FAILED:
                logger.warning(f"row={entry.row} {entry.identifier}: {entry.message}")
            elif entry.outcome is RowOutcome.INFO:
                logger.info(f"{entry.identifier}: {entry.message}")
        log_path = error_log.flush()
        logger.info(f"error log written: {log_path}")

    # log_summary が "SUMMARY " を付けるので先頭を除去
    summary_line = render_summary_line(result)
    log_summary(summary_line.removeprefix("SUMMARY "))

    if result.has_failures:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL
