"""CLI for reserving and releasing labels in a shared SQLite database."""
from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Optional

import typer

from label_locker.locker_lib import config as config_mod, db as db_mod, log as log_mod
from label_locker.locker_lib.errors import StorageError
from label_locker.locker_lib.label_utils import decode_token, encode_token, normalize_label
from label_locker.locker_lib.models import LabelState
from label_locker.locker_lib.results import ErrorReason
from label_locker.locker_lib.service import LabelLockService
from label_locker.locker_lib.stores import SQLiteLabelStore

app = typer.Typer(add_completion=False, help="Reserve and release named labels.")

EXIT_CODES = {
    ErrorReason.VALIDATION: 2,
    ErrorReason.ALREADY_HELD: 3,
    ErrorReason.CONCURRENCY_CONFLICT: 4,
    ErrorReason.STORAGE: 5,
}

DB_OPTION = typer.Option(None, "--db", help="Path to labels.sqlite")
TIMEOUT_OPTION = typer.Option(None, "--timeout", help="Seconds to wait on a busy database", min=0)
LOG_LEVEL_OPTION = typer.Option("WARNING", "--log-level", help="Logging level")


def _setup_logging(log_level: str) -> None:
    try:
        log_mod.setup_logging(log_level)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--log-level") from exc


def _load_config(db: Optional[Path], timeout: Optional[float]) -> config_mod.LockerConfig:
    try:
        return config_mod.load_config(db, busy_timeout=timeout)
    except OSError as exc:
        _fail(ErrorReason.STORAGE, f"Cannot prepare label database directory: {exc}")


def _open_service(db: Optional[Path], timeout: Optional[float], log_level: str) -> LabelLockService:
    _setup_logging(log_level)
    cfg = _load_config(db, timeout)
    try:
        store = SQLiteLabelStore(cfg.db_path, timeout=cfg.busy_timeout)
    except StorageError as exc:
        _fail(ErrorReason.STORAGE, str(exc))
    return LabelLockService(store, logger=logging.getLogger("cli.labels"))


def _fail(reason: ErrorReason, message: Optional[str]) -> None:
    typer.echo(f"{reason.value}: {message}", err=True)
    raise typer.Exit(code=EXIT_CODES[reason])


@app.command()
def reserve(
    name: str = typer.Argument(..., help="Label to reserve"),
    db: Optional[Path] = DB_OPTION,
    timeout: Optional[float] = TIMEOUT_OPTION,
    log_level: str = LOG_LEVEL_OPTION,
) -> None:
    """Reserve a label and print its token."""
    service = _open_service(db, timeout, log_level)
    outcome = service.reserve(name)
    if not outcome.success:
        _fail(outcome.error_reason, outcome.message)
    typer.echo(encode_token(outcome.token))


@app.command()
def release(
    name: str = typer.Argument(..., help="Label to release"),
    token: str = typer.Option(..., "--token", help="Hex token printed by reserve"),
    db: Optional[Path] = DB_OPTION,
    timeout: Optional[float] = TIMEOUT_OPTION,
    log_level: str = LOG_LEVEL_OPTION,
) -> None:
    """Release a label held with TOKEN."""
    try:
        raw_token = decode_token(token)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--token") from exc
    service = _open_service(db, timeout, log_level)
    outcome = service.release(name, raw_token)
    if not outcome.success:
        _fail(outcome.error_reason, outcome.message)
    typer.echo(f"released {normalize_label(name)}")


@app.command()
def status(
    name: str = typer.Argument(..., help="Label to inspect"),
    db: Optional[Path] = DB_OPTION,
    timeout: Optional[float] = TIMEOUT_OPTION,
    log_level: str = LOG_LEVEL_OPTION,
) -> None:
    """Show the state and current token of a label."""
    service = _open_service(db, timeout, log_level)
    try:
        record = service.describe(name)
    except ValueError as exc:
        _fail(ErrorReason.VALIDATION, str(exc))
    except StorageError as exc:
        _fail(ErrorReason.STORAGE, str(exc))
    if record is None:
        typer.echo(f"Unknown label '{name}'.", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"{record.name}\t{record.state.value}\t{encode_token(record.version)}")


@app.command("list")
def list_labels(
    db: Optional[Path] = DB_OPTION,
    timeout: Optional[float] = TIMEOUT_OPTION,
    log_level: str = LOG_LEVEL_OPTION,
) -> None:
    """List every known label."""
    service = _open_service(db, timeout, log_level)
    try:
        records = service.labels()
    except StorageError as exc:
        _fail(ErrorReason.STORAGE, str(exc))
    for record in records:
        typer.echo(f"{record.name}\t{record.state.value}")
    reserved = sum(1 for record in records if record.state is LabelState.RESERVED)
    logging.getLogger("cli.labels").info("%d labels (%d reserved)", len(records), reserved)


@app.command("init-db")
def init_db(
    db: Optional[Path] = DB_OPTION,
    timeout: Optional[float] = TIMEOUT_OPTION,
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level"),
) -> None:
    """Create the labels table if it does not exist."""
    _setup_logging(log_level)
    cfg = _load_config(db, timeout)
    try:
        conn = db_mod.connect(cfg.db_path, timeout=cfg.busy_timeout)
        try:
            db_mod.ensure_schema(conn)
        finally:
            conn.close()
    except sqlite3.Error as exc:
        _fail(ErrorReason.STORAGE, f"Cannot initialize label database {cfg.db_path}: {exc}")
    typer.echo(f"Label database ready at {cfg.db_path}")


def run() -> None:  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    run()
