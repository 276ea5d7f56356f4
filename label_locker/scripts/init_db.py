"""Initialize the label SQLite database."""
from __future__ import annotations

import argparse
import logging
from typing import Optional, Sequence

from label_locker.locker_lib import config as config_mod
from label_locker.locker_lib import db as db_mod
from label_locker.locker_lib import log as log_mod

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Initialize label SQLite database")
    parser.add_argument(
        "--db",
        type=str,
        default=None,
        help="Path to labels.sqlite (defaults to $LABEL_LOCKER_HOME, var/ in a checkout, or ~/.label_locker)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait on a busy database",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    log_mod.setup_logging(args.log_level)
    cfg = config_mod.load_config(args.db, busy_timeout=args.timeout)
    logger.info("Initializing DB at %s", cfg.db_path)
    conn = db_mod.connect(cfg.db_path, timeout=cfg.busy_timeout)
    try:
        db_mod.ensure_schema(conn)
    finally:
        conn.close()
    logger.info("DB ready")


if __name__ == "__main__":  # pragma: no cover
    main()
