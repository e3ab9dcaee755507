#!/usr/bin/env python3
"""Report columns whose card positions are not 0..count-1, and optionally repair them.

Usage example:

  python scripts/check_positions.py                # report only
  python scripts/check_positions.py --repair       # renumber broken columns
  python scripts/check_positions.py --columns      # check column order per project too

Exit code is 1 when violations remain.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List

sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select

from src.c1_board_models import BoardColumn, Project
from src.c1_database_session import DatabaseManager
from src.c2_reorder_service import card_reorderer, check_all, column_reorderer
from src.core.config import get_settings
from src.core.logging_config import configure_logging

logger = logging.getLogger(__name__)


def find_violations(db_manager: DatabaseManager, include_columns: bool = False) -> Dict[str, List[str]]:
    """Container ids with broken ordering, keyed by ``cards`` and ``columns``."""
    with db_manager.read_session() as db:
        column_ids = db.scalars(select(BoardColumn.id).order_by(BoardColumn.id)).all()
        result = {"cards": check_all(card_reorderer(db), column_ids), "columns": []}
        if include_columns:
            project_ids = db.scalars(select(Project.id).order_by(Project.id)).all()
            result["columns"] = check_all(column_reorderer(db), project_ids)
    return result


def repair(db_manager: DatabaseManager, violations: Dict[str, List[str]]) -> int:
    """Renumber every listed container; returns the number of rows rewritten."""
    changed = 0
    with db_manager.transaction() as db:
        cards = card_reorderer(db)
        for column_id in violations.get("cards", []):
            cards.lock_containers(column_id)
            changed += cards.renumber(column_id)
        columns = column_reorderer(db)
        for project_id in violations.get("columns", []):
            columns.lock_containers(project_id)
            changed += columns.renumber(project_id)
    return changed


def main() -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Check (and repair) board position ordering")
    parser.add_argument("--database-url", default=settings.database.url, help="SQLAlchemy database URL")
    parser.add_argument("--columns", action="store_true", help="Also check column order within projects")
    parser.add_argument("--repair", action="store_true", help="Renumber containers with broken ordering")
    args = parser.parse_args()

    configure_logging(settings.log_level)
    db_manager = DatabaseManager(args.database_url, busy_timeout_seconds=settings.database.busy_timeout_seconds)

    violations = find_violations(db_manager, include_columns=args.columns)
    total = len(violations["cards"]) + len(violations["columns"])
    if total == 0:
        print("[ok] All positions are contiguous")
        return 0

    for column_id in violations["cards"]:
        print(f"[broken] cards in column {column_id}")
    for project_id in violations["columns"]:
        print(f"[broken] columns in project {project_id}")

    if not args.repair:
        return 1

    changed = repair(db_manager, violations)
    print(f"[ok] Renumbered {changed} row(s)")
    remaining = find_violations(db_manager, include_columns=args.columns)
    return 1 if remaining["cards"] or remaining["columns"] else 0


if __name__ == "__main__":
    sys.exit(main())
