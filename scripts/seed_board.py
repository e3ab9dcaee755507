#!/usr/bin/env python3
"""Create the Flowboard tables and a demo board.

What this script does:
- Optionally drop every table first
- Create the tables
- Add a demo owner and editor, a team, and a project with the default columns
- Put a few cards in the first columns

Usage example:

  python scripts/seed_board.py --database-url sqlite:///data/flowboard.db --drop-db

The demo owner id is printed at the end; send it in the X-User-ID header.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.c1_board_models import Project, ProjectTeam, Team, TeamMember, User
from src.c1_database_session import DatabaseManager
from src.c2_card_service import CardService
from src.c2_column_service import ColumnService
from src.c2_permission_service import AllowAllPermissionChecker
from src.core.config import get_settings
from src.core.logging_config import configure_logging

logger = logging.getLogger(__name__)

DEMO_CARDS = {
    0: ["Write project brief", "Collect design references", "Set up CI"],
    1: ["Build login page", "Draft API schema"],
    2: ["Review onboarding copy"],
}


def seed_demo_board(db_manager: DatabaseManager) -> Dict[str, str]:
    """Insert the demo users, team, project, columns and cards.

    Returns:
        Ids of the created owner, editor, team and project
    """
    settings = get_settings()

    with db_manager.transaction() as db:
        owner = User(email="owner@example.com", name="Dana Owner")
        editor = User(email="editor@example.com", name="Eli Editor")
        db.add_all([owner, editor])
        db.flush()

        team = Team(name="Demo Team", slug="demo-team", created_by=owner.id)
        db.add(team)
        db.flush()
        db.add_all(
            [
                TeamMember(team_id=team.id, user_id=owner.id, role="owner"),
                TeamMember(team_id=team.id, user_id=editor.id, role="member"),
            ]
        )

        project = Project(team_id=team.id, owner_id=owner.id, name="Website Launch", slug="website-launch")
        db.add(project)
        db.flush()
        db.add(ProjectTeam(project_id=project.id, team_id=team.id, role="editor"))

        ids = {"owner": owner.id, "editor": editor.id, "team": team.id, "project": project.id}

    column_service = ColumnService(db_manager, board_config=settings.board)
    columns = column_service.create_default_columns(ids["project"])

    card_service = CardService(
        db_manager, board_config=settings.board, permission_factory=AllowAllPermissionChecker
    )
    for column_index, titles in DEMO_CARDS.items():
        if column_index >= len(columns):
            continue
        for title in titles:
            card_service.create_card(ids["owner"], columns[column_index]["id"], title)

    logger.info(f"Seeded project {ids['project']} with {len(columns)} columns")
    return ids


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Create tables and a demo Flowboard board")
    parser.add_argument("--database-url", default=settings.database.url, help="SQLAlchemy database URL")
    parser.add_argument("--drop-db", action="store_true", help="Drop all tables before seeding")
    args = parser.parse_args()

    configure_logging(settings.log_level)
    db_manager = DatabaseManager(args.database_url, busy_timeout_seconds=settings.database.busy_timeout_seconds)
    if args.drop_db:
        db_manager.drop_tables()
    db_manager.create_tables()

    ids = seed_demo_board(db_manager)
    print(f"[ok] Demo board ready: project {ids['project']}")
    print(f"     Owner id:  {ids['owner']}")
    print(f"     Editor id: {ids['editor']}")


if __name__ == "__main__":
    main()
