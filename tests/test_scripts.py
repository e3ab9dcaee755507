"""Tests for the maintenance scripts."""

from pathlib import Path

from sqlalchemy import update

from scripts.check_positions import find_violations, repair
from scripts.seed_board import seed_demo_board
from scripts.validate_architecture import validate_layer_dependencies
from src.c1_board_models import BoardColumn, Card
from src.c2_column_service import ColumnService

PROJECT_ROOT = Path(__file__).parent.parent


def test_seed_demo_board(db_manager):
    ids = seed_demo_board(db_manager)

    layout = ColumnService(db_manager).list_board(ids["editor"], ids["project"])
    assert [c["name"] for c in layout["columns"]] == ["To Do", "In Progress", "Review", "Done"]
    assert [card["position"] for card in layout["columns"][0]["cards"]] == [0, 1, 2]
    assert find_violations(db_manager, include_columns=True) == {"cards": [], "columns": []}


def test_check_and_repair(db_manager, board):
    with db_manager.transaction() as db:
        db.execute(update(Card).where(Card.id == board.y).values(position=7))
        db.execute(update(BoardColumn).where(BoardColumn.id == board.c).values(position=1))

    violations = find_violations(db_manager, include_columns=True)
    assert violations == {"cards": [board.a], "columns": [board.project]}

    assert repair(db_manager, violations) > 0
    assert find_violations(db_manager, include_columns=True) == {"cards": [], "columns": []}


def test_layer_dependencies_hold():
    success, violations = validate_layer_dependencies(PROJECT_ROOT / "src")

    assert success, violations
