"""C2 Column Service - board layout and column ordering."""
from src.c2_column_service.column_service import ColumnService, column_to_dict

__all__ = ["ColumnService", "column_to_dict"]
