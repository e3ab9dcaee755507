"""Flowboard: kanban boards with dense, transactional card ordering."""

__version__ = "0.1.0"
