"""Database base and declarative_base for Flowboard."""

from sqlalchemy.orm import declarative_base

Base = declarative_base()
