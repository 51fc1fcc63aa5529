"""Persistence adapters over the SQLAlchemy session."""

from app.repositories.users import UserRepository

__all__ = ["UserRepository"]
