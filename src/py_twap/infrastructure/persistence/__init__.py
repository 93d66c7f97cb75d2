"""Persistence adapters: in-memory and async SQLAlchemy."""
