"""
SQLAlchemy models for Pantry POS.
"""
from pantry_pos.models.kv_entry import KeyValueEntry


__all__ = [
    "KeyValueEntry",
]
