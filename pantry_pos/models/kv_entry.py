"""
Key-value entry model backing the persisted POS collections.
"""
from sqlalchemy import Column, String, Text, DateTime, func

from pantry_pos.db.base import Base


class KeyValueEntry(Base):
    """A single named string blob (e.g. ``tp_products`` -> JSON array)."""
    __tablename__ = "kv_entries"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
