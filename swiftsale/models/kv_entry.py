"""Key-value entry model: the persistence substrate of the document store."""
from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from swiftsale.database import Base


class KeyValueEntry(Base):
    """One storage key (a whole collection, a sentinel or an id sequence)."""

    __tablename__ = 'kv_store'

    key = Column(String(128), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<KeyValueEntry(key='{self.key}', size={len(self.value or '')})>"
