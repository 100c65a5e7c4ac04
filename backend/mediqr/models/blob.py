from sqlalchemy import Column, String, Text
from .base import Base, TimestampMixin


class StoredBlob(Base, TimestampMixin):
    __tablename__ = "blobs"

    key = Column(String(100), primary_key=True)
    # Serialized JSON document (a collection or the session identity)
    value = Column(Text, nullable=False)
