"""
Key/value blob store backed by SQLAlchemy.

Each key holds one serialized JSON document: a whole collection, or the
logged-in session identity. The store knows nothing about the documents.
"""
import logging
from typing import List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ..core.config import settings
from ..core.exceptions import StorageError
from ..models.base import Base, create_db_engine
from ..models.blob import StoredBlob

logger = logging.getLogger(__name__)


class BlobStore:
    """Durable ``key -> text`` storage.

    Pass ``database_url="sqlite:///:memory:"`` for a throwaway store; the
    default is ``settings.DATABASE_URL``.
    """

    def __init__(self, database_url: Optional[str] = None, engine: Optional[Engine] = None):
        self.engine = engine or create_db_engine(database_url or settings.DATABASE_URL)
        Base.metadata.create_all(bind=self.engine)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def load(self, key: str) -> Optional[str]:
        """Return the stored text, or ``None`` when the key was never saved."""
        try:
            with self.SessionLocal() as db:
                blob = db.get(StoredBlob, key)
                return blob.value if blob is not None else None
        except SQLAlchemyError as exc:
            raise StorageError(key, f"load failed: {exc}") from exc

    def save(self, key: str, raw: str) -> None:
        """Insert or overwrite ``key``. Raises ``StorageError`` on failure."""
        try:
            with self.SessionLocal() as db:
                blob = db.get(StoredBlob, key)
                if blob is None:
                    db.add(StoredBlob(key=key, value=raw))
                else:
                    blob.value = raw
                db.commit()
        except SQLAlchemyError as exc:
            raise StorageError(key, f"save failed: {exc}") from exc
        logger.debug("Saved %d bytes under %s", len(raw), key)

    def remove(self, key: str) -> bool:
        """Delete ``key``; returns False when it was not stored."""
        try:
            with self.SessionLocal() as db:
                blob = db.get(StoredBlob, key)
                if blob is None:
                    return False
                db.delete(blob)
                db.commit()
                return True
        except SQLAlchemyError as exc:
            raise StorageError(key, f"remove failed: {exc}") from exc

    def keys(self) -> List[str]:
        try:
            with self.SessionLocal() as db:
                return [row.key for row in db.query(StoredBlob).order_by(StoredBlob.key).all()]
        except SQLAlchemyError as exc:
            raise StorageError("*", f"listing failed: {exc}") from exc

    def dispose(self) -> None:
        """Release pooled connections at shutdown."""
        self.engine.dispose()
