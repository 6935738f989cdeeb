"""
Persistent audit store.
Uses SQLAlchemy ORM; SQLite for local runs, any SQLAlchemy URL (e.g. PostgreSQL) in production.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import JSON, Column, DateTime, Integer, String, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.sql import func

from seo_scout.errors import PersistenceError
from seo_scout.logger import logger

Base = declarative_base()


class AuditRecord(Base):
    __tablename__ = "seoaudit"

    id = Column(Integer, primary_key=True, autoincrement=True)
    site_url = Column(String(2048), nullable=False, index=True)
    audit_data = Column(JSON, nullable=False)
    view_option = Column(String(50))
    created_at = Column(DateTime, default=func.now())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "site_url": self.site_url,
            "audit_data": self.audit_data,
            "view_option": self.view_option,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class AuditStore:
    """Saves, lists and edits persisted audits. Every failure surfaces as PersistenceError."""

    def __init__(self, database_url: str) -> None:
        try:
            self.engine = create_engine(
                database_url,
                echo=False,
                connect_args={"check_same_thread": False} if "sqlite" in database_url else {},
            )
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"cannot open audit store: {exc}") from exc
        self._sessions = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self._sessions()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise PersistenceError(str(exc)) from exc
        finally:
            session.close()

    def save(self, site_url: str, audit_data: Dict[str, Any]) -> int:
        with self._session() as session:
            record = AuditRecord(site_url=site_url, audit_data=audit_data)
            session.add(record)
            session.flush()
            record_id = int(record.id)
        logger.debug("Stored audit %d for %s", record_id, site_url)
        return record_id

    def list_audits(self, site_url: Optional[str] = None, limit: int = 100) -> List[Dict[str, Any]]:
        """Stored audits, newest first, optionally for one URL."""
        with self._session() as session:
            query = session.query(AuditRecord)
            if site_url:
                query = query.filter(AuditRecord.site_url == site_url)
            rows = query.order_by(AuditRecord.created_at.desc(), AuditRecord.id.desc()).limit(limit).all()
            return [row.to_dict() for row in rows]

    def get(self, record_id: int) -> Optional[Dict[str, Any]]:
        with self._session() as session:
            row = session.get(AuditRecord, record_id)
            return row.to_dict() if row else None

    def delete(self, record_id: int) -> bool:
        with self._session() as session:
            row = session.get(AuditRecord, record_id)
            if row is None:
                return False
            session.delete(row)
            return True

    def update_view_option(self, record_id: int, view_option: Optional[str]) -> Optional[Dict[str, Any]]:
        """Set the dashboard view option; returns the updated row or None if absent."""
        with self._session() as session:
            row = session.get(AuditRecord, record_id)
            if row is None:
                return None
            row.view_option = view_option
            session.flush()
            return row.to_dict()

    def close(self) -> None:
        self.engine.dispose()
