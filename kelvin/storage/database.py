"""SQLite database for the history of light transitions."""

from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

from loguru import logger
from sqlalchemy import Column, DateTime, Integer, String, create_engine, func
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from kelvin.models import LightEvent

Base = declarative_base()


class LightEventRecord(Base):
    """Database model for light events."""

    __tablename__ = "light_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    light_id = Column(String(50), nullable=False, index=True)
    light_name = Column(String(100))
    timestamp = Column(DateTime, nullable=False, index=True)
    kind = Column(String(50), nullable=False, index=True)
    old_value = Column(String(200))
    new_value = Column(String(200))

    # Time context
    weekday = Column(Integer)  # 0=Monday, 6=Sunday
    hour = Column(Integer)
    minute = Column(Integer)

    def __repr__(self):
        return f"<LightEvent {self.light_name} {self.kind} @ {self.timestamp}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "light_id": self.light_id,
            "light_name": self.light_name,
            "timestamp": self.timestamp.isoformat(),
            "kind": self.kind,
            "old_value": self.old_value,
            "new_value": self.new_value,
        }


class Database:
    """Handles all database operations."""

    def __init__(self, db_path: str = "data/kelvin.db"):
        """
        Initialize database connection.

        Args:
            db_path: Path to SQLite database file, or ":memory:".
        """
        engine_options = {}
        if db_path == ":memory:":
            # In-memory databases must share a single connection across threads
            self.db_path = None
            url = "sqlite://"
            engine_options["poolclass"] = StaticPool
        else:
            self.db_path = Path(db_path)
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            url = f"sqlite:///{self.db_path}"

        self.engine = create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
            **engine_options,
        )
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

        # Create tables
        Base.metadata.create_all(self.engine)
        logger.info(f"Database initialized at {self.db_path or 'memory'}")

    def get_session(self) -> Session:
        """Get a new database session."""
        return self.SessionLocal()

    def add_event(self, event: LightEvent) -> LightEventRecord:
        """
        Record a light event.

        Args:
            event: Event emitted by a light.

        Returns:
            The created event record.
        """
        ts = event.timestamp
        record = LightEventRecord(
            light_id=event.light_id,
            light_name=event.light_name,
            timestamp=ts,
            kind=event.kind.value,
            old_value=event.old_value,
            new_value=event.new_value,
            weekday=ts.weekday(),
            hour=ts.hour,
            minute=ts.minute,
        )

        with self.get_session() as session:
            session.add(record)
            session.commit()
            session.refresh(record)
            logger.debug(f"Recorded event: {record}")
            return record

    def get_events(
        self,
        light_id: Optional[str] = None,
        kind: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 1000,
    ) -> list[LightEventRecord]:
        """
        Query light events with filters.

        Args:
            light_id: Filter by light ID
            kind: Filter by event kind
            start_date: Start of date range
            end_date: End of date range
            limit: Maximum number of results

        Returns:
            List of matching event records, newest first.
        """
        with self.get_session() as session:
            query = session.query(LightEventRecord)

            if light_id:
                query = query.filter(LightEventRecord.light_id == light_id)
            if kind:
                query = query.filter(LightEventRecord.kind == kind)
            if start_date:
                query = query.filter(LightEventRecord.timestamp >= start_date)
            if end_date:
                query = query.filter(LightEventRecord.timestamp <= end_date)

            return (
                query.order_by(LightEventRecord.timestamp.desc(), LightEventRecord.id.desc())
                .limit(limit)
                .all()
            )

    def cleanup_old_events(self, days: int = 30) -> int:
        """
        Remove events older than specified days.

        Args:
            days: Delete events older than this many days.

        Returns:
            Number of deleted events.
        """
        cutoff = datetime.now() - timedelta(days=days)

        with self.get_session() as session:
            deleted = (
                session.query(LightEventRecord)
                .filter(LightEventRecord.timestamp < cutoff)
                .delete()
            )
            session.commit()
            if deleted:
                logger.info(f"Cleaned up {deleted} old events")
            return deleted

    def get_statistics(self) -> dict:
        """Get database statistics."""
        with self.get_session() as session:
            total_events = session.query(LightEventRecord).count()
            by_kind = dict(
                session.query(LightEventRecord.kind, func.count(LightEventRecord.id))
                .group_by(LightEventRecord.kind)
                .all()
            )

            oldest = (
                session.query(LightEventRecord)
                .order_by(LightEventRecord.timestamp.asc())
                .first()
            )
            newest = (
                session.query(LightEventRecord)
                .order_by(LightEventRecord.timestamp.desc())
                .first()
            )

            return {
                "total_events": total_events,
                "events_by_kind": by_kind,
                "oldest_event": oldest.timestamp if oldest else None,
                "newest_event": newest.timestamp if newest else None,
                "database_path": str(self.db_path) if self.db_path else ":memory:",
            }
