"""SQLAlchemy models for the timegrid database."""

from datetime import datetime, UTC
from sqlalchemy import Column, Integer, String, DateTime, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session

Base = declarative_base()


class TimesheetEntry(Base):
    """One persisted timesheet row.

    Cell values are stored as entered; rows with validation errors are saved
    too so in-progress work is not lost.
    """

    __tablename__ = "timesheet_entries"

    id = Column(Integer, primary_key=True)
    date = Column(String, nullable=False, default="")
    time_in = Column(String, nullable=False, default="")
    time_out = Column(String, nullable=False, default="")
    project = Column(String, nullable=False, default="")
    # NULL for both undecided and not-applicable; the cascade restores which
    tool = Column(String, nullable=True)
    charge_code = Column(String, nullable=True)
    task_description = Column(String, nullable=False, default="")
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Debounce timers and flush workers write from other threads
        connect_args["check_same_thread"] = False
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
