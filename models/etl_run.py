from sqlalchemy import Column, BigInteger, String, Enum, DateTime, Float, Integer, Text, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
import uuid
from models.base import Base, IngestStatus, IngestMode, enum_values


class IngestionRun(Base):
    """
    Audit row written at the end of every ingestion run.

    Purpose:
    - Audit trail of all runs, successful or aborted
    - Row counters and the rejection-reason histogram
    - Error tracking for aborted runs
    """
    __tablename__ = "ingestion_runs"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    run_id = Column(UUID(as_uuid=True), default=uuid.uuid4, unique=True, nullable=False, index=True)

    mode = Column(Enum(IngestMode, name="ingest_mode", values_callable=enum_values), nullable=False)
    status = Column(
        Enum(IngestStatus, name="ingest_status", values_callable=enum_values),
        nullable=False,
        index=True
    )

    # Timestamps
    started_at = Column(DateTime(timezone=True), nullable=False, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    duration_seconds = Column(Float, nullable=True)

    # Statistics
    windows_processed = Column(Integer, default=0)
    tasks_processed = Column(Integer, default=0)
    rows_seen = Column(Integer, default=0)
    records_ingested = Column(Integer, default=0)
    rows_rejected = Column(Integer, default=0)
    duplicates_skipped = Column(Integer, default=0)
    markets_created = Column(Integer, default=0)
    rejection_reasons = Column(JSONB, nullable=True)

    # Error tracking
    error_message = Column(Text, nullable=True)
    error_details = Column(JSONB, nullable=True)

    __table_args__ = (
        Index("idx_ingestion_run_status", "status", "started_at"),
    )
