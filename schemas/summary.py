"""
Ingestion run summary schema
"""

from pydantic import BaseModel, Field
from typing import Dict, Optional
from datetime import datetime
from models.base import IngestStatus, IngestMode


class IngestionSummary(BaseModel):
    """Counters for one orchestrator run"""

    mode: IngestMode = IngestMode.INCREMENTAL
    status: IngestStatus = IngestStatus.RUNNING

    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    windows_processed: int = 0
    tasks_processed: int = 0
    rows_seen: int = 0
    records_ingested: int = 0
    rows_rejected: int = 0
    duplicates_skipped: int = 0
    markets_created: int = 0
    rejection_reasons: Dict[str, int] = Field(default_factory=dict)

    error_message: Optional[str] = None

    def reject(self, reason: str):
        self.rows_rejected += 1
        self.rejection_reasons[reason] = self.rejection_reasons.get(reason, 0) + 1

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None
