from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class Presentation(str, enum.Enum):
    """How the source presents a price"""
    COMMERCIAL = "COMERCIAL"
    CALCULATED = "CALCULADO"


class IngestStatus(str, enum.Enum):
    """Ingestion run status"""
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


class IngestMode(str, enum.Enum):
    """Which windows a run covers"""
    INCREMENTAL = "incremental"
    HISTORIC = "historic"


def enum_values(enum_class):
    """Persist enum members by value (e.g. "COMERCIAL", "incremental") rather than by name"""
    return [member.value for member in enum_class]
