"""
Data model for fleet safety reports.

Records are parsed rows of one export, aggregates fold records per vehicle.
All models are frozen: once the pipeline hands them out they are read-only.
"""

from enum import Enum
from typing import Dict, Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Rows of cell strings, as produced by the table loader
RawTable = Tuple[Tuple[str, ...], ...]


class ReportKind(str, Enum):
    OVER_SPEED = 'over_speed'
    IDLING = 'idling'
    SUDDEN_BRAKE = 'sudden_brake'
    HARSH_START = 'harsh_start'
    FORBIDDEN_PARKING = 'forbidden_parking'

    @property
    def has_duration(self) -> bool:
        return self in (ReportKind.OVER_SPEED, ReportKind.IDLING, ReportKind.FORBIDDEN_PARKING)

    @property
    def has_detail(self) -> bool:
        return self in (ReportKind.SUDDEN_BRAKE, ReportKind.HARSH_START)


# Default ranking key per kind: event kinds rank by count, the rest by time
DEFAULT_SORT_KEYS = {
    ReportKind.OVER_SPEED: 'duration',
    ReportKind.IDLING: 'duration',
    ReportKind.SUDDEN_BRAKE: 'count',
    ReportKind.HARSH_START: 'count',
    ReportKind.FORBIDDEN_PARKING: 'duration',
}


class Record(BaseModel):
    """One parsed data row of an export."""

    model_config = ConfigDict(frozen=True)

    kind: ReportKind
    vehicle_id: str
    duration_seconds: int = Field(default=0, ge=0)
    detail: Optional[str] = None
    station: Optional[str] = None

    @field_validator('vehicle_id')
    @classmethod
    def _vehicle_id_not_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError('vehicle_id must not be empty')
        return value


class Aggregate(BaseModel):
    """All records of one vehicle within one report kind."""

    model_config = ConfigDict(frozen=True)

    vehicle_id: str
    count: int = Field(ge=1)
    total_duration_seconds: int = Field(default=0, ge=0)
    # Last station seen for the vehicle (ForbiddenParking only)
    last_station: Optional[str] = None


RankedList = Tuple[Aggregate, ...]


class ReportResult(BaseModel):
    """
    Everything the report assembler needs for one report kind.

    Attributes:
        kind: Report kind
        source_path: File the records came from (None when unavailable)
        header_found: Whether the header marker row was located
        total_records: Number of extracted records before ranking
        ranking: Aggregates sorted by the kind's key and truncated to top-N
        listing: Individual records for direct display (event kinds and
            ForbiddenParking), capped by the display limit
        chart: Ranking used for the ForbiddenParking chart (summed duration)
        converted_csv: BOM-prefixed CSV copy of the source, if written
    """

    model_config = ConfigDict(frozen=True)

    kind: ReportKind
    source_path: Optional[str] = None
    header_found: bool = False
    total_records: int = 0
    ranking: RankedList = ()
    listing: Tuple[Record, ...] = ()
    chart: RankedList = ()
    converted_csv: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.total_records == 0

    def to_rows(self) -> List[Dict[str, Any]]:
        """Flat ranking rows for CSV export."""
        rows = []
        for rank, item in enumerate(self.ranking, 1):
            rows.append({
                'rank': rank,
                'vehicle_id': item.vehicle_id,
                'count': item.count,
                'total_duration_seconds': item.total_duration_seconds,
                'last_station': item.last_station or '',
            })
        return rows
