from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class SourceField(BaseModel):
    """One datum as delivered by SAP, by GWR and by a manual correction."""

    sap: str = ""
    gwr: str = ""
    korrektur: str = ""
    # Stored by ingestion (sap == gwr verbatim); never recomputed here.
    match: bool = False

    @field_validator("sap", "gwr", "korrektur", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value)

    @field_validator("match", mode="before")
    @classmethod
    def _coerce_match(cls, value: Any) -> Any:
        return False if value is None else value

    @property
    def has_data(self) -> bool:
        return bool(self.sap or self.gwr)

    @property
    def is_resolved(self) -> bool:
        return self.match or bool(self.korrektur)


ADDRESS_FIELDS = (
    "country",
    "kanton",
    "gemeinde",
    "bfs_nr",
    "plz",
    "ort",
    "strasse",
    "hausnummer",
    "zusatz",
)
IDENTIFIER_FIELDS = ("egid", "egrid")
COORDINATE_FIELDS = ("lat", "lng")
CLASSIFICATION_FIELDS = ("gkat", "gklas", "gstat", "gbaup", "gbauj")
SIZING_FIELDS = ("gastw", "ganzwhg", "garea", "parcel_area")

SOURCE_FIELDS = (
    ADDRESS_FIELDS + IDENTIFIER_FIELDS + COORDINATE_FIELDS + CLASSIFICATION_FIELDS + SIZING_FIELDS
)


class Building(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = ""
    portfolio: str = ""
    priority: str = ""
    assignee: Optional[str] = None
    kanban_status: str = ""
    due_date: Optional[str] = None
    in_gwr: bool = False
    map_lat: Optional[float] = None
    map_lng: Optional[float] = None
    confidence: Optional[Dict[str, Any]] = None

    country: SourceField = Field(default_factory=SourceField)
    kanton: SourceField = Field(default_factory=SourceField)
    gemeinde: SourceField = Field(default_factory=SourceField)
    bfs_nr: SourceField = Field(default_factory=SourceField)
    plz: SourceField = Field(default_factory=SourceField)
    ort: SourceField = Field(default_factory=SourceField)
    strasse: SourceField = Field(default_factory=SourceField)
    hausnummer: SourceField = Field(default_factory=SourceField)
    zusatz: SourceField = Field(default_factory=SourceField)

    egid: SourceField = Field(default_factory=SourceField)
    egrid: SourceField = Field(default_factory=SourceField)
    lat: SourceField = Field(default_factory=SourceField)
    lng: SourceField = Field(default_factory=SourceField)

    gkat: SourceField = Field(default_factory=SourceField)
    gklas: SourceField = Field(default_factory=SourceField)
    gstat: SourceField = Field(default_factory=SourceField)
    gbaup: SourceField = Field(default_factory=SourceField)
    gbauj: SourceField = Field(default_factory=SourceField)

    gastw: SourceField = Field(default_factory=SourceField)
    ganzwhg: SourceField = Field(default_factory=SourceField)
    garea: SourceField = Field(default_factory=SourceField)
    parcel_area: SourceField = Field(default_factory=SourceField)

    @field_validator(*SOURCE_FIELDS, mode="before")
    @classmethod
    def _null_source_field(cls, value: Any) -> Any:
        if value is None:
            return {}
        return value

    @field_validator("name", "portfolio", "priority", "kanban_status", mode="before")
    @classmethod
    def _null_text(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("in_gwr", mode="before")
    @classmethod
    def _null_flag(cls, value: Any) -> Any:
        return False if value is None else value

    def source_field(self, name: str) -> SourceField:
        value = getattr(self, name, None)
        if not isinstance(value, SourceField):
            raise KeyError(f"Unknown source field: {name}")
        return value


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RuleInfo(_CamelModel):
    id: str
    severity: Severity
    field: str
    rule_set: str


class Finding(_CamelModel):
    check_id: str
    description: str
    level: Severity
    field: Optional[str] = None


class ConfidenceScores(_CamelModel):
    total: int = 0

    identification: Optional[int] = None
    address: Optional[int] = None
    location: Optional[int] = None
    classification: Optional[int] = None
    sizing: Optional[int] = None

    # Per-source view kept for existing consumers of the stored confidence object.
    sap: Optional[int] = None
    gwr: Optional[int] = None
    georef: Optional[int] = None


class CheckResult(_CamelModel):
    building_id: str
    confidence: ConfidenceScores
    errors: List[Finding] = Field(default_factory=list)
    checked_at: datetime


class ChunkResult(_CamelModel):
    results: List[CheckResult] = Field(default_factory=list)
    total: int
    offset: int
    limit: int
    has_more: bool


class FindingRow(BaseModel):
    """A finding as persisted in the `errors` table."""

    id: str
    building_id: str
    check_id: str
    description: str
    level: Severity
    field: Optional[str] = None
    detected_at: datetime


def finding_id(building_id: str, ordinal: int) -> str:
    """Deterministic storage id for the `ordinal`-th (1-based) finding of a building."""
    return f"err-{building_id.replace('/', '-')}-{ordinal:03d}"


def finding_rows(building_id: str, findings: List[Finding], detected_at: datetime) -> List[FindingRow]:
    return [
        FindingRow(
            id=finding_id(building_id, idx),
            building_id=building_id,
            check_id=f.check_id,
            description=f.description,
            level=f.level,
            field=f.field,
            detected_at=detected_at,
        )
        for idx, f in enumerate(findings, start=1)
    ]
