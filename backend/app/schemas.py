from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

UNAVAILABLE = -1
NOT_AVAILABLE_TEXT = "N/A"

DiagnosticKind = Literal[
    "NetworkError",
    "ProviderError",
    "FormatError",
    "DataAbsent",
    "ConfigurationError",
    "UpstreamAPIError",
    "UnexpectedError",
]


class AreaLocation(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    zip_code: str
    city: str = ""
    state: str = ""
    latitude: float = 0.0
    longitude: float = 0.0


class HousingSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    avg_home_price: float = UNAVAILABLE
    avg_rent: float = UNAVAILABLE


class Institution(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = NOT_AVAILABLE_TEXT
    city: str = NOT_AVAILABLE_TEXT
    state: str = NOT_AVAILABLE_TEXT
    level: str = "Unknown"
    zip_code: str = NOT_AVAILABLE_TEXT
    street: str = NOT_AVAILABLE_TEXT
    phone: str = NOT_AVAILABLE_TEXT
    charter: str = NOT_AVAILABLE_TEXT
    school_type: str = NOT_AVAILABLE_TEXT
    website: str = NOT_AVAILABLE_TEXT

    def display_label(self) -> str:
        return f"{self.name} ({self.level}) - {self.city}, {self.state}"


class SourceDiagnostic(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    source: str
    kind: DiagnosticKind
    message: str


class AggregateRecord(BaseModel):
    """Everything known about one ZIP code, assembled once per query.

    Every field has a sentinel default so the record can always be built:
    ``-1`` for money amounts, empty strings / ``0.0`` for the location, an
    empty tuple of schools and an empty demographics mapping.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    zip_code: str
    city: str = ""
    state: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    housing: HousingSnapshot = Field(default_factory=HousingSnapshot)
    median_income: int = UNAVAILABLE
    schools: tuple[Institution, ...] = Field(default=(), max_length=5)
    demographics: dict[str, str] = Field(default_factory=dict)
    diagnostics: tuple[SourceDiagnostic, ...] = ()

    @classmethod
    def empty(cls, zip_code: str) -> "AggregateRecord":
        return cls(zip_code=zip_code)

    @property
    def location(self) -> AreaLocation:
        return AreaLocation(
            zip_code=self.zip_code,
            city=self.city,
            state=self.state,
            latitude=self.latitude,
            longitude=self.longitude,
        )


class CategoryShare(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    label: str
    count: int
    pct: float | None = None


class DemographicSummary(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    total_population: int = 0
    race: list[CategoryShare] = Field(default_factory=list)
    age: list[CategoryShare] = Field(default_factory=list)
    bachelors_degrees: int = 0
    doctorate_degrees: int = 0


class AreaProfileResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    record: AggregateRecord
    summary: DemographicSummary