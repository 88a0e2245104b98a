"""Pydantic schemas for API request/response validation."""

from pydantic import BaseModel, Field, model_validator
from typing import Dict, List, Optional, Union
from datetime import datetime
from enum import Enum


class RunModeSchema(str, Enum):
    """Simulator run mode."""
    IDLE = "idle"
    RUNNING = "running"
    STOPPED_BY_USER = "stopped_by_user"
    STOPPED_BY_LIMIT = "stopped_by_limit"


class NumberFrequency(BaseModel):
    """Schema for number frequency statistics."""
    number: int = Field(..., ge=1, le=60, description="Number (1-60)")
    label: str = Field(..., description="Two-digit label")
    count: int = Field(..., ge=0, description="Times drawn")
    percent: float = Field(..., ge=0.0, description="Share of all drawn numbers (%)")


class FrequencyResponse(BaseModel):
    """Full frequency table."""
    total_draws: int = Field(..., ge=0)
    total_numbers: int = Field(..., ge=0, description="Sum of all counts (6 x draws)")
    frequencies: List[NumberFrequency]


class TopNumber(BaseModel):
    number: int = Field(..., ge=1, le=60)
    count: int = Field(..., ge=0)


class TopNumbersResponse(BaseModel):
    requested: int = Field(..., description="Top N after clamping to 1-60")
    numbers: List[TopNumber]


# Simulation schemas
class SimulationConfigRequest(BaseModel):
    """Operator bounds; out-of-range values are clamped, not rejected."""
    batch_size: Optional[int] = Field(None, description="Draws per tick (1-50000)")
    tick_interval_ms: Optional[int] = Field(None, description="Milliseconds between ticks (1-10000)")
    limit_enabled: Optional[bool] = Field(None, description="Stop at limit_total")
    limit_total: Optional[int] = Field(None, description="Hard stop total (1-100000000)")

    model_config = {
        "json_schema_extra": {
            "example": {"batch_size": 5000, "tick_interval_ms": 50, "limit_enabled": True, "limit_total": 100000}
        }
    }


class SimulationStatusResponse(BaseModel):
    """Simulator state snapshot."""
    run_mode: RunModeSchema
    running: bool
    total_generated: int = Field(..., ge=0)
    frequency_sum: int = Field(..., ge=0)
    last_draw: List[int] = Field(default=[], description="Most recent simulated draw")
    top: List[TopNumber] = Field(default=[], description="Most frequent simulated numbers")
    batch_size: int
    tick_interval_ms: int
    limit_enabled: bool
    limit_total: int
    progress: Optional[float] = Field(None, description="Fraction of limit_total reached")
    ticks: int = Field(..., ge=0)


class UniformityResponse(BaseModel):
    """Chi-square check of the simulated counts against a uniform draw."""
    draws: int
    expected_count: float
    chi_square: float
    p_value: float
    degrees_of_freedom: int
    max_relative_deviation: float


# History schemas
class PrizeTierSchema(BaseModel):
    tier: str = Field(..., description="Sena, Quina, Quadra or feed label")
    winners: Optional[int] = Field(None, description="Winner count, null when unknown")
    prize: Optional[float] = Field(None, description="Prize per winner (BRL), null when unknown")


class HistorySummaryResponse(BaseModel):
    """Overview of the loaded history and the last official contest."""
    loaded_at: datetime
    total_draws: int
    excluded_contests: List[int] = Field(default=[])
    last_contest: Optional[int] = None
    last_date: Optional[str] = None
    last_numbers: List[int] = Field(default=[])
    prize_breakdown: List[PrizeTierSchema] = Field(default=[])
    accumulated: Optional[bool] = None
    estimated_prize: Optional[float] = None
    next_date: Optional[str] = None


class RefreshResponse(BaseModel):
    message: str
    total_draws: int
    last_contest: Optional[int] = None


class ComboEntrySchema(BaseModel):
    combo: List[int]
    key: str = Field(..., description="Canonical key, e.g. 04-10-53")
    count: int = Field(..., ge=0)
    percent_of_total: float = Field(..., ge=0.0)


class CombinationsResponse(BaseModel):
    """Most frequent groups among the top N numbers, per group size."""
    top_n: int
    pool: List[int]
    truncated: bool = Field(..., description="Top N exceeded the pool cap")
    pool_cap: int
    total_draws: int
    combinations: Dict[int, List[ComboEntrySchema]]


class SubsetQueryRequest(BaseModel):
    """Numbers to look up, as a list and/or a pasted line."""
    numbers: List[Union[int, str]] = Field(default=[], description="2 to 6 numbers")
    text: Optional[str] = Field(None, description="Free text; first six numbers are used")

    @model_validator(mode='after')
    def check_some_input(self):
        if not self.numbers and not self.text:
            raise ValueError('Provide numbers or text')
        return self

    model_config = {
        "json_schema_extra": {"example": {"numbers": [4, 10, 53]}}
    }


class SubsetHitSchema(BaseModel):
    contest: int
    date: str


class SubsetQueryResponse(BaseModel):
    numbers: List[int]
    normalized_key: str
    occurred: bool
    hits: List[SubsetHitSchema]


class OddsRow(BaseModel):
    numbers: int = Field(..., description="Numbers marked in the bet")
    games: int = Field(..., description="Single games covered")
    odds: int = Field(..., description="Jackpot odds, 1 in N")


# Error schemas
class ErrorResponse(BaseModel):
    """Schema for error responses."""
    detail: str = Field(..., description="Error detail")
    status_code: int = Field(..., description="HTTP status code")
    timestamp: datetime = Field(default_factory=datetime.now, description="Error timestamp")
