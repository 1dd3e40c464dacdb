"""
Configuration schema validation using Pydantic
"""

from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .types import Venue


class CostsConfig(BaseModel):
    """Cost model terms. Gas price is in gwei, min_profit_absolute in whole tokens."""

    flash_loan_premium_bps: int = Field(ge=0, le=10000, default=9)
    gas_price_gwei: Decimal = Field(ge=0, le=100000, default=Decimal(50))
    gas_units_estimate: int = Field(ge=0, le=30_000_000, default=500_000)
    builder_tip_bps: int = Field(ge=0, le=10000, default=10)
    safety_buffer_bps: int = Field(ge=0, le=10000, default=50)
    min_profit_bps: int = Field(ge=0, le=10000, default=100)
    min_profit_absolute: Decimal = Field(ge=0, default=Decimal(0))

    model_config = {"extra": "forbid"}


class OracleConfig(BaseModel):
    """Price oracle tolerances"""

    enabled: bool = True
    max_price_age_seconds: int = Field(ge=1, le=86400, default=300)
    deviation_bps: int = Field(ge=0, le=10000, default=800)
    secondary_deviation_bps: int = Field(ge=0, le=10000, default=1200)

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def validate_tolerances(self):
        if self.secondary_deviation_bps < self.deviation_bps:
            raise ValueError(
                "secondary_deviation_bps must be at least deviation_bps"
            )
        return self


class AnalysisConfig(BaseModel):
    """Historical trade analysis settings"""

    max_trades: int = Field(ge=1, le=1_000_000, default=1000)
    min_trades_for_confidence: int = Field(ge=1, default=10)
    min_profit_floor_bps: int = Field(ge=0, le=10000, default=50)
    slippage_percentile: int = Field(ge=0, le=100, default=95)
    deadline_percentile: int = Field(ge=0, le=100, default=99)
    deadline_buffer_seconds: int = Field(ge=0, le=3600, default=30)

    model_config = {"extra": "forbid"}


class BorrowRangeConfig(BaseModel):
    """Borrow sweep bounds in whole tokens"""

    min: Decimal = Field(gt=0)
    max: Decimal = Field(gt=0)
    step: Decimal = Field(gt=0)

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def validate_bounds(self):
        if self.min > self.max:
            raise ValueError("borrow min must not exceed max")
        return self


class SweepConfig(BaseModel):
    """Sensitivity and backtest grids"""

    gas_prices_gwei: List[Decimal] = Field(default_factory=lambda: [Decimal(20), Decimal(50), Decimal(100)])
    premiums_bps: List[int] = Field(default_factory=lambda: [5, 9, 30])
    min_profit_bps_grid: List[int] = Field(default_factory=lambda: [50, 100, 200])
    max_slippage_bps_grid: List[int] = Field(default_factory=lambda: [50, 100, 300])
    borrow: Optional[BorrowRangeConfig] = None

    model_config = {"extra": "forbid"}

    @field_validator(
        "gas_prices_gwei", "premiums_bps", "min_profit_bps_grid", "max_slippage_bps_grid"
    )
    @classmethod
    def validate_grid(cls, v):
        if not v:
            raise ValueError("sweep grids cannot be empty")
        if any(item < 0 for item in v):
            raise ValueError(f"sweep grid values cannot be negative: {v}")
        return v


class TokenConfig(BaseModel):
    """A token the settlement side can borrow and swap"""

    address: Optional[str] = None
    decimals: int = Field(ge=0, le=36, default=18)

    model_config = {"extra": "forbid"}


class RouteConfig(BaseModel):
    """A circular route over configured tokens"""

    path: List[str] = Field(min_length=2, max_length=4)
    venue_a: Venue
    venue_b: Venue
    min_profit: Decimal = Field(ge=0, default=Decimal(0))

    model_config = {"extra": "forbid"}

    @field_validator("path")
    @classmethod
    def validate_path(cls, v):
        if v[0] != v[-1]:
            raise ValueError(f"route path must be circular: {v}")
        if len(set(v[:-1])) != len(v) - 1:
            raise ValueError(f"route path repeats an interior token: {v}")
        return v


class AnalyzerConfig(BaseModel):
    """Complete analyzer configuration schema"""

    name: str = Field(min_length=1, max_length=100, description="Deployment name")
    costs: CostsConfig = Field(default_factory=CostsConfig)
    oracle: OracleConfig = Field(default_factory=OracleConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    sweeps: SweepConfig = Field(default_factory=SweepConfig)
    tokens: Dict[str, TokenConfig] = Field(default_factory=dict)
    venues: List[Venue] = Field(default_factory=list)
    routes: List[RouteConfig] = Field(default_factory=list)

    model_config = {
        "extra": "forbid",
        "validate_assignment": True,
    }

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError("Configuration name cannot be empty")
        return v.strip()

    @model_validator(mode="after")
    def validate_routes(self):
        for route in self.routes:
            for token in route.path:
                if token not in self.tokens:
                    raise ValueError(f"route uses undeclared token: {token}")
            for venue in (route.venue_a, route.venue_b):
                if venue not in self.venues:
                    raise ValueError(f"route uses unconfigured venue: {venue.value}")
        return self


def validate_analyzer_config(config_dict: Dict) -> AnalyzerConfig:
    """
    Validate an analyzer configuration dictionary

    Raises:
        pydantic.ValidationError: If configuration is invalid
    """
    return AnalyzerConfig(**config_dict)

