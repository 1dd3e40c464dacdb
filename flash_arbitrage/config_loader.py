"""
Configuration loading and normalization for the analyzer.

Loads a YAML file, validates it against the pydantic schema, and converts it
into frozen runtime objects with amounts already scaled to base units.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml
from pydantic import ValidationError as PydanticValidationError

from .config_schema import AnalyzerConfig, validate_analyzer_config
from .exceptions import ConfigurationError, ValidationError
from .fixed_point import to_wei
from .interfaces import InMemorySettlementBackend, SettlementBackend
from .price_validation import OracleSettings
from .route_registry import RouteRegistry
from .statistical_analyzer import AnalysisSettings
from .sweeps import SweepSettings
from .types import CostParameters, Venue

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "FLASH_ARB_CONFIG"


@dataclass(frozen=True)
class TokenSettings:
    symbol: str
    address: Optional[str] = None
    decimals: int = 18


@dataclass(frozen=True)
class RouteDefinition:
    """A configured route; min_profit already in base units of path[0]."""

    path: Tuple[str, ...]
    venue_a: Venue
    venue_b: Venue
    min_profit: int = 0


@dataclass(frozen=True)
class AnalyzerRuntimeConfig:
    """Immutable runtime configuration object."""

    name: str
    costs: CostParameters = field(default_factory=CostParameters)
    oracle: OracleSettings = field(default_factory=OracleSettings)
    analysis: AnalysisSettings = field(default_factory=AnalysisSettings)
    sweeps: SweepSettings = field(default_factory=SweepSettings)
    tokens: Dict[str, TokenSettings] = field(default_factory=dict)
    venues: Tuple[Venue, ...] = ()
    routes: Tuple[RouteDefinition, ...] = ()


def resolve_config_path(config_path: Optional[Union[str, Path]] = None) -> Path:
    """Explicit path first, then $FLASH_ARB_CONFIG."""
    chosen = config_path or os.environ.get(CONFIG_ENV_VAR)
    if not chosen:
        raise ConfigurationError(
            f"No configuration file given and {CONFIG_ENV_VAR} is not set"
        )
    return Path(chosen)


def load_yaml_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """Load and parse YAML configuration file."""
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}")

    if config_dict is None:
        raise ConfigurationError(f"Empty configuration file: {config_path}")
    if not isinstance(config_dict, dict):
        raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")
    return config_dict


def _token_decimals(schema: AnalyzerConfig, symbol: str) -> int:
    token = schema.tokens.get(symbol)
    return token.decimals if token else 18


def _normalize_costs(schema: AnalyzerConfig) -> CostParameters:
    costs = schema.costs
    return CostParameters(
        flash_loan_premium_bps=costs.flash_loan_premium_bps,
        gas_price_wei=to_wei(costs.gas_price_gwei, 9),
        gas_units_estimate=costs.gas_units_estimate,
        builder_tip_bps=costs.builder_tip_bps,
        safety_buffer_bps=costs.safety_buffer_bps,
        min_profit_bps=costs.min_profit_bps,
        min_profit_absolute=to_wei(costs.min_profit_absolute),
    )


def _normalize_sweeps(schema: AnalyzerConfig) -> SweepSettings:
    sweeps = schema.sweeps
    kwargs = {}
    if sweeps.borrow is not None:
        kwargs["borrow_range"] = (
            to_wei(sweeps.borrow.min),
            to_wei(sweeps.borrow.max),
            to_wei(sweeps.borrow.step),
        )
    return SweepSettings(
        gas_prices_wei=tuple(to_wei(g, 9) for g in sweeps.gas_prices_gwei),
        premiums_bps=tuple(sweeps.premiums_bps),
        min_profit_bps_grid=tuple(sweeps.min_profit_bps_grid),
        max_slippage_bps_grid=tuple(sweeps.max_slippage_bps_grid),
        **kwargs,
    )


def normalize_config(schema: AnalyzerConfig) -> AnalyzerRuntimeConfig:
    """Convert a validated schema into runtime settings."""
    return AnalyzerRuntimeConfig(
        name=schema.name,
        costs=_normalize_costs(schema),
        oracle=OracleSettings(**schema.oracle.model_dump()),
        analysis=AnalysisSettings(**schema.analysis.model_dump()),
        sweeps=_normalize_sweeps(schema),
        tokens={
            symbol: TokenSettings(symbol=symbol, address=t.address, decimals=t.decimals)
            for symbol, t in schema.tokens.items()
        },
        venues=tuple(schema.venues),
        routes=tuple(
            RouteDefinition(
                path=tuple(r.path),
                venue_a=r.venue_a,
                venue_b=r.venue_b,
                min_profit=to_wei(r.min_profit, _token_decimals(schema, r.path[0])),
            )
            for r in schema.routes
        ),
    )


def load_analyzer_config(
    config_path: Optional[Union[str, Path]] = None,
) -> AnalyzerRuntimeConfig:
    """
    Load and normalize an analyzer configuration file.

    Args:
        config_path: Path to the YAML file; defaults to $FLASH_ARB_CONFIG

    Returns:
        Normalized and frozen analyzer configuration

    Raises:
        ConfigurationError: If the file cannot be found or parsed
        ValidationError: If the configuration fails schema validation
    """
    path = resolve_config_path(config_path)
    config_dict = load_yaml_config(path)

    try:
        schema = validate_analyzer_config(config_dict)
    except PydanticValidationError as e:
        raise ValidationError(
            f"Configuration validation failed: {e}",
            details={"path": str(path), "errors": e.errors()},
        )

    config = normalize_config(schema)
    logger.debug(
        f"Loaded config '{config.name}' from {path}: "
        f"{len(config.tokens)} tokens, {len(config.routes)} routes"
    )
    return config


def get_default_config() -> AnalyzerRuntimeConfig:
    """Defaults only: no tokens, venues or routes."""
    return AnalyzerRuntimeConfig(name="default")


def build_settlement_backend(config: AnalyzerRuntimeConfig) -> InMemorySettlementBackend:
    """Paper settlement backend supporting exactly the configured tokens and venues."""
    return InMemorySettlementBackend(
        supported_tokens=config.tokens.keys(), configured_venues=config.venues
    )


def build_route_registry(
    config: AnalyzerRuntimeConfig, backend: Optional[SettlementBackend] = None
) -> RouteRegistry:
    """Registry pre-populated with the configured routes, added as one batch."""
    registry = RouteRegistry(backend or build_settlement_backend(config))
    if config.routes:
        registry.add_routes_batch(
            [r.path for r in config.routes],
            [r.min_profit for r in config.routes],
            [r.venue_a for r in config.routes],
            [r.venue_b for r in config.routes],
        )
    return registry
