"""
Tests for configuration schema validation and loading
"""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError as PydanticValidationError

from flash_arbitrage.config_loader import (
    CONFIG_ENV_VAR,
    build_route_registry,
    build_settlement_backend,
    get_default_config,
    load_analyzer_config,
    resolve_config_path,
)
from flash_arbitrage.config_schema import (
    AnalyzerConfig,
    validate_analyzer_config,
)
from flash_arbitrage.exceptions import ConfigurationError, ValidationError
from flash_arbitrage.types import CostParameters, Venue

EXAMPLE_CONFIG = Path(__file__).resolve().parents[1] / "config" / "analyzer.example.yaml"


@pytest.fixture
def valid_config():
    return {
        "name": "test_analyzer",
        "costs": {"gas_price_gwei": "1.5", "min_profit_absolute": "0.002"},
        "tokens": {"WETH": {"decimals": 18}, "USDC": {"decimals": 6}},
        "venues": ["uniswap_v3", "sushiswap"],
        "routes": [
            {
                "path": ["USDC", "WETH", "USDC"],
                "venue_a": "uniswap_v3",
                "venue_b": "sushiswap",
                "min_profit": "2.5",
            }
        ],
    }


def write_config(tmp_path, data, name="config.yaml"):
    path = tmp_path / name
    with open(path, "w") as f:
        yaml.dump(data, f)
    return path


class TestSchema:
    def test_defaults(self):
        config = AnalyzerConfig(name="minimal")
        assert config.costs.flash_loan_premium_bps == 9
        assert config.oracle.deviation_bps == 800
        assert config.analysis.max_trades == 1000
        assert config.sweeps.premiums_bps == [5, 9, 30]
        assert config.routes == []

    def test_valid_config(self, valid_config):
        config = validate_analyzer_config(valid_config)
        assert config.name == "test_analyzer"
        assert config.routes[0].venue_a is Venue.UNISWAP_V3

    def test_name_is_stripped(self, valid_config):
        valid_config["name"] = "  padded  "
        assert validate_analyzer_config(valid_config).name == "padded"

    @pytest.mark.parametrize(
        "mutate",
        [
            lambda c: c.update(unknown_key=1),
            lambda c: c.update(name="   "),
            lambda c: c["costs"].update(flash_loan_premium_bps=-1),
            lambda c: c["costs"].update(builder_tip_bps=10001),
            lambda c: c.update(oracle={"deviation_bps": 900, "secondary_deviation_bps": 800}),
            lambda c: c.update(oracle={"max_price_age_seconds": 0}),
            lambda c: c.update(sweeps={"premiums_bps": []}),
            lambda c: c.update(sweeps={"gas_prices_gwei": [20, -1]}),
            lambda c: c.update(sweeps={"borrow": {"min": 10, "max": 1, "step": 1}}),
            lambda c: c["routes"][0].update(path=["USDC", "WETH"]),
            lambda c: c["routes"][0].update(path=["USDC", "WETH", "WETH", "USDC"]),
            lambda c: c["routes"][0].update(path=["USDC", "WETH", "USDC", "WETH", "USDC"]),
            lambda c: c["routes"][0].update(path=["USDC", "DAI", "USDC"]),
            lambda c: c["routes"][0].update(venue_b="curve"),
            lambda c: c["routes"][0].update(venue_a="pancakeswap"),
            lambda c: c["routes"][0].update(min_profit="-1"),
        ],
        ids=[
            "extra-field",
            "blank-name",
            "negative-premium",
            "tip-over-100pct",
            "secondary-below-primary",
            "zero-price-age",
            "empty-grid",
            "negative-grid-value",
            "borrow-min-above-max",
            "non-circular-path",
            "interior-duplicate",
            "path-too-long",
            "undeclared-token",
            "unconfigured-venue",
            "unknown-venue",
            "negative-min-profit",
        ],
    )
    def test_invalid_config(self, valid_config, mutate):
        mutate(valid_config)
        with pytest.raises(PydanticValidationError):
            validate_analyzer_config(valid_config)


class TestLoader:
    def test_amounts_are_scaled(self, tmp_path, valid_config):
        config = load_analyzer_config(write_config(tmp_path, valid_config))

        assert config.costs.gas_price_wei == 1_500_000_000
        assert config.costs.min_profit_absolute == 2 * 10**15
        # Route floor uses the decimals of the borrowed token
        assert config.routes[0].min_profit == 2_500_000
        assert config.routes[0].path == ("USDC", "WETH", "USDC")
        assert config.tokens["USDC"].decimals == 6
        assert config.venues == (Venue.UNISWAP_V3, Venue.SUSHISWAP)

    def test_example_config(self):
        config = load_analyzer_config(EXAMPLE_CONFIG)

        assert config.name == "mainnet-monitor"
        assert config.costs == CostParameters()
        assert config.oracle.secondary_deviation_bps == 1200
        assert config.sweeps.gas_prices_wei == (20 * 10**9, 50 * 10**9, 100 * 10**9)
        assert config.sweeps.borrow_range == (10**18, 100 * 10**18, 10**18)
        assert [r.min_profit for r in config.routes] == [10**16, 10**16, 5 * 10**18]

    def test_env_var_fallback(self, monkeypatch):
        monkeypatch.setenv(CONFIG_ENV_VAR, str(EXAMPLE_CONFIG))
        assert resolve_config_path() == EXAMPLE_CONFIG
        assert load_analyzer_config().name == "mainnet-monitor"

    def test_explicit_path_wins(self, monkeypatch, tmp_path, valid_config):
        monkeypatch.setenv(CONFIG_ENV_VAR, str(EXAMPLE_CONFIG))
        path = write_config(tmp_path, valid_config)
        assert load_analyzer_config(path).name == "test_analyzer"

    def test_no_path_and_no_env(self, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        with pytest.raises(ConfigurationError):
            load_analyzer_config()

    @pytest.mark.parametrize(
        "content", ["", "key: [unclosed", "- just\n- a list\n"], ids=["empty", "bad-yaml", "list-root"]
    )
    def test_unreadable_files(self, tmp_path, content):
        path = tmp_path / "broken.yaml"
        path.write_text(content)
        with pytest.raises(ConfigurationError):
            load_analyzer_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_analyzer_config(tmp_path / "missing.yaml")

    def test_schema_failure_is_wrapped(self, tmp_path, valid_config):
        valid_config["costs"]["min_profit_bps"] = -5
        path = write_config(tmp_path, valid_config)

        with pytest.raises(ValidationError) as exc_info:
            load_analyzer_config(path)
        assert exc_info.value.details["path"] == str(path)
        assert exc_info.value.details["errors"]

    def test_default_config(self):
        config = get_default_config()
        assert config.name == "default"
        assert config.costs == CostParameters()
        assert config.routes == ()


class TestBuilders:
    def test_registry_from_example(self):
        config = load_analyzer_config(EXAMPLE_CONFIG)
        registry = build_route_registry(config)

        assert len(registry) == 3
        route = registry.get_route(1)
        assert route.path == ("WETH", "USDC", "WETH")
        assert route.venue_a is Venue.SUSHISWAP
        assert route.venue_b is Venue.UNISWAP_V3
        assert route.min_profit == 10**16

    def test_backend_mirrors_config(self):
        config = load_analyzer_config(EXAMPLE_CONFIG)
        backend = build_settlement_backend(config)

        assert backend.is_token_supported("USDC")
        assert not backend.is_token_supported("WBTC")
        assert backend.venue_router_configured(Venue.CURVE)
        assert not backend.venue_router_configured(Venue.BALANCER)

    def test_empty_config_gives_empty_registry(self):
        assert len(build_route_registry(get_default_config())) == 0
