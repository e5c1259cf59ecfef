"""Tests for engine configuration."""

import pytest

from pinball_rankings.core.config import (
    BoosterConfig,
    DecayConfig,
    EngineConfig,
    load_config,
)
from pinball_rankings.core.exceptions import ConfigurationError


class TestEngineConfig:
    def test_defaults_validate(self):
        config = EngineConfig()
        assert config.validate() is config
        assert config.boosters.major == 2.0
        assert config.decay.steps[1] == (1.0, 0.75)

    def test_partial_override_keeps_defaults(self):
        config = EngineConfig.from_dict(
            {"boosters": {"major": 2.5}, "glicko": {"opponents_range": 16}}
        )
        assert config.boosters.major == 2.5
        assert config.boosters.certified == 1.25
        assert config.glicko.opponents_range == 16
        assert config.base_value.max_base_value == 32.0

    def test_steps_converted_to_tuples(self):
        config = EngineConfig.from_dict(
            {"decay": {"steps": [[0, 1.0], [2, 0.5], [4, 0.0]]}}
        )
        assert config.decay.steps == ((0.0, 1.0), (2.0, 0.5), (4.0, 0.0))

    def test_unknown_key(self):
        with pytest.raises(ConfigurationError) as excinfo:
            EngineConfig.from_dict({"boosters": {"mega": 5.0}})
        assert excinfo.value.parameter == "mega"

    def test_section_must_be_mapping(self):
        with pytest.raises(ConfigurationError):
            EngineConfig.from_dict({"decay": 3})

    def test_booster_order_enforced(self):
        with pytest.raises(ConfigurationError):
            BoosterConfig(certified=1.6).validate()

    def test_shares_must_sum_to_one(self):
        with pytest.raises(ConfigurationError):
            EngineConfig.from_dict({"distribution": {"linear_share": 0.2}})

    def test_unknown_curve(self):
        with pytest.raises(ConfigurationError):
            DecayConfig(curve="exponential").validate()


class TestLoadConfig:
    def test_none_returns_defaults(self):
        assert load_config(None) == EngineConfig()

    def test_yaml_overrides(self, tmp_path):
        path = tmp_path / "overrides.yaml"
        path.write_text(
            """
boosters:
  major: 2.25
ranking:
  top_events_count: 10
            """
        )
        config = load_config(path)
        assert config.boosters.major == 2.25
        assert config.ranking.top_events_count == 10

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == EngineConfig()

    def test_yaml_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ConfigurationError):
            load_config(path)
