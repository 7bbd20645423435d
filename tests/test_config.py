"""Tests for SynthesisConfig."""

import pytest

from typesynth.config import SynthesisConfig
from typesynth.synthesis.expansion import ExpansionLimits


class TestSynthesisConfig:
    """Tests for defaults and validation."""

    def test_defaults(self):
        config = SynthesisConfig()

        assert config.max_size == 50
        assert config.timeout_seconds == 60
        assert config.executor == "subprocess"
        assert config.python
        assert config.limits == ExpansionLimits()
        assert config.validate() == []

    def test_instances_do_not_share_limits(self):
        assert SynthesisConfig().limits is not SynthesisConfig().limits

    @pytest.mark.parametrize(
        "kwargs, message",
        [
            ({"max_size": 0}, "max_size"),
            ({"timeout_seconds": 0}, "timeout_seconds"),
            ({"max_pool_size": -1}, "max_pool_size"),
            ({"max_literal_length": 0}, "max_literal_length"),
            ({"executor": "docker"}, "executor"),
            ({"example_timeout_seconds": -1}, "example_timeout_seconds"),
            ({"log_level": "LOUD"}, "log_level"),
            ({"log_format": "xml"}, "log_format"),
            ({"limits": ExpansionLimits(max_array_arity=-1)}, "max_array_arity"),
        ],
    )
    def test_validate(self, kwargs, message):
        errors = SynthesisConfig(**kwargs).validate()
        assert len(errors) == 1
        assert message in errors[0]

    def test_log_level_is_case_insensitive(self):
        assert SynthesisConfig(log_level="debug").validate() == []
