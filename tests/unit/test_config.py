"""Unit tests for configuration loading and validation."""

import pytest

from hotsnet.config import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigValidationError,
    LoggingParams,
    ModifierParams,
    TrainingParams,
    get_default_config_path,
    get_logging_params,
    get_modifier_params,
    get_training_params,
    load_config,
    load_yaml,
    merge_configs,
    save_yaml,
)


class TestLoadConfig:
    """Tests for YAML loading and merging."""

    def test_default_config_exists(self):
        """Test that the shipped default config is found."""
        assert get_default_config_path().exists()

    def test_default_values(self):
        """Test the shipped defaults."""
        config = load_config()

        assert get_modifier_params(config) == ModifierParams()
        training = get_training_params(config)
        assert training.initializer == "plusplus"
        assert training.seed == 42
        assert training.use_all is True
        assert get_logging_params(config).log_level == "INFO"

    def test_overrides(self):
        """Test that overrides are deep merged."""
        config = load_config(overrides={"training": {"use_all": False}})

        params = get_training_params(config)
        assert params.use_all is False
        assert params.seed == 42

    def test_merge_does_not_mutate(self):
        """Test that merging leaves the base untouched."""
        base = {"a": {"b": 1, "c": 2}}

        merged = merge_configs(base, {"a": {"b": 3}, "d": 4})

        assert merged == {"a": {"b": 3, "c": 2}, "d": 4}
        assert base == {"a": {"b": 1, "c": 2}}

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises ConfigFileNotFoundError."""
        with pytest.raises(ConfigFileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        """Test that unparsable YAML raises ConfigError."""
        path = tmp_path / "bad.yaml"
        path.write_text("training: [unclosed\n")

        with pytest.raises(ConfigError, match="Failed to parse"):
            load_yaml(path)

    def test_non_mapping(self, tmp_path):
        """Test that a top-level list is rejected."""
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")

        with pytest.raises(ConfigError, match="mapping"):
            load_yaml(path)

    def test_empty_file(self, tmp_path):
        """Test that an empty file gives an empty config."""
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_yaml(path) == {}
        assert get_training_params(load_yaml(path)) == TrainingParams()

    def test_save_and_load(self, tmp_path):
        """Test that a saved config loads back unchanged."""
        config = {"modifiers": {"remapper": "array", "width": 16, "height": 8}}
        path = tmp_path / "sub" / "saved.yaml"

        save_yaml(config, path)

        assert load_config(path) == config
        params = get_modifier_params(load_config(path))
        assert (params.remapper, params.width, params.height) == ("array", 16, 8)


class TestParams:
    """Tests for the parameter dataclasses."""

    def test_remapper_normalized(self):
        """Test that remapper names are case-insensitive and None means none."""
        assert ModifierParams(remapper="SERIALIZE").remapper == "serialize"
        assert ModifierParams(remapper=None).remapper == "none"

    def test_unknown_remapper(self):
        """Test that unknown remappers are rejected."""
        with pytest.raises(ConfigValidationError, match="remapper"):
            ModifierParams(remapper="flatten")

    def test_average_requires_supercell(self):
        """Test that averaging without supercells is rejected."""
        with pytest.raises(ConfigValidationError, match="supercell_size"):
            ModifierParams(average=True)

    def test_unknown_initializer(self):
        """Test that unknown initializers are rejected."""
        with pytest.raises(ConfigValidationError, match="initializer"):
            TrainingParams(initializer="kmeans")

    def test_init_sequences_tuple(self):
        """Test that init_sequences tuples are stored as lists."""
        assert TrainingParams(init_sequences=(0, 2)).init_sequences == [0, 2]

    def test_log_level(self):
        """Test log level normalization and validation."""
        assert LoggingParams(log_level="debug").log_level == "DEBUG"
        with pytest.raises(ConfigValidationError):
            LoggingParams(log_level="verbose")

    def test_from_dict_ignores_unknown_keys(self):
        """Test that extra keys in a section are ignored."""
        params = TrainingParams.from_dict({"seed": 7, "epochs": 10})

        assert params.seed == 7

    def test_validation_error_is_value_error(self):
        """Test that validation errors can be caught as ValueError."""
        with pytest.raises(ValueError):
            ModifierParams(remapper="flatten")
