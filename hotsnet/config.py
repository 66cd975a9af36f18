"""
Configuration management for hotsnet.

This module provides utilities for loading, validating, and managing
configuration from YAML files.

Example:
    >>> from hotsnet.config import load_config, get_training_params
    >>>
    >>> # Load from default location
    >>> config = load_config()
    >>>
    >>> # Load with overrides
    >>> config = load_config(overrides={"training": {"seed": 123}})
    >>> params = get_training_params(config)
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from dataclasses import dataclass

import yaml


# =============================================================================
# EXCEPTIONS
# =============================================================================


class ConfigError(Exception):
    """Base exception for configuration errors."""
    pass


class ConfigFileNotFoundError(ConfigError):
    """Raised when a configuration file is not found."""
    pass


class ConfigValidationError(ConfigError, ValueError):
    """Raised when configuration validation fails."""
    pass


# =============================================================================
# PATH UTILITIES
# =============================================================================


def get_project_root() -> Path:
    """
    Get the project root directory.

    Returns:
        Path to project root (parent of 'hotsnet' package).
    """
    return Path(__file__).resolve().parent.parent


def get_config_dir() -> Path:
    """
    Get the configuration directory.

    Returns:
        Path to configs/ directory.
    """
    return get_project_root() / "configs"


def get_default_config_path() -> Path:
    """
    Get the default configuration file path.

    Returns:
        Path to configs/config.yaml
    """
    return get_config_dir() / "config.yaml"


# =============================================================================
# CONFIG LOADING
# =============================================================================


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a YAML file.

    Args:
        path: Path to YAML file.

    Returns:
        Dictionary of configuration values.

    Raises:
        ConfigFileNotFoundError: If file doesn't exist.
        ConfigError: If YAML parsing fails or the top level is not a mapping.
    """
    path = Path(path)

    if not path.exists():
        raise ConfigFileNotFoundError(f"Config file not found: {path}")

    try:
        with open(path, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML file {path}: {e}") from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError(
            f"Config file {path} must contain a mapping, got {type(config).__name__}"
        )
    return config


def save_yaml(config: Dict[str, Any], path: Union[str, Path]) -> None:
    """
    Save configuration to a YAML file.

    Args:
        config: Configuration dictionary.
        path: Output path.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w') as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)


def merge_configs(
    base: Dict[str, Any],
    override: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Deep merge two configuration dictionaries.

    Override values take precedence over base values.

    Args:
        base: Base configuration.
        override: Override configuration.

    Returns:
        Merged configuration.
    """
    result = base.copy()

    for key, value in override.items():
        if (
            key in result and
            isinstance(result[key], dict) and
            isinstance(value, dict)
        ):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def load_config(
    path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Load configuration from YAML file with optional overrides.

    Args:
        path: Path to config file. If None, uses default config.
        overrides: Dictionary of values to override.

    Returns:
        Complete configuration dictionary.

    Example:
        >>> config = load_config()  # Load default
        >>> config = load_config("configs/experiments/nmnist.yaml")
        >>> config = load_config(overrides={"training": {"use_all": False}})
    """
    if path is None:
        path = get_default_config_path()

    config = load_yaml(path)

    if overrides:
        config = merge_configs(config, overrides)

    return config


# =============================================================================
# CONFIG DATACLASSES
# =============================================================================


_REMAPPERS = ("none", "array", "serialize")
_INITIALIZERS = ("random", "uniform", "plusplus")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ModifierParams:
    """
    Output modifiers attached to a layer.

    Attributes:
        remapper: Output remapping ("none", "array" or "serialize").
        width: Horizontal size of the layer context.
        height: Vertical size of the layer context.
        supercell_size: Side K of the supercells, None disables subsampling.
        overlap: Overlap of neighbouring supercells.
        average: Average time surfaces over each supercell.
    """
    remapper: str = "none"
    width: int = 32
    height: int = 32
    supercell_size: Optional[int] = None
    overlap: int = 0
    average: bool = False

    def __post_init__(self) -> None:
        if self.remapper is None:
            self.remapper = "none"
        self.remapper = str(self.remapper).lower()
        if self.remapper not in _REMAPPERS:
            raise ConfigValidationError(
                f"remapper must be one of {_REMAPPERS}, got '{self.remapper}'"
            )
        if self.average and self.supercell_size is None:
            raise ConfigValidationError("average requires supercell_size to be set")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModifierParams":
        """Create from dictionary."""
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})


@dataclass
class TrainingParams:
    """
    Layer-by-layer training parameters.

    Attributes:
        initializer: Codebook initializer name.
        seed: Random seed for the initializer, None for nondeterministic.
        use_all: Use every sequence to initialize the prototypes.
        skip_check: Consider all events as valid.
        init_sequences: Sequence indices used for initialization when
            use_all is False.
    """
    initializer: str = "plusplus"
    seed: Optional[int] = None
    use_all: bool = True
    skip_check: bool = False
    init_sequences: Optional[List[int]] = None

    def __post_init__(self) -> None:
        self.initializer = str(self.initializer).lower()
        if self.initializer not in _INITIALIZERS:
            raise ConfigValidationError(
                f"initializer must be one of {_INITIALIZERS}, got '{self.initializer}'"
            )
        if isinstance(self.init_sequences, tuple):
            self.init_sequences = list(self.init_sequences)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TrainingParams":
        """Create from dictionary."""
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})


@dataclass
class LoggingParams:
    """Logging configuration."""
    log_level: str = "INFO"
    log_dir: str = "logs"
    console: bool = True

    def __post_init__(self) -> None:
        self.log_level = str(self.log_level).upper()
        if self.log_level not in _LOG_LEVELS:
            raise ConfigValidationError(
                f"log_level must be one of {_LOG_LEVELS}, got '{self.log_level}'"
            )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LoggingParams":
        """Create from dictionary."""
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def get_modifier_params(config: Optional[Dict[str, Any]] = None) -> ModifierParams:
    """
    Get layer modifier parameters from config.

    Args:
        config: Config dict. If None, loads default.

    Returns:
        ModifierParams instance.
    """
    if config is None:
        config = load_config()
    return ModifierParams.from_dict(config.get("modifiers") or {})


def get_training_params(config: Optional[Dict[str, Any]] = None) -> TrainingParams:
    """
    Get training parameters from config.

    Args:
        config: Config dict. If None, loads default.

    Returns:
        TrainingParams instance.
    """
    if config is None:
        config = load_config()
    return TrainingParams.from_dict(config.get("training") or {})


def get_logging_params(config: Optional[Dict[str, Any]] = None) -> LoggingParams:
    """
    Get logging parameters from config.

    Args:
        config: Config dict. If None, loads default.

    Returns:
        LoggingParams instance.
    """
    if config is None:
        config = load_config()
    return LoggingParams.from_dict(config.get("logging") or {})


# =============================================================================
# MODULE EXPORTS
# =============================================================================

__all__ = [
    # Exceptions
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigValidationError",
    # Path utilities
    "get_project_root",
    "get_default_config_path",
    "get_config_dir",
    # Loading/saving
    "load_yaml",
    "save_yaml",
    "merge_configs",
    "load_config",
    # Dataclasses
    "ModifierParams",
    "TrainingParams",
    "LoggingParams",
    # Convenience
    "get_modifier_params",
    "get_training_params",
    "get_logging_params",
]
