"""Configuration system for skillcorpus."""

from skillcorpus.config.loader import (
    ConfigurationError,
    apply_env_overrides,
    clear_config_cache,
    get_config,
    get_config_sources,
    load_config,
    load_yaml_file,
    save_yaml_file,
)
from skillcorpus.config.merger import (
    deep_merge,
    get_nested_value,
    set_nested_value,
)
from skillcorpus.config.schema import (
    Config,
    IndexConfig,
    LayoutConfig,
    LintConfig,
    LoggingConfig,
    OutputConfig,
)

__all__ = [
    "Config",
    "ConfigurationError",
    "IndexConfig",
    "LayoutConfig",
    "LintConfig",
    "LoggingConfig",
    "OutputConfig",
    "apply_env_overrides",
    "clear_config_cache",
    "deep_merge",
    "get_config",
    "get_config_sources",
    "get_nested_value",
    "load_config",
    "load_yaml_file",
    "save_yaml_file",
    "set_nested_value",
]
