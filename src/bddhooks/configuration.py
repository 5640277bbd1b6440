import logging
import os
from pathlib import Path
from typing import Any, Dict, NamedTuple, Optional, Union

from behave.exception import ConfigError
from dotenv import dotenv_values

from .constants import DEFAULT_LOGGING_LEVEL, DEFAULT_TIMEOUT, ENV_OPTIONS, ENV_PREFIX, USER_CONFIG
from .types import EnvironmentValues

__all__ = ["Settings", "build_environment_values", "load_settings"]


class Settings(NamedTuple):
    default_timeout: Optional[float] = DEFAULT_TIMEOUT
    """Timeout in milliseconds for hooks declared without one. None disables it."""

    logging_level: Union[int, str] = DEFAULT_LOGGING_LEVEL
    """Level of the 'bddhooks' logger."""

    def apply_logging(self) -> None:
        level = self.logging_level
        if isinstance(level, str):
            level = level.upper()
        logging.getLogger("bddhooks").setLevel(level)


def build_environment_values(cli_file: Optional[Path] = None, verbose: Optional[bool] = None) -> EnvironmentValues:
    """Builds the complete configuration dictionary by loading values from environment
    and configuration sources in ascending order of precedence (lowest to highest).

    The order of loading (lowest precedence first) is:
    1. OS Environment Variables (Lowest)
    2. User Home Config (~/.bddhooks)
    3. Specified Config File (Highest)

    Args:
        cli_file: Optional path to a configuration file.
        verbose: If True, prints status messages about file loading.

    Raises:
        FileNotFoundError: If ``cli_file`` is given but does not exist.

    Returns:
        A dictionary containing all environment key-value pairs.
    """
    # OS Environment Variables (Priority 1)
    env_values = os.environ.copy()

    # User Home Config (~/.bddhooks) (Priority 2)
    user_config_file = Path.home() / USER_CONFIG
    if user_config_file.exists():
        if verbose:
            print("Load user config file.")
        loaded_config = dotenv_values(user_config_file)
        if loaded_config is not None:
            env_values.update({key: value for key, value in loaded_config.items() if value is not None})
    elif verbose:
        print("Skipping: User config file not found.")

    # Specified Config File (Priority 3)
    if cli_file is not None:
        if not cli_file.exists():
            raise FileNotFoundError(f"The specified config file not found at {str(cli_file)!r}.")
        if verbose:
            print("Load config file.")
        loaded_config = dotenv_values(cli_file)
        if loaded_config is not None:
            env_values.update({key: value for key, value in loaded_config.items() if value is not None})
    elif verbose:
        print("Skipping: Config file was not specified.")

    return env_values


def load_settings(cli_file: Optional[Path] = None, verbose: Optional[bool] = None, **overrides: Any) -> Settings:
    """Loads the settings from 'BDDHOOKS_' prefixed variables.

    Values are parsed as booleans, integers or strings. Keyword overrides win over
    every loaded value.

    Args:
        cli_file: Optional path to a configuration file.
        verbose: If True, prints status messages about variable loading and parsing.

    Raises:
        ConfigError: If a variable names an unknown setting or has an invalid value.

    Returns:
        Settings: The loaded settings.
    """
    values: Dict[str, Any] = {}
    prefix = ENV_PREFIX.lower()

    for env_var, env_value in build_environment_values(cli_file, verbose).items():
        # Key filtering and extraction
        env_var_lowered = env_var.lower()
        if not env_var_lowered.startswith(prefix):
            continue

        config_name = env_var_lowered[len(prefix) :]
        if not config_name:
            if verbose:
                print(f"Skipping ENV[{env_var}]: Setting name is empty after stripping prefix ({ENV_PREFIX!r}).")
            continue

        if config_name not in ENV_OPTIONS:
            raise ConfigError(f"ENV[{env_var}]: Unknown setting {config_name!r}.")

        # Value parsing
        env_parsed_value: Any = env_value.strip()
        if not env_parsed_value:
            if verbose:
                print(f"Skipping ENV[{env_var}]: Value is empty or whitespace.")
            continue

        env_value_lowered = env_parsed_value.lower()
        if env_value_lowered in ["true", "false"]:
            env_parsed_value = env_value_lowered == "true"
        elif env_parsed_value.isnumeric():
            env_parsed_value = int(env_parsed_value)

        values[config_name] = env_parsed_value

        if verbose:
            print(f"{config_name:<15} = {env_parsed_value!r} (ENV[{env_var}] = {env_value!r})")

    values.update(overrides)

    default_timeout = values.get("default_timeout", DEFAULT_TIMEOUT)
    if default_timeout is not None:
        if isinstance(default_timeout, bool) or not isinstance(default_timeout, (int, float)) or default_timeout < 0:
            raise ConfigError(
                f"Setting 'default_timeout' must be a number of milliseconds, got {default_timeout!r}."
            )

    # 0 disables the timeout
    values["default_timeout"] = default_timeout or None

    return Settings(**values)
