"""YAML configuration loader with environment variable substitution.

Loads handler configurations and turns them into runtime objects:
provider descriptors for a ``ProviderHandler`` and sinks for the
observability hub.

Environment variable syntax:
    ${VAR}          - Required variable, raises error if not set
    ${VAR:-default} - Optional variable with default value

Example:
    >>> config = load_yaml_config("handler.yaml")
    >>> setup_observability(config.observability)
    >>> handler = ProviderHandler.from_config(config.handler)
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import ValidationError

from playpath.config.schema import ConfigSchema, HandlerSchema, ObservabilitySchema
from playpath.core.provider import ProviderDescriptor
from playpath.core.results import PlaypathError
from playpath.observability import (
    ConsoleSink,
    FileSink,
    MemorySink,
    NullSink,
    ObservabilityHub,
    Sink,
    TraceLevel,
)
from playpath.plugin.discovery import discover_providers, entry_point_factory


class ConfigLoadError(PlaypathError):
    """Error loading or validating configuration."""

    pass


# Pattern for environment variables: ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


def substitute_env_vars(value: Any) -> Any:
    """Recursively substitute environment variables in a value.

    Args:
        value: Value to process (string, dict, list, or other).

    Returns:
        Value with environment variables substituted.

    Raises:
        KeyError: If a required environment variable is not set.

    Examples:
        >>> os.environ["PLAYER_ID"] = "7"
        >>> substitute_env_vars({"unique_id": "${PLAYER_ID}"})
        {'unique_id': '7'}
        >>> substitute_env_vars("${MISSING:-fallback}")
        'fallback'
    """
    if isinstance(value, str):
        return _substitute_string(value)
    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [substitute_env_vars(item) for item in value]
    else:
        return value


def _substitute_string(s: str) -> str:
    def replacer(match: re.Match) -> str:
        var_name = match.group(1)
        default = match.group(2)

        value = os.environ.get(var_name)
        if value is not None:
            return value
        if default is not None:
            return default
        raise KeyError(
            f"Environment variable '{var_name}' is not set "
            f"and no default provided"
        )

    return ENV_VAR_PATTERN.sub(replacer, s)


def load_yaml_config(
    path: Union[str, Path],
    substitute_vars: bool = True,
) -> ConfigSchema:
    """Load and validate a YAML configuration file.

    Args:
        path: Path to the YAML configuration file.
        substitute_vars: Whether to substitute environment variables.

    Returns:
        Validated ConfigSchema object.

    Raises:
        ConfigLoadError: If the file cannot be loaded or validated.
        FileNotFoundError: If the config file doesn't exist.
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"Invalid YAML in {path}: {e}") from e

    if raw_data is None:
        raise ConfigLoadError(f"Empty configuration file: {path}")

    return _validate(raw_data, substitute_vars)


def load_yaml_string(
    content: str,
    substitute_vars: bool = True,
) -> ConfigSchema:
    """Load and validate a YAML configuration from a string.

    Raises:
        ConfigLoadError: If the content cannot be parsed or validated.
    """
    try:
        raw_data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"Invalid YAML: {e}") from e

    if raw_data is None:
        raise ConfigLoadError("Empty configuration")

    return _validate(raw_data, substitute_vars)


def _validate(raw_data: Any, substitute_vars: bool) -> ConfigSchema:
    if not isinstance(raw_data, dict):
        raise ConfigLoadError(
            f"Configuration must be a dictionary, got {type(raw_data).__name__}"
        )

    if substitute_vars:
        try:
            raw_data = substitute_env_vars(raw_data)
        except KeyError as e:
            raise ConfigLoadError(f"Environment variable error: {e}") from e

    try:
        return ConfigSchema.model_validate(raw_data)
    except ValidationError as e:
        raise ConfigLoadError(f"Configuration validation failed: {e}") from e


def build_descriptors(
    handler: HandlerSchema,
    available: Optional[Dict[str, Any]] = None,
) -> List[ProviderDescriptor]:
    """Turn the enabled providers of a handler section into descriptors.

    Args:
        handler: Validated handler configuration.
        available: Entry points by name. Defaults to the installed
            ``playpath.providers`` entry points.

    Returns:
        Descriptors in configuration order.

    Raises:
        ConfigLoadError: If a provider's entry point is not installed.
    """
    if available is None:
        available = discover_providers()

    descriptors = []
    for provider in handler.providers:
        if not provider.enabled:
            continue

        ep_name = provider.entry_point_name
        if ep_name not in available:
            raise ConfigLoadError(
                f"Provider '{provider.name}' not found "
                f"(entry point '{ep_name}'). Available: {sorted(available)}"
            )

        descriptors.append(ProviderDescriptor(
            name=provider.name,
            factory=entry_point_factory(available[ep_name]),
            version=provider.version,
            config=dict(provider.config),
            priority=provider.priority,
            priorities=dict(provider.priorities),
        ))

    return descriptors


def setup_observability(config: ObservabilitySchema) -> ObservabilityHub:
    """Configure the observability hub from a config section.

    Returns:
        The configured hub.
    """
    sinks: List[Sink] = []
    for sink in config.sinks:
        if sink.type == "file":
            sinks.append(FileSink(sink.path, **sink.options))
        elif sink.type == "console":
            sinks.append(ConsoleSink(**sink.options))
        elif sink.type == "memory":
            sinks.append(MemorySink(**sink.options))
        else:
            sinks.append(NullSink())

    hub = ObservabilityHub.get_instance()
    hub.configure(level=TraceLevel.from_string(config.level), sinks=sinks)
    return hub
