"""Configuration system for playpath.

Provides YAML-based declarative handler configuration with:
- Pydantic schema validation
- Environment variable substitution (${VAR} and ${VAR:-default})
- Conversion to provider descriptors and observability sinks

Example YAML config:
    version: "1.0"
    handler:
      unique_id: 1
      isolate_faults: false
      providers:
        - name: http
          priority: 100
        - name: youtube
          entry_point: yt
          priorities:
            suggest_video_stream: 10
          config:
            api_key: "${YT_API_KEY:-}"
    observability:
      level: normal
      sinks:
        - type: file
          path: "${LOG_DIR:-./logs}/dispatch.jsonl"

Example usage:
    >>> from playpath.config import load_yaml_config
    >>> config = load_yaml_config("handler.yaml")
    >>> for provider in config.handler.providers:
    ...     print(provider.name)
"""

from playpath.config.schema import (
    ConfigSchema,
    HandlerSchema,
    ProviderSchema,
    ObservabilitySchema,
    SinkSchema,
)
from playpath.config.loader import (
    load_yaml_config,
    load_yaml_string,
    substitute_env_vars,
    build_descriptors,
    setup_observability,
    ConfigLoadError,
)

__all__ = [
    # Schema models
    "ConfigSchema",
    "HandlerSchema",
    "ProviderSchema",
    "ObservabilitySchema",
    "SinkSchema",
    # Loader
    "load_yaml_config",
    "load_yaml_string",
    "substitute_env_vars",
    "build_descriptors",
    "setup_observability",
    "ConfigLoadError",
]
