"""Pydantic validation models for playpath configuration.

Defines the schema for YAML configuration files with validation
rules and sensible defaults.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from playpath.core.capabilities import Capability


class SinkSchema(BaseModel):
    """Configuration for an observability sink.

    Attributes:
        type: Sink type (file, console, memory, null).
        path: File path for file sinks.
        options: Additional sink-specific options.
    """

    type: Literal["file", "console", "memory", "null"] = "file"
    path: Optional[str] = None
    options: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def validate_file_sink_has_path(self) -> "SinkSchema":
        if self.type == "file" and not self.path:
            raise ValueError("File sink requires 'path' to be set")
        return self


class ObservabilitySchema(BaseModel):
    """Configuration for tracing.

    Attributes:
        level: Trace level (off, minimal, normal, verbose).
        sinks: List of sink configurations.
    """

    level: Literal["off", "minimal", "normal", "verbose"] = "off"
    sinks: List[SinkSchema] = Field(default_factory=list)


class ProviderSchema(BaseModel):
    """Configuration for one provider.

    Attributes:
        name: Name the provider is registered under in the handler.
        entry_point: Entry point name in the ``playpath.providers`` group.
            Defaults to ``name``.
        enabled: Disabled providers are not loaded.
        version: Version string reported by the provider.
        priority: Overrides the provider's default priority.
        priorities: Per-capability priority overrides.
        config: Keyword arguments passed to the provider factory.
    """

    name: str = Field(min_length=1)
    entry_point: Optional[str] = None
    enabled: bool = True
    version: str = "0.0.0"
    priority: Optional[int] = None
    priorities: Dict[Capability, int] = Field(default_factory=dict)
    config: Dict[str, Any] = Field(default_factory=dict)

    @property
    def entry_point_name(self) -> str:
        return self.entry_point or self.name


class HandlerSchema(BaseModel):
    """Configuration for a provider handler.

    Attributes:
        unique_id: Identifier used in log messages (auto-assigned if unset).
        isolate_faults: Treat provider exceptions as declines.
        duplicate_names: Policy for provider name collisions.
        providers: Providers in registration order.
    """

    unique_id: Optional[int] = None
    isolate_faults: bool = False
    duplicate_names: Literal["error", "replace"] = "error"
    providers: List[ProviderSchema] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_unique_names(self) -> "HandlerSchema":
        if self.duplicate_names == "error":
            seen = set()
            for provider in self.providers:
                if provider.name in seen:
                    raise ValueError(f"Duplicate provider name: '{provider.name}'")
                seen.add(provider.name)
        return self


class ConfigSchema(BaseModel):
    """Root configuration schema.

    Attributes:
        version: Configuration file version (currently "1.0").
        handler: Provider handler settings.
        observability: Tracing settings.
    """

    version: str = "1.0"
    handler: HandlerSchema = Field(default_factory=HandlerSchema)
    observability: ObservabilitySchema = Field(default_factory=ObservabilitySchema)

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        supported = {"1.0"}
        if v not in supported:
            raise ValueError(
                f"Unsupported config version: {v}. Supported: {supported}"
            )
        return v
