"""Centralized configuration for the forlog application."""

import os
from dataclasses import dataclass, field


def _env_bool(name: str, default: bool) -> bool:
    """Read a boolean flag from the environment ("1", "true", "yes", "on")."""
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class GrammarDefaults:
    """Default settings for a newly created grammar."""
    override_rules: bool = False
    keep_variables: bool = False
    log_diagnostics: bool = True
    error_return_string: str = "ERROR"
    max_depth: int = 100  # nested expansions before giving up


@dataclass(frozen=True)
class GenerationConfig:
    """Defaults for batch generation."""
    default_count: int = 10
    default_prefix: str = "forlog"


@dataclass
class Settings:
    """Application settings, can be overridden via environment variables."""
    grammar: GrammarDefaults = field(default_factory=GrammarDefaults)
    generation: GenerationConfig = field(default_factory=GenerationConfig)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables with FORLOG_ prefix."""
        grammar = GrammarDefaults(
            override_rules=_env_bool("FORLOG_OVERRIDE_RULES", GrammarDefaults.override_rules),
            keep_variables=_env_bool("FORLOG_KEEP_VARIABLES", GrammarDefaults.keep_variables),
            log_diagnostics=_env_bool("FORLOG_LOG_DIAGNOSTICS", GrammarDefaults.log_diagnostics),
            error_return_string=os.environ.get("FORLOG_ERROR_STRING", GrammarDefaults.error_return_string),
            max_depth=int(os.environ.get("FORLOG_MAX_DEPTH", GrammarDefaults.max_depth)),
        )
        generation = GenerationConfig(
            default_count=int(os.environ.get("FORLOG_DEFAULT_COUNT", GenerationConfig.default_count)),
            default_prefix=os.environ.get("FORLOG_DEFAULT_PREFIX", GenerationConfig.default_prefix),
        )
        return cls(grammar=grammar, generation=generation)


# Global settings instance - use from_env() for environment-aware settings
settings = Settings.from_env()
