"""Pydantic models for runtime grammar settings."""

from dataclasses import asdict

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    field_validator,
)

from .config import GrammarDefaults, settings as app_settings

# Characters that would make the error string itself a call or an escape
MARKUP_CHARS = frozenset("[{<\\")


class GrammarSettings(BaseModel):
    """Settings of a single grammar instance.

    Assignment is validated, so ``settings.keep_variables = "yes"`` raises a
    ``ValidationError`` instead of silently storing a string.
    """
    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    override_rules: StrictBool = False
    keep_variables: StrictBool = False
    log_diagnostics: StrictBool = True
    error_return_string: StrictStr = "ERROR"
    max_depth: StrictInt = Field(100, ge=1)

    @field_validator("error_return_string")
    @classmethod
    def error_string_is_plain_text(cls, value: str) -> str:
        # Command results are expanded again, so markup here could loop forever
        if MARKUP_CHARS & set(value):
            raise ValueError("error_return_string must not contain '[', '{', '<' or '\\'")
        return value

    @classmethod
    def from_defaults(cls, defaults: GrammarDefaults | None = None) -> "GrammarSettings":
        """Build settings from the application defaults (environment-aware)."""
        if defaults is None:
            defaults = app_settings.grammar
        return cls(**asdict(defaults))
