"""Grammar context tying together rules, variables, commands and settings."""

import logging
import random
from typing import Any

from pydantic import ValidationError

from .commands import Command, CommandRegistry
from .compiler import START_SYMBOL, RuleTable, compile_grammar
from .expander import ExpansionDepthError, Expander, post_process
from .models import GrammarSettings

logger = logging.getLogger(__name__)

GRAMMAR_VERSION = "2.0"

DEFAULT_TEMPLATE = f"[{START_SYMBOL}]"


class Grammar:
    """A compiled grammar and the state its expansions run against.

    Each instance owns its rule table, variable store, command registry and
    random generator, so independent grammars never share state. A single
    instance is not safe to expand from several threads at once.
    """

    version = GRAMMAR_VERSION

    def __init__(
        self,
        source: str | None = None,
        settings: GrammarSettings | None = None,
        seed: int | None = None,
    ):
        """Initialize the grammar.

        Args:
            source: Optional grammar source to compile right away
            settings: Grammar settings (defaults from the environment)
            seed: Seed for the random generator used to pick outcomes
        """
        self.settings = settings if settings is not None else GrammarSettings.from_defaults()
        self.rules: RuleTable = {}
        self.variables: dict[str, str] = {}
        self.rng = random.Random(seed)
        self.commands = CommandRegistry(self)
        self._expander = Expander(self)
        if source is not None:
            self.compile(source)

    def report(self, level: int, message: str, exc_info: bool = False) -> None:
        """Emit a diagnostic unless diagnostics are switched off."""
        if self.settings.log_diagnostics:
            logger.log(level, message, exc_info=exc_info)

    def compile(self, source: str) -> int:
        """
        Compile grammar source into this grammar's rule table.

        Args:
            source: Grammar source text

        Returns:
            Number of lines that could not be parsed
        """
        return compile_grammar(
            source,
            self.rules,
            override_rules=self.settings.override_rules,
            report=self.report,
        )

    def expand(self, template: str | None = None) -> str:
        """
        Expand a template into its final text.

        Never raises: failures show up as the configured error string.

        Args:
            template: Template to expand (default: "[START_SYMBOL]")

        Returns:
            Expanded text with escape sequences resolved
        """
        if template is None:
            template = DEFAULT_TEMPLATE
        if not self.settings.keep_variables:
            self.variables = {}

        try:
            result = self._expander.process(template)
        except ExpansionDepthError as e:
            self.report(logging.ERROR, f"{e}; aborting expansion")
            return self.settings.error_return_string
        except RecursionError:
            self.report(logging.ERROR, "Python recursion limit reached; aborting expansion")
            return self.settings.error_return_string
        return post_process(result)

    def process(self, text: str) -> str:
        """Expand text from inside a running command, without the post-pass."""
        return self._expander.process(text, self._expander.command_depth)

    def add_command(self, name: str, func: Command) -> None:
        """Register a command, replacing any command with the same name."""
        self.commands.register(name, func)

    def set_setting(self, name: str, value: Any) -> bool:
        """
        Change a single setting after validating it.

        Args:
            name: Setting name (e.g. "keep_variables")
            value: New value

        Returns:
            True if the setting was changed, False if it was rejected
        """
        if name not in GrammarSettings.model_fields:
            self.report(logging.ERROR, f"there is no setting named '{name}'")
            return False
        try:
            setattr(self.settings, name, value)
        except ValidationError:
            self.report(logging.ERROR, f"{value!r} is not a valid value for setting '{name}'")
            return False
        return True

    def rule_names(self) -> list[str]:
        return sorted(self.rules)
