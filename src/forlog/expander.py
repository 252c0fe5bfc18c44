"""Recursive expansion of templates against a grammar.

Template syntax:

    [Rule]  [RuleA|RuleB]     pick one outcome of the named rules
    {variable}                value stored by <set|...>
    <command|arg|~literal>    invoke a registered command
    \\X                        keep X literally

Every failure is logged and replaced in-band by the grammar's error string;
the rest of the template is still expanded.
"""

import logging
import re
import string
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .grammar import Grammar

NAME_CHARS = frozenset(string.ascii_letters + string.digits + "_$%&!?")
RULE_INITIALS = frozenset(string.ascii_uppercase)
VARIABLE_INITIALS = frozenset(string.ascii_lowercase)

ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)
CONTROL_ESCAPES = {"n": "\n", "t": "\t"}


class ExpansionDepthError(Exception):
    """Raised when nested expansion exceeds the configured maximum depth."""
    pass


def post_process(text: str) -> str:
    """Resolve escape sequences once expansion is complete.

    ``\\n`` and ``\\t`` become newline and tab, any other ``\\X`` becomes ``X``.
    """
    return ESCAPE_RE.sub(lambda m: CONTROL_ESCAPES.get(m.group(1), m.group(1)), text)


class Cursor:
    """Read position in a template, shared by the sub-parsers of one scan."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def next(self) -> str:
        char = self.text[self.pos]
        self.pos += 1
        return char


class Expander:
    """Expands templates using the rules, variables and commands of a grammar."""

    def __init__(self, grammar: "Grammar"):
        self.grammar = grammar
        # Nesting level of the command currently running
        self.command_depth = 0

    @property
    def error_string(self) -> str:
        return self.grammar.settings.error_return_string

    def _fail(self, message: str) -> str:
        self.grammar.report(logging.ERROR, message)
        return self.error_string

    def process(self, text: str, depth: int = 0) -> str:
        """
        Expand every rule, variable and command call in text.

        Escape sequences are copied through unchanged; post_process()
        resolves them at the very end.

        Args:
            text: Template to expand
            depth: Current nesting level

        Returns:
            Expanded text

        Raises:
            ExpansionDepthError: If nesting exceeds settings.max_depth
        """
        if depth > self.grammar.settings.max_depth:
            raise ExpansionDepthError(
                f"expansion nested deeper than {self.grammar.settings.max_depth} levels"
            )

        cursor = Cursor(text)
        parts: list[str] = []
        while not cursor.at_end():
            char = cursor.next()
            if char == "\\":
                parts.append(char)
                if not cursor.at_end():
                    parts.append(cursor.next())
            elif char == "[":
                parts.append(self.process(self.rule_call(cursor), depth + 1))
            elif char == "{":
                parts.append(self.process(self.variable_call(cursor), depth + 1))
            elif char == "<":
                # Commands expand their own arguments and result
                parts.append(self.command_call(cursor, depth))
            else:
                parts.append(char)
        return "".join(parts)

    def rule_call(self, cursor: Cursor) -> str:
        """Parse ``Name|Name...]`` after a ``[`` and return one unexpanded outcome."""
        rules = self.grammar.rules
        outcomes: list[str] = []
        name = ""
        consumed = "["

        while not cursor.at_end():
            char = cursor.next()
            consumed += char
            if (not name and char in RULE_INITIALS) or (name and char in NAME_CHARS):
                name += char
                continue
            if char not in "|]":
                return self._fail(f"illegal character '{char}' in rule call")
            if not name:
                return self._fail("call to nameless rule")
            if name not in rules:
                return self._fail(f"call to unknown rule '{name}'")
            outcomes.extend(rules[name])
            name = ""
            if char == "]":
                if not outcomes:
                    return self._fail(f"rule call produces no outcomes: {consumed}")
                return self.grammar.rng.choice(outcomes)

        return self._fail(f"unterminated rule call: {consumed}")

    def variable_call(self, cursor: Cursor) -> str:
        """Parse ``name}`` after a ``{`` and return the stored value."""
        name = ""

        while not cursor.at_end():
            char = cursor.next()
            if (not name and char in VARIABLE_INITIALS) or (name and char in NAME_CHARS):
                name += char
                continue
            if char != "}":
                return self._fail(f"illegal character '{char}' in variable call")
            if not name:
                return self._fail("call to nameless variable")
            if name not in self.grammar.variables:
                return self._fail(f"call to unknown variable '{name}'")
            return self.grammar.variables[name]

        return self._fail(f"unterminated variable call: {{{name}")

    def split_command(self, cursor: Cursor) -> tuple[list[str], bool]:
        """Read a command call up to its matching ``>``.

        Returns:
            Tuple of (name followed by raw arguments, whether the call was closed)
        """
        args = [""]
        nesting = 0

        while not cursor.at_end():
            char = cursor.next()
            if char == "\\":
                args[-1] += char
                if not cursor.at_end():
                    args[-1] += cursor.next()
                continue
            if char == "<":
                nesting += 1
            elif char == ">":
                nesting -= 1
                if nesting < 0:
                    return args, True
            elif char == "|" and nesting == 0:
                args.append("")
                continue
            args[-1] += char

        return args, False

    def command_call(self, cursor: Cursor, depth: int) -> str:
        """Parse and run a command call after a ``<``, returning its expanded result."""
        args, closed = self.split_command(cursor)
        name = args.pop(0)

        if not closed:
            return self._fail(f"unterminated call to command '{name}'")
        if not name:
            return self._fail("call to nameless command")
        command = self.grammar.commands.get(name)
        if command is None:
            return self._fail(f"call to unknown command '{name}'")

        expanded = [
            arg[1:] if arg.startswith("~") else self.process(arg, depth + 1)
            for arg in args
        ]
        outer_depth, self.command_depth = self.command_depth, depth + 1
        try:
            result = command(expanded)
        except ExpansionDepthError:
            raise
        except Exception as e:
            self.grammar.report(logging.ERROR, f"command '{name}' failed: {e}", exc_info=True)
            return self.error_string
        finally:
            self.command_depth = outer_depth

        if not isinstance(result, str):
            return self._fail(f"command '{name}' returned {type(result).__name__}, expected str")
        return self.process(result, depth + 1)
