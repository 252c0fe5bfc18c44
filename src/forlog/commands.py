"""Command registry and built-in commands.

Commands are invoked from templates as ``<name|arg1|arg2|...>``. A command
is a callable taking the list of (already expanded) arguments and returning
a string, which is expanded again by the caller.
"""

import logging
import operator
import re
from functools import partial
from typing import Callable, Protocol

from .models import GrammarSettings

logger = logging.getLogger(__name__)

Command = Callable[[list[str]], str]

VARIABLE_NAME_RE = re.compile(r"[a-z][A-Za-z0-9_$%&!?]*")
INT_PREFIX_RE = re.compile(r"\s*([+-]?[0-9]+)")
RESERVED_NAME_CHARS = set("|<>\\")


class CommandRegistrationError(ValueError):
    """Raised when a command name or function is rejected."""
    pass


class CommandContext(Protocol):
    """What built-in commands need from the grammar that owns them."""

    variables: dict[str, str]
    settings: GrammarSettings

    def report(self, level: int, message: str) -> None:
        ...

    def process(self, text: str) -> str:
        ...


def parse_int(arg: str) -> int | None:
    """Parse the leading integer of an argument ("12abc" -> 12), or None."""
    match = INT_PREFIX_RE.match(arg)
    if match is None:
        return None
    return int(match.group(1))


# Argument validators: report the problem and return False on failure.

def has_enough_arguments(ctx: CommandContext, name: str, expected: int, found: int) -> bool:
    if found < expected:
        ctx.report(
            logging.ERROR,
            f"not enough arguments in '{name}' command; expected {expected}, found {found}",
        )
        return False
    return True


def is_int(ctx: CommandContext, name: str, arg: str) -> bool:
    if parse_int(arg) is None:
        ctx.report(logging.ERROR, f"argument '{arg}' in '{name}' command is not a number")
        return False
    return True


def is_non_negative_int(ctx: CommandContext, name: str, arg: str) -> bool:
    if not is_int(ctx, name, arg):
        return False
    if parse_int(arg) < 0:
        ctx.report(logging.ERROR, f"argument '{arg}' in '{name}' command is not a number >= 0")
        return False
    return True


def is_variable_name(ctx: CommandContext, name: str, arg: str) -> bool:
    if VARIABLE_NAME_RE.fullmatch(arg) is None:
        ctx.report(
            logging.ERROR,
            f"argument '{arg}' in '{name}' command is not a valid variable name",
        )
        return False
    return True


# Built-in commands

def cmd_set(ctx: CommandContext, args: list[str], name: str = "set") -> str:
    """Store the expansion of args[1] in the variable named args[0]."""
    if not has_enough_arguments(ctx, name, 2, len(args)) or not is_variable_name(ctx, name, args[0]):
        return ctx.settings.error_return_string
    ctx.variables[args[0]] = ctx.process(args[1])
    return ""


def cmd_set_if_unset(ctx: CommandContext, args: list[str], name: str = "set?") -> str:
    """Like set, but leaves an already defined variable untouched."""
    if not has_enough_arguments(ctx, name, 2, len(args)) or not is_variable_name(ctx, name, args[0]):
        return ctx.settings.error_return_string
    if args[0] not in ctx.variables:
        ctx.variables[args[0]] = ctx.process(args[1])
    return ""


def cmd_compare(
    ctx: CommandContext,
    args: list[str],
    name: str,
    relation: Callable[[int, int], bool],
) -> str:
    """Return args[2] if the relation holds for args[0], args[1], else args[3] or ''."""
    if (
        not has_enough_arguments(ctx, name, 3, len(args))
        or not is_int(ctx, name, args[0])
        or not is_int(ctx, name, args[1])
    ):
        return ctx.settings.error_return_string
    if relation(parse_int(args[0]), parse_int(args[1])):
        return args[2]
    if len(args) > 3:
        return args[3]
    return ""


def cmd_for(ctx: CommandContext, args: list[str], name: str = "for") -> str:
    """Repeat args[1] args[0] times."""
    if not has_enough_arguments(ctx, name, 2, len(args)) or not is_non_negative_int(ctx, name, args[0]):
        return ctx.settings.error_return_string
    return args[1] * parse_int(args[0])


def cmd_rnd(ctx: CommandContext, args: list[str], name: str = "rnd") -> str:
    """Branch-inverted repetition kept for grammar compatibility.

    Well-formed arguments yield the error string. When validation fails, the
    second argument (empty if missing) is repeated ``args[0]`` times, which
    only works out when ``args[0]`` is still a non-negative integer.
    """
    if has_enough_arguments(ctx, name, 2, len(args)) and is_int(ctx, name, args[0]):
        return ctx.settings.error_return_string
    count = parse_int(args[0]) if args else None
    if count is None or count < 0:
        return ctx.settings.error_return_string
    text = args[1] if len(args) > 1 else ""
    return text * count


COMPARISONS = {
    "eq": operator.eq,
    "lt": operator.lt,
    "leq": operator.le,
    "gt": operator.gt,
    "geq": operator.ge,
}


def builtin_commands(ctx: CommandContext) -> dict[str, Command]:
    """Bind the built-in commands to a grammar context."""
    commands: dict[str, Command] = {
        "set": partial(cmd_set, ctx),
        "set?": partial(cmd_set_if_unset, ctx),
        "for": partial(cmd_for, ctx),
        "rnd": partial(cmd_rnd, ctx),
    }
    for name, relation in COMPARISONS.items():
        commands[name] = partial(cmd_compare, ctx, name=name, relation=relation)
    return commands


class CommandRegistry:
    """Mapping of command name to command function, seeded with built-ins."""

    def __init__(self, ctx: CommandContext):
        """Initialize the registry.

        Args:
            ctx: Grammar context the built-in commands operate on
        """
        self._commands: dict[str, Command] = {}
        for name, func in builtin_commands(ctx).items():
            self.register(name, func)

    def register(self, name: str, func: Command) -> None:
        """Add a command, replacing any existing command of the same name.

        Raises:
            CommandRegistrationError: If the name is empty or contains
                call syntax, or func is not callable
        """
        if not isinstance(name, str) or not name:
            raise CommandRegistrationError(f"Invalid command name: {name!r}")
        if RESERVED_NAME_CHARS & set(name):
            raise CommandRegistrationError(f"Command name {name!r} contains reserved characters")
        if not callable(func):
            raise CommandRegistrationError(f"Command {name!r} is not callable")
        if name in self._commands:
            logger.debug(f"Replacing command '{name}'")
        self._commands[name] = func

    def get(self, name: str) -> Command | None:
        return self._commands.get(name)

    def names(self) -> list[str]:
        return sorted(self._commands)

    def __contains__(self, name: object) -> bool:
        return name in self._commands

    def __len__(self) -> int:
        return len(self._commands)
