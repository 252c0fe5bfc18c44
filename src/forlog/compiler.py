"""Compiler for the line-oriented forlog grammar format.

A grammar source looks like::

    /* block comments may span lines */
    Greeting            // a rule header
      > hello
      #3 > hi           // weighted outcome, stored three times

Outcomes that appear before the first header belong to ``START_SYMBOL``.
"""

import logging
import re
from typing import Callable

logger = logging.getLogger(__name__)

START_SYMBOL = "START_SYMBOL"

RULE_NAME_PATTERN = r"[A-Z][A-Za-z0-9_$%&!?]*"

BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
LINE_COMMENT_RE = re.compile(r"//.*$")
RULE_HEADER_RE = re.compile(rf"^[ \t]*({RULE_NAME_PATTERN})[ \t]*$")
OUTCOME_RE = re.compile(r"^[ \t]*(?:#[ \t]*([0-9]*))?[ \t]*>(.*)$")
BLANK_RE = re.compile(r"^[ \t]*$")

# Rule name -> outcome templates, weight realized by repetition
RuleTable = dict[str, list[str]]

Reporter = Callable[[int, str], None]


def _default_report(level: int, message: str) -> None:
    logger.log(level, message)


def _preview(line: str, width: int = 24) -> str:
    """Truncate a line for diagnostics."""
    if len(line) > width:
        return line[:width] + "..."
    return line


def parse_weight(raw: str | None) -> int:
    """Parse a ``#N`` weight marker, defaulting to 1 when absent or empty."""
    if not raw:
        return 1
    return int(raw)


def compile_grammar(
    source: str,
    rules: RuleTable,
    override_rules: bool = False,
    report: Reporter | None = None,
) -> int:
    """
    Compile grammar source text into a rule table.

    Compilation never fails: lines that match neither a rule header, an
    outcome nor a blank line are reported and skipped.

    Args:
        source: Grammar source text
        rules: Rule table to extend in place
        override_rules: Whether a rule header discards the rule's earlier outcomes
        report: Callable receiving (logging level, message) diagnostics

    Returns:
        Number of unparsable lines
    """
    if report is None:
        report = _default_report

    warnings = 0
    current_rule = START_SYMBOL
    # The implicit START_SYMBOL header takes effect with its first outcome
    pending_implicit_header = override_rules

    source = BLOCK_COMMENT_RE.sub("", source)

    for number, line in enumerate(source.split("\n"), start=1):
        line = LINE_COMMENT_RE.sub("", line.rstrip("\r"))

        match = RULE_HEADER_RE.match(line)
        if match:
            current_rule = match.group(1)
            pending_implicit_header = False
            if override_rules:
                rules.pop(current_rule, None)
            continue

        match = OUTCOME_RE.match(line)
        if match:
            if pending_implicit_header:
                rules.pop(START_SYMBOL, None)
                pending_implicit_header = False
            weight = parse_weight(match.group(1))
            outcomes = rules.setdefault(current_rule, [])
            outcomes.extend([match.group(2)] * weight)
            continue

        if BLANK_RE.match(line):
            continue

        warnings += 1
        report(
            logging.WARNING,
            f"line {number} can not be parsed and is ignored: {_preview(line)}",
        )

    report(logging.INFO, f"finished compiling; found {warnings} unparsable lines")
    return warnings
