#!/usr/bin/env python3
"""CLI entry point for the forlog text generator."""

import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from .config import settings
from .grammar import Grammar
from .models import GrammarSettings
from .runner import GrammarError, load_grammar, save_outputs


def configure_logging(verbose: bool, quiet: bool) -> None:
    """Route grammar diagnostics to stderr at the requested level."""
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@click.command()
@click.argument(
    'grammar_file',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    '-t', '--template',
    default=None,
    help='Template to expand (default: "[START_SYMBOL]")'
)
@click.option(
    '-n', '--count',
    default=settings.generation.default_count,
    type=click.IntRange(min=0),
    help=f'Number of texts to generate (default: {settings.generation.default_count})'
)
@click.option(
    '--seed',
    type=int,
    default=None,
    help='Random seed for reproducible output (default: random)'
)
@click.option(
    '--override-rules',
    is_flag=True,
    default=settings.grammar.override_rules,
    help='Let a repeated rule header replace earlier outcomes'
)
@click.option(
    '--keep-variables',
    is_flag=True,
    default=settings.grammar.keep_variables,
    help='Keep variables between generated texts'
)
@click.option(
    '--error-string',
    default=settings.grammar.error_return_string,
    help='Text substituted for failed expansions (default: "ERROR")'
)
@click.option(
    '--max-depth',
    default=settings.grammar.max_depth,
    type=click.IntRange(min=1),
    help='Maximum nesting of expansions before giving up'
)
@click.option(
    '-o', '--output',
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help='Write each text to a file in this directory instead of stdout'
)
@click.option(
    '--prefix',
    default=settings.generation.default_prefix,
    help='Prefix for output files'
)
@click.option(
    '--dry-run',
    is_flag=True,
    help='Compile the grammar and list its rules without generating'
)
@click.option('-v', '--verbose', is_flag=True, help='Show debug diagnostics')
@click.option('-q', '--quiet', is_flag=True, help='Only show errors')
def main(
    grammar_file: Path,
    template: str | None,
    count: int,
    seed: int | None,
    override_rules: bool,
    keep_variables: bool,
    error_string: str,
    max_depth: int,
    output: Path | None,
    prefix: str,
    dry_run: bool,
    verbose: bool,
    quiet: bool,
):
    """
    Generate text from a forlog grammar file.

    Example:
        forlog names.forlog -n 20
        forlog story.forlog -t "[Hero] meets [Villain]" --seed 7
        forlog story.forlog --dry-run
    """
    configure_logging(verbose, quiet)

    try:
        source = load_grammar(grammar_file)
    except GrammarError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    try:
        grammar_settings = GrammarSettings(
            override_rules=override_rules,
            keep_variables=keep_variables,
            log_diagnostics=not quiet,
            error_return_string=error_string,
            max_depth=max_depth,
        )
    except ValidationError as e:
        click.echo(f"Error: invalid settings: {e}", err=True)
        sys.exit(1)

    grammar = Grammar(settings=grammar_settings, seed=seed)
    warnings = grammar.compile(source)

    if dry_run:
        click.echo(f"Compiled {grammar_file} ({warnings} unparsable lines)")
        for name in grammar.rule_names():
            outcomes = grammar.rules[name]
            click.echo(f"  {name}: {len(outcomes)} outcomes")
        return

    outputs = [grammar.expand(template) for _ in range(count)]

    if output is None:
        for text in outputs:
            click.echo(text)
        return

    save_outputs(
        outputs,
        output,
        prefix,
        metadata={
            "grammar_path": str(grammar_file),
            "template": template,
            "seed": seed,
            "unparsable_lines": warnings,
        },
    )
    click.echo(f"Generated {len(outputs)} texts in: {output}")


if __name__ == '__main__':
    main()
