"""Batch generation from grammar files."""

import json
import logging
from datetime import datetime
from pathlib import Path

from .grammar import Grammar
from .models import GrammarSettings

logger = logging.getLogger(__name__)


class GrammarError(Exception):
    """Raised when a grammar file cannot be loaded."""
    pass


def load_grammar(path: Path) -> str:
    """
    Read grammar source from a file.

    Args:
        path: Path to a grammar file

    Returns:
        Grammar source text

    Raises:
        GrammarError: If the file cannot be read or decoded
    """
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise GrammarError(f"Cannot read grammar {path}: {e}")


def run_grammar(
    source: str,
    count: int = 10,
    template: str | None = None,
    settings: GrammarSettings | None = None,
    seed: int | None = None,
) -> list[str]:
    """
    Generate multiple texts from grammar source.

    Args:
        source: Grammar source text
        count: Number of variations to generate
        template: Template to expand (default: "[START_SYMBOL]")
        settings: Grammar settings (default: environment defaults)
        seed: Random seed for reproducible output

    Returns:
        List of generated texts
    """
    grammar = Grammar(source, settings=settings, seed=seed)
    return [grammar.expand(template) for _ in range(count)]


def save_outputs(
    outputs: list[str],
    output_dir: Path,
    prefix: str,
    metadata: dict | None = None,
) -> Path:
    """
    Write generated texts and a metadata file to a directory.

    Files are named ``{prefix}_{i}.txt``; metadata goes to
    ``{prefix}_metadata.json``.

    Args:
        outputs: Generated texts
        output_dir: Directory to write into (created if missing)
        prefix: File name prefix
        metadata: Extra metadata to record alongside the count and timestamp

    Returns:
        Path to the metadata file
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    for i, text in enumerate(outputs):
        (output_dir / f"{prefix}_{i}.txt").write_text(text, encoding="utf-8")

    record = dict(metadata or {})
    record.update({
        "prefix": prefix,
        "count": len(outputs),
        "created_at": datetime.now().isoformat(),
    })
    metadata_file = output_dir / f"{prefix}_metadata.json"
    metadata_file.write_text(json.dumps(record, indent=2))
    logger.info(f"Saved {len(outputs)} outputs to {output_dir}")
    return metadata_file
