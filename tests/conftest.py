"""Shared test fixtures for all test modules."""

import sys
import tempfile
from pathlib import Path

import pytest

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from forlog.grammar import Grammar  # noqa: E402
from forlog.models import GrammarSettings  # noqa: E402


SAMPLE_GRAMMAR = """\
/* Fantasy names.
   Outcomes before the first header belong to START_SYMBOL. */
>[Name] the [Title]

Name
  >Aldo
  // Brina is three times as likely as Aldo
  #3>Brina

Title               // epithets
  >Brave
  >Wise
"""


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def grammar_settings():
    """Default settings independent of FORLOG_* environment variables."""
    return GrammarSettings()


@pytest.fixture
def grammar(grammar_settings):
    """An empty grammar with a fixed seed."""
    return Grammar(settings=grammar_settings, seed=1234)


@pytest.fixture
def sample_source():
    """Sample grammar source for testing."""
    return SAMPLE_GRAMMAR


@pytest.fixture
def sample_grammar(sample_source, grammar_settings):
    """Sample grammar compiled into a seeded grammar."""
    return Grammar(sample_source, settings=grammar_settings, seed=1234)


@pytest.fixture
def grammar_file(temp_dir, sample_source):
    """Sample grammar written to disk."""
    path = temp_dir / "names.forlog"
    path.write_text(sample_source)
    return path
