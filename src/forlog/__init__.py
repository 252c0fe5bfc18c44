"""Forlog: grammar-driven procedural text generation."""

from .expander import ExpansionDepthError
from .grammar import Grammar, GRAMMAR_VERSION
from .models import GrammarSettings

__all__ = ["Grammar", "GrammarSettings", "ExpansionDepthError", "GRAMMAR_VERSION"]
