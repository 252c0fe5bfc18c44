"""Tests for grammar.py - the grammar context."""

import logging

import pytest

from forlog import ExpansionDepthError, Grammar, GrammarSettings, GRAMMAR_VERSION
from forlog.expander import ExpansionDepthError as ExpanderDepthError
from forlog.compiler import START_SYMBOL


class TestGrammarConstruction:
    """Tests for creating grammars."""

    def test_empty_grammar(self, grammar):
        assert grammar.rules == {}
        assert grammar.variables == {}
        assert grammar.rule_names() == []

    def test_source_is_compiled(self, sample_grammar):
        assert sample_grammar.rule_names() == ["Name", START_SYMBOL, "Title"]

    def test_version(self, grammar):
        assert grammar.version == GRAMMAR_VERSION == "2.0"

    def test_depth_error_exported(self):
        assert ExpansionDepthError is ExpanderDepthError
        assert issubclass(ExpansionDepthError, Exception)

    def test_default_settings(self):
        """Without explicit settings the application defaults apply."""
        grammar = Grammar()
        assert grammar.settings.error_return_string == "ERROR"
        assert grammar.settings.max_depth >= 1

    def test_grammars_are_isolated(self):
        first = Grammar("A\n>one", settings=GrammarSettings(keep_variables=True))
        second = Grammar("A\n>two", settings=GrammarSettings(keep_variables=True))
        first.add_command("only_first", lambda args: "")

        first.expand("<set|x|1>")

        assert second.expand("[A]") == "two"
        assert second.variables == {}
        assert "only_first" not in second.commands


class TestGrammarCompile:
    """Tests for Grammar.compile."""

    def test_returns_warning_count(self, grammar):
        assert grammar.compile("A\n>x\nbroken line\n") == 1

    def test_follows_override_setting(self, grammar):
        grammar.compile("A\n>x")
        grammar.set_setting("override_rules", True)
        grammar.compile("A\n>y")
        assert grammar.rules["A"] == ["y"]

    def test_accumulates_without_override(self, grammar):
        grammar.compile("A\n>x")
        grammar.compile("A\n>y")
        assert grammar.rules["A"] == ["x", "y"]

    def test_diagnostics_logged(self, grammar, caplog):
        with caplog.at_level(logging.WARNING, logger="forlog.grammar"):
            grammar.compile("what is this")
        assert "line 1 can not be parsed" in caplog.text

    def test_diagnostics_silenced(self, grammar, caplog):
        grammar.set_setting("log_diagnostics", False)
        with caplog.at_level(logging.DEBUG):
            grammar.compile("what is this")
            grammar.expand("[Missing]")
        assert caplog.text == ""


class TestGrammarExpand:
    """Tests for Grammar.expand."""

    def test_never_raises(self, grammar):
        def broken(args):
            raise ValueError("bad")

        grammar.add_command("broken", broken)
        assert grammar.expand("<broken>[Nope]{nope}<nope>") == "ERROR" * 4

    def test_failure_is_logged(self, grammar, caplog):
        with caplog.at_level(logging.ERROR):
            grammar.expand("[Missing]")
        assert "call to unknown rule 'Missing'" in caplog.text

    def test_command_exception_logged_with_traceback(self, grammar, caplog):
        def broken(args):
            raise ValueError("bad value")

        grammar.add_command("broken", broken)
        with caplog.at_level(logging.ERROR):
            grammar.expand("<broken>")

        assert "command 'broken' failed: bad value" in caplog.text
        assert caplog.records[-1].exc_info is not None

    def test_depth_error_logged(self, grammar, caplog):
        grammar.compile("Loop\n>[Loop]")
        grammar.set_setting("max_depth", 10)
        with caplog.at_level(logging.ERROR):
            assert grammar.expand("[Loop]") == "ERROR"
        assert "aborting expansion" in caplog.text

    def test_python_recursion_limit(self, grammar):
        """A depth limit beyond Python's own still returns the error string."""
        grammar.compile("Loop\n>[Loop]")
        grammar.set_setting("max_depth", 10 ** 9)
        assert grammar.expand("[Loop]") == "ERROR"

    def test_empty_template(self, grammar):
        assert grammar.expand("") == ""

    def test_missing_start_symbol(self, grammar):
        assert grammar.expand() == "ERROR"

    def test_process_keeps_escapes(self, grammar):
        """The expansion hook for commands leaves escapes for the post-pass."""
        grammar.compile("A\n>a")
        assert grammar.process("[A]\\n") == "a\\n"


class TestSetSetting:
    """Tests for the validated setting setter."""

    @pytest.mark.parametrize("name, value", [
        ("override_rules", True),
        ("keep_variables", True),
        ("log_diagnostics", False),
        ("error_return_string", "missing"),
        ("max_depth", 5),
    ])
    def test_valid_values(self, grammar, name, value):
        assert grammar.set_setting(name, value) is True
        assert getattr(grammar.settings, name) == value

    @pytest.mark.parametrize("name, value", [
        ("override_rules", "yes"),
        ("keep_variables", 1),
        ("log_diagnostics", None),
        ("error_return_string", 0),
        ("error_return_string", "[oops]"),
        ("max_depth", 0),
        ("max_depth", "10"),
    ])
    def test_invalid_values(self, grammar, name, value, caplog):
        before = getattr(grammar.settings, name)
        with caplog.at_level(logging.ERROR):
            assert grammar.set_setting(name, value) is False
        assert getattr(grammar.settings, name) == before
        assert f"is not a valid value for setting '{name}'" in caplog.text

    def test_unknown_setting(self, grammar, caplog):
        with caplog.at_level(logging.ERROR):
            assert grammar.set_setting("overrideRules", True) is False
        assert "there is no setting named 'overrideRules'" in caplog.text
