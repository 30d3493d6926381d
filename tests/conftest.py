# tests/conftest.py
"""
Shared fixtures for the strictmemo test-suite.

Offense expectations are written the way RuboCop specs write them: the
Ruby source with a caret line under the offending statement::

    def foo
      @foo = T.let(@foo, T.nilable(Foo))
      ^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^ This two-stage workaround ...
      @foo ||= Foo.new
    end

The caret lines are stripped before the source is inspected.
"""

import re
import textwrap

import pytest

from strictmemo.checkers import CheckerRunner
from strictmemo.config import LintConfig

SORBET_LOCKED = {"foo": "0.0.1", "bar": "0.0.2", "sorbet-static": "0.5.10210"}

_ANNOTATION = re.compile(r"^(?P<indent> *)(?P<carets>\^+) (?P<message>.+)$")


def parse_annotated(annotated):
    """Split annotated source into (source, [(line, column, length, message)])."""
    source_lines = []
    expected = []
    for line in annotated.splitlines(keepends=True):
        match = _ANNOTATION.match(line.rstrip("\n"))
        if match and source_lines:
            expected.append((
                len(source_lines),
                len(match.group("indent")) + 1,
                len(match.group("carets")),
                match.group("message"),
            ))
        else:
            source_lines.append(line)
    return "".join(source_lines), expected


@pytest.fixture
def locked_packages():
    return dict(SORBET_LOCKED)


@pytest.fixture
def lint_config():
    return LintConfig(indentation_width=2)


@pytest.fixture
def make_runner(locked_packages):
    """Factory for runners; keyword arguments override LintConfig fields."""

    def _make(locked=None, **overrides):
        config = LintConfig(indentation_width=2).with_overrides(**overrides)
        return CheckerRunner(config, locked if locked is not None else locked_packages)

    return _make


@pytest.fixture
def runner(lint_config, locked_packages):
    return CheckerRunner(lint_config, locked_packages)


@pytest.fixture
def expect_offense(runner):
    """Assert the caret-annotated offenses; returns the plain source."""

    def _expect(annotated, path="example.rb", using=None):
        source, expected = parse_annotated(textwrap.dedent(annotated))
        result = (using or runner).run_source(source, path)
        assert result.error is None, str(result.error)
        actual = [
            (d.location.line, d.location.column, d.range.length, d.message)
            for d in result.diagnostics
        ]
        assert actual == expected
        return source

    return _expect


@pytest.fixture
def expect_no_offenses(runner):
    def _expect(source, path="example.rb", using=None):
        result = (using or runner).run_source(textwrap.dedent(source), path)
        assert result.error is None, str(result.error)
        assert result.diagnostics == []
        return result

    return _expect


@pytest.fixture
def expect_correction(runner):
    """Assert that autocorrecting ``source`` gives ``corrected``."""

    def _expect(source, corrected, path="example.rb", using=None):
        text, result = (using or runner).autocorrect_source(source, path)
        assert text == textwrap.dedent(corrected)
        return result

    return _expect
