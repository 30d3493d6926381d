# tests/test_reporter.py
"""
Tests for the text and JSON reporters.
"""

import io
import json

import pytest

from strictmemo.checkers import CheckerRunResults, CheckerRunner, FileResult
from strictmemo.config import CHECKER_NAME, LintConfig
from strictmemo.errors import RubyParseError
from strictmemo.reporter import JsonReporter, TextReporter

OBSOLETE = (
    "def foo\n"
    "  @foo = T.let(@foo, T.nilable(Foo))\n"
    "  @foo ||= Foo.new\n"
    "end\n"
)


@pytest.fixture
def results(locked_packages):
    runner = CheckerRunner(LintConfig(), locked_packages)
    return CheckerRunResults(
        files=[
            runner.run_source(OBSOLETE, "app/foo.rb"),
            runner.run_source("def bar\nend\n", "app/bar.rb"),
        ],
        checker_names=[CHECKER_NAME],
        gate=runner.gate,
    )


@pytest.fixture
def corrected_results(locked_packages):
    runner = CheckerRunner(LintConfig(), locked_packages)
    _, result = runner.autocorrect_source(OBSOLETE, "app/foo.rb")
    return CheckerRunResults(files=[result], gate=runner.gate, autocorrect=True)


def render(results, colour=False):
    stream = io.StringIO()
    TextReporter(stream, colour=colour).report(results)
    return stream.getvalue()


class TestTextReporter:

    def test_offense_listing(self, results):
        lines = render(results).splitlines()
        assert lines[0] == "Offenses:"
        assert lines[2].startswith(
            f"app/foo.rb:2:3: C: [Correctable] {CHECKER_NAME}: This two-stage workaround"
        )
        assert lines[3] == "  @foo = T.let(@foo, T.nilable(Foo))"
        assert lines[4] == "  " + "^" * 34
        assert lines[-1] == "2 files inspected, 1 offense detected, 1 offense autocorrectable"

    def test_corrected_tag(self, corrected_results):
        output = render(corrected_results)
        assert "[Corrected]" in output
        assert output.rstrip().endswith("1 file inspected, 1 offense detected, 1 offense corrected")

    def test_clean_run(self):
        output = render(CheckerRunResults(files=[FileResult("a.rb")]))
        assert output == "1 file inspected, 0 offenses detected\n"

    def test_errors_section(self):
        error = RubyParseError("unsupported or invalid syntax near 'case x'", "bad.rb", 1, 1)
        output = render(CheckerRunResults(files=[FileResult("bad.rb", error=error)]))
        assert output.startswith("Errors:\n\nbad.rb:1:1: SMEMO-1001:")

    def test_colour(self, results):
        output = render(results, colour=True)
        assert "\x1b[" in output
        assert "Offenses:" in output

    def test_colour_defaults_to_tty(self):
        assert TextReporter(io.StringIO()).colour is False


class TestJsonReporter:

    def test_document(self, results):
        stream = io.StringIO()
        JsonReporter(stream, version="9.9.9").report(results)
        document = json.loads(stream.getvalue())

        assert document["metadata"]["strictmemo_version"] == "9.9.9"
        assert document["metadata"]["gate"]["active"] is True
        assert document["metadata"]["gate"]["locked_version"] == "0.5.10210"
        assert [f["path"] for f in document["files"]] == ["app/foo.rb", "app/bar.rb"]

        (offense,) = document["files"][0]["offenses"]
        assert offense["cop_name"] == CHECKER_NAME
        assert offense["severity"] == "convention"
        assert offense["correctable"] is True
        assert offense["corrected"] is False
        assert offense["location"]["start_line"] == 2
        assert offense["location"]["start_column"] == 3
        assert offense["location"]["length"] == 34

        assert document["summary"] == {
            "offense_count": 1,
            "correctable_count": 1,
            "corrected_count": 0,
            "inspected_file_count": 2,
            "error_count": 0,
        }

    def test_corrected_flag(self, corrected_results):
        document = JsonReporter(io.StringIO()).build(corrected_results)
        (offense,) = document["files"][0]["offenses"]
        assert offense["corrected"] is True
        assert document["summary"]["corrected_count"] == 1

    def test_error_entry(self):
        error = RubyParseError("boom", "bad.rb")
        document = JsonReporter(io.StringIO()).build(
            CheckerRunResults(files=[FileResult("bad.rb", error=error)])
        )
        assert document["files"][0]["error"] == "bad.rb: SMEMO-1001: boom"
        assert document["summary"]["error_count"] == 1
        assert document["metadata"]["gate"] is None
