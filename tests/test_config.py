# tests/test_config.py
"""
Tests for LintConfig and reading RuboCop-style YAML configuration.
"""

import logging
import textwrap

import pytest

from strictmemo.config import (
    CONFIG_FILENAME,
    LintConfig,
    config_from_mapping,
    find_config,
    load_config,
)
from strictmemo.errors import ConfigError


def write_config(tmp_path, text):
    path = tmp_path / CONFIG_FILENAME
    path.write_text(textwrap.dedent(text), encoding="utf-8")
    return path


class TestLintConfig:

    def test_defaults(self):
        config = LintConfig()
        assert config.indentation_width == 2
        assert config.max_line_length == 120
        assert config.enabled
        assert config.severity == "convention"
        assert config.exclude == ()
        assert config.validate() == []

    def test_validate(self):
        config = LintConfig(indentation_width=0, max_line_length=-1)
        warnings = config.validate()
        assert len(warnings) == 2

    def test_with_overrides(self):
        config = LintConfig().with_overrides(max_line_length=None)
        assert config.max_line_length is None
        assert config.indentation_width == 2

    def test_source_does_not_affect_equality(self):
        assert LintConfig(source="a.yml") == LintConfig(source="b.yml")


class TestConfigFromMapping:

    def test_empty(self):
        assert config_from_mapping(None) == LintConfig()
        assert config_from_mapping({}) == LintConfig()

    def test_all_keys(self):
        config = config_from_mapping({
            "AllCops": {"Exclude": ["vendor/**/*", "db/schema.rb"], "TargetRubyVersion": 3.2},
            "Layout/LineLength": {"Max": 100},
            "Layout/IndentationWidth": {"Width": 4},
            "Sorbet/ObsoleteStrictMemoization": {"Enabled": False, "Severity": "warning"},
            "Style/StringLiterals": {"Enabled": True},
        })
        assert config.exclude == ("vendor/**/*", "db/schema.rb")
        assert config.max_line_length == 100
        assert config.indentation_width == 4
        assert not config.enabled
        assert config.severity == "warning"

    def test_line_length_disabled(self):
        config = config_from_mapping({"Layout/LineLength": {"Enabled": False, "Max": 80}})
        assert config.max_line_length is None

    @pytest.mark.parametrize("data", [
        ["not", "a", "mapping"],
        {"AllCops": "nope"},
        {"AllCops": {"Exclude": "vendor/**"}},
        {"Layout/LineLength": {"Max": "100"}},
        {"Layout/LineLength": {"Max": True}},
        {"Layout/IndentationWidth": {"Width": 2.5}},
        {"Sorbet/ObsoleteStrictMemoization": {"Enabled": "yes"}},
        {"Sorbet/ObsoleteStrictMemoization": {"Severity": "loud"}},
    ])
    def test_invalid(self, data):
        with pytest.raises(ConfigError):
            config_from_mapping(data, "x.yml")


class TestLoadConfig:

    def test_load(self, tmp_path):
        path = write_config(tmp_path, """\
            inherit_from: .rubocop_todo.yml
            AllCops:
              Exclude:
                - "vendor/**/*"
            Layout/LineLength:
              Max: 90
        """)
        config = load_config(path)
        assert config.max_line_length == 90
        assert config.exclude == ("vendor/**/*",)
        assert config.source == str(path)
        assert config.base_dir == str(tmp_path.resolve())

    def test_invalid_yaml(self, tmp_path):
        path = write_config(tmp_path, "AllCops: [unclosed\n")
        with pytest.raises(ConfigError) as excinfo:
            load_config(path)
        assert "invalid YAML" in str(excinfo.value)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(tmp_path / "missing.yml")

    def test_validation_warnings_are_logged(self, tmp_path, caplog):
        path = write_config(tmp_path, """\
            Layout/IndentationWidth:
              Width: 0
        """)
        with caplog.at_level(logging.WARNING, logger="strictmemo.config"):
            load_config(path)
        assert "Width must be positive" in caplog.text

    def test_find_config(self, tmp_path):
        assert find_config(tmp_path) is None
        path = write_config(tmp_path, "{}\n")
        assert find_config(tmp_path) == path
