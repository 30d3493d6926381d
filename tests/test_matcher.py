# tests/test_matcher.py
"""
Tests for PatternMatcher: which statement pairs form a memoization
candidate, and what the candidate records about them.
"""

import textwrap

import pytest

from strictmemo.matcher import PatternMatcher, iter_method_bodies, match_pair
from strictmemo.nodes import Call, Index, InstanceVar
from strictmemo.parser import parse_source


def scan(source):
    text = textwrap.dedent(source)
    return text, PatternMatcher().scan(parse_source(text))


class TestCandidate:
    """Fields of a matched candidate."""

    def test_basic(self):
        text, (candidate,) = scan("""\
            def foo
              @foo = T.let(@foo, T.nilable(Foo))
              @foo ||= Foo.new
            end
        """)
        assert candidate.ivar_name == "@foo"
        assert candidate.assertion_call_name == "T.let"
        assert not candidate.discards_cached_value
        span = candidate.type_expr.span
        assert text[span.start:span.end] == "T.nilable(Foo)"
        span = candidate.init_expr.span
        assert text[span.start:span.end] == "Foo.new"

    def test_cbase(self):
        _, (candidate,) = scan("""\
            def foo
              @foo = ::T.let(@foo, ::T.nilable(Foo))
              @foo ||= Foo.new
            end
        """)
        assert candidate.assertion_call_name == "::T.let"

    def test_nil_variant(self):
        _, (candidate,) = scan("""\
            def foo
              @foo = T.let(nil, T.nilable(Foo))
              @foo ||= Foo.new
            end
        """)
        assert candidate.discards_cached_value

    def test_arbitrary_type_expression(self):
        _, (candidate,) = scan("""\
            def foo
              @foo = T.let(@foo, T::Hash[Symbol, T.untyped])
              @foo ||= {}
            end
        """)
        assert isinstance(candidate.type_expr, Index)

    def test_multiline_initializer(self):
        text, (candidate,) = scan("""\
            def foo
              @foo = T.let(@foo, T.nilable(Foo))
              @foo ||= build(
                1,
              )
            end
        """)
        assert isinstance(candidate.init_expr, Call)
        span = candidate.or_assign_statement.span
        assert text[span.start:span.end].endswith(")")


class TestMatchPair:
    """match_pair on individual statements."""

    @pytest.fixture
    def statements(self):
        program = parse_source(
            "def foo\n"
            "  @foo = T.let(@foo, T.nilable(Foo))\n"
            "  @foo ||= Foo.new\n"
            "  @foo ||= T.let(Foo.new, T.nilable(Foo))\n"
            "end\n"
        )
        (body,) = list(iter_method_bodies(program))
        return body

    def test_order_matters(self, statements):
        reset, or_assign, _ = statements
        assert match_pair(reset, or_assign) is not None
        assert match_pair(or_assign, reset) is None

    def test_combined_form_never_matches(self, statements):
        _, _, combined = statements
        assert match_pair(combined, combined) is None
        assert isinstance(combined.target, InstanceVar)

    def test_every_position_is_checked(self):
        _, found = scan("""\
            def foo
              @a = T.let(@a, T.nilable(A))
              @a ||= A.new
              @b = T.let(@b, T.nilable(B))
              @b ||= B.new
            end
        """)
        assert [c.ivar_name for c in found] == ["@a", "@b"]

    @pytest.mark.parametrize("reset", [
        "@foo = T.let(@foo, T.nilable(Foo), extra)",
        "@foo = T.let(@foo, T.nilable(Foo)) { }",
        "@foo = T::Private.let(@foo, T.nilable(Foo))",
        "@foo = T.let(self.foo, T.nilable(Foo))",
        "@foo = T.let(@foo, T.nilable(Foo)) if bar",
        "self.foo = T.let(@foo, T.nilable(Foo))",
    ])
    def test_rejected_reset_shapes(self, reset):
        _, found = scan(f"def foo\n  {reset}\n  @foo ||= Foo.new\nend\n")
        assert found == []


class TestScopes:
    """Which statement sequences are searched."""

    def test_top_level_is_ignored(self):
        _, found = scan("""\
            @foo = T.let(@foo, T.nilable(Foo))
            @foo ||= Foo.new
        """)
        assert found == []

    def test_nested_def_found_once(self):
        _, found = scan("""\
            def outer
              def inner
                @foo = T.let(@foo, T.nilable(Foo))
                @foo ||= Foo.new
              end
            end
        """)
        assert len(found) == 1

    def test_rescue_body(self):
        _, found = scan("""\
            def foo
              work
            rescue IOError
              @foo = T.let(@foo, T.nilable(Foo))
              @foo ||= Foo.new
            end
        """)
        assert len(found) == 1

    def test_results_in_source_order(self):
        _, found = scan("""\
            def foo
              if a
                @b = T.let(@b, T.nilable(B))
                @b ||= B.new
              end
              @a = T.let(@a, T.nilable(A))
              @a ||= A.new
            end
        """)
        starts = [c.reset_statement.span.start for c in found]
        assert starts == sorted(starts)
        assert [c.ivar_name for c in found] == ["@b", "@a"]
