"""
strictmemo/parser.py
════════════════════

Reader for the Ruby subset strictmemo understands.

The grammar is a Parsimonious PEG.  It covers what Sorbet-annotated
application code typically puts around instance-variable memoization:

    class/module/def (with ``self.`` and ``class << self``), if/unless/
    while/until with elsif/else, statement modifiers, rescue/ensure
    sections, return, plain/``||=``/operator assignments, command calls
    (``extend T::Sig``, ``attr_reader :x``), method chains, ``::`` scopes,
    indexing, brace and do blocks, keyword/``=>``/splat arguments, binary
    and ternary operators, literals and comments.

Anything else (``case``, heredocs, regex literals, lambdas, multiple
assignment) is reported as :class:`~strictmemo.errors.RubyParseError`
with the position where reading stopped.

Usage::

    from strictmemo.parser import parse_source

    program = parse_source(text, path="app/models/user.rb")
"""

from __future__ import annotations

import dataclasses
import logging
import re
from typing import Any, List, Tuple

from parsimonious.exceptions import ParseError, VisitationError
from parsimonious.grammar import Grammar
from parsimonious.nodes import Node as ParseNode
from parsimonious.nodes import NodeVisitor

from strictmemo.errors import RubyParseError
from strictmemo.nodes import (
    ArrayLiteral,
    Assign,
    Begin,
    Binary,
    Block,
    Call,
    ClassDef,
    Comment,
    Conditional,
    Constant,
    HashLiteral,
    Identifier,
    Index,
    InstanceVar,
    Literal,
    MethodDef,
    ModuleDef,
    NilLiteral,
    Node,
    OpAssign,
    OrAssign,
    Pair,
    Paren,
    Program,
    RescueClause,
    Return,
    SpecialVar,
    StringLiteral,
    Ternary,
    Unary,
)
from strictmemo.source import SourceBuffer, SourceRange

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  PART 1 — GRAMMAR
# ═══════════════════════════════════════════════════════════════════

RUBY_GRAMMAR = Grammar(r'''
    # ─────────────────────────────────────────────────────────────
    # Statement sequences
    # ─────────────────────────────────────────────────────────────
    program         = stmts eof
    stmts           = stmt_entry* sep
    stmt_entry      = sep stmt modifier? stmt_tail
    modifier        = hs modifier_kw hs expr
    stmt_tail       = hs comment? stmt_end
    body_stmts      = stmts handler*
    handler         = rescue_clause / ensure_clause
    rescue_clause   = rescue_kw rescue_spec stmts
    ensure_clause   = ensure_kw stmts

    stmt            = comment / class_def / module_def / method_def
                    / conditional / return_stmt
                    / or_assign / op_assign / assign
                    / command_call / value_expr

    # ─────────────────────────────────────────────────────────────
    # Definitions and control flow
    # ─────────────────────────────────────────────────────────────
    class_def       = class_kw hs class_name superclass? stmts end_kw
    superclass      = hs "<" hs expr
    module_def      = module_kw hs1 class_name stmts end_kw
    method_def      = def_kw hs1 def_name hs params? body_stmts end_kw
    params          = "(" ~r"[^)]*" ")"

    conditional     = cond_kw hs expr then_kw? stmts else_part? end_kw
    then_kw         = hs then_word
    else_part       = elsif_part / else_clause
    elsif_part      = elsif_kw hs expr then_kw? stmts else_part?
    else_clause     = else_kw stmts

    return_stmt     = return_kw return_value?
    return_value    = hs1 value_expr

    # ─────────────────────────────────────────────────────────────
    # Assignment and command calls
    # ─────────────────────────────────────────────────────────────
    or_assign       = postfix_expr hs "||=" ws rhs
    op_assign       = postfix_expr hs op_assign_op ws rhs
    assign          = postfix_expr hs "=" !~r"[=~>]" ws rhs
    rhs             = or_assign / op_assign / assign / conditional
                    / command_call / value_expr
    value_expr      = expr do_suffix?

    command_call    = postfix_expr hs1 !~r"[-+*/%<>=!|&?.]" arg_list do_suffix?

    # ─────────────────────────────────────────────────────────────
    # Expressions
    # ─────────────────────────────────────────────────────────────
    expr            = binary ternary_tail?
    ternary_tail    = hs "?" ws1 expr ws ":" ws1 expr
    binary          = unary binary_tail*
    binary_tail     = hs binop ws unary
    unary           = unary_op? postfix_expr

    postfix_expr    = primary postfix*
    postfix         = method_suffix / scope_suffix / index_suffix / brace_suffix
    method_suffix   = ~r"\s*" dot ws method_name call_args?
    scope_suffix    = "::" const_name
    index_suffix    = "[" ws arg_list? ws "]"
    brace_suffix    = hs brace_block
    do_suffix       = hs do_block
    call_args       = "(" ws paren_args? ws ")"

    brace_block     = "{" hs block_params? stmts "}"
    do_block        = do_kw hs block_params? body_stmts end_kw
    block_params    = "|" ~r"[^|]*" "|"

    arg_list        = arg arg_more* trailing_comma?
    arg_more        = ws "," ws arg
    trailing_comma  = ws ","
    arg             = pair / splat / method_def / expr
    paren_args      = paren_arg paren_arg_more* trailing_comma?
    paren_arg_more  = ws "," ws paren_arg
    paren_arg       = pair / splat / method_def / conditional / value_expr
    pair            = label_pair / rocket_pair
    label_pair      = label ws expr
    rocket_pair     = expr ws "=>" ws expr
    splat           = splat_op expr

    primary         = paren_expr / array_lit / hash_lit / begin_expr
                    / string_lit / symbol_lit / percent_lit / number
                    / nil_lit / keyword_lit / special_var / ivar
                    / constant / identifier_call

    paren_expr      = "(" ws expr ws ")"
    array_lit       = "[" ws arg_list? ws "]"
    hash_lit        = "{" ws arg_list? ws "}"
    begin_expr      = begin_kw body_stmts end_kw
    identifier_call = identifier call_args?
    constant        = cbase? const_name

    # ─────────────────────────────────────────────────────────────
    # Tokens
    # ─────────────────────────────────────────────────────────────
    string_lit      = ~r'"(?:[^"\\]|\\.)*"'s / ~r"'(?:[^'\\]|\\.)*'"s
    symbol_lit      = ~r':"(?:[^"\\]|\\.)*"' / ~r":[A-Za-z_][A-Za-z0-9_]*[?!]?"
    percent_lit     = ~r"%[wWiI](?:\[[^\]]*\]|\([^)]*\))"
    number          = ~r"-?\d[\d_]*(?:\.\d[\d_]*)?(?:[eE][+-]?\d+)?"
    nil_lit         = ~r"nil\b"
    keyword_lit     = ~r"(?:true|false|self|__FILE__|__LINE__)\b"
    ivar            = ~r"@[A-Za-z_][A-Za-z0-9_]*"
    special_var     = ~r"@@[A-Za-z_][A-Za-z0-9_]*|\$[A-Za-z_][A-Za-z0-9_]*"
    cbase           = "::"
    const_name      = ~r"[A-Z][A-Za-z0-9_]*"
    class_name      = ~r"<<[ \t]*self\b|(?:::)?[A-Z][A-Za-z0-9_]*(?:::[A-Z][A-Za-z0-9_]*)*"
    identifier      = ~r"(?!(?:and|begin|case|class|def|do|else|elsif|end|ensure|false|if|module|nil|not|or|rescue|return|self|then|true|unless|until|when|while)\b)[a-z_][A-Za-z0-9_]*(?:[?!](?!=))?"
    method_name     = ~r"[A-Za-z_][A-Za-z0-9_]*(?:[?!](?!=))?"
    def_name        = ~r"(?:self\.)?(?:[A-Za-z_][A-Za-z0-9_]*[?!=]?|\[\]=?|<=>|===?|=~|![=~]?|[<>]=?|<<|>>|\*\*|[-+*/%&|^~]@?)"
    label           = ~r"[A-Za-z_][A-Za-z0-9_]*[?!]?:(?!:)"
    rescue_spec     = ~r"[^\r\n;]*"
    comment         = ~r"#[^\r\n]*"

    dot             = "&." / "."
    unary_op        = ~r"!(?!=)|-(?=[A-Za-z_@(])"
    splat_op        = ~r"\*\*|\*|&"
    binop           = ~r"(?:\|\||&&|<=>|===|==|!=|=~|!~|<=|>=|<<|>>|\*\*|\.\.\.?|[<>+\-*/%|&^])(?!=)"
    op_assign_op    = ~r"(?:&&|\*\*|<<|>>|[-+*/%|&^])="

    class_kw        = ~r"class\b"
    module_kw       = ~r"module\b"
    def_kw          = ~r"def\b"
    cond_kw         = ~r"(?:if|unless|while|until)\b"
    modifier_kw     = ~r"(?:if|unless|while|until)\b"
    elsif_kw        = ~r"elsif\b"
    else_kw         = ~r"else\b"
    end_kw          = ~r"end\b"
    then_word       = ~r"then\b"
    do_kw           = ~r"do\b"
    begin_kw        = ~r"begin\b"
    rescue_kw       = ~r"rescue\b"
    ensure_kw       = ~r"ensure\b"
    return_kw       = ~r"return\b"

    # ─────────────────────────────────────────────────────────────
    # Layout
    # ─────────────────────────────────────────────────────────────
    stmt_end        = ~r"(?=[\r\n;}]|\Z|(?:end|else|elsif|rescue|ensure)\b)"
    sep             = ~r"[\s;]*"
    hs              = ~r"[ \t]*"
    hs1             = ~r"[ \t]+"
    ws              = ~r"(?:\s|#[^\n]*)*"
    ws1             = ~r"\s+"
    eof             = ~r"\Z"
''')

_DATA_SECTION = re.compile(r"^__END__\r?$", re.MULTILINE)


# ═══════════════════════════════════════════════════════════════════
#  PART 2 — PARSE TREE → NODES
# ═══════════════════════════════════════════════════════════════════

def _opt(value: Any) -> Any:
    """Unwrap the result of an optional (``x?``) term."""
    if isinstance(value, list) and value:
        return value[0]
    return None


def _many(value: Any) -> List[Any]:
    """Results of a repeated (``x*``) term, or an empty list."""
    if isinstance(value, list):
        return value
    return []


def _span(node: ParseNode) -> SourceRange:
    return SourceRange(node.start, node.end)


class RubyTreeBuilder(NodeVisitor):
    """Turns the Parsimonious parse tree into :mod:`strictmemo.nodes`."""

    unwrapped_exceptions = (RubyParseError,)

    def __init__(self, buffer: SourceBuffer) -> None:
        self.buffer = buffer

    def generic_visit(self, node, visited_children):
        return visited_children or node

    def _error(self, message: str, offset: int) -> RubyParseError:
        line, column = self.buffer.position(offset)
        return RubyParseError(message, self.buffer.path, line, column)

    # ─────────────────────────────────────────────────────────────
    # Statement sequences
    # ─────────────────────────────────────────────────────────────

    def visit_program(self, node, visited_children):
        body, _ = visited_children
        return Program(SourceRange(0, len(self.buffer.text)), body)

    def visit_stmts(self, node, visited_children):
        entries, _ = visited_children
        body: List[Node] = []
        for entry in _many(entries):
            body.extend(entry)
        return tuple(body)

    def visit_stmt_entry(self, node, visited_children):
        _, stmt, modifier, trailing = visited_children
        mod = _opt(modifier)
        if mod is not None:
            keyword, condition = mod
            stmt = Conditional(
                stmt.span.join(condition.span),
                keyword=keyword,
                condition=condition,
                body=(stmt,),
                modifier=True,
            )
        return [stmt, *trailing]

    def visit_modifier(self, node, visited_children):
        _, keyword, _, condition = visited_children
        return (keyword.text, condition)

    def visit_stmt_tail(self, node, visited_children):
        _, comment, _ = visited_children
        found = _opt(comment)
        return [found] if found is not None else []

    def visit_body_stmts(self, node, visited_children):
        body, handlers = visited_children
        return body + tuple(_many(handlers))

    def visit_rescue_clause(self, node, visited_children):
        keyword, spec, body = visited_children
        return RescueClause(_span(node), keyword=keyword.text, spec=spec.text.strip(), body=body)

    def visit_ensure_clause(self, node, visited_children):
        keyword, body = visited_children
        return RescueClause(_span(node), keyword=keyword.text, spec="", body=body)

    def visit_comment(self, node, visited_children):
        return Comment(_span(node), node.text)

    # ─────────────────────────────────────────────────────────────
    # Definitions and control flow
    # ─────────────────────────────────────────────────────────────

    def visit_class_def(self, node, visited_children):
        _, _, name, superclass, body, _ = visited_children
        return ClassDef(_span(node), name=name.text, superclass=_opt(superclass), body=body)

    def visit_superclass(self, node, visited_children):
        return visited_children[-1]

    def visit_module_def(self, node, visited_children):
        _, _, name, body, _ = visited_children
        return ModuleDef(_span(node), name=name.text, body=body)

    def visit_method_def(self, node, visited_children):
        _, _, name, _, params, body, _ = visited_children
        text = name.text
        singleton = text.startswith("self.")
        return MethodDef(
            _span(node),
            name=text[len("self."):] if singleton else text,
            params=_opt(params) or "",
            body=body,
            singleton=singleton,
        )

    def visit_params(self, node, visited_children):
        return node.text

    def visit_conditional(self, node, visited_children):
        keyword, _, condition, _, body, else_part, _ = visited_children
        return Conditional(
            _span(node),
            keyword=keyword.text,
            condition=condition,
            body=body,
            else_body=_opt(else_part) or (),
        )

    def visit_elsif_part(self, node, visited_children):
        keyword, _, condition, _, body, else_part = visited_children
        nested = Conditional(
            _span(node),
            keyword=keyword.text,
            condition=condition,
            body=body,
            else_body=_opt(else_part) or (),
        )
        return (nested,)

    def visit_else_clause(self, node, visited_children):
        return visited_children[1]

    def visit_return_stmt(self, node, visited_children):
        _, value = visited_children
        return Return(_span(node), _opt(value))

    def visit_return_value(self, node, visited_children):
        return visited_children[1]

    # ─────────────────────────────────────────────────────────────
    # Assignment and command calls
    # ─────────────────────────────────────────────────────────────

    def visit_or_assign(self, node, visited_children):
        target, _, _, _, value = visited_children
        return OrAssign(_span(node), target=target, value=value)

    def visit_op_assign(self, node, visited_children):
        target, _, op, _, value = visited_children
        return OpAssign(_span(node), op=op.text[:-1], target=target, value=value)

    def visit_assign(self, node, visited_children):
        target, _, _, _, _, value = visited_children
        return Assign(_span(node), target=target, value=value)

    def visit_value_expr(self, node, visited_children):
        expr, do_block = visited_children
        block = _opt(do_block)
        if block is None:
            return expr
        return self._attach_block(expr, block)

    def visit_command_call(self, node, visited_children):
        head, _, _, args, do_block = visited_children
        span = _span(node)
        if isinstance(head, Identifier):
            call = Call(span, receiver=None, method=head.name, args=args)
        elif isinstance(head, Call) and not head.args and not head.parenthesized and head.block is None:
            call = dataclasses.replace(head, span=head.span.join(span), args=args)
        else:
            raise self._error("unexpected argument list", node.start)
        block = _opt(do_block)
        if block is None:
            return call
        return self._attach_block(call, block)

    # ─────────────────────────────────────────────────────────────
    # Expressions
    # ─────────────────────────────────────────────────────────────

    def visit_expr(self, node, visited_children):
        condition, tail = visited_children
        branches = _opt(tail)
        if branches is None:
            return condition
        if_true, if_false = branches
        return Ternary(_span(node), condition=condition, if_true=if_true, if_false=if_false)

    def visit_ternary_tail(self, node, visited_children):
        return (visited_children[3], visited_children[7])

    def visit_binary(self, node, visited_children):
        result, tails = visited_children
        for op, right in _many(tails):
            result = Binary(result.span.join(right.span), op=op, left=result, right=right)
        return result

    def visit_binary_tail(self, node, visited_children):
        _, op, _, right = visited_children
        return (op.text, right)

    def visit_unary(self, node, visited_children):
        op, operand = visited_children
        prefix = _opt(op)
        if prefix is None:
            return operand
        return Unary(_span(node), op=prefix.text, operand=operand)

    def visit_postfix_expr(self, node, visited_children):
        current, suffixes = visited_children
        for suffix in _many(suffixes):
            current = self._apply_suffix(current, suffix)
        return current

    def _apply_suffix(self, current: Node, suffix: Tuple[Any, ...]) -> Node:
        tag = suffix[0]
        if tag == "send":
            _, method, args, end = suffix
            return Call(
                SourceRange(current.span.start, end),
                receiver=current,
                method=method,
                args=args or (),
                parenthesized=args is not None,
            )
        if tag == "scope":
            _, name, end = suffix
            return Constant(SourceRange(current.span.start, end), name=name, scope=current)
        if tag == "index":
            _, args, end = suffix
            return Index(SourceRange(current.span.start, end), receiver=current, args=args)
        return self._attach_block(current, suffix[1])

    def _attach_block(self, target: Node, block: Block) -> Node:
        span = target.span.join(block.span)
        if isinstance(target, Call) and target.block is None:
            return dataclasses.replace(target, span=span, block=block)
        if isinstance(target, Identifier):
            return Call(span, receiver=None, method=target.name, block=block)
        raise self._error("block passed to something that is not a method call", block.span.start)

    def visit_method_suffix(self, node, visited_children):
        _, _, _, name, args = visited_children
        return ("send", name.text, _opt(args), node.end)

    def visit_scope_suffix(self, node, visited_children):
        return ("scope", visited_children[1].text, node.end)

    def visit_index_suffix(self, node, visited_children):
        return ("index", _opt(visited_children[2]) or (), node.end)

    def visit_brace_suffix(self, node, visited_children):
        return ("block", visited_children[1])

    def visit_do_suffix(self, node, visited_children):
        return visited_children[1]

    def visit_call_args(self, node, visited_children):
        return _opt(visited_children[2]) or ()

    def visit_brace_block(self, node, visited_children):
        _, _, params, body, _ = visited_children
        return Block(_span(node), params=_opt(params) or "", body=body)

    def visit_do_block(self, node, visited_children):
        _, _, params, body, _ = visited_children
        return Block(_span(node), params=_opt(params) or "", body=body)

    def visit_block_params(self, node, visited_children):
        return node.text[1:-1].strip()

    def visit_arg_list(self, node, visited_children):
        first, more, _ = visited_children
        return (first, *_many(more))

    def visit_arg_more(self, node, visited_children):
        return visited_children[3]

    visit_paren_args = visit_arg_list
    visit_paren_arg_more = visit_arg_more

    def visit_label_pair(self, node, visited_children):
        label, _, value = visited_children
        return Pair(_span(node), key=Literal(_span(label), label.text), value=value)

    def visit_rocket_pair(self, node, visited_children):
        key, _, _, _, value = visited_children
        return Pair(_span(node), key=key, value=value)

    def visit_splat(self, node, visited_children):
        op, operand = visited_children
        return Unary(_span(node), op=op.text, operand=operand)

    def visit_paren_expr(self, node, visited_children):
        return Paren(_span(node), visited_children[2])

    def visit_array_lit(self, node, visited_children):
        return ArrayLiteral(_span(node), _opt(visited_children[2]) or ())

    def visit_hash_lit(self, node, visited_children):
        return HashLiteral(_span(node), _opt(visited_children[2]) or ())

    def visit_begin_expr(self, node, visited_children):
        return Begin(_span(node), visited_children[1])

    def visit_identifier_call(self, node, visited_children):
        ident, args = visited_children
        arguments = _opt(args)
        if arguments is None:
            return ident
        return Call(_span(node), receiver=None, method=ident.name, args=arguments, parenthesized=True)

    def visit_constant(self, node, visited_children):
        cbase, name = visited_children
        return Constant(_span(node), name=name.text, cbase=_opt(cbase) is not None)

    # single-child choices
    def visit_stmt(self, node, visited_children):
        return visited_children[0]

    visit_rhs = visit_stmt
    visit_postfix = visit_stmt
    visit_arg = visit_stmt
    visit_paren_arg = visit_stmt
    visit_pair = visit_stmt
    visit_primary = visit_stmt
    visit_else_part = visit_stmt
    visit_handler = visit_stmt

    # ─────────────────────────────────────────────────────────────
    # Tokens
    # ─────────────────────────────────────────────────────────────

    def visit_identifier(self, node, visited_children):
        return Identifier(_span(node), node.text)

    def visit_ivar(self, node, visited_children):
        return InstanceVar(_span(node), node.text)

    def visit_special_var(self, node, visited_children):
        return SpecialVar(_span(node), node.text)

    def visit_nil_lit(self, node, visited_children):
        return NilLiteral(_span(node))

    def visit_string_lit(self, node, visited_children):
        return StringLiteral(_span(node), node.text)

    def visit_literal_token(self, node, visited_children):
        return Literal(_span(node), node.text)

    visit_symbol_lit = visit_literal_token
    visit_percent_lit = visit_literal_token
    visit_number = visit_literal_token
    visit_keyword_lit = visit_literal_token


# ═══════════════════════════════════════════════════════════════════
#  PART 3 — PUBLIC API
# ═══════════════════════════════════════════════════════════════════

def parse_buffer(buffer: SourceBuffer) -> Program:
    """Parse the text held by ``buffer``; positions refer to that buffer."""
    text = buffer.text
    data = _DATA_SECTION.search(text)
    code = text[: data.start()] if data else text
    try:
        tree = RUBY_GRAMMAR.parse(code)
    except ParseError as exc:
        offset = max(0, min(exc.pos, len(code)))
        snippet = code[offset:offset + 30].splitlines()[0] if code[offset:].strip() else "end of file"
        line, column = buffer.position(offset)
        logger.debug("parse of %s stopped at %d:%d", buffer.path, line, column)
        raise RubyParseError(
            f"unsupported or invalid syntax near {snippet!r}",
            buffer.path,
            line,
            column,
        ) from exc
    try:
        return RubyTreeBuilder(buffer).visit(tree)
    except VisitationError as exc:
        raise RubyParseError(f"could not build syntax tree: {exc}", buffer.path) from exc


def parse_source(text: str, path: str = "<string>") -> Program:
    """Parse Ruby ``text``; ``path`` is only used in error messages."""
    return parse_buffer(SourceBuffer(text, path))


__all__ = ["RUBY_GRAMMAR", "RubyTreeBuilder", "parse_buffer", "parse_source"]
