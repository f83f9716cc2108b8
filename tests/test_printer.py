import math

import pytest
from hypothesis import given, settings, strategies as st

from ysh.reader.lexer import KEYWORDS
from ysh.reader.parser import parse_program
from ysh.syntax.nodes import (
    Assign,
    BinaryOp,
    Block,
    Command,
    FunctionCall,
    FunctionDef,
    If,
    Interpolation,
    Let,
    Literal,
    Param,
    Program,
    Return,
    UnaryOp,
    VariableRef,
)
from ysh.syntax.printer import quote_string, to_source
from ysh.types.lattice import BOOL, COMMAND, FLOAT, INT, STRING, UNIT, Dynamic, FunctionType
from ysh.types.unit import Unit


@pytest.mark.parametrize(
    "source,expected",
    [
        ("1 + 2 * 3", "1 + (2 * 3)"),
        ("ls -la $dir", 'ls "-la" $dir'),
        ('echo "hi $x!"', 'echo "hi ${x}!"'),
        ("let $x: Int = 5", "let $x: Int = 5"),
        ("if $c { 1 } else 2", "if $c then { 1 } else 2"),
        ("fn add($a: Int, $b) -> Int { $a + $b }", "fn add($a: Int, $b) -> Int { $a + $b }"),
        ("fn() { }", "fn() { }"),
        ("$f(1)(2)", "$f(1)(2)"),
        ("-(-1)", "-(-1)"),
        ("-(true)", "-(true)"),
        # a dash before a letter starts a flag word, not a negation
        ("-true", "-true"),
        ("1e999", "1e999"),
        ("${x:-a b}", "${x:-a b}"),
        ("${x:-'\"q\"'}", "${x:-'\"q\"'}"),
        ('echo $( date ) "at $(date -u)"', 'echo $(date) "at $(date "-u")"'),
        ("LANG=C FOO=$x ls -l", 'LANG="C" FOO=$x ls "-l"'),
        ("()", "()"),
        ("echo (f 1)", "echo (f 1)"),
        ("let $a = 1; $a", "let $a = 1; $a"),
        ("fn f() { return }", "fn f() { return }"),
    ],
)
def test_to_source(source, expected):
    assert to_source(parse_program(source)) == expected


@pytest.mark.parametrize(
    "text,expected",
    [
        ("plain", '"plain"'),
        ('say "hi"', '"say \\"hi\\""'),
        ("$HOME", '"\\$HOME"'),
        ("a\nb\tc", '"a\\nb\\tc"'),
        ("back\\slash", '"back\\\\slash"'),
    ],
)
def test_quote_string(text, expected):
    assert quote_string(text) == expected


@pytest.mark.parametrize(
    "source",
    [
        "let $x = 5; $x + 1",
        "fn f() { if true { return 1 }; 2 }; f",
        "fn fact($n: Int) -> Int { if $n <= 1 then 1 else $n * fact($n - 1) }",
        'echo "total: ${n}" -n (1 + 2) true ()',
        "let $g: Fn(Int) -> Fn(Int) -> Int = fn($a: Int) -> Fn(Int) -> Int { fn($b: Int) -> Int { $a + $b } }",
        "if $a && !$b || $c == 2.5 then { } else if ($d) then $e else -$f",
        "{ let $x = { 1 }; $x = $x % 2; $x } / 3",
        "(fn($x) { $x })(1)(2)",
        "1e999",
        "-1e999 + 1e999",
        'echo $(cat "$(ls ${dir:-.})") "now: $(date; uptime)"',
        'LANG=C TZ=${tz:-UTC} PS=$(id -u) X=(1 + 2) env -i',
        "let $v = ${v:-\"'quoted'\"}; $v",
    ],
)
def test_reparse_is_stable(source):
    tree = parse_program(source)
    assert parse_program(to_source(tree)) == tree


# -------------------------------
# Strategies
# -------------------------------
names = st.from_regex(r"[a-z_][a-z0-9_]{0,5}", fullmatch=True)
words = st.from_regex(r"[a-z][a-z0-9]{0,5}", fullmatch=True).filter(lambda w: w not in KEYWORDS)

scalar_types = st.sampled_from([INT, FLOAT, BOOL, STRING, UNIT, COMMAND, Dynamic])
types = st.recursive(
    scalar_types,
    lambda inner: st.builds(FunctionType, st.lists(inner, max_size=2).map(tuple), inner),
    max_leaves=4,
)
optional_types = st.none() | types

literals = st.one_of(
    st.integers(min_value=0, max_value=10**6),
    st.floats(min_value=0, max_value=1e6, allow_nan=False, allow_infinity=False).map(abs),
    st.just(math.inf),
    st.booleans(),
    st.text(max_size=8),
    st.just(Unit),
).map(Literal)


def _interpolation(pieces_and_tail):
    pieces, tail = pieces_and_tail
    parts = []
    for text, name in pieces:
        if text:
            parts.append(text)
        parts.append(VariableRef(name))
    if tail:
        parts.append(tail)
    return Interpolation(parts)


interpolations = st.tuples(
    st.lists(st.tuples(st.text(max_size=4), names), min_size=1, max_size=3),
    st.text(max_size=4),
).map(_interpolation)

leaves = st.one_of(
    literals,
    names.map(VariableRef),
    interpolations,
    words.map(lambda w: Command(w, [])),
)

ops = st.sampled_from(["+", "-", "*", "/", "%", "==", "!=", "<", "<=", ">", ">=", "&&", "||"])


def _extend(children):
    body = st.lists(children, max_size=3)
    params = st.lists(st.builds(Param, names, optional_types), max_size=2)
    return st.one_of(
        st.builds(BinaryOp, ops, children, children),
        st.builds(UnaryOp, st.sampled_from(["-", "!"]), children),
        st.builds(Command, words, body),
        st.builds(FunctionCall, children, body),
        st.builds(If, children, children, st.none() | children),
        st.builds(Block, body),
        st.builds(Let, names, optional_types, children),
        st.builds(Assign, names, children),
        st.builds(FunctionDef, st.none() | words, params, optional_types, body.map(Block)),
        st.builds(Return, st.none() | children),
    )


expressions = st.recursive(leaves, _extend, max_leaves=12)
programs = st.lists(expressions, max_size=4).map(Program)


@settings(max_examples=300, deadline=None)
@given(programs)
def test_printed_programs_reparse_to_the_same_tree(program):
    assert parse_program(to_source(program)) == program
