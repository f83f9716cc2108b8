import pytest

from ysh.errors import LexError, NeedsMoreInput, ParseError
from ysh.reader.lexer import tokenize
from ysh.reader.parser import parse_one_entry, parse_program
from ysh.syntax.nodes import (
    Assign,
    BinaryOp,
    Block,
    Command,
    EnvBinding,
    FunctionCall,
    FunctionDef,
    If,
    Interpolation,
    Let,
    Literal,
    Param,
    Program,
    Return,
    Substitution,
    UnaryOp,
    VariableRef,
)
from ysh.types.lattice import BOOL, INT, Dynamic, FunctionType
from ysh.types.unit import Unit


def _one(source):
    program = parse_program(source)
    assert len(program.body) == 1
    return program.body[0]


def L(value):
    return Literal(value)


def V(name):
    return VariableRef(name)


@pytest.mark.parametrize(
    "source,expected",
    [
        ("42", L(42)),
        ("2.5", L(2.5)),
        ("true", L(True)),
        ('"hi"', L("hi")),
        ("'a $b'", L("a $b")),
        ("()", L(Unit)),
        ("$x", V("x")),
        ("1 + 2 * 3", BinaryOp("+", L(1), BinaryOp("*", L(2), L(3)))),
        ("(1 + 2) * 3", BinaryOp("*", BinaryOp("+", L(1), L(2)), L(3))),
        ("1 - 2 - 3", BinaryOp("-", BinaryOp("-", L(1), L(2)), L(3))),
        ("-$x", UnaryOp("-", V("x"))),
        ("!true && false", BinaryOp("&&", UnaryOp("!", L(True)), L(False))),
        ("$a || $b && $c", BinaryOp("||", V("a"), BinaryOp("&&", V("b"), V("c")))),
        ("$a + 1 < $b", BinaryOp("<", BinaryOp("+", V("a"), L(1)), V("b"))),
        ("ls", Command("ls", [])),
        ("ls -la $dir", Command("ls", [L("-la"), V("dir")])),
        ('echo "hi $x"', Command("echo", [Interpolation(["hi ", V("x")])])),
        ("echo (1 + 2) true", Command("echo", [BinaryOp("+", L(1), L(2)), L(True)])),
        ("f(1, 2)", Command("f", [L(1), L(2)])),
        ("$f(1, 2)", FunctionCall(V("f"), [L(1), L(2)])),
        ("$f()(3)", FunctionCall(FunctionCall(V("f"), []), [L(3)])),
        ("let $x = 5", Let("x", None, L(5))),
        ("let $x: Int = 5", Let("x", INT, L(5))),
        ("$x = $x + 1", Assign("x", BinaryOp("+", V("x"), L(1)))),
        ("if $c then 1 else 2", If(V("c"), L(1), L(2))),
        ("if $c { 1 }", If(V("c"), Block([L(1)]), None)),
        ("if $c { 1 } else if $d { 2 } else { 3 }",
         If(V("c"), Block([L(1)]), If(V("d"), Block([L(2)]), Block([L(3)])))),
        ("if test -f x then 1 else 2", If(Command("test", [L("-f"), L("x")]), L(1), L(2))),
        ("{ }", Block([])),
        ("{ 1; 2; }", Block([L(1), L(2)])),
        ("fn add($a: Int, $b) -> Int { $a + $b }",
         FunctionDef("add", [Param("a", INT), Param("b")], INT, Block([BinaryOp("+", V("a"), V("b"))]))),
        ("fn() { }", FunctionDef(None, [], None, Block([]))),
        ("let $f: Fn(Int, Any) -> Bool = $g",
         Let("f", FunctionType((INT, Dynamic), BOOL), V("g"))),
        ("fn f() { return }", FunctionDef("f", [], None, Block([Return(None)]))),
        ("fn f() { return 1 + 2 }", FunctionDef("f", [], None, Block([Return(BinaryOp("+", L(1), L(2)))]))),
        ("${x:-a b}", VariableRef("x", "a b")),
        ('echo "${x:-none}"', Command("echo", [Interpolation([VariableRef("x", "none")])])),
        ("$(date)", Substitution([Command("date", [])])),
        ("$( )", Substitution([])),
        ("echo $(whoami; date) x", Command("echo", [Substitution([Command("whoami", []), Command("date", [])]), L("x")])),
        ('echo "t $(date -u)"',
         Command("echo", [Interpolation(["t ", Substitution([Command("date", [L("-u")])])])])),
        ("LANG=C ls -l", Command("ls", [L("-l")], [EnvBinding("LANG", L("C"))])),
        ('A=1 B=$x C="s t" run',
         Command("run", [], [EnvBinding("A", L(1)), EnvBinding("B", V("x")), EnvBinding("C", L("s t"))])),
        ("X=(1 + 2) go", Command("go", [], [EnvBinding("X", BinaryOp("+", L(1), L(2)))])),
    ],
)
def test_parse_expression(source, expected):
    assert _one(source) == expected


def test_newlines_are_insignificant():
    assert parse_program("let $x =\n  1 +\n  2") == parse_program("let $x = 1 + 2")


def test_entries_need_separators():
    assert len(parse_program("let $a = 1; let $b = 2;").body) == 2
    with pytest.raises(ParseError) as exc_info:
        parse_program("1 2")
    assert exc_info.value.expected == "';'"


def test_separator_optional_after_closing_brace():
    program = parse_program("fn f() { 1 } f;\nif true { 2 } else { 3 } echo done")
    assert [type(n) for n in program.body] == [FunctionDef, Command, If, Command]


def test_stray_separators_are_skipped():
    assert parse_program(";; 1 ;; 2 ;").body == [Literal(1), Literal(2)]


def test_words_are_commands_until_a_keyword():
    program = parse_program("let $x = echo a b; $x")
    assert program.body[0] == Let("x", None, Command("echo", [L("a"), L("b")]))


def test_call_style_requires_adjacent_paren():
    assert _one("f (1 + 2)") == Command("f", [BinaryOp("+", L(1), L(2))])
    assert _one("f(1 + 2)") == Command("f", [BinaryOp("+", L(1), L(2))])
    assert _one("f (1) (2)") == Command("f", [L(1), L(2)])


def test_comparison_is_non_associative():
    with pytest.raises(ParseError):
        parse_program("1 < 2 < 3")
    assert _one("(1 < 2) == true") == BinaryOp("==", BinaryOp("<", L(1), L(2)), L(True))


@pytest.mark.parametrize(
    "source",
    [
        "1 +",
        "let x = 1",
        "let $x: Foo = 1",
        "fn f($a: Fn(Int)) { }",
        "fn f() 1",
        "if true 1",
        "{ 1",
        "(1, 2)",
        "then",
        "$f(1,",
        "LANG=C",
        "LANG=C $x",
        "LANG = C",
        "let ${x:-1} = 2",
        "$(1",
    ],
)
def test_parse_errors(source):
    with pytest.raises(ParseError):
        parse_program(source)


def test_parse_error_details():
    with pytest.raises(ParseError) as exc_info:
        parse_program("let $x = ")
    err = exc_info.value
    assert err.expected == "an expression"
    assert err.found == "end of input"
    assert str(err.position) == "1:10"


def test_lex_errors_propagate():
    with pytest.raises(LexError):
        parse_program('echo "open')


@pytest.mark.parametrize(
    "source",
    ["{ 1 +", "let $x =", "fn f(", "fn f()", "if true then", "if $c", '"abc', "${ab", "echo (1", "$f(1,",
     "echo $(date", 'echo "$(date', "${x:-a", "LANG=C ls (1"],
)
def test_partial_input_needs_more(source):
    with pytest.raises(NeedsMoreInput):
        parse_one_entry(source, partial=True)


def test_needs_more_input_is_not_a_parse_error():
    assert not issubclass(NeedsMoreInput, ParseError)
    with pytest.raises(ParseError):
        parse_one_entry("{ 1 +", partial=False)


def test_parse_one_entry_counts_tokens():
    tokens = tokenize("let $x = 1; $x")
    node, consumed = parse_one_entry(tokens)
    assert node == Let("x", None, L(1))
    assert consumed == 5
    node, consumed = parse_one_entry(tokens, start=consumed)
    assert node == V("x")
    assert consumed == 1
    assert parse_one_entry("") == (None, 0)


def test_parse_one_entry_from_a_later_token():
    # an unterminated string after the start still asks for more input
    with pytest.raises(NeedsMoreInput):
        parse_one_entry('echo a; echo "open', partial=True, start=3)
    with pytest.raises(LexError):
        parse_one_entry('echo a; echo "open', start=3)


def test_parse_one_entry_past_the_end():
    tokens = tokenize("let $x = 1")
    assert parse_one_entry(tokens, start=5) == (None, 0)
    assert parse_one_entry(tokens, start=50) == (None, 0)
    assert parse_one_entry(tokens, partial=True, start=50) == (None, 0)


def test_spans_cover_the_source():
    source = "let $x = 1 + 22"
    let = _one(source)
    assert let.span.text(source) == source
    assert let.value.span.text(source) == "1 + 22"
    assert let.value.right.span.text(source) == "22"


def test_span_and_type_do_not_affect_equality():
    a, b = _one("1 + 2"), _one("  1   +   2")
    assert a.span != b.span
    a.annotate(INT)
    assert a == b


def test_literal_kinds_are_distinct():
    assert L(1) != L(True)
    assert L(1) != L(1.0)
    assert L("1") != L(1)
    assert L(Unit) == L(Unit)


def test_program_node():
    assert parse_program("") == Program([])
    assert parse_program("# nothing here\n") == Program([])
    assert parse_program('echo "x" # trailing').body == [Command("echo", [L("x")])]
