import pytest

from ysh.binding.binder import TypeScope, bind
from ysh.diagnostics import DiagnosticCode, DiagnosticSink, Severity
from ysh.errors import AnnotationError, BindError
from ysh.reader.parser import parse_program
from ysh.syntax.nodes import CommandTarget, walk
from ysh.types.lattice import BOOL, FLOAT, INT, STRING, UNIT, Dynamic, FunctionType, Unknown


def _bind(source, scope=None):
    return bind(parse_program(source), scope)


def _codes(result):
    return [d.code for d in result.diagnostics]


@pytest.mark.parametrize(
    "source,expected",
    [
        ("1", INT),
        ("1.5", FLOAT),
        ('"a"', STRING),
        ("true", BOOL),
        ("()", UNIT),
        ("", UNIT),
        ("1 + 2", INT),
        ("7 / 2", INT),
        ("1 + 2.5", FLOAT),
        ('"a" + "b"', STRING),
        ("1 < 2", BOOL),
        ('"a" == 1', BOOL),
        ("!true", BOOL),
        ("-1.5", FLOAT),
        ("if true then 1 else 2", INT),
        ("if true then 1 else 2.0", FLOAT),
        ('if true then 1 else "a"', Dynamic),
        ("if true then 1", Dynamic),
        ("{ }", UNIT),
        ("{ 1; \"s\" }", STRING),
        ('let $x = "s"', STRING),
        ("let $x: Float = 1", FLOAT),
        ("let $x = 1; $x", INT),
        ('"n=$n"', STRING),
        ("ls -la", Dynamic),
        ("fn add($a: Int, $b: Int) -> Int { $a + $b }", FunctionType((INT, INT), INT)),
        ("fn g($a) { 1 }", FunctionType((Dynamic,), INT)),
        ("fn f() { if true { return 1 }; 2 }", FunctionType((), INT)),
        ('fn h() { return "a"; 1 }', FunctionType((), Dynamic)),
        ("fn k() { return 1 }", FunctionType((), INT)),
        ("fn add($a: Int) -> Int { $a }; add 1", INT),
        ("fn add($a: Int) -> Int { $a }; add(1)", INT),
        ("let $f = fn($a: Int) -> Bool { true }; $f(1)", BOOL),
        ("$nope + 1", Dynamic),
        ("${nope:-x}", STRING),
        ('let $s = "a"; ${s:-b}', STRING),
        ("let $n = 1; ${n:-0}", Dynamic),
        ("$(echo hi)", STRING),
        ('"today: $(date)"', STRING),
    ],
)
def test_inferred_types(source, expected):
    result = _bind(source)
    assert result.type == expected
    assert result.node.static_type == expected


def test_every_node_is_annotated():
    result = _bind(
        'fn f($a: Int) { let $b = $a * 2; "v=$b $(echo $b)" }; f 3; '
        'if f(1) == "x" then LANG=C ls -la ${dir:-.} else ()'
    )
    for node in walk(result.node):
        assert node.static_type is not None, node


def test_annotation_is_write_once():
    program = parse_program("1 + 2")
    bind(program)
    with pytest.raises(AnnotationError):
        bind(program)


@pytest.mark.parametrize(
    "source,code",
    [
        ("$nope", DiagnosticCode.UNBOUND_NAME),
        ("$nope = 1", DiagnosticCode.UNBOUND_NAME),
        ('"hi $nope"', DiagnosticCode.UNBOUND_NAME),
        ('1 + "a"', DiagnosticCode.TYPE_MISMATCH),
        ("if 1 then 2", DiagnosticCode.TYPE_MISMATCH),
        ('let $x: Int = "a"', DiagnosticCode.TYPE_MISMATCH),
        ('let $x: Int = 1; $x = "a"', DiagnosticCode.TYPE_MISMATCH),
        ("fn f($a) { $a }; f 1 2", DiagnosticCode.ARITY_MISMATCH),
        ('fn f($a: Int) { $a }; f "s"', DiagnosticCode.TYPE_MISMATCH),
        ('fn f() -> Int { "s" }', DiagnosticCode.TYPE_MISMATCH),
        ("1(2)", DiagnosticCode.TYPE_MISMATCH),
        ("{ let $a = 1; 2 }", DiagnosticCode.UNUSED_NAME),
        ("fn f() { let $a = 1; 2 }", DiagnosticCode.UNUSED_NAME),
    ],
)
def test_warnings(source, code):
    result = _bind(source)
    assert code in _codes(result)
    assert all(d.severity is Severity.WARNING for d in result.diagnostics)


def test_mismatched_operands_are_unknown():
    result = _bind('1 + "a"')
    assert result.type == Unknown


@pytest.mark.parametrize(
    "source",
    [
        "let $a = 1",
        "{ let $_a = 1; 2 }",
        "{ let $a = 1; $a }",
        "fn f($unused) { 1 }",
        "fn f() { let $a = 1; fn() { $a } }",
        "fn f($n) { if $n == 0 then 0 else f($n - 1) }",
        "let $x: Float = 1; $x = 2.5",
        "let $x = 1; $x = \"now a string\"",
        "echo ${unset_here:-fallback}",
        "$(let $a = 1; $a)",
    ],
)
def test_no_diagnostics(source):
    assert _bind(source).diagnostics == []


def test_return_outside_function_is_a_bind_error():
    sink = DiagnosticSink()
    with pytest.raises(BindError):
        bind(parse_program("return 1"), TypeScope(), sink)
    (diagnostic,) = list(sink)
    assert diagnostic.code is DiagnosticCode.RETURN_OUTSIDE_FUNCTION
    assert diagnostic.severity is Severity.ERROR


def test_return_inside_nested_block_is_allowed():
    result = _bind("fn f($x) { { if $x { return 1 } }; 2 }")
    assert result.diagnostics == []


def test_commands_resolve_to_functions_in_scope():
    program = parse_program("ls; fn ls() { 1 }; ls; let $n = 3; n")
    bind(program)
    before, _def, after, _let, number = program.body
    assert before.target is CommandTarget.EXTERNAL
    assert after.target is CommandTarget.FUNCTION
    # a name bound to a non-function value does not shadow the command
    assert number.target is CommandTarget.EXTERNAL


def test_bindings_of_unknown_type_do_not_shadow_commands():
    program = parse_program("fn apply($f, $x) { f $x }; let $date = (date); date")
    bind(program)
    apply, _let, date = program.body
    # left for the evaluator, which calls a closure and runs anything else
    assert apply.body.body[0].target is CommandTarget.EXTERNAL
    assert date.target is CommandTarget.EXTERNAL


def test_environment_prefix_means_an_external_command():
    program = parse_program("fn ls() { 1 }; LANG=C ls")
    result = bind(program)
    assert program.body[1].target is CommandTarget.EXTERNAL
    assert result.diagnostics == []


def test_root_scope_persists_across_binds():
    scope = TypeScope()
    _bind("let $x = 1", scope)
    result = _bind("$x + 1", scope)
    assert result.diagnostics == []
    assert result.type == INT


def test_redefinition_rebinds_in_root_scope():
    scope = TypeScope()
    _bind("let $x = 1", scope)
    _bind('let $x = "s"', scope)
    assert _bind("$x", scope).type == STRING


def test_diagnostics_carry_spans():
    source = "let $a = 1;\n$b"
    (diagnostic,) = _bind(source).diagnostics
    assert diagnostic.span.text(source) == "$b"
    assert str(diagnostic).startswith("2:1: warning[UnboundName]")
