import pytest

from ysh.types.lattice import (
    BOOL,
    COMMAND,
    FLOAT,
    INT,
    STRING,
    UNIT,
    Dynamic,
    FunctionType,
    Unknown,
    function_type,
    is_compatible,
    join,
    type_from_name,
)


@pytest.mark.parametrize(
    "expected,actual,ok",
    [
        (INT, INT, True),
        (FLOAT, INT, True),
        (INT, FLOAT, False),
        (STRING, INT, False),
        (BOOL, Dynamic, True),
        (Dynamic, STRING, True),
        (Unknown, COMMAND, True),
        (UNIT, Unknown, True),
        (FunctionType((INT,), INT), FunctionType((INT,), INT), True),
        (FunctionType((INT,), INT), FunctionType((Dynamic,), Dynamic), True),
        (FunctionType((INT,), INT), FunctionType((INT, INT), INT), False),
        (FunctionType((INT,), STRING), FunctionType((INT,), INT), False),
        (FunctionType((), INT), INT, False),
    ],
)
def test_is_compatible(expected, actual, ok):
    assert is_compatible(expected, actual) is ok


@pytest.mark.parametrize(
    "types,expected",
    [
        ((), UNIT),
        ((INT,), INT),
        ((INT, INT), INT),
        ((INT, FLOAT), FLOAT),
        ((INT, STRING), Dynamic),
        ((INT, UNIT), Dynamic),
        ((BOOL, BOOL, BOOL), BOOL),
    ],
)
def test_join(types, expected):
    assert join(*types) == expected


@pytest.mark.parametrize(
    "name,expected",
    [("Int", INT), ("Float", FLOAT), ("Bool", BOOL), ("String", STRING),
     ("Unit", UNIT), ("Command", COMMAND), ("Any", Dynamic), ("int", None), ("Foo", None)],
)
def test_type_from_name(name, expected):
    assert type_from_name(name) == expected


def test_type_names():
    assert str(FunctionType((INT, Dynamic), FunctionType((), BOOL))) == "Fn(Int, Any) -> Fn() -> Bool"
    assert str(Unknown) == "Unknown"
    assert function_type([None, INT], None) == FunctionType((Dynamic, INT), Dynamic)


def test_dynamic_flags():
    assert Dynamic.is_dynamic and Unknown.is_dynamic
    assert not INT.is_dynamic
    assert Dynamic != Unknown
