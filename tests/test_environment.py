import pytest

from ysh.errors import UnboundName
from ysh.types.environment import Environment
from ysh.types.lattice import INT


def test_lookup_walks_outer_scopes():
    root = Environment()
    root.define("a", 1)
    inner = Environment(Environment(root))
    assert inner.lookup("a") == 1
    assert inner.find("a") is root
    assert inner.root() is root


def test_inner_definitions_shadow():
    root = Environment()
    root.define("a", 1)
    inner = Environment(root)
    inner.define("a", 2)
    assert inner.lookup("a") == 2
    assert root.lookup("a") == 1


def test_assign_updates_the_nearest_binding():
    root = Environment()
    root.define("a", 1)
    inner = Environment(root)
    inner.assign("a", 5)
    assert root.lookup("a") == 5
    assert "a" not in inner.vars


def test_unbound_names():
    env = Environment()
    with pytest.raises(UnboundName, match=r"\$x is not bound"):
        env.lookup("x")
    with pytest.raises(UnboundName):
        env.assign("x", 1)
    assert env.find("x") is None


def test_slots_keep_the_declared_type():
    env = Environment()
    env.define("n", 1, INT)
    slot = env.slot("n")
    assert slot.declared == INT
    env.assign("n", 2)
    assert env.slot("n").declared == INT


def test_redefine_replaces_the_slot():
    env = Environment()
    env.define("n", 1, INT)
    env.define("n", "s")
    assert env.lookup("n") == "s"
    assert env.slot("n").declared is None


def test_names_are_innermost_first_and_unique():
    root = Environment()
    root.define("a", 1)
    root.define("b", 2)
    inner = Environment(root)
    inner.define("b", 3)
    inner.define("c", 4)
    assert list(inner.names()) == ["b", "c", "a"]


def test_str_and_repr():
    root = Environment()
    root.define("a", 1)
    inner = Environment(root)
    inner.define("s", "x")
    assert str(root) == "{$a: 1}"
    assert str(inner) == "{$s: 'x'} -> ..."
    assert repr(inner) == "<Environment chain: {$s: 'x'} -> {$a: 1}>"
