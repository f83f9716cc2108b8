import pytest

from ysh.host import CommandResult
from ysh.session import Session


class FakeInvoker:
    """Echo-like command host: output is the arguments joined by spaces.

    `fail` exits 1, names in `missing` exit 127, names in `outputs` return a
    fixed output. Every call is recorded, and each environment passed along
    with a call goes to `envs`.
    """

    def __init__(self, outputs=None, missing=("nosuch",)):
        self.calls: list[tuple[str, list[str]]] = []
        self.envs: list[dict[str, str] | None] = []
        self.outputs = dict(outputs or {})
        self.missing = set(missing)

    def invoke(self, name, args, env=None):
        self.calls.append((name, list(args)))
        self.envs.append(None if env is None else dict(env))
        if name == "fail":
            return CommandResult(1, "")
        if name in self.missing:
            return CommandResult(127, "")
        if name in self.outputs:
            return CommandResult(0, self.outputs[name])
        return CommandResult(0, " ".join(args) + "\n")


class AfterN:
    """Interrupt flag that reports set after `n` checks."""

    def __init__(self, n):
        self.n = n
        self.checks = 0

    def is_set(self):
        self.checks += 1
        return self.checks > self.n


@pytest.fixture
def invoker():
    return FakeInvoker()


@pytest.fixture
def session(invoker):
    return Session(invoker=invoker)


@pytest.fixture
def run(session):
    """Run a script in the shared session and return its value, failing on errors."""

    def _run(code):
        result = session.run_script(code)
        assert result.status == "ok", result.format_error()
        return result.value

    return _run
