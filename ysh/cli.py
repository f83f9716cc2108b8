"""Command-line host: script runner and interactive loop.

    python -m ysh script.ysh       run a script
    python -m ysh -c 'echo hi'     run a string
    python -m ysh                  interactive session
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Sequence, TextIO

from ysh import __version__, config
from ysh.diagnostics import Severity
from ysh.host import SubprocessInvoker
from ysh.session import EvalResult, Session

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ysh", description="An expression-oriented shell.")
    parser.add_argument("script", nargs="?", help="script file to run")
    parser.add_argument("-c", dest="command", metavar="CODE", help="run CODE and exit")
    parser.add_argument("--no-rc", dest="load_rc", action="store_false",
                        help="do not run the startup files named by YSH_RC")
    parser.add_argument("--log-level", default=None,
                        help="logging level (default: $YSH_LOG_LEVEL or WARNING)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


@contextmanager
def interrupt_guard(flag: threading.Event) -> Iterator[None]:
    """Turn SIGINT into `flag.set()` while a submission runs.

    The session stops before its next top-level entry; a running external
    command gets the signal itself.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return
    previous = signal.signal(signal.SIGINT, lambda signum, frame: flag.set())
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def report(result: EvalResult, out: TextIO, err: TextIO) -> int:
    """Print a result the way both the REPL and the script runner do; return an exit code."""
    for diagnostic in result.diagnostics:
        if diagnostic.severity is Severity.WARNING:
            print(diagnostic, file=err)
    if result.status == "error":
        print(result.format_error(), file=err)
        return EXIT_ERROR
    if result.status == "interrupted":
        print("interrupted", file=err)
        return EXIT_INTERRUPTED
    if result.display is not None:
        print(result.display, file=out)
    return EXIT_OK


def submit(session: Session, flag: threading.Event, text: str, partial: bool = True) -> EvalResult:
    flag.clear()
    with interrupt_guard(flag):
        return session.submit(text, partial)


def load_rc(session: Session, flag: threading.Event, err: TextIO) -> None:
    for path in config.get_rc_files():
        if not path.is_file():
            continue
        logger.info("running startup file %s", path)
        result = submit(session, flag, path.read_text(encoding="utf-8"), partial=False)
        if result.status == "error":
            print(f"{path}: {result.format_error()}", file=err)


def run_file(session: Session, flag: threading.Event, path: str, out: TextIO, err: TextIO) -> int:
    try:
        source = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        print(f"ysh: cannot read {path}: {exc.strerror or exc}", file=err)
        return EXIT_ERROR
    return report(submit(session, flag, source, partial=False), out, err)


def repl(
    session: Session,
    flag: threading.Event,
    read: Callable[[str], str] = input,
    out: TextIO = sys.stdout,
    err: TextIO = sys.stderr,
) -> int:
    """Read-eval-print until end of input or `exit`."""
    prompt = config.get_prompt()
    continuation = config.get_continuation_prompt()
    status = EXIT_OK
    while True:
        try:
            line = read(continuation if session.is_pending else prompt)
        except EOFError:
            print(file=out)
            return status
        except KeyboardInterrupt:
            # abandon a half-typed entry
            session.reset_input()
            print("^C", file=out)
            continue

        if not session.is_pending:
            if not line.strip():
                continue
            if line.strip() == "exit":
                return status

        result = submit(session, flag, line)
        if result.status == "incomplete":
            continue
        status = report(result, out, err)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    level = (args.log_level or config.get_log_level()).upper()
    logging.basicConfig(level=getattr(logging, level, logging.WARNING),
                        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s")

    flag = threading.Event()
    session = Session(invoker=SubprocessInvoker(), interrupt=flag)
    if args.load_rc:
        load_rc(session, flag, sys.stderr)

    if args.command is not None:
        return report(submit(session, flag, args.command, partial=False), sys.stdout, sys.stderr)
    if args.script is not None:
        return run_file(session, flag, args.script, sys.stdout, sys.stderr)
    return repl(session, flag, input, sys.stdout, sys.stderr)
