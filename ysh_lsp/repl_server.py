from __future__ import annotations

"""
Simple TCP REPL server for ysh.

Protocol: JSON per line over TCP.
- Request: {"cmd": "eval", "code": "let $x = 1; $x + 1"}
- Response: {"ok": true, "result": "2", "diagnostics": [...]}
  or {"ok": false, "error": <formatted message>, "diagnostics": [...]}
- Request: {"cmd": "reset"} discards the session and starts a fresh one.

One Session is kept alive so that definitions persist across evaluations.
Each request is a complete script: incomplete input is an error here.
"""

import json
import logging
import socket
import threading
from typing import Any, Callable, Tuple

from ysh.host import CommandInvoker, SubprocessInvoker
from ysh.session import Session

logger = logging.getLogger(__name__)

HOST = "127.0.0.1"
PORT = 8765


class ReplServer:
    def __init__(
        self,
        host: str = HOST,
        port: int = PORT,
        session_factory: Callable[[], Session] | None = None,
        invoker: CommandInvoker | None = None,
    ):
        self.host = host
        self.port = port
        invoker = invoker if invoker is not None else SubprocessInvoker()
        self.session_factory = session_factory or (lambda: Session(invoker=invoker))
        self.session = self.session_factory()
        # a Session is single-threaded; client threads take turns
        self._lock = threading.Lock()

    def handle_request(self, req: Any) -> dict:
        if not isinstance(req, dict):
            return {"ok": False, "error": "Invalid request: expected a JSON object"}
        cmd = req.get("cmd")
        if cmd == "eval":
            code = req.get("code", "")
            if not isinstance(code, str):
                return {"ok": False, "error": "Invalid request: code must be a string"}
            with self._lock:
                result = self.session.run_script(code)
            diagnostics = [str(d) for d in result.diagnostics]
            if result.status == "ok":
                return {"ok": True, "result": result.display, "diagnostics": diagnostics}
            return {"ok": False, "error": result.format_error() or result.status, "diagnostics": diagnostics}
        if cmd == "reset":
            with self._lock:
                self.session = self.session_factory()
            return {"ok": True, "result": None}
        return {"ok": False, "error": f"Unknown cmd: {cmd}"}

    def handle_line(self, line: bytes) -> dict:
        try:
            req = json.loads(line.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as ex:
            return {"ok": False, "error": f"Invalid request: {ex}"}
        return self.handle_request(req)

    def serve_forever(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            s.bind((self.host, self.port))
            s.listen(5)
            logger.info("ysh REPL server listening on %s:%d", self.host, self.port)
            while True:
                conn, addr = s.accept()
                threading.Thread(target=self._handle_client, args=(conn, addr), daemon=True).start()

    def _handle_client(self, conn: socket.socket, addr: Tuple[str, int]):
        logger.debug("client connected: %s", addr)
        with conn:
            buf = b""
            while True:
                data = conn.recv(4096)
                if not data:
                    break
                buf += data
                while b"\n" in buf:
                    line, buf = buf.split(b"\n", 1)
                    line = line.strip()
                    if not line:
                        continue
                    resp = self.handle_line(line)
                    conn.sendall((json.dumps(resp) + "\n").encode("utf-8"))
        logger.debug("client disconnected: %s", addr)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    ReplServer().serve_forever()
