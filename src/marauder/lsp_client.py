"""Minimal stdio LSP client used to check that a launched server comes up.

It performs the lifecycle handshake only (``initialize``, ``initialized``,
``shutdown``, ``exit``) and reports what the server announced.
"""

from __future__ import annotations

import json
import os
import select
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from lsprotocol import converters, types

from marauder import __version__
from marauder.bootstrapper import Command
from marauder.telemetry import get_logger

logger = get_logger(__name__)

DEFAULT_PROBE_TIMEOUT_NS = 10_000_000_000
# Time a failing child gets to exit on its own before it is killed.
_REAP_GRACE_SECONDS = 0.5

_CONVERTER = converters.get_converter()

ProcessFactory = Callable[..., subprocess.Popen]


class LspClientError(RuntimeError):
    pass


@dataclass(frozen=True)
class ProbeResult:
    initialize_result: types.InitializeResult
    exit_code: int | None

    @property
    def server_info(self) -> types.ServerInfo | None:
        return self.initialize_result.server_info

    def capabilities_payload(self) -> dict[str, object]:
        payload = _CONVERTER.unstructure(self.initialize_result.capabilities)
        return payload if isinstance(payload, dict) else {}


def _wait_readable(stream, deadline_ns: int) -> None:
    fileno = getattr(stream, "fileno", None)
    if fileno is None:
        if time.monotonic_ns() >= deadline_ns:
            raise LspClientError("LSP response timed out")
        return
    try:
        fd = fileno()
    except (OSError, ValueError):
        # In-memory streams have no descriptor; they never block.
        if time.monotonic_ns() >= deadline_ns:
            raise LspClientError("LSP response timed out")
        return
    remaining_ns = deadline_ns - time.monotonic_ns()
    timeout = max(0.0, remaining_ns / 1_000_000_000)
    ready, _, _ = select.select([fd], [], [], timeout)
    if not ready:
        raise LspClientError("LSP response timed out")


def _read_exact(stream, length: int, deadline_ns: int) -> bytes:
    body = bytearray()
    while len(body) < length:
        _wait_readable(stream, deadline_ns)
        chunk = stream.read(length - len(body))
        if not chunk:
            raise LspClientError("LSP stream closed")
        body.extend(chunk)
    return bytes(body)


def _read_rpc(stream, deadline_ns: int) -> dict[str, object]:
    header = b""
    while b"\r\n\r\n" not in header:
        _wait_readable(stream, deadline_ns)
        chunk = stream.read(1)
        if not chunk:
            raise LspClientError("LSP stream closed")
        header += chunk
    head, _, _ = header.partition(b"\r\n\r\n")
    length = 0
    for line in head.split(b"\r\n"):
        if line.lower().startswith(b"content-length:"):
            try:
                length = int(line.split(b":", 1)[1].strip())
            except ValueError as exc:
                raise LspClientError("Invalid LSP Content-Length") from exc
            break
    if length <= 0:
        raise LspClientError("Invalid LSP Content-Length")
    body = _read_exact(stream, length, deadline_ns)
    try:
        message = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise LspClientError("Invalid LSP message payload") from exc
    if not isinstance(message, dict):
        raise LspClientError("Invalid LSP message payload")
    return message


def _write_rpc(stream, message: dict[str, object]) -> None:
    payload = json.dumps(message).encode("utf-8")
    header = f"Content-Length: {len(payload)}\r\n\r\n".encode("utf-8")
    try:
        stream.write(header + payload)
        stream.flush()
    except (BrokenPipeError, ValueError) as exc:
        raise LspClientError("LSP stream closed") from exc


def _read_response(
    stream,
    request_id: int,
    deadline_ns: int,
    *,
    notification_callback: Callable[[dict[str, object]], None] | None = None,
) -> dict[str, object]:
    while True:
        message = _read_rpc(stream, deadline_ns)
        if "id" not in message:
            if notification_callback is not None:
                notification_callback(message)
            continue
        if message.get("id") == request_id:
            if message.get("error"):
                raise LspClientError(f"LSP error: {message['error']}")
            return message


def initialize_params(root: Path) -> dict[str, object]:
    resolved = root.resolve()
    params = types.InitializeParams(
        capabilities=types.ClientCapabilities(),
        process_id=os.getpid(),
        client_info=types.ClientInfo(name="marauder", version=__version__),
        root_uri=resolved.as_uri(),
        workspace_folders=[
            types.WorkspaceFolder(uri=resolved.as_uri(), name=resolved.name)
        ],
    )
    return _CONVERTER.unstructure(params)


def _structure_initialize_result(result: object) -> types.InitializeResult:
    if not isinstance(result, dict):
        raise LspClientError(
            f"Unexpected initialize result payload: {type(result).__name__}"
        )
    try:
        return _CONVERTER.structure(result, types.InitializeResult)
    except Exception as exc:
        raise LspClientError(f"Malformed initialize result: {exc}") from exc


def _child_env(command: Command) -> dict[str, str] | None:
    if not command.env:
        return None
    return {**os.environ, **command.env}


def _exit_failure(returncode: int, err: bytes | None) -> LspClientError:
    detail = (err or b"").decode("utf-8", errors="replace").strip()
    return LspClientError(f"Language server failed (exit {returncode}): {detail}")


def _reap(proc: subprocess.Popen) -> tuple[bool, bytes]:
    """Close the pipes and collect stderr, killing the child if it lingers.

    Returns whether the child had to be killed, plus its stderr.
    """
    try:
        _, err = proc.communicate(timeout=_REAP_GRACE_SECONDS)
        return False, err or b""
    except subprocess.TimeoutExpired:
        proc.kill()
        _, err = proc.communicate(timeout=1.0)
        return True, err or b""


def probe_server(
    command: Command,
    *,
    root: Path | None = None,
    timeout_ns: int = DEFAULT_PROBE_TIMEOUT_NS,
    process_factory: ProcessFactory = subprocess.Popen,
    notification_callback: Callable[[dict[str, object]], None] | None = None,
) -> ProbeResult:
    if timeout_ns <= 0:
        raise ValueError(f"timeout_ns must be positive: {timeout_ns}")
    deadline_ns = time.monotonic_ns() + timeout_ns
    try:
        proc = process_factory(
            command.argv(),
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=_child_env(command),
            bufsize=0,
        )
    except OSError as exc:
        raise LspClientError(f"Failed to start language server: {exc}") from exc
    assert proc.stdin is not None
    assert proc.stdout is not None
    logger.info("Probing %s", " ".join(command.argv()))

    finished = False
    try:
        _write_rpc(
            proc.stdin,
            {
                "jsonrpc": "2.0",
                "id": 1,
                "method": "initialize",
                "params": initialize_params(root or Path.cwd()),
            },
        )
        response = _read_response(
            proc.stdout,
            1,
            deadline_ns,
            notification_callback=notification_callback,
        )
        initialize_result = _structure_initialize_result(response.get("result"))
        _write_rpc(proc.stdin, {"jsonrpc": "2.0", "method": "initialized", "params": {}})

        _write_rpc(proc.stdin, {"jsonrpc": "2.0", "id": 2, "method": "shutdown"})
        _read_response(
            proc.stdout,
            2,
            deadline_ns,
            notification_callback=notification_callback,
        )
        _write_rpc(proc.stdin, {"jsonrpc": "2.0", "method": "exit"})

        remaining = max(1.0, (deadline_ns - time.monotonic_ns()) / 1_000_000_000)
        try:
            _, err = proc.communicate(timeout=remaining)
        except subprocess.TimeoutExpired:
            proc.kill()
            _, err = proc.communicate(timeout=1.0)
        finished = True
    except LspClientError as exc:
        killed, err = _reap(proc)
        if not killed and proc.returncode not in (0, None):
            raise _exit_failure(proc.returncode, err) from exc
        raise
    finally:
        if not finished and proc.poll() is None:
            proc.kill()
            proc.communicate(timeout=1.0)

    if proc.returncode not in (0, None):
        raise _exit_failure(proc.returncode, err)
    return ProbeResult(initialize_result=initialize_result, exit_code=proc.returncode)
