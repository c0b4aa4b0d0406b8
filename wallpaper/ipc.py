"""Local control channel between one-shot commands and the daemon.

Protocol: newline-delimited JSON over a Unix-domain socket, one event per
line, tagged by a ``type`` field::

    {"type": "Reload"}
    {"type": "Switch", "monitor": "DP-1"}
    {"type": "Select", "path": "/pics", "keep_old": false}

The listener hands decoded events to a single queue owned by the daemon loop.
Connection handlers never touch daemon state.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from pathlib import Path
import queue
import socket
import threading
from typing import Any, Union

from wallpaper.env import get_socket_path
from wallpaper.errors import IpcConnectError, IpcDecodeError, IpcError

logger = logging.getLogger(__name__)

TYPE_KEY = "type"


@dataclass(frozen=True)
class ReloadEvent:
    """Reload config and cache, ignoring the unchanged-file shortcut."""


@dataclass(frozen=True)
class SwitchEvent:
    """Pick a new image now, for one monitor or (``None``) all of them."""

    monitor: str | None = None


@dataclass(frozen=True)
class SelectEvent:
    """Replace (or extend, with ``keep_old``) the image set from a path."""

    path: str
    keep_old: bool = False


IpcEvent = Union[ReloadEvent, SwitchEvent, SelectEvent]


def encode_event(event: IpcEvent) -> bytes:
    payload: dict[str, Any]
    if isinstance(event, ReloadEvent):
        payload = {TYPE_KEY: "Reload"}
    elif isinstance(event, SwitchEvent):
        payload = {TYPE_KEY: "Switch", "monitor": event.monitor}
    elif isinstance(event, SelectEvent):
        payload = {TYPE_KEY: "Select", "path": event.path, "keep_old": event.keep_old}
    else:
        raise TypeError(f"not an ipc event: {event!r}")
    return (json.dumps(payload) + "\n").encode("utf-8")


def decode_event(line: str | bytes) -> IpcEvent:
    try:
        payload = json.loads(line)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise IpcDecodeError(f"invalid ipc message: {exc}") from exc
    if not isinstance(payload, dict):
        raise IpcDecodeError(f"invalid ipc message: expected an object, got {payload!r}")

    kind = payload.get(TYPE_KEY)
    if kind == "Reload":
        return ReloadEvent()
    if kind == "Switch":
        monitor = payload.get("monitor")
        if monitor is not None and not isinstance(monitor, str):
            raise IpcDecodeError(f"invalid monitor in switch event: {monitor!r}")
        return SwitchEvent(monitor=monitor)
    if kind == "Select":
        path = payload.get("path")
        keep_old = payload.get("keep_old", False)
        if not isinstance(path, str) or not isinstance(keep_old, bool):
            raise IpcDecodeError(f"invalid select event: {payload!r}")
        return SelectEvent(path=path, keep_old=keep_old)
    raise IpcDecodeError(f"unknown ipc event type: {kind!r}")


def handle_client(conn: socket.socket, events: queue.Queue[IpcEvent]) -> None:
    """Forward every event read from ``conn`` until EOF or a bad line."""
    try:
        with conn, conn.makefile("rb") as reader:
            for raw in reader:
                if not raw.strip():
                    continue
                try:
                    event = decode_event(raw)
                except IpcDecodeError as exc:
                    logger.error("%s", exc)
                    logger.warning("message was: %r", raw)
                    return
                logger.debug("received %r", event)
                events.put(event)
    except OSError as exc:
        logger.error("stream returned error: %s", exc)


def _remove_stale_socket(socket_path: Path) -> None:
    if not socket_path.exists():
        return
    probe = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        probe.connect(str(socket_path))
    except ConnectionRefusedError:
        logger.info("removing stale socket %s", socket_path)
        socket_path.unlink(missing_ok=True)
        return
    except OSError:
        return
    finally:
        probe.close()
    raise IpcError(f"a daemon is already listening on {socket_path}")


class Listener:
    def __init__(
        self,
        server: socket.socket,
        socket_path: Path,
        events: queue.Queue[IpcEvent] | None = None,
    ) -> None:
        self.socket_path = socket_path
        self.events: queue.Queue[IpcEvent] = events if events is not None else queue.Queue()
        self._server = server
        self._closed = threading.Event()
        self._thread = threading.Thread(
            target=self._accept_loop, name="wallpaper-ipc-listener", daemon=True
        )

    @classmethod
    def bind(cls, socket_path: Path | None = None) -> Listener:
        path = socket_path if socket_path is not None else get_socket_path()
        logger.debug("connecting listener to %s", path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise IpcError(f"while creating socket dir {path.parent}: {exc}") from exc
        _remove_stale_socket(path)

        server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            server.bind(str(path))
            server.listen()
        except OSError as exc:
            server.close()
            raise IpcError(f"while connecting listener to socket {path}: {exc}") from exc

        listener = cls(server, path)
        listener._thread.start()
        return listener

    def _accept_loop(self) -> None:
        while not self._closed.is_set():
            try:
                conn, _ = self._server.accept()
            except OSError as exc:
                if self._closed.is_set():
                    return
                logger.error("can't connect to client: %s", exc)
                continue
            threading.Thread(
                target=handle_client,
                args=(conn, self.events),
                name="wallpaper-ipc-client",
                daemon=True,
            ).start()

    def get(self, timeout: float | None = None) -> IpcEvent:
        """Block for the next event; raises ``queue.Empty`` on timeout."""
        return self.events.get(timeout=timeout)

    def get_nowait(self) -> IpcEvent:
        return self.events.get_nowait()

    def close(self) -> None:
        if self._closed.is_set():
            return
        self._closed.set()
        try:
            self._server.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self._server.close()
        self.socket_path.unlink(missing_ok=True)
        logger.debug("removed socket %s", self.socket_path)

    def __enter__(self) -> Listener:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class Client:
    """Fire-and-forget sender. ``send`` returns once the line is written."""

    def __init__(self, conn: socket.socket) -> None:
        self._socket = conn
        self._outgoing: queue.Queue[IpcEvent | None] = queue.Queue()
        self._written: queue.Queue[Exception | None] = queue.Queue()
        self._thread = threading.Thread(
            target=self._write_loop, name="wallpaper-ipc-writer", daemon=True
        )
        self._thread.start()

    @classmethod
    def connect(cls, socket_path: Path | None = None) -> Client:
        path = socket_path if socket_path is not None else get_socket_path()
        logger.debug("connecting sender to %s", path)
        conn = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            conn.connect(str(path))
        except OSError as exc:
            conn.close()
            raise IpcConnectError(f"while connecting sender to socket {path}: {exc}") from exc
        logger.debug("connected sender")
        return cls(conn)

    def send(self, event: IpcEvent) -> None:
        self._outgoing.put(event)
        error = self._written.get()
        if error is not None:
            raise IpcError(f"can't send event {event!r} to socket: {error}") from error

    def _write_loop(self) -> None:
        while True:
            event = self._outgoing.get()
            if event is None:
                break
            logger.debug("sending %r to daemon", event)
            try:
                self._socket.sendall(encode_event(event))
            except (OSError, TypeError) as exc:
                logger.error("can't send event %r to socket: %s", event, exc)
                self._written.put(exc)
                continue
            self._written.put(None)
        logger.debug("ipc sender disconnected")
        try:
            self._socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass

    def close(self) -> None:
        self._outgoing.put(None)
        self._thread.join()
        self._socket.close()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
