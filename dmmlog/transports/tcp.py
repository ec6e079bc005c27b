"""Line-oriented TCP transport for SCPI-over-socket instruments."""

from __future__ import annotations

import logging
import socket
from typing import TextIO

from dmmlog.core.errors import (
    TransportConnectError,
    TransportDecodeError,
    TransportIOError,
    TransportTimeoutError,
)

DEFAULT_PORT = 5025
DEFAULT_TIMEOUT_S = 5.0
RECEIVE_BUFFER_SIZE = 2048
LOGGER = logging.getLogger(__name__)


class TCPTransport:
    """One exclusively owned connection to an instrument.

    Requests are strictly half-duplex: one line out, one line back. After
    :meth:`close` the transport refuses all I/O without touching the socket.
    """

    def __init__(self, sock: socket.socket, *, peer: str = "", trace: TextIO | None = None) -> None:
        self._sock: socket.socket | None = sock
        self.peer = peer
        self.trace = trace

    @classmethod
    def connect(
        cls,
        host: str,
        port: int = DEFAULT_PORT,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        trace: TextIO | None = None,
    ) -> TCPTransport:
        peer = f"{host}:{port}"
        try:
            sock = socket.create_connection((host, port), timeout=timeout_s)
        except socket.gaierror as exc:
            raise TransportConnectError(f"Could not resolve instrument host '{host}': {exc}") from exc
        except TimeoutError as exc:
            raise TransportConnectError(f"Connecting to instrument {peer} timed out") from exc
        except OSError as exc:
            raise TransportConnectError(f"Connecting to instrument {peer} failed: {exc}") from exc

        try:
            sock.settimeout(timeout_s)
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        except OSError as exc:
            sock.close()
            raise TransportConnectError(f"Could not configure socket for {peer}: {exc}") from exc

        LOGGER.debug("Connected to %s (timeout %.1fs)", peer, timeout_s)
        return cls(sock, peer=peer, trace=trace)

    @property
    def is_open(self) -> bool:
        return self._sock is not None

    def _open_socket(self) -> socket.socket:
        if self._sock is None:
            raise TransportIOError(f"Connection to instrument {self.peer} is closed")
        return self._sock

    def _echo(self, prefix: str, line: str) -> None:
        if self.trace is not None:
            self.trace.write(f"{prefix} {line}\n")
            self.trace.flush()

    def send(self, line: str) -> None:
        sock = self._open_socket()
        self._echo(">", line)
        try:
            sock.sendall(line.encode("utf-8") + b"\r\n")
        except TimeoutError as exc:
            raise TransportTimeoutError(f"Sending '{line}' to {self.peer} timed out") from exc
        except OSError as exc:
            raise TransportIOError(f"Sending '{line}' to {self.peer} failed: {exc}") from exc

    def receive(self) -> str:
        sock = self._open_socket()
        try:
            data = sock.recv(RECEIVE_BUFFER_SIZE)
        except TimeoutError as exc:
            raise TransportTimeoutError(f"Receiving from {self.peer} timed out") from exc
        except OSError as exc:
            raise TransportIOError(f"Receiving from {self.peer} failed: {exc}") from exc

        if not data:
            raise TransportIOError(f"Instrument {self.peer} closed the connection")

        if data.endswith(b"\r\n"):
            data = data[:-2]
        elif data.endswith(b"\n"):
            data = data[:-1]

        try:
            line = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise TransportDecodeError(f"Response from {self.peer} is not valid UTF-8: {exc}") from exc

        self._echo("<", line)
        return line

    def request(self, line: str) -> str:
        self.send(line)
        return self.receive()

    def close(self) -> None:
        sock, self._sock = self._sock, None
        if sock is None:
            return
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as exc:
            LOGGER.debug("Shutdown of %s failed: %s", self.peer, exc)
        finally:
            sock.close()
        LOGGER.debug("Disconnected from %s", self.peer)

    def __enter__(self) -> TCPTransport:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
