"""Transport interfaces."""

from __future__ import annotations

from typing import Protocol


class Transport(Protocol):
    def send(self, line: str) -> None:
        """Send one command line to the instrument."""

    def receive(self) -> str:
        """Receive one response line from the instrument."""

    def request(self, line: str) -> str:
        """Send a query line and return its response."""

    def close(self) -> None:
        """Release the connection. No other call is valid afterwards."""
