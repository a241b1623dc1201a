"""
Pytest configuration for tmprinter tests.

Provides in-memory transports, plus fixtures and command-line options for
hardware tests.
"""

import pytest

from tmprinter import Model, Writer
from tmprinter.connection import TCPConnection


class RecordingTransport:
    """Blocking transport that records every write."""

    def __init__(self):
        self.writes: list[bytes] = []
        self.closed = False

    def write(self, data):
        self.writes.append(bytes(data))
        return len(data)

    def close(self):
        self.closed = True

    @property
    def data(self) -> bytes:
        return b"".join(self.writes)


class AsyncRecordingTransport:
    """StreamWriter-like transport that records every write."""

    def __init__(self):
        self.writes: list[bytes] = []
        self.drains = 0
        self.closed = False

    def write(self, data):
        self.writes.append(bytes(data))

    async def drain(self):
        self.drains += 1

    def close(self):
        self.closed = True

    async def wait_closed(self):
        pass

    @property
    def data(self) -> bytes:
        return b"".join(self.writes)


@pytest.fixture
def transport():
    """Provide a recording blocking transport."""
    return RecordingTransport()


@pytest.fixture
def async_transport():
    """Provide a recording async transport."""
    return AsyncRecordingTransport()


def pytest_addoption(parser):
    """Add command-line options for hardware tests."""
    parser.addoption(
        "--printer-host",
        action="store",
        default=None,
        help="HOST[:PORT] of a network printer for hardware tests",
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "hardware: tests that print on a real printer")


@pytest.fixture
def printer_host(request):
    """Get the printer address from command line."""
    host = request.config.getoption("--printer-host")
    if host is None:
        pytest.skip("No printer provided (use --printer-host=HOST[:PORT])")
    return host


@pytest.fixture
def connected_writer(printer_host):
    """Provide an open writer on a real printer."""
    try:
        connection = TCPConnection.from_address(printer_host, timeout=5.0)
    except OSError as e:
        pytest.skip(f"Could not connect to printer at {printer_host}: {e}")

    writer = Writer.open(Model.GENERIC, connection)
    yield writer
    writer.close()
