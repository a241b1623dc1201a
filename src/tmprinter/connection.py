"""
Transports for ESC/POS printers.

Network printers listen on raw TCP port 9100; USB/RS-232 printers appear
as serial ports; many portable printers speak Bluetooth LE through a
single writable GATT characteristic (handled with the Bleak library).

Writers only need `write()` (blocking) or `write()` + `drain()` (async),
so `serial.Serial` and `asyncio.StreamWriter` are usable directly.
"""

import asyncio
import socket
from dataclasses import dataclass
from typing import Optional

import serial
from bleak import BleakClient, BleakScanner
from bleak.exc import BleakError


class TCPConnection:
    """Blocking TCP connection to a network printer."""

    DEFAULT_PORT = 9100

    def __init__(self, host: str, port: int = DEFAULT_PORT, timeout: Optional[float] = None):
        """
        Connect to a printer.

        Args:
            host: Printer hostname or IP address
            port: Raw printing port (default 9100)
            timeout: Socket timeout in seconds (default: blocking)

        Raises:
            OSError: If the connection cannot be established
        """
        self.host = host
        self.port = port
        self._sock: Optional[socket.socket] = socket.create_connection(
            (host, port), timeout=timeout
        )

    @classmethod
    def from_address(cls, address: str, timeout: Optional[float] = None) -> "TCPConnection":
        """Connect using a "HOST" or "HOST:PORT" string."""
        host, port = parse_address(address)
        return cls(host, port, timeout=timeout)

    def write(self, data: bytes) -> int:
        if self._sock is None:
            raise ConnectionError("Connection is closed")
        self._sock.sendall(data)
        return len(data)

    def close(self):
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    @property
    def is_connected(self) -> bool:
        return self._sock is not None

    def __enter__(self) -> "TCPConnection":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def parse_address(address: str, default_port: int = TCPConnection.DEFAULT_PORT) -> tuple[str, int]:
    """Split "HOST[:PORT]" into host and port."""
    host, sep, port = address.rpartition(":")
    if not sep:
        return address, default_port
    if not port.isdigit() or not 0 < int(port) < 65536:
        raise ValueError(f"Invalid port in address: {address!r}")
    return host, int(port)


async def open_tcp(host: str, port: int = TCPConnection.DEFAULT_PORT) -> asyncio.StreamWriter:
    """Open an asyncio TCP connection; the returned StreamWriter is the transport."""
    _, writer = await asyncio.open_connection(host, port)
    return writer


def open_serial(port: str, baudrate: int = 9600, timeout: float = 5.0) -> serial.Serial:
    """
    Open a serial printer port.

    ESC/POS serial defaults: 8 data bits, no parity, 1 stop bit.

    Raises:
        serial.SerialException: If the port cannot be opened (an OSError)
    """
    return serial.Serial(
        port=port,
        baudrate=baudrate,
        bytesize=serial.EIGHTBITS,
        parity=serial.PARITY_NONE,
        stopbits=serial.STOPBITS_ONE,
        timeout=timeout,
        write_timeout=timeout,
    )


@dataclass
class PrinterInfo:
    """Information about a discovered BLE printer."""
    name: str
    address: str
    rssi: int

    def __str__(self) -> str:
        return f"{self.name} [{self.address}] RSSI: {self.rssi} dB"


class BLEConnection:
    """
    Bluetooth LE connection to a thermal printer.

    Follows the StreamWriter contract: `write()` buffers, `drain()` sends
    the buffer in chunks over the printer's writable characteristic.
    """

    # Advertised name fragments of common BLE ESC/POS printers
    DEVICE_PATTERNS = ["PRINTER", "POS", "MTP", "PT-", "TM-", "RPP", "BLUETOOTH PRINTER"]

    # Printer service used by most BLE ESC/POS modules
    PRINTER_SERVICE = "000018f0-0000-1000-8000-00805f9b34fb"
    PRINTER_CHAR_WRITE = "00002af1-0000-1000-8000-00805f9b34fb"

    # Payload of the minimum ATT MTU (23), used when the MTU is unknown
    DEFAULT_CHUNK_SIZE = 20
    DEFAULT_CHUNK_DELAY_MS = 10.0

    def __init__(self, chunk_delay_ms: float = DEFAULT_CHUNK_DELAY_MS):
        self.client: Optional[BleakClient] = None
        self.write_char: Optional[str] = None
        self.chunk_delay_ms = chunk_delay_ms
        self._buffer = bytearray()
        self._closing = False
        self._debug = False

    def set_debug(self, enabled: bool):
        """Enable/disable debug output."""
        self._debug = enabled

    def _log(self, message: str):
        if self._debug:
            print(f"[TM] {message}")

    @classmethod
    async def scan(cls, timeout: float = 10.0) -> list[PrinterInfo]:
        """Scan for BLE printers, strongest signal first."""
        printers = []
        devices = await BleakScanner.discover(timeout=timeout, return_adv=True)

        for device, adv_data in devices.values():
            name = device.name or adv_data.local_name or ""
            advertises_service = cls.PRINTER_SERVICE in (adv_data.service_uuids or [])
            if advertises_service or any(p in name.upper() for p in cls.DEVICE_PATTERNS):
                printers.append(PrinterInfo(
                    name=name or "(unnamed)",
                    address=device.address,
                    rssi=adv_data.rssi if adv_data.rssi is not None else -100,
                ))

        return sorted(printers, key=lambda p: p.rssi, reverse=True)

    async def connect(self, address: str):
        """
        Connect to a printer by address and find its write characteristic.

        Raises:
            ConnectionError: If the connection fails or nothing is writable
        """
        self.client = BleakClient(address)
        self._log(f"Connecting to {address}...")

        try:
            await self.client.connect()
        except (BleakError, asyncio.TimeoutError) as e:
            self.client = None
            raise ConnectionError(f"Failed to connect to {address}: {e}") from e

        self._discover_write_characteristic()
        if self.write_char is None:
            await self.disconnect()
            raise ConnectionError(f"No writable characteristic found on {address}")
        self._closing = False

    def _discover_write_characteristic(self):
        """Prefer the known printer characteristic, else the first writable one."""
        if not self.client:
            return

        fallback = None
        for service in self.client.services:
            for char in service.characteristics:
                props = char.properties
                if "write" not in props and "write-without-response" not in props:
                    continue
                if char.uuid == self.PRINTER_CHAR_WRITE:
                    self.write_char = char.uuid
                    self._log(f"Found printer characteristic: {char.uuid}")
                    return
                if fallback is None:
                    fallback = char.uuid

        self.write_char = fallback
        if fallback:
            self._log(f"Found write characteristic: {fallback}")

    def get_chunk_size(self) -> int:
        """Usable payload per write, derived from the negotiated MTU."""
        mtu = getattr(self.client, "mtu_size", None) if self.client else None
        if mtu:
            # MTU includes 3 bytes of ATT overhead
            return mtu - 3
        return self.DEFAULT_CHUNK_SIZE

    def write(self, data: bytes):
        """Queue data; it is sent by `drain()`."""
        self._buffer.extend(data)

    async def drain(self):
        """
        Send all queued data in chunks.

        Raises:
            ConnectionError: If not connected or a chunk write fails
        """
        if not self.is_connected or not self.write_char:
            self._buffer.clear()
            raise ConnectionError("Not connected to printer")

        data = bytes(self._buffer)
        self._buffer.clear()
        chunk_size = self.get_chunk_size()
        total_chunks = (len(data) + chunk_size - 1) // chunk_size

        for i in range(0, len(data), chunk_size):
            chunk = data[i:i + chunk_size]
            try:
                await self.client.write_gatt_char(self.write_char, chunk, response=False)
            except BleakError as e:
                raise ConnectionError(
                    f"Write failed at chunk {i // chunk_size + 1}/{total_chunks}: {e}"
                ) from e

            # Small delay between chunks to avoid overrunning the printer buffer
            if self.chunk_delay_ms > 0 and i + chunk_size < len(data):
                await asyncio.sleep(self.chunk_delay_ms / 1000.0)

    async def disconnect(self):
        """Disconnect from the printer."""
        if self.client and self.client.is_connected:
            await self.client.disconnect()
        self.client = None
        self.write_char = None
        self._buffer.clear()

    def close(self):
        """Mark the connection for closing; complete with `wait_closed()`."""
        self._closing = True

    async def wait_closed(self):
        if self._closing:
            await self.disconnect()

    @property
    def is_connected(self) -> bool:
        return self.client is not None and self.client.is_connected
