"""Net F/T force/torque sensor: wire format, UDP client, CSV log and serial relay."""

from __future__ import annotations

import socket
import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Optional, Sequence, TextIO

import serial

COMMAND_HEADER = 0x1234
DEFAULT_HOST = "192.168.1.1"
DEFAULT_PORT = 49152
RDT_RECORD_SIZE = 36
COUNTS_PER_UNIT = 1_000_000.0
AXES = ("Fx", "Fy", "Fz", "Tx", "Ty", "Tz")

SERIAL_BAUDRATE = 460800
SERIAL_FRAME_START = b"\x03\xfc"
SERIAL_FRAME_END = b"\xfc\x03"
# Only the leading part of each frame goes out on the serial line.
SERIAL_WRITE_LENGTH = 16

_REQUEST = struct.Struct(">HHI")
_RESPONSE = struct.Struct(">III6i")
_SERIAL_VALUES = struct.Struct("<6f")

CSV_HEADER = (
    "status", "rdt_sequence", "ft_sequence",
    "FxCount", "FyCount", "FzCount", "RxCount", "RyCount", "RzCount",
    "Fx", "Fy", "Fz", "Rx", "Ry", "Rz",
)


class Command(IntEnum):
    """Commands understood by the sensor's RDT interface."""

    STOP = 0x0000
    REALTIME = 0x0002
    BUFFERED = 0x0003
    MULTIUNIT = 0x0004
    RESET_THRESHOLD_LATCH = 0x0041
    SET_SOFTWARE_BIAS = 0x0042


@dataclass(frozen=True)
class Response:
    """One RDT record: sequence numbers, status word and raw counts."""

    rdt_sequence: int
    ft_sequence: int
    status: int
    counts: tuple[int, int, int, int, int, int]

    @property
    def forces(self) -> tuple[float, ...]:
        """Counts converted to force and torque units."""
        return tuple(count / COUNTS_PER_UNIT for count in self.counts)


def build_request(command: int, sample_count: int = 1) -> bytes:
    """Encode an 8-byte RDT request."""
    return _REQUEST.pack(COMMAND_HEADER, int(command), sample_count)


def parse_response(data: bytes) -> Response:
    """Decode a 36-byte RDT record."""
    if len(data) < RDT_RECORD_SIZE:
        raise ValueError(
            f"RDT record needs {RDT_RECORD_SIZE} bytes, got {len(data)}"
        )
    rdt, ft, status, *counts = _RESPONSE.unpack_from(data)
    return Response(rdt, ft, status, tuple(counts))


def encode_serial_frame(forces: Sequence[float]) -> bytes:
    """Frame six values as little-endian float32 between start and end markers."""
    values = tuple(forces)
    if len(values) != len(AXES):
        raise ValueError(f"expected {len(AXES)} values, got {len(values)}")
    return SERIAL_FRAME_START + _SERIAL_VALUES.pack(*values) + SERIAL_FRAME_END


def forward_to_serial(port: str, forces: Sequence[float]) -> int:
    """Send a force frame to a serial port; return the number of bytes written.

    A port that cannot be opened is skipped and 0 is returned.
    """
    frame = encode_serial_frame(forces)
    try:
        link = serial.Serial(
            port,
            baudrate=SERIAL_BAUDRATE,
            bytesize=serial.EIGHTBITS,
            parity=serial.PARITY_NONE,
            stopbits=serial.STOPBITS_ONE,
            timeout=5.0,
            inter_byte_timeout=0.1,
            write_timeout=2.0 + 0.5 * SERIAL_WRITE_LENGTH,
        )
    except serial.SerialException:
        return 0
    try:
        written = link.write(frame[:SERIAL_WRITE_LENGTH])
        link.reset_input_buffer()
    finally:
        link.close()
    return written or 0


def str_search(haystack: str, needle: str) -> int:
    """Return the 1-based position of needle in haystack, or 0 if absent or empty."""
    if not needle:
        return 0
    return haystack.find(needle) + 1


def leading_int(text: str) -> int:
    """Parse the run of decimal digits at the start of text; 0 if there is none."""
    value = 0
    for char in text:
        if not "0" <= char <= "9":
            break
        value = value * 10 + (ord(char) - ord("0"))
    return value


def _fmt(value: float) -> str:
    return f"{value:g}"


class ForceRecorder:
    """Writes sensor records as CSV lines.

    The first call writes the header row only; later calls write one data row each.
    """

    def __init__(self, stream: TextIO) -> None:
        self.stream = stream
        self._header_written = False

    def record(self, response: Response) -> None:
        if not self._header_written:
            self._header_written = True
            self.stream.write(",".join(CSV_HEADER) + "\n")
            return
        fields: Iterable[str] = (
            str(response.status),
            str(response.rdt_sequence),
            str(response.ft_sequence),
            *(str(count) for count in response.counts),
            *(_fmt(force) for force in response.forces),
        )
        self.stream.write(",".join(fields) + "\n")


class NetFTClient:
    """UDP client that polls single samples from a Net F/T sensor."""

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        timeout: Optional[float] = None,
    ) -> None:
        self.host = host
        self.port = port
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        try:
            self._sock.settimeout(timeout)
            self._sock.connect((host, port))
        except OSError:
            self._sock.close()
            raise

    def read(self) -> Response:
        """Request one real-time sample and return the decoded record."""
        self._sock.send(build_request(Command.REALTIME, 1))
        data = self._sock.recv(RDT_RECORD_SIZE)
        return parse_response(data)

    def set_bias(self) -> None:
        """Ask the sensor to zero its readings."""
        self._sock.send(build_request(Command.SET_SOFTWARE_BIAS, 1))

    def close(self) -> None:
        self._sock.close()

    def __enter__(self) -> "NetFTClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()