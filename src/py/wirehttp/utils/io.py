from abc import ABC, abstractmethod
from typing import BinaryIO, NamedTuple
from mypy_extensions import mypyc_attr

DEFAULT_ENCODING: str = "utf8"
# Header fields are octets, latin-1 maps them one to one
HEADER_ENCODING: str = "latin1"
EOL: bytes = b"\r\n"
CR: int = 0x0D
LF: int = 0x0A


class Control(NamedTuple):
	id: str


EOS = Control("EOS")


def asBytes(value: str | bytes | bytearray | memoryview | None) -> bytes:
	if isinstance(value, bytes):
		return value
	elif isinstance(value, (bytearray, memoryview)):
		return bytes(value)
	elif isinstance(value, str):
		return bytes(value, DEFAULT_ENCODING)
	elif value is None:
		return b""
	else:
		raise ValueError(f"Expected bytes or str, got: {value}")


# -----------------------------------------------------------------------------
#
# LINES
#
# -----------------------------------------------------------------------------


class LineError(ValueError):
	"""Base class for line scanning errors."""


class LineTooLong(LineError):
	"""The line exceeds the allowed length."""


class LineMalformed(LineError):
	"""The line is not terminated by CRLF, or contains a bare CR."""


def scanLine(
	buffer: bytes | bytearray, offset: int, limit: int
) -> tuple[bytes, int] | None:
	"""Looks for a CRLF-terminated line in `buffer` starting at `offset`.
	Returns the line (without its CRLF) and the offset right after it, or
	`None` when more data is needed. The outcome only depends on the bytes
	and not on how many of them are available, so that incremental parsing
	gives the same results as parsing all at once."""
	end: int = buffer.find(b"\n", offset)
	if end == -1:
		# The last byte may be the CR of a line that is exactly `limit` long
		if len(buffer) - offset > limit + 1:
			raise LineTooLong(f"Line exceeds {limit} bytes")
		return None
	if end - offset > limit + 1:
		raise LineTooLong(f"Line exceeds {limit} bytes")
	if end == offset or buffer[end - 1] != CR:
		raise LineMalformed("Line terminated by a bare LF")
	line: bytes = bytes(buffer[offset : end - 1])
	if b"\r" in line:
		raise LineMalformed("Line contains a bare CR")
	return line, end + 1


# -----------------------------------------------------------------------------
#
# SOURCES & SINKS
#
# -----------------------------------------------------------------------------


@mypyc_attr(allow_interpreted_subclasses=True)
class ByteSource(ABC):
	"""Supplies bytes to a parser, returning `EOS` once the input is over."""

	@abstractmethod
	def read(self) -> bytes | Control: ...


@mypyc_attr(allow_interpreted_subclasses=True)
class ByteSink(ABC):
	"""Accepts the bytes produced by a builder."""

	@abstractmethod
	def write(self, data: bytes) -> int: ...


class BytesSource(ByteSource):
	"""Reads from an in-memory payload, `size` bytes at a time."""

	__slots__ = ["data", "offset", "size"]

	def __init__(self, data: bytes, size: int = 64_000) -> None:
		if size <= 0:
			raise ValueError(f"Read size must be positive, got: {size}")
		self.data: bytes = data
		self.offset: int = 0
		self.size: int = size

	def read(self) -> bytes | Control:
		if self.offset >= len(self.data):
			return EOS
		chunk = self.data[self.offset : self.offset + self.size]
		self.offset += len(chunk)
		return chunk


class StreamSource(ByteSource):
	"""Reads from a binary stream, such as a file or `socket.makefile("rb")`."""

	__slots__ = ["stream", "size"]

	def __init__(self, stream: BinaryIO, size: int = 64_000) -> None:
		self.stream: BinaryIO = stream
		self.size: int = size

	def read(self) -> bytes | Control:
		chunk = self.stream.read(self.size)
		return chunk if chunk else EOS


class BytesSink(ByteSink):
	"""Accumulates written bytes in memory."""

	__slots__ = ["buffer"]

	def __init__(self) -> None:
		self.buffer: bytearray = bytearray()

	def write(self, data: bytes) -> int:
		self.buffer += data
		return len(data)

	@property
	def value(self) -> bytes:
		return bytes(self.buffer)


class StreamSink(ByteSink):
	"""Writes to a binary stream."""

	__slots__ = ["stream"]

	def __init__(self, stream: BinaryIO) -> None:
		self.stream: BinaryIO = stream

	def write(self, data: bytes) -> int:
		return self.stream.write(data)


# EOF
