import re
from typing import Iterable, Literal
from abc import ABC, abstractmethod
from .io import (
	CR,
	EOL,
	HEADER_ENCODING,
	LF,
	Control,
	LineError,
	LineTooLong,
	scanLine,
)
from .. import config

# SEE: https://httpwg.org/specs/rfc9112.html#chunked.encoding

NEED_MORE_DATA = Control("NeedMoreData")
LAST_CHUNK: bytes = b"0\r\n"

# Sixteen hex digits already exceed any body we could hold in memory
RE_CHUNK_SIZE = re.compile(rb"[0-9A-Fa-f]{1,16}")


class HTTPChunkError(ValueError):
	"""Raised when the chunked framing is malformed."""


class BytesTransform(ABC):
	"""An abstract bytes transform."""

	@abstractmethod
	def feed(self, chunk: bytes, more: bool = False) -> bytes | None | Literal[False]:
		"""Feeds bytes to the transform, may return a value."""

	@abstractmethod
	def flush(self) -> bytes | None | Literal[False]:
		"""Ensures that the bytes transform is flushed, for chunked encodings this will produce the last chunk."""


# -----------------------------------------------------------------------------
#
# FRAMING
#
# -----------------------------------------------------------------------------


def encodeChunk(data: bytes) -> bytes:
	"""Frames `data` as a single chunk. Empty data produces nothing, as an
	empty chunk would terminate the body."""
	if not data:
		return b""
	return b"%X\r\n" % (len(data),) + data + EOL


def encodeLastChunk(trailers: Iterable[str] | None = None) -> bytes:
	"""Returns the terminal chunk, with the given serialized trailer lines."""
	res = bytearray(LAST_CHUNK)
	if trailers:
		for line in trailers:
			res += line.encode(HEADER_ENCODING)
	res += EOL
	return bytes(res)


def chunkSize(line: bytes) -> int:
	"""Parses a chunk-size line, ignoring chunk extensions."""
	size = line.split(b";", 1)[0].rstrip(b" \t")
	if not RE_CHUNK_SIZE.fullmatch(size):
		raise HTTPChunkError(f"Invalid chunk size: {line[:32]!r}")
	return int(size, 16)


def decodeChunkSize(
	buffer: bytes | bytearray, offset: int = 0, limit: int = config.MAX_CHUNK_LINE
) -> tuple[int, int] | Control:
	"""Decodes the size line at `offset`, returning the chunk size and the
	offset of its data, or `NEED_MORE_DATA`."""
	try:
		res = scanLine(buffer, offset, limit)
	except LineTooLong as e:
		raise HTTPChunkError(f"Chunk size line exceeds {limit} bytes") from e
	except LineError as e:
		raise HTTPChunkError(f"Malformed chunk size line: {e}") from e
	if res is None:
		return NEED_MORE_DATA
	return chunkSize(res[0]), res[1]


def hasChunkEnd(buffer: bytes | bytearray, end: int) -> bool:
	"""Tells if the CRLF that follows chunk data ending at `end` is
	available, raising as soon as one of its bytes is wrong."""
	available: int = len(buffer)
	if available > end and buffer[end] != CR:
		raise HTTPChunkError("Chunk data is not followed by CRLF")
	if available > end + 1 and buffer[end + 1] != LF:
		raise HTTPChunkError("Chunk data is not followed by CRLF")
	return available >= end + 2


def decodeChunk(
	buffer: bytes | bytearray, offset: int = 0, limit: int = config.MAX_CHUNK_LINE
) -> tuple[bytes, int] | Control:
	"""Decodes the chunk starting at `offset` in `buffer`, returning its payload
	and how many bytes it spans, or `NEED_MORE_DATA`. The last chunk
	returns an empty payload and only spans its size line: the trailer
	section that follows is left to the caller."""
	head = decodeChunkSize(buffer, offset, limit)
	if isinstance(head, Control):
		return head
	size, start = head
	if size == 0:
		return b"", start - offset
	end: int = start + size
	if not hasChunkEnd(buffer, end):
		return NEED_MORE_DATA
	return bytes(buffer[start:end]), end + 2 - offset


# -----------------------------------------------------------------------------
#
# TRANSFORMS
#
# -----------------------------------------------------------------------------


class ChunkedEncoder(BytesTransform):
	"""Encodes as chunks, one chunk per fed block."""

	__slots__ = ["trailers"]

	def __init__(self, trailers: Iterable[str] | None = None) -> None:
		super().__init__()
		self.trailers: list[str] = list(trailers) if trailers else []

	def feed(self, chunk: bytes, more: bool = False) -> bytes | None | Literal[False]:
		return encodeChunk(chunk) or None

	def flush(self) -> bytes | None | Literal[False]:
		return encodeLastChunk(self.trailers)


class ChunkedDecoder(BytesTransform):
	"""Decodes a chunked body fed in arbitrary blocks. Trailer lines are
	kept as raw bytes in `trailers`."""

	__slots__ = ["buffer", "trailers", "isLast", "isDone", "limit"]

	def __init__(self, limit: int = config.MAX_CHUNK_LINE) -> None:
		super().__init__()
		self.buffer = bytearray()
		self.trailers: list[bytes] = []
		self.isLast: bool = False
		self.isDone: bool = False
		self.limit: int = limit

	def feed(self, chunk: bytes, more: bool = False) -> bytes | None | Literal[False]:
		"""Returns the decoded data available so far, `None` when there is
		none, and `False` when the framing is invalid."""
		if self.isDone:
			return None
		self.buffer += chunk
		res = bytearray()
		offset: int = 0
		try:
			while not self.isDone:
				if self.isLast:
					line = scanLine(self.buffer, offset, self.limit)
					if line is None:
						break
					offset = line[1]
					if line[0]:
						self.trailers.append(line[0])
					else:
						self.isDone = True
				else:
					decoded = decodeChunk(self.buffer, offset, self.limit)
					if isinstance(decoded, Control):
						break
					payload, read = decoded
					offset += read
					if payload:
						res += payload
					else:
						self.isLast = True
		except (HTTPChunkError, LineError):
			return False
		del self.buffer[:offset]
		return bytes(res) if res else None

	def flush(self) -> bytes | None | Literal[False]:
		# Anything left over means the body was truncated
		if not self.isDone:
			return False
		return None


# EOF
