import asyncio
from collections import deque
from asyncio import StreamReader, StreamWriter
from typing import AsyncIterator, Iterable
from ..http.builder import MessageBuilder
from ..http.model import (
	HTTPAtom,
	HTTPMessageComplete,
	HTTPMessageKind,
	HTTPParseError,
	HTTPParseFailure,
	HTTPRequest,
	HTTPResponse,
)
from ..http.parser import HTTPParser

# --
# == asyncio bridge
#
# The parser never blocks: these helpers own the awaiting, reading from
# an `asyncio.StreamReader` and writing to an `asyncio.StreamWriter`.

READ_SIZE: int = 64_000


async def iterate(
	reader: StreamReader,
	parser: HTTPParser,
	*,
	size: int = READ_SIZE,
	timeout: float | None = None,
) -> AsyncIterator[HTTPAtom]:
	"""Yields the events parsed from `reader` until it reaches its end or
	the parser fails. Raises `TimeoutError` when a read takes longer than
	`timeout`."""
	while True:
		if timeout is None:
			chunk = await reader.read(size)
		else:
			chunk = await asyncio.wait_for(reader.read(size), timeout=timeout)
		if not chunk:
			for atom in parser.close():
				yield atom
			return
		for atom in parser.feed(chunk):
			yield atom
		if parser.hasFailed:
			return


class MessageReader:
	"""Reads successive messages from a connection. The parser and the
	events it has already produced are kept between calls, so that
	pipelined messages read along with a previous one are not lost."""

	__slots__ = ["reader", "parser", "pending", "size", "timeout", "isEOS"]

	def __init__(
		self,
		reader: StreamReader,
		kind: HTTPMessageKind | None = None,
		*,
		size: int = READ_SIZE,
		timeout: float | None = None,
	) -> None:
		self.reader: StreamReader = reader
		self.parser: HTTPParser = HTTPParser(kind)
		self.pending: deque[HTTPAtom] = deque()
		self.size: int = size
		self.timeout: float | None = timeout
		self.isEOS: bool = False

	async def read(self) -> bytes:
		if self.timeout is None:
			return await self.reader.read(self.size)
		else:
			return await asyncio.wait_for(
				self.reader.read(self.size), timeout=self.timeout
			)

	async def receive(self) -> HTTPRequest | HTTPResponse | None:
		"""Returns the next complete message, or `None` once the stream has
		ended cleanly. Raises `HTTPParseFailure` when the input is invalid
		and `TimeoutError` when a read takes longer than `timeout`."""
		while True:
			while self.pending:
				atom = self.pending.popleft()
				if isinstance(atom, HTTPMessageComplete):
					return atom.message
				elif isinstance(atom, HTTPParseError):
					raise HTTPParseFailure(atom)
			if self.isEOS or self.parser.hasFailed:
				return None
			chunk = await self.read()
			if chunk:
				self.pending.extend(self.parser.feed(chunk))
			else:
				self.isEOS = True
				self.pending.extend(self.parser.close())


async def send(
	writer: StreamWriter,
	message: HTTPRequest | HTTPResponse,
	chunks: Iterable[bytes | str] | None = None,
) -> int:
	"""Writes `message` (as chunks when `chunks` is given), waiting for the
	writer to drain after each block."""
	builder = MessageBuilder(message)
	if chunks is None:
		data = builder.build()
		writer.write(data)
		await writer.drain()
		return len(data)
	written: int = 0
	for data in builder.stream(chunks):
		writer.write(data)
		written += len(data)
		await writer.drain()
	return written


# EOF
