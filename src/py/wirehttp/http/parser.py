import re
from typing import ClassVar, Iterator, NamedTuple

from .. import config
from ..utils.codec import HTTPChunkError, decodeChunk, decodeChunkSize, hasChunkEnd
from ..utils.io import (
	HEADER_ENCODING,
	ByteSource,
	Control,
	LineMalformed,
	LineTooLong,
	scanLine,
)
from ..utils.logging import debug, warning
from .builder import isChunked
from .headers import RE_TOKEN, HeaderBag, HTTPHeaderError
from .model import (
	RE_PROTOCOL,
	RE_REASON_INVALID,
	RE_TARGET,
	HTTPAtom,
	HTTPBodyChunk,
	HTTPBodyMode,
	HTTPErrorType,
	HTTPHeader,
	HTTPMessageComplete,
	HTTPMessageError,
	HTTPMessageKind,
	HTTPParseError,
	HTTPParseFailure,
	HTTPParserState,
	HTTPRequest,
	HTTPRequestLine,
	HTTPResponse,
	HTTPResponseLine,
)
from .status import hasBody, isValid

RE_STATUS_LINE = re.compile(r"(HTTP/1\.[01]) ([0-9]{3})(?: (.*))?", re.DOTALL)


class HTTPLimits(NamedTuple):
	"""Bounds on what the parser buffers for a single element."""

	startLine: int = config.MAX_START_LINE
	headerLine: int = config.MAX_HEADER_LINE
	headers: int = config.MAX_HEADERS
	chunkLine: int = config.MAX_CHUNK_LINE


class Invalid(Exception):
	"""Internal signal that the current message can't be parsed."""

	def __init__(self, type: HTTPErrorType, message: str):
		super().__init__(message)
		self.type: HTTPErrorType = type
		self.message: str = message


class HTTPParser:
	"""An incremental HTTP/1.x parser. Bytes are given to `feed` in chunks
	of any size and the parser returns the events they complete. The
	events don't depend on how the input was split: unless `streaming` is
	set, bodies are reported as one `HTTPBodyChunk` per framing unit (the
	whole `Content-Length` body, each decoded chunk, the whole body read
	until the connection closes). With `streaming`, bodies are reported as
	they arrive and completed messages have an empty body."""

	METHOD_HAS_BODY: ClassVar[frozenset[str]] = frozenset({"POST", "PUT", "PATCH"})

	__slots__ = [
		"kind",
		"limits",
		"streaming",
		"join",
		"state",
		"bodyMode",
		"buffer",
		"offset",
		"line",
		"headers",
		"trailers",
		"body",
		"remaining",
		"inChunk",
		"error",
		"completed",
	]

	def __init__(
		self,
		kind: HTTPMessageKind | None = None,
		*,
		limits: HTTPLimits | None = None,
		streaming: bool = False,
		join: bool | None = None,
	) -> None:
		self.kind: HTTPMessageKind | None = kind
		self.limits: HTTPLimits = limits or HTTPLimits()
		self.streaming: bool = streaming
		self.join: bool | None = join
		self.state: HTTPParserState = HTTPParserState.AwaitStartLine
		self.bodyMode: HTTPBodyMode | None = None
		self.buffer: bytearray = bytearray()
		self.offset: int = 0
		self.line: HTTPRequestLine | HTTPResponseLine | None = None
		self.headers: HeaderBag = self.newHeaders()
		self.trailers: HeaderBag = self.newHeaders()
		self.body: bytearray = bytearray()
		self.remaining: int = 0
		self.inChunk: bool = False
		self.error: HTTPParseError | None = None
		self.completed: int = 0

	@property
	def hasFailed(self) -> bool:
		return self.state is HTTPParserState.Failed

	def newHeaders(self) -> HeaderBag:
		# Parsed lines may omit the space after the colon that the
		# serialized form counts.
		return HeaderBag(join=self.join, limit=self.limits.headerLine + 1)

	def reset(self) -> "HTTPParser":
		"""Discards any partial message and buffered input, clearing
		failures."""
		self.buffer.clear()
		self.offset = 0
		self.error = None
		return self.next()

	def next(self) -> "HTTPParser":
		"""Prepares for the next message, keeping the buffered input."""
		self.state = HTTPParserState.AwaitStartLine
		self.bodyMode = None
		self.line = None
		self.headers = self.newHeaders()
		self.trailers = self.newHeaders()
		self.body = bytearray()
		self.remaining = 0
		self.inChunk = False
		return self

	# =========================================================================
	# API
	# =========================================================================

	def feed(self, chunk: bytes) -> list[HTTPAtom]:
		"""Consumes `chunk`, returning the events it completed. Parse errors
		are returned as a `HTTPParseError` event, after which the parser
		must be `reset()` before being fed again."""
		if self.state is HTTPParserState.Failed:
			raise RuntimeError(
				f"Parser has failed with {self.error}, it must be reset first"
			)
		self.buffer += chunk
		events: list[HTTPAtom] = []
		try:
			while self.step(events):
				pass
		except Invalid as e:
			self.fail(events, e.type, e.message)
		# We only keep what hasn't been consumed
		if self.offset:
			del self.buffer[: self.offset]
			self.offset = 0
		return events

	def close(self) -> list[HTTPAtom]:
		"""Signals the end of the input stream."""
		events: list[HTTPAtom] = []
		state = self.state
		if state is HTTPParserState.Failed or state is HTTPParserState.Done:
			pass
		elif state is HTTPParserState.AwaitStartLine and self.offset >= len(
			self.buffer
		):
			pass
		elif (
			state is HTTPParserState.AwaitBody
			and self.bodyMode is HTTPBodyMode.UntilClose
		):
			if self.body and not self.streaming:
				events.append(HTTPBodyChunk(bytes(self.body)))
			self.complete(events)
		else:
			self.fail(
				events,
				HTTPErrorType.UnexpectedEndOfStream,
				f"Input ended while in {state.name}",
			)
		return events

	def read(self, source: ByteSource) -> Iterator[HTTPAtom]:
		"""Parses the whole of `source`, until its end or the first error."""
		while True:
			chunk = source.read()
			if isinstance(chunk, Control):
				yield from self.close()
				return
			yield from self.feed(chunk)
			if self.hasFailed:
				return

	# =========================================================================
	# STATES
	# =========================================================================

	def step(self, events: list[HTTPAtom]) -> bool:
		"""Advances the state machine, returning `False` when more input is
		needed."""
		state = self.state
		if state is HTTPParserState.AwaitStartLine:
			return self.parseStartLine(events)
		elif state is HTTPParserState.AwaitHeaders:
			return self.parseField(events, self.headers, False)
		elif state is HTTPParserState.AwaitBody:
			if self.bodyMode is HTTPBodyMode.LengthKnown:
				return self.parseBodyLength(events)
			elif self.bodyMode is HTTPBodyMode.Chunked:
				return self.parseBodyChunk(events)
			else:
				return self.parseBodyRest(events)
		elif state is HTTPParserState.AwaitTrailers:
			return self.parseField(events, self.trailers, True)
		elif state is HTTPParserState.Done:
			# Pipelined messages follow each other in the buffer
			if self.offset < len(self.buffer):
				self.next()
				return True
			return False
		else:
			return False

	def scan(
		self, limit: int, oversized: HTTPErrorType, malformed: HTTPErrorType
	) -> bytes | None:
		try:
			res = scanLine(self.buffer, self.offset, limit)
		except LineTooLong:
			raise Invalid(oversized, f"Line exceeds {limit} bytes")
		except LineMalformed as e:
			raise Invalid(malformed, str(e))
		if res is None:
			return None
		self.offset = res[1]
		return res[0]

	def parseStartLine(self, events: list[HTTPAtom]) -> bool:
		raw = self.scan(
			self.limits.startLine,
			HTTPErrorType.OversizedStartLine,
			HTTPErrorType.BadStartLine,
		)
		if raw is None:
			return False
		elif not raw:
			# Empty lines before a start line are ignored
			return True
		line: str = raw.decode(HEADER_ENCODING)
		kind = self.kind
		if kind is None:
			kind = (
				HTTPMessageKind.Response
				if line.startswith("HTTP/")
				else HTTPMessageKind.Request
			)
		self.line = (
			self.parseRequestLine(line)
			if kind is HTTPMessageKind.Request
			else self.parseStatusLine(line)
		)
		events.append(self.line)
		self.state = HTTPParserState.AwaitHeaders
		return True

	def parseRequestLine(self, line: str) -> HTTPRequestLine:
		parts: list[str] = line.split(" ")
		if len(parts) != 3:
			raise Invalid(HTTPErrorType.BadStartLine, f"Malformed request line: {line[:64]!r}")
		method, target, protocol = parts
		if not RE_TOKEN.fullmatch(method):
			raise Invalid(HTTPErrorType.BadStartLine, f"Invalid method: {method[:64]!r}")
		if not RE_TARGET.fullmatch(target):
			raise Invalid(HTTPErrorType.BadStartLine, f"Invalid target: {target[:64]!r}")
		if not RE_PROTOCOL.fullmatch(protocol):
			raise Invalid(HTTPErrorType.BadStartLine, f"Unsupported protocol: {protocol[:64]!r}")
		path, _, query = target.partition("?")
		if not path:
			raise Invalid(HTTPErrorType.BadStartLine, f"Empty path in target: {target[:64]!r}")
		return HTTPRequestLine(method, path, query, protocol)

	def parseStatusLine(self, line: str) -> HTTPResponseLine:
		match = RE_STATUS_LINE.fullmatch(line)
		if not match:
			raise Invalid(HTTPErrorType.BadStartLine, f"Malformed status line: {line[:64]!r}")
		protocol, code, reason = match.groups()
		status: int = int(code)
		if not isValid(status):
			raise Invalid(HTTPErrorType.BadStartLine, f"Invalid status code: {status}")
		reason = reason or ""
		if RE_REASON_INVALID.search(reason):
			raise Invalid(HTTPErrorType.BadStartLine, f"Invalid reason phrase: {reason[:64]!r}")
		return HTTPResponseLine(protocol, status, reason)

	def parseField(
		self, events: list[HTTPAtom], bag: HeaderBag, trailer: bool
	) -> bool:
		raw = self.scan(
			self.limits.headerLine,
			HTTPErrorType.OversizedHeader,
			HTTPErrorType.BadHeader,
		)
		if raw is None:
			return False
		elif not raw:
			if trailer:
				self.complete(events)
			else:
				self.endHeaders(events)
			return True
		if len(bag) >= self.limits.headers:
			raise Invalid(HTTPErrorType.OversizedHeader, f"More than {self.limits.headers} fields")
		if raw[0] in b" \t":
			raise Invalid(HTTPErrorType.BadHeader, "Folded header lines are not supported")
		i: int = raw.find(b":")
		if i <= 0:
			raise Invalid(HTTPErrorType.BadHeader, f"Malformed header line: {raw[:64]!r}")
		try:
			bag.add(raw[:i].decode("ascii"), raw[i + 1 :].decode(HEADER_ENCODING))
		except (UnicodeDecodeError, HTTPHeaderError) as e:
			raise Invalid(HTTPErrorType.BadHeader, str(e))
		name, value = bag.fields[-1]
		events.append(HTTPHeader(name, value, trailer))
		return True

	def endHeaders(self, events: list[HTTPAtom]) -> None:
		"""Picks how the body is framed once the headers are known."""
		line = self.line
		headers = self.headers
		encodings: list[str] = headers.getAll("Transfer-Encoding")
		lengths: list[str] = headers.getAll("Content-Length")
		if encodings and lengths:
			raise Invalid(
				HTTPErrorType.BadHeader,
				"Both Transfer-Encoding and Content-Length are present",
			)
		if isinstance(line, HTTPResponseLine) and not hasBody(line.status):
			self.complete(events)
		elif encodings:
			if isChunked(encodings[-1]):
				self.setBody(HTTPBodyMode.Chunked)
			elif isinstance(line, HTTPResponseLine):
				self.setBody(HTTPBodyMode.UntilClose)
			else:
				raise Invalid(
					HTTPErrorType.BadHeader,
					f"Request body coding is not chunked: {encodings[-1]!r}",
				)
		elif lengths:
			values: set[str] = {
				_.strip(" \t") for value in lengths for _ in value.split(",")
			}
			if len(values) != 1:
				raise Invalid(HTTPErrorType.BadHeader, f"Conflicting Content-Length: {lengths}")
			length: str = values.pop()
			if not (length.isdigit() and length.isascii()):
				raise Invalid(HTTPErrorType.BadHeader, f"Invalid Content-Length: {length[:32]!r}")
			size: int = int(length)
			if size == 0:
				self.complete(events)
			else:
				self.setBody(HTTPBodyMode.LengthKnown, size)
		elif isinstance(line, HTTPResponseLine):
			self.setBody(HTTPBodyMode.UntilClose)
		elif line is not None and line.method in self.METHOD_HAS_BODY:
			raise Invalid(
				HTTPErrorType.LengthRequired,
				f"{line.method} request without Content-Length or Transfer-Encoding",
			)
		else:
			self.complete(events)

	def setBody(self, mode: HTTPBodyMode, remaining: int = 0) -> None:
		self.state = HTTPParserState.AwaitBody
		self.bodyMode = mode
		self.remaining = remaining

	def parseBodyLength(self, events: list[HTTPAtom]) -> bool:
		available: int = len(self.buffer) - self.offset
		if available <= 0:
			return False
		n: int = min(available, self.remaining)
		data = bytes(self.buffer[self.offset : self.offset + n])
		self.offset += n
		self.remaining -= n
		if self.streaming:
			events.append(HTTPBodyChunk(data))
		else:
			self.body += data
			if self.remaining == 0:
				events.append(HTTPBodyChunk(bytes(self.body)))
		if self.remaining == 0:
			self.complete(events)
		return True

	def parseBodyChunk(self, events: list[HTTPAtom]) -> bool:
		if self.streaming:
			return self.parseBodyChunkStream(events)
		try:
			res = decodeChunk(self.buffer, self.offset, self.limits.chunkLine)
		except HTTPChunkError as e:
			raise Invalid(HTTPErrorType.BadChunk, str(e))
		if isinstance(res, Control):
			return False
		payload, read = res
		self.offset += read
		if payload:
			events.append(HTTPBodyChunk(payload))
			self.body += payload
		else:
			self.state = HTTPParserState.AwaitTrailers
		return True

	def parseBodyChunkStream(self, events: list[HTTPAtom]) -> bool:
		# Chunk data is reported as it arrives, `remaining` counting what
		# is left of the current chunk.
		try:
			if self.remaining:
				available: int = len(self.buffer) - self.offset
				if available <= 0:
					return False
				n: int = min(available, self.remaining)
				events.append(
					HTTPBodyChunk(bytes(self.buffer[self.offset : self.offset + n]))
				)
				self.offset += n
				self.remaining -= n
			elif self.inChunk:
				if not hasChunkEnd(self.buffer, self.offset):
					return False
				self.offset += 2
				self.inChunk = False
			else:
				head = decodeChunkSize(self.buffer, self.offset, self.limits.chunkLine)
				if isinstance(head, Control):
					return False
				size, self.offset = head
				if size:
					self.remaining = size
					self.inChunk = True
				else:
					self.state = HTTPParserState.AwaitTrailers
		except HTTPChunkError as e:
			raise Invalid(HTTPErrorType.BadChunk, str(e))
		return True

	def parseBodyRest(self, events: list[HTTPAtom]) -> bool:
		if self.offset >= len(self.buffer):
			return False
		data = bytes(self.buffer[self.offset :])
		self.offset = len(self.buffer)
		if self.streaming:
			events.append(HTTPBodyChunk(data))
		else:
			self.body += data
		return True

	# =========================================================================
	# OUTCOMES
	# =========================================================================

	def complete(self, events: list[HTTPAtom]) -> None:
		line = self.line
		body: bytes = b"" if self.streaming else bytes(self.body)
		message: HTTPRequest | HTTPResponse
		try:
			if isinstance(line, HTTPRequestLine):
				message = HTTPRequest(
					line.method,
					line.path,
					line.query,
					headers=self.headers,
					body=body,
					protocol=line.protocol,
					trailers=self.trailers,
				)
			elif isinstance(line, HTTPResponseLine):
				message = HTTPResponse(
					line.status,
					line.message,
					headers=self.headers,
					body=body,
					protocol=line.protocol,
					trailers=self.trailers,
				)
			else:
				raise Invalid(HTTPErrorType.BadStartLine, "Message has no start line")
		except HTTPMessageError as e:
			raise Invalid(HTTPErrorType.BadStartLine, str(e))
		events.append(HTTPMessageComplete(message))
		self.completed += 1
		debug(
			"Parsed message",
			Line=line.target if isinstance(line, HTTPRequestLine) else line.status,
			Headers=len(self.headers),
			Body=len(body),
		)
		self.state = HTTPParserState.Done

	def fail(self, events: list[HTTPAtom], type: HTTPErrorType, message: str) -> None:
		self.error = HTTPParseError(type, message)
		self.state = HTTPParserState.Failed
		self.buffer.clear()
		self.offset = 0
		events.append(self.error)
		warning("HTTP parsing failed", Type=type.name, Reason=message)


def parse(
	data: bytes,
	kind: HTTPMessageKind | None = None,
	*,
	limits: HTTPLimits | None = None,
) -> list[HTTPRequest | HTTPResponse]:
	"""Parses all the messages in `data`, raising an `HTTPParseFailure`
	when it is invalid or truncated."""
	parser = HTTPParser(kind, limits=limits)
	res: list[HTTPRequest | HTTPResponse] = []
	for atom in parser.feed(data) + parser.close():
		if isinstance(atom, HTTPMessageComplete):
			res.append(atom.message)
		elif isinstance(atom, HTTPParseError):
			raise HTTPParseFailure(atom)
	return res


# EOF
