import re
from enum import Enum
from typing import ClassVar, Iterable, Mapping, NamedTuple, TypeAlias, Union
from urllib.parse import quote, unquote

from ..utils.io import asBytes
from .headers import RE_TOKEN, HeaderBag
from .status import hasBody, isValid, reasonFor

RE_PROTOCOL = re.compile(r"HTTP/1\.[01]")
# Targets are visible ASCII, anything else must be percent-encoded
RE_TARGET = re.compile(r"[\x21-\x7e]+")
RE_REASON_INVALID = re.compile(r"[\x00-\x08\x0a-\x1f\x7f]")

# -----------------------------------------------------------------------------
#
# STATES & ERRORS
#
# -----------------------------------------------------------------------------


class HTTPMessageKind(Enum):
	Request = 0
	Response = 1


class HTTPParserState(Enum):
	"""The states of `HTTPParser`"""

	AwaitStartLine = 0
	AwaitHeaders = 1
	AwaitBody = 2
	# After the last chunk, trailer fields up to the blank line
	AwaitTrailers = 3
	Done = 10
	Failed = 11


class HTTPBodyMode(Enum):
	LengthKnown = 0
	Chunked = 1
	UntilClose = 2


class HTTPErrorType(Enum):
	BadStartLine = 0
	BadHeader = 1
	LengthRequired = 2
	BadChunk = 3
	OversizedStartLine = 4
	OversizedHeader = 5
	UnexpectedEndOfStream = 6


class HTTPMessageError(ValueError):
	"""Raised when a message is given a start line that can't be serialized."""


# -----------------------------------------------------------------------------
#
# EVENTS
#
# -----------------------------------------------------------------------------


class HTTPRequestLine(NamedTuple):
	"""Represents a request line"""

	method: str
	path: str
	query: str
	protocol: str

	@property
	def target(self) -> str:
		return f"{self.path}?{self.query}" if self.query else self.path


class HTTPResponseLine(NamedTuple):
	"""Represents a response status line"""

	protocol: str
	status: int
	message: str


class HTTPHeader(NamedTuple):
	"""A header (or trailer) field as it was parsed."""

	name: str
	value: str
	trailer: bool = False


class HTTPBodyChunk(NamedTuple):
	"""A part of the body, see `HTTPParser` for how bodies are split."""

	payload: bytes


class HTTPMessageComplete(NamedTuple):
	message: "HTTPRequest | HTTPResponse"


class HTTPParseError(NamedTuple):
	"""Terminal parsing error for the current message."""

	type: HTTPErrorType
	message: str


# Type alias for what the parser produces
HTTPAtom: TypeAlias = Union[
	HTTPRequestLine,
	HTTPResponseLine,
	HTTPHeader,
	HTTPBodyChunk,
	HTTPMessageComplete,
	HTTPParseError,
]


class HTTPParseFailure(Exception):
	"""Raised by the one-shot helpers when the input can't be parsed."""

	def __init__(self, error: HTTPParseError):
		super().__init__(f"{error.type.name}: {error.message}")
		self.error: HTTPParseError = error


# -----------------------------------------------------------------------------
#
# QUERY
#
# -----------------------------------------------------------------------------


class QueryParameters:
	"""Builds a query string, one `key=value` pair at a time."""

	__slots__ = ["parameters"]

	def __init__(self, parameters: Mapping[str, str] | None = None) -> None:
		self.parameters: list[str] = []
		if parameters:
			for k, v in parameters.items():
				self.add(k, v)

	def add(self, key: str, value: str | int) -> "QueryParameters":
		self.parameters.append(f"{quote(key, safe='')}={quote(str(value), safe='')}")
		return self

	@property
	def result(self) -> str:
		return "&".join(self.parameters)

	def __str__(self) -> str:
		return self.result


def parseQuery(text: str) -> dict[str, str]:
	res: dict[str, str] = {}
	if not text:
		return res
	for item in text.split("&"):
		kv = item.split("=", 1)
		if len(kv) == 1:
			res[unquote(item)] = ""
		else:
			res[unquote(kv[0])] = unquote(kv[1])
	return res


# -----------------------------------------------------------------------------
#
# MESSAGES
#
# -----------------------------------------------------------------------------


class HTTPMessage:
	"""Common parts of requests and responses: headers, body and trailers.
	The body is held in memory, streamed bodies are given to the builder
	instead."""

	__slots__ = ["protocol", "headers", "body", "trailers"]

	def __init__(
		self,
		headers: HeaderBag | Mapping[str, str | int] | Iterable[tuple[str, str | int]]
		| None = None,
		body: bytes | str | None = None,
		protocol: str = "HTTP/1.1",
		trailers: HeaderBag | None = None,
	):
		if not RE_PROTOCOL.fullmatch(protocol):
			raise HTTPMessageError(f"Unsupported protocol: {protocol!r}")
		self.protocol: str = protocol
		self.headers: HeaderBag = (
			headers
			if isinstance(headers, HeaderBag)
			else HeaderBag.FromPairs(headers or ())
		)
		self.body: bytes = asBytes(body)
		self.trailers: HeaderBag = HeaderBag() if trailers is None else trailers

	def getHeader(self, name: str) -> str | None:
		return self.headers.get(name)

	def setHeader(self, name: str, value: str | int | None) -> "HTTPMessage":
		if value is None:
			self.headers.remove(name)
		else:
			self.headers.set(name, value)
		return self

	def addHeader(self, name: str, value: str | int) -> "HTTPMessage":
		self.headers.add(name, value)
		return self

	def setContentType(self, value: str) -> "HTTPMessage":
		return self.setHeader("Content-Type", value)

	def setBody(self, body: bytes | str) -> "HTTPMessage":
		"""Sets the body and its `Content-Length`."""
		self.body = asBytes(body)
		self.headers.set("Content-Length", len(self.body))
		return self

	@property
	def contentLength(self) -> int | None:
		value = self.headers.get("Content-Length")
		return int(value) if value and value.isdigit() else None

	@property
	def contentType(self) -> str | None:
		return self.headers.get("Content-Type")

	def _same(self, other: "HTTPMessage") -> bool:
		return (
			self.protocol == other.protocol
			and self.headers == other.headers
			and self.body == other.body
			and self.trailers == other.trailers
		)


class HTTPRequest(HTTPMessage):
	"""An HTTP request, the target being split into path and query."""

	METHODS: ClassVar[tuple[str, ...]] = (
		"HEAD",
		"GET",
		"POST",
		"PUT",
		"DELETE",
		"PATCH",
		"OPTIONS",
		"TRACE",
		"CONNECT",
	)

	__slots__ = ["method", "path", "query"]

	def __init__(
		self,
		method: str = "GET",
		path: str = "/",
		query: str | QueryParameters = "",
		headers: HeaderBag | Mapping[str, str | int] | Iterable[tuple[str, str | int]]
		| None = None,
		body: bytes | str | None = None,
		protocol: str = "HTTP/1.1",
		trailers: HeaderBag | None = None,
	):
		super().__init__(headers, body, protocol, trailers)
		self.method: str = ""
		self.path: str = ""
		self.query: str = ""
		self.setMethod(method)
		self.setUrl(path)
		if query:
			self.setQuery(query)

	def setMethod(self, method: str) -> "HTTPRequest":
		if not RE_TOKEN.fullmatch(method):
			raise HTTPMessageError(f"Invalid method: {method!r}")
		self.method = method
		return self

	def setUrl(self, url: str) -> "HTTPRequest":
		"""Sets the path, and the query when `url` has one."""
		if not RE_TARGET.fullmatch(url):
			raise HTTPMessageError(f"Invalid request target: {url!r}")
		path, _, query = url.partition("?")
		if not path:
			raise HTTPMessageError(f"Empty path in request target: {url!r}")
		self.path = path
		self.query = query
		return self

	def setQuery(self, query: str | QueryParameters) -> "HTTPRequest":
		q: str = str(query)
		if q and not RE_TARGET.fullmatch(q):
			raise HTTPMessageError(f"Invalid query: {q!r}")
		self.query = q
		return self

	def setHost(self, host: str) -> "HTTPRequest":
		self.headers.set("Host", host)
		return self

	def setCookie(self, cookie: str) -> "HTTPRequest":
		self.headers.set("Cookie", cookie)
		return self

	@property
	def target(self) -> str:
		return f"{self.path}?{self.query}" if self.query else self.path

	@property
	def params(self) -> dict[str, str]:
		return parseQuery(self.query)

	@property
	def line(self) -> HTTPRequestLine:
		return HTTPRequestLine(self.method, self.path, self.query, self.protocol)

	def __eq__(self, other: object) -> bool:
		return (
			isinstance(other, HTTPRequest)
			and self.method == other.method
			and self.path == other.path
			and self.query == other.query
			and self._same(other)
		)

	def __repr__(self) -> str:
		return f"HTTPRequest({self.method} {self.target} {self.protocol} {self.headers} body={len(self.body)})"


class HTTPResponse(HTTPMessage):
	"""An HTTP response. The reason phrase defaults to the canonical one
	for the status."""

	@staticmethod
	def Create(
		status: int = 200,
		content: bytes | str | None = None,
		contentType: str | None = None,
		*,
		keepAlive: bool = True,
		message: str | None = None,
		protocol: str = "HTTP/1.1",
	) -> "HTTPResponse":
		"""Factory method to create responses with a `Connection` header and
		an optional body."""
		res = HTTPResponse(status, message, protocol=protocol)
		res.setHeader("Connection", "Keep-Alive" if keepAlive else "Close")
		if contentType is not None:
			res.setContentType(contentType)
		if content is not None:
			res.setBody(content)
		return res

	__slots__ = ["status", "message"]

	def __init__(
		self,
		status: int = 200,
		message: str | None = None,
		headers: HeaderBag | Mapping[str, str | int] | Iterable[tuple[str, str | int]]
		| None = None,
		body: bytes | str | None = None,
		protocol: str = "HTTP/1.1",
		trailers: HeaderBag | None = None,
	):
		super().__init__(headers, body, protocol, trailers)
		self.status: int = 200
		self.message: str = ""
		self.setStatus(status, message)

	def setStatus(self, status: int, message: str | None = None) -> "HTTPResponse":
		if not isValid(status):
			raise HTTPMessageError(f"Invalid status code: {status}")
		reason: str = reasonFor(status) if message is None else message
		if RE_REASON_INVALID.search(reason) or not reason.isascii() and any(
			ord(_) > 0xFF for _ in reason
		):
			raise HTTPMessageError(f"Invalid reason phrase: {reason!r}")
		if self.body and not hasBody(status):
			raise HTTPMessageError(f"Status {status} responses have no body")
		self.status = status
		self.message = reason
		return self

	def setBody(self, body: bytes | str) -> "HTTPResponse":
		if body and not hasBody(self.status):
			raise HTTPMessageError(f"Status {self.status} responses have no body")
		super().setBody(body)
		return self

	@property
	def line(self) -> HTTPResponseLine:
		return HTTPResponseLine(self.protocol, self.status, self.message)

	def __eq__(self, other: object) -> bool:
		return (
			isinstance(other, HTTPResponse)
			and self.status == other.status
			and self.message == other.message
			and self._same(other)
		)

	def __repr__(self) -> str:
		return f"HTTPResponse({self.protocol} {self.status} {self.message} {self.headers} body={len(self.body)})"


# EOF
