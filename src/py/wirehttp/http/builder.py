from typing import Iterable, Iterator
from ..utils.codec import ChunkedEncoder
from ..utils.io import EOL, HEADER_ENCODING, ByteSink, asBytes
from .headers import HeaderBag
from .model import HTTPMessageError, HTTPRequest, HTTPResponse
from .status import hasBody

# --
# == Message builder
#
# Serializes requests and responses. The bytes produced are a snapshot:
# later changes to the message don't affect them. Bodies are framed with
# chunks when the message declares a chunked coding or carries trailers,
# and with a `Content-Length` otherwise.


def isChunked(value: str) -> bool:
	"""Tells if the final coding in a `Transfer-Encoding` value is chunked."""
	return value.rsplit(",", 1)[-1].strip().lower() == "chunked"


class MessageBuilder:
	__slots__ = ["message"]

	def __init__(self, message: HTTPRequest | HTTPResponse) -> None:
		self.message: HTTPRequest | HTTPResponse = message

	@property
	def canHaveBody(self) -> bool:
		msg = self.message
		return not isinstance(msg, HTTPResponse) or hasBody(msg.status)

	@property
	def declaresChunked(self) -> bool:
		"""Tells if the message's own headers declare a chunked body."""
		encodings: list[str] = self.message.headers.getAll("Transfer-Encoding")
		return bool(encodings) and isChunked(encodings[-1])

	def startLine(self) -> str:
		msg = self.message
		if isinstance(msg, HTTPRequest):
			return f"{msg.method} {msg.target} {msg.protocol}\r\n"
		else:
			return f"{msg.protocol} {msg.status} {msg.message}\r\n"

	def fields(self, streaming: bool = False) -> list[str]:
		"""Returns the header lines, adding the framing headers the message
		needs."""
		headers: HeaderBag = self.message.headers
		if not streaming or not self.canHaveBody:
			lines: list[str] = headers.serialize()
			if (
				self.message.body
				and not headers.has("Content-Length")
				and not headers.has("Transfer-Encoding")
			):
				lines.append(f"Content-Length: {len(self.message.body)}\r\n")
			return lines
		# When streaming, the body is framed as chunks, which excludes
		# `Content-Length`.
		fields: list[tuple[str, str]] = [
			_ for _ in headers if _[0] != "Content-Length"
		]
		last: int = -1
		for i, (name, _) in enumerate(fields):
			if name == "Transfer-Encoding":
				last = i
		if last == -1:
			fields.append(("Transfer-Encoding", "chunked"))
		elif not isChunked(fields[last][1]):
			fields[last] = (fields[last][0], f"{fields[last][1]}, chunked")
		return [f"{n}: {v}\r\n" for n, v in fields]

	def head(self, streaming: bool = False) -> bytes:
		"""Serializes the start line and the headers, blank line included."""
		res = bytearray(self.startLine().encode(HEADER_ENCODING))
		for line in self.fields(streaming):
			res += line.encode(HEADER_ENCODING)
		res += EOL
		return bytes(res)

	def build(self, streaming: bool = False) -> bytes:
		"""Serializes the whole message. Chunked bodies are sent as a single
		chunk followed by the last chunk and the trailers."""
		msg = self.message
		if isinstance(msg, HTTPResponse) and not hasBody(msg.status):
			if msg.trailers:
				raise HTTPMessageError(f"Status {msg.status} responses have no trailers")
			return self.head()
		elif streaming or self.declaresChunked:
			return b"".join(self.stream((msg.body,)))
		elif msg.trailers:
			if msg.headers.has("Content-Length"):
				raise HTTPMessageError("Trailers require a chunked body, not a Content-Length")
			return b"".join(self.stream((msg.body,)))
		else:
			return self.head() + msg.body

	def stream(
		self,
		chunks: Iterable[bytes | str],
		trailers: HeaderBag | None = None,
	) -> Iterator[bytes]:
		"""Yields the head, then one chunk for each non-empty item in
		`chunks`, then the last chunk with the trailers (defaulting to the
		message's)."""
		msg = self.message
		if isinstance(msg, HTTPResponse) and not hasBody(msg.status):
			raise HTTPMessageError(f"Status {msg.status} responses have no body")
		encoder = ChunkedEncoder(
			(self.message.trailers if trailers is None else trailers).serialize()
		)
		yield self.head(streaming=True)
		for chunk in chunks:
			data = encoder.feed(asBytes(chunk), True)
			if data:
				yield data
		last = encoder.flush()
		if last:
			yield last

	def writeTo(
		self,
		sink: ByteSink,
		chunks: Iterable[bytes | str] | None = None,
		trailers: HeaderBag | None = None,
	) -> int:
		"""Writes the message to `sink`, as chunks when `chunks` is given.
		Returns the number of bytes written."""
		if chunks is None:
			return sink.write(self.build())
		written: int = 0
		for data in self.stream(chunks, trailers):
			sink.write(data)
			written += len(data)
		return written


def build(message: HTTPRequest | HTTPResponse, streaming: bool = False) -> bytes:
	return MessageBuilder(message).build(streaming)


# EOF
