import pytest
from wirehttp.http.builder import MessageBuilder, build, isChunked
from wirehttp.http.headers import HeaderBag
from wirehttp.http.model import (
	HTTPMessageError,
	HTTPRequest,
	HTTPResponse,
	QueryParameters,
)
from wirehttp.http.parser import parse
from wirehttp.utils.io import BytesSink


def test_request_line_and_headers():
	request = HTTPRequest("GET", "/index.html", headers={"host": "example.com"})
	assert build(request) == b"GET /index.html HTTP/1.1\r\nHost: example.com\r\n\r\n"


def test_request_query():
	request = HTTPRequest("GET", "/search", QueryParameters({"q": "http"}))
	assert build(request) == b"GET /search?q=http HTTP/1.1\r\n\r\n"


def test_headers_keep_insertion_order():
	request = HTTPRequest("GET", "/", headers=[("Zeta", "1"), ("Alpha", "2")])
	assert build(request) == b"GET / HTTP/1.1\r\nZeta: 1\r\nAlpha: 2\r\n\r\n"


def test_content_length_is_added():
	request = HTTPRequest("POST", "/", body=b"hello")
	assert build(request) == b"POST / HTTP/1.1\r\nContent-Length: 5\r\n\r\nhello"
	# The message itself is left untouched
	assert not request.headers.has("Content-Length")


def test_content_length_is_not_duplicated():
	request = HTTPRequest("POST", "/").setBody(b"hello")
	assert build(request) == b"POST / HTTP/1.1\r\nContent-Length: 5\r\n\r\nhello"


def test_declared_chunked_body_is_framed():
	request = HTTPRequest(
		"PUT", "/f", headers={"Transfer-Encoding": "chunked"}, body=b"data"
	)
	data = build(request)
	assert data == (
		b"PUT /f HTTP/1.1\r\nTransfer-Encoding: chunked\r\n\r\n4\r\ndata\r\n0\r\n\r\n"
	)
	assert parse(data) == [request]


def test_trailers_are_sent():
	trailers = HeaderBag().add("Checksum", "x")
	request = HTTPRequest("POST", "/f", body=b"abc", trailers=trailers)
	assert build(request) == (
		b"POST /f HTTP/1.1\r\nTransfer-Encoding: chunked\r\n\r\n"
		b"3\r\nabc\r\n0\r\nChecksum: x\r\n\r\n"
	)
	(parsed,) = parse(build(request))
	assert parsed.trailers == trailers
	assert parsed.body == b"abc"
	with pytest.raises(HTTPMessageError):
		build(
			HTTPRequest(
				"POST",
				"/f",
				headers={"Content-Length": 3},
				body=b"abc",
				trailers=trailers,
			)
		)


def test_bodiless_responses_are_not_framed():
	assert build(HTTPResponse(204), streaming=True) == (
		b"HTTP/1.1 204 No Content\r\n\r\n"
	)
	assert build(HTTPResponse(304)) == b"HTTP/1.1 304 Not Modified\r\n\r\n"
	with pytest.raises(HTTPMessageError):
		list(MessageBuilder(HTTPResponse(204)).stream([b"x"]))
	with pytest.raises(HTTPMessageError):
		build(HTTPResponse(204, trailers=HeaderBag().add("X", "1")))


def test_response():
	assert (
		build(HTTPResponse(404, body=b"nope"))
		== b"HTTP/1.1 404 Not Found\r\nContent-Length: 4\r\n\r\nnope"
	)
	assert build(HTTPResponse(418)) == b"HTTP/1.1 418 <unknown-status>\r\n\r\n"
	assert build(HTTPResponse(200, "")) == b"HTTP/1.1 200 \r\n\r\n"


def test_build_is_a_snapshot():
	response = HTTPResponse(200, headers={"X-A": "1"}, body=b"a")
	payload = build(response)
	response.setHeader("X-A", "2")
	response.setBody(b"changed")
	assert isinstance(payload, bytes)
	assert payload == b"HTTP/1.1 200 OK\r\nX-A: 1\r\nContent-Length: 1\r\n\r\na"


def test_head():
	response = HTTPResponse(200, body=b"abc")
	assert MessageBuilder(response).head() == (
		b"HTTP/1.1 200 OK\r\nContent-Length: 3\r\n\r\n"
	)


def test_streaming_build():
	response = HTTPResponse(200, headers={"Content-Length": 5}, body=b"hello")
	assert build(response, streaming=True) == (
		b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n"
		b"5\r\nhello\r\n0\r\n\r\n"
	)


def test_streaming_build_empty_body_with_trailers():
	response = HTTPResponse(200, trailers=HeaderBag().add("Expires", "never"))
	assert build(response, streaming=True) == (
		b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n"
		b"0\r\nExpires: never\r\n\r\n"
	)


def test_stream_chunks():
	builder = MessageBuilder(HTTPResponse(200))
	parts = list(
		builder.stream([b"Wiki", b"", "pedia"], HeaderBag().add("Expires", "never"))
	)
	assert parts == [
		b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n",
		b"4\r\nWiki\r\n",
		b"5\r\npedia\r\n",
		b"0\r\nExpires: never\r\n\r\n",
	]


def test_stream_appends_chunked_coding():
	response = HTTPResponse(200, headers={"Transfer-Encoding": "gzip"})
	assert MessageBuilder(response).head(streaming=True) == (
		b"HTTP/1.1 200 OK\r\nTransfer-Encoding: gzip, chunked\r\n\r\n"
	)
	assert isChunked("gzip, Chunked")
	assert not isChunked("chunked, gzip")


def test_write_to_sink():
	request = HTTPRequest("PUT", "/file").setBody(b"data")
	sink = BytesSink()
	assert MessageBuilder(request).writeTo(sink) == len(sink.value)
	assert sink.value == build(request)
	chunked = BytesSink()
	written = MessageBuilder(HTTPRequest("PUT", "/file")).writeTo(chunked, [b"ab"])
	assert chunked.value == (
		b"PUT /file HTTP/1.1\r\nTransfer-Encoding: chunked\r\n\r\n2\r\nab\r\n0\r\n\r\n"
	)
	assert written == len(chunked.value)


# EOF
