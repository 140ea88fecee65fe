import pytest
from wirehttp.utils.codec import (
	NEED_MORE_DATA,
	ChunkedDecoder,
	ChunkedEncoder,
	HTTPChunkError,
	decodeChunk,
	decodeChunkSize,
	encodeChunk,
	encodeLastChunk,
	hasChunkEnd,
)

WIKIPEDIA: bytes = b"4\r\nWiki\r\n5\r\npedia\r\n0\r\nExpires: never\r\n\r\n"


def test_encode_chunk():
	assert encodeChunk(b"hello") == b"5\r\nhello\r\n"
	assert encodeChunk(b"x" * 26) == b"1A\r\n" + b"x" * 26 + b"\r\n"
	assert encodeChunk(b"") == b""


def test_encode_last_chunk():
	assert encodeLastChunk() == b"0\r\n\r\n"
	assert encodeLastChunk(["Expires: never\r\n"]) == b"0\r\nExpires: never\r\n\r\n"


def test_decode_chunk():
	buffer = b"5\r\nhello\r\n0\r\n\r\n"
	assert decodeChunk(buffer) == (b"hello", 10)
	assert decodeChunk(buffer, 10) == (b"", 3)


def test_decode_chunk_extensions():
	assert decodeChunk(b"5;name=value\r\nhello\r\n") == (b"hello", 21)
	assert decodeChunk(b"5 ;name\r\nhello\r\n") == (b"hello", 16)


def test_decode_chunk_needs_more_data():
	for partial in (b"", b"5", b"5\r", b"5\r\nhel", b"5\r\nhello", b"5\r\nhello\r"):
		assert decodeChunk(partial) is NEED_MORE_DATA


@pytest.mark.parametrize(
	"data",
	[
		b"zz\r\n",
		b"0x5\r\nhello\r\n",
		b"-5\r\nhello\r\n",
		b"\r\nhello\r\n",
		b"5\nhello\r\n",
		b"5\r\nhelloXY",
		b"5\r\nhello\rX",
		b"11111111111111111\r\n",
	],
)
def test_decode_chunk_errors(data):
	with pytest.raises(HTTPChunkError):
		decodeChunk(data)


def test_decode_chunk_line_limit():
	with pytest.raises(HTTPChunkError):
		decodeChunk(b"1" * 20, 0, limit=8)


def test_decode_chunk_size():
	assert decodeChunkSize(b"1a;x=y\r\ndata") == (26, 8)
	assert decodeChunkSize(b"xx5\r\n", 2) == (5, 5)
	assert decodeChunkSize(b"1a") is NEED_MORE_DATA
	with pytest.raises(HTTPChunkError):
		decodeChunkSize(b"g\r\n")


def test_has_chunk_end():
	assert hasChunkEnd(b"ab\r\n", 2)
	assert not hasChunkEnd(b"ab\r", 2)
	assert not hasChunkEnd(b"ab", 2)
	with pytest.raises(HTTPChunkError):
		hasChunkEnd(b"abc", 2)
	with pytest.raises(HTTPChunkError):
		hasChunkEnd(b"ab\rx", 2)


def test_encoder():
	encoder = ChunkedEncoder(["Expires: never\r\n"])
	assert encoder.feed(b"Wiki") == b"4\r\nWiki\r\n"
	assert encoder.feed(b"") is None
	assert encoder.feed(b"pedia") == b"5\r\npedia\r\n"
	assert encoder.flush() == b"0\r\nExpires: never\r\n\r\n"


def test_decoder_bytewise():
	decoder = ChunkedDecoder()
	res = bytearray()
	for i in range(len(WIKIPEDIA)):
		data = decoder.feed(WIKIPEDIA[i : i + 1])
		assert data is not False
		if data:
			res += data
	assert bytes(res) == b"Wikipedia"
	assert decoder.isDone
	assert decoder.trailers == [b"Expires: never"]
	assert decoder.flush() is None


def test_decoder_whole():
	decoder = ChunkedDecoder()
	assert decoder.feed(WIKIPEDIA) == b"Wikipedia"
	assert decoder.isDone


def test_decoder_errors():
	assert ChunkedDecoder().feed(b"5\r\nhelloXX") is False
	truncated = ChunkedDecoder()
	assert truncated.feed(b"5\r\nhel") is None
	assert truncated.flush() is False


# EOF
