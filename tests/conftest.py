import sys
from pathlib import Path

import pytest

# Tests run against the sources, installed or not
sys.path.insert(0, str(Path(__file__).parent.parent / "src" / "py"))


@pytest.fixture
def getRequest() -> bytes:
	return (
		b"GET /index.html?lang=en HTTP/1.1\r\n"
		b"Host: example.com\r\n"
		b"Accept: */*\r\n"
		b"\r\n"
	)


@pytest.fixture
def chunkedRequest() -> bytes:
	return (
		b"POST /upload HTTP/1.1\r\n"
		b"Host: example.com\r\n"
		b"Transfer-Encoding: chunked\r\n"
		b"\r\n"
		b"4\r\nWiki\r\n"
		b"5;ext=1\r\npedia\r\n"
		b"0\r\n"
		b"Expires: never\r\n"
		b"\r\n"
	)


@pytest.fixture
def lengthResponse() -> bytes:
	return (
		b"HTTP/1.1 404 Not Found\r\n"
		b"Content-Type: text/plain\r\n"
		b"Content-Length: 9\r\n"
		b"\r\n"
		b"not found"
	)


# EOF
