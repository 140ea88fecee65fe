import pytest
from wirehttp.http.status import (
	HTTP_STATUS,
	UNKNOWN_STATUS,
	isValid,
	reasonFor,
	statusFor,
)

REGISTERED: dict[int, str] = {
	100: "Continue",
	101: "Switching Protocols",
	102: "Processing",
	200: "OK",
	201: "Created",
	202: "Accepted",
	203: "Non-Authoritative Information",
	204: "No Content",
	205: "Reset Content",
	206: "Partial Content",
	207: "Multi-Status",
	208: "Already Reported",
	226: "IM Used",
	300: "Multiple Choices",
	301: "Moved Permanently",
	302: "Found",
	303: "See Other",
	304: "Not Modified",
	305: "Use Proxy",
	307: "Temporary Redirect",
	308: "Permanent Redirect",
	400: "Bad Request",
	401: "Unauthorized",
	402: "Payment Required",
	403: "Forbidden",
	404: "Not Found",
	405: "Method Not Allowed",
	406: "Not Acceptable",
	407: "Proxy Authentication Required",
	408: "Request Timeout",
	409: "Conflict",
	410: "Gone",
	411: "Length Required",
	412: "Precondition Failed",
	413: "Payload Too Large",
	414: "URI Too Long",
	415: "Unsupported Media Type",
	416: "Range Not Satisfiable",
	417: "Expectation Failed",
	421: "Misdirected Request",
	422: "Unprocessable Entity",
	423: "Locked",
	424: "Failed Dependency",
	426: "Upgrade Required",
	428: "Precondition Required",
	429: "Too Many Requests",
	431: "Request Header Fields Too Large",
	444: "Connection Closed Without Response",
	451: "Unavailable For Legal Reasons",
	499: "Client Closed Request",
	500: "Internal Server Error",
	501: "Not Implemented",
	502: "Bad Gateway",
	503: "Service Unavailable",
	504: "Gateway Timeout",
	505: "HTTP Version Not Supported",
	506: "Variant Also Negotiates",
	507: "Insufficient Storage",
	508: "Loop Detected",
	510: "Not Extended",
	511: "Network Authentication Required",
	599: "Network Connect Timeout Error",
}


def test_registered_phrases():
	for code, phrase in REGISTERED.items():
		assert reasonFor(code) == phrase
	assert set(HTTP_STATUS) == set(REGISTERED)


def test_unknown_codes():
	for code in (0, 99, 103, 306, 418, 425, 509, 600, 1000, -1):
		assert reasonFor(code) == UNKNOWN_STATUS
	assert UNKNOWN_STATUS == "<unknown-status>"


def test_valid_range():
	assert isValid(100)
	assert isValid(418)
	assert isValid(599)
	assert not isValid(99)
	assert not isValid(600)


def test_reverse_lookup():
	assert statusFor("Not Found") == 404
	assert statusFor("  not found ") == 404
	assert statusFor("I'm a teapot") is None


def test_table_is_read_only():
	with pytest.raises(TypeError):
		HTTP_STATUS[418] = "I'm a teapot"  # type: ignore[index]


# EOF
