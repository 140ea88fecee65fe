from types import MappingProxyType
from typing import Mapping

UNKNOWN_STATUS: str = "<unknown-status>"

# SEE: https://www.iana.org/assignments/http-status-codes
HTTP_STATUS: Mapping[int, str] = MappingProxyType(
	{
		# 1xx
		100: "Continue",
		101: "Switching Protocols",
		102: "Processing",
		# 2xx
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
		# 3xx
		300: "Multiple Choices",
		301: "Moved Permanently",
		302: "Found",
		303: "See Other",
		304: "Not Modified",
		305: "Use Proxy",
		307: "Temporary Redirect",
		308: "Permanent Redirect",
		# 4xx
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
		# 5xx
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
)

HTTP_STATUS_CODES: Mapping[str, int] = MappingProxyType(
	{v.lower(): k for k, v in HTTP_STATUS.items()}
)


def reasonFor(code: int) -> str:
	"""Returns the canonical reason phrase for `code`, or the unknown
	status placeholder."""
	return HTTP_STATUS.get(code, UNKNOWN_STATUS)


def isValid(code: int) -> bool:
	return 100 <= code <= 599


def hasBody(code: int) -> bool:
	"""Tells if a response with the given status can carry a body: 1xx, 204
	and 304 responses never do."""
	return code >= 200 and code != 204 and code != 304


def statusFor(phrase: str) -> int | None:
	"""Returns the code registered for the given reason phrase, if any."""
	return HTTP_STATUS_CODES.get(phrase.strip().lower())


# EOF
