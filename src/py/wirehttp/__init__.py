from .http.status import (  # NOQA: F401
	HTTP_STATUS,
	UNKNOWN_STATUS,
	hasBody,
	isValid,
	reasonFor,
	statusFor,
)
from .http.headers import HeaderBag, HTTPHeaderError, headername  # NOQA: F401
from .http.model import (  # NOQA: F401
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
	QueryParameters,
	parseQuery,
)
from .http.builder import MessageBuilder, build  # NOQA: F401
from .http.parser import HTTPLimits, HTTPParser, parse  # NOQA: F401
from .utils.codec import (  # NOQA: F401
	NEED_MORE_DATA,
	ChunkedDecoder,
	ChunkedEncoder,
	HTTPChunkError,
	decodeChunk,
	encodeChunk,
	encodeLastChunk,
)
from .utils.io import (  # NOQA: F401
	EOS,
	ByteSink,
	ByteSource,
	BytesSink,
	BytesSource,
	StreamSink,
	StreamSource,
)

__version__ = "1.0.0"

# EOF
