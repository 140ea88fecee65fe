from os import getenv

# Longest accepted request/status line, CRLF excluded
MAX_START_LINE: int = int(getenv("WIREHTTP_MAX_START_LINE", 8192))

# Longest accepted `Name: value` line, CRLF excluded
MAX_HEADER_LINE: int = int(getenv("WIREHTTP_MAX_HEADER_LINE", 8192))

# Maximum number of header (or trailer) fields in a single message
MAX_HEADERS: int = int(getenv("WIREHTTP_MAX_HEADERS", 100))

# Longest accepted chunk-size line (size and extensions), CRLF excluded
MAX_CHUNK_LINE: int = int(getenv("WIREHTTP_MAX_CHUNK_LINE", 1024))

# Whether `HeaderBag.get` joins repeated fields with ", "
JOIN_REPEATED_HEADERS: bool = getenv("WIREHTTP_JOIN_HEADERS", "1") == "1"

# One of Debug, Info, Warning, Error
LOG_LEVEL: str = getenv("WIREHTTP_LOG_LEVEL", "Warning")

# EOF
