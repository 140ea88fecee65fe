import re
from typing import ClassVar, Iterable, Iterator, Mapping
from ..utils.io import HEADER_ENCODING
from .. import config

# SEE: https://httpwg.org/specs/rfc9110.html#tokens
RE_TOKEN = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")
# Control characters are not allowed in field values, HTAB excepted
RE_VALUE_INVALID = re.compile(r"[\x00-\x08\x0a-\x1f\x7f]")

# Normalized names, keyed by their lowercase form
HEADER_NAMES: dict[str, str] = {}
HEADER_NAMES_CAPACITY: int = 1_000


class HTTPHeaderError(ValueError):
	"""Raised when a header name or value can't be put on the wire."""


def headername(name: str) -> str:
	"""Normalizes the header name as `Kebab-Case`."""
	key: str = name.lower()
	if key in HEADER_NAMES:
		return HEADER_NAMES[key]
	normalized: str = "-".join(_.capitalize() for _ in key.split("-"))
	# Names come from the network, so the cache stays bounded
	if len(HEADER_NAMES) < HEADER_NAMES_CAPACITY:
		HEADER_NAMES[key] = normalized
	return normalized


def headervalue(value: str | int) -> str:
	return value.strip(" \t") if isinstance(value, str) else str(value)


class HeaderBag:
	"""An ordered collection of header fields. Repeated names are kept in
	arrival order, lookups are case-insensitive and names are stored
	normalized for serialization."""

	# Fields that can't be combined into one comma-separated value
	SEPARATE: ClassVar[frozenset[str]] = frozenset({"set-cookie"})

	__slots__ = ["fields", "index", "join", "limit"]

	@staticmethod
	def FromPairs(
		pairs: Iterable[tuple[str, str | int]] | Mapping[str, str | int],
		*,
		join: bool | None = None,
	) -> "HeaderBag":
		res = HeaderBag(join=join)
		for name, value in pairs.items() if isinstance(pairs, Mapping) else pairs:
			res.add(name, value)
		return res

	def __init__(
		self, *, join: bool | None = None, limit: int = config.MAX_HEADER_LINE
	) -> None:
		self.fields: list[tuple[str, str]] = []
		self.index: dict[str, list[str]] = {}
		self.join: bool = config.JOIN_REPEATED_HEADERS if join is None else join
		self.limit: int = limit

	def validate(self, name: str, value: str | int) -> tuple[str, str]:
		"""Returns the normalized name and value, raising an `HTTPHeaderError`
		if they can't be serialized."""
		if not isinstance(name, str) or not RE_TOKEN.fullmatch(name):
			raise HTTPHeaderError(f"Invalid header name: {name!r}")
		v: str = headervalue(value)
		if RE_VALUE_INVALID.search(v):
			raise HTTPHeaderError(f"Invalid character in {name} value: {v!r}")
		try:
			v.encode(HEADER_ENCODING)
		except UnicodeEncodeError as e:
			raise HTTPHeaderError(f"Header {name} value is not latin-1: {v!r}") from e
		if len(name) + 2 + len(v) > self.limit:
			raise HTTPHeaderError(f"Header {name} exceeds {self.limit} bytes")
		return headername(name), v

	def add(self, name: str, value: str | int) -> "HeaderBag":
		n, v = self.validate(name, value)
		self.fields.append((n, v))
		self.index.setdefault(n.lower(), []).append(v)
		return self

	def set(self, name: str, value: str | int) -> "HeaderBag":
		n, v = self.validate(name, value)
		self.remove(n)
		self.fields.append((n, v))
		self.index[n.lower()] = [v]
		return self

	def remove(self, name: str) -> int:
		"""Removes all the fields with the given name, returning how many
		were removed."""
		key: str = name.lower()
		if key not in self.index:
			return 0
		count: int = len(self.index.pop(key))
		self.fields = [_ for _ in self.fields if _[0].lower() != key]
		return count

	def get(self, name: str, default: str | None = None) -> str | None:
		values = self.index.get(name.lower())
		if not values:
			return default
		elif len(values) == 1 or not self.join or name.lower() in self.SEPARATE:
			return values[0]
		else:
			return ", ".join(values)

	def getAll(self, name: str) -> list[str]:
		return list(self.index.get(name.lower(), ()))

	def has(self, name: str) -> bool:
		return name.lower() in self.index

	def items(self) -> list[tuple[str, str]]:
		return list(self.fields)

	def copy(self) -> "HeaderBag":
		res = HeaderBag(join=self.join, limit=self.limit)
		res.fields = list(self.fields)
		res.index = {k: list(v) for k, v in self.index.items()}
		return res

	def serialize(self) -> list[str]:
		return [f"{n}: {v}\r\n" for n, v in self.fields]

	def encode(self) -> bytes:
		return "".join(self.serialize()).encode(HEADER_ENCODING)

	def __contains__(self, name: object) -> bool:
		return isinstance(name, str) and self.has(name)

	def __iter__(self) -> Iterator[tuple[str, str]]:
		return iter(self.fields)

	def __len__(self) -> int:
		return len(self.fields)

	def __eq__(self, other: object) -> bool:
		return isinstance(other, HeaderBag) and self.fields == other.fields

	def __repr__(self) -> str:
		return f"HeaderBag({self.fields})"


# EOF
