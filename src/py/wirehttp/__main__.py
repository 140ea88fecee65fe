import argparse
import sys
from typing import BinaryIO
from .http.model import (
	HTTPAtom,
	HTTPBodyChunk,
	HTTPHeader,
	HTTPMessageComplete,
	HTTPMessageKind,
	HTTPParseError,
	HTTPRequestLine,
	HTTPResponseLine,
)
from .http.parser import HTTPParser
from .http.status import UNKNOWN_STATUS, reasonFor, statusFor
from .utils.io import StreamSource
from .utils.logging import exception


def describe(atom: HTTPAtom) -> str:
	if isinstance(atom, HTTPRequestLine):
		return f"REQUEST  {atom.method} {atom.target} {atom.protocol}"
	elif isinstance(atom, HTTPResponseLine):
		return f"RESPONSE {atom.protocol} {atom.status} {atom.message}"
	elif isinstance(atom, HTTPHeader):
		return f"{'TRAILER ' if atom.trailer else 'HEADER  '} {atom.name}: {atom.value}"
	elif isinstance(atom, HTTPBodyChunk):
		return f"BODY     {len(atom.payload)} bytes"
	elif isinstance(atom, HTTPMessageComplete):
		return f"COMPLETE {len(atom.message.body)} bytes"
	else:
		return f"ERROR    {atom.type.name}: {atom.message}"


def parseStream(stream: BinaryIO, parser: HTTPParser) -> int:
	"""Prints the events parsed from `stream`, returning the exit code."""
	for atom in parser.read(StreamSource(stream)):
		sys.stdout.write(describe(atom) + "\n")
		if isinstance(atom, HTTPParseError):
			return 1
	return 0


def status(value: str) -> int:
	if value.isdigit():
		reason = reasonFor(int(value))
		sys.stdout.write(f"{value} {reason}\n")
		return 0 if reason != UNKNOWN_STATUS else 1
	code = statusFor(value)
	sys.stdout.write(f"{code or UNKNOWN_STATUS} {value}\n")
	return 0 if code else 1


def main(args: list[str] | None = None) -> int:
	parser = argparse.ArgumentParser(
		prog="wirehttp",
		description="Parses HTTP/1.x messages and looks up status codes",
		formatter_class=argparse.ArgumentDefaultsHelpFormatter,
	)
	commands = parser.add_subparsers(dest="command", required=True)

	parse = commands.add_parser("parse", help="Prints the events of raw HTTP messages")
	kind = parse.add_mutually_exclusive_group()
	kind.add_argument(
		"--request",
		action="store_const",
		dest="kind",
		const=HTTPMessageKind.Request,
		help="Expects requests",
	)
	kind.add_argument(
		"--response",
		action="store_const",
		dest="kind",
		const=HTTPMessageKind.Response,
		help="Expects responses",
	)
	parse.add_argument(
		"-s",
		"--streaming",
		action="store_true",
		dest="streaming",
		help="Reports bodies as they are read",
	)
	parse.add_argument(
		"path",
		metavar="FILE",
		help="The file to parse, or - for the standard input",
	)

	lookup = commands.add_parser("status", help="Looks up a status code or phrase")
	lookup.add_argument("value", metavar="CODE|PHRASE", nargs="+")

	options = parser.parse_args(args=args)
	if options.command == "status":
		return status(" ".join(options.value))
	http = HTTPParser(options.kind, streaming=options.streaming)
	try:
		if options.path == "-":
			return parseStream(sys.stdin.buffer, http)
		with open(options.path, "rb") as f:
			return parseStream(f, http)
	except OSError as e:
		exception(e, f"Could not read {options.path}")
		return 2


if __name__ == "__main__":
	sys.exit(main(sys.argv[1:]))

# EOF
