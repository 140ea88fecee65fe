import sys
import time
from enum import Enum
from typing import NamedTuple, Any, TypeAlias
from contextvars import ContextVar
from .term import Term
from .. import config

ERR = sys.stderr

TPrimitive: TypeAlias = None | bool | int | float | str | bytes

LogOrigin: ContextVar[str] = ContextVar("LogOrigin", default="wirehttp")


class LogLevel(Enum):
	Debug = 0
	Info = 10
	Warning = 30  # A Warning
	Error = 40  # A managed error
	Exception = 50  # An un-managed error


LOG_LEVEL_COLOR = {
	LogLevel.Debug: 31,
	LogLevel.Info: 75,
	LogLevel.Warning: 202,
	LogLevel.Error: 160,
	LogLevel.Exception: 124,
}


class LogEntry(NamedTuple):
	origin: str
	time: float
	level: LogLevel = LogLevel.Info
	message: str | None = None
	value: TPrimitive = None
	context: dict[str, TPrimitive] | None = None


def threshold(name: str = config.LOG_LEVEL) -> LogLevel:
	"""Returns the log level with the given name, defaulting to warnings."""
	for level in LogLevel:
		if level.name.lower() == name.lower():
			return level
	return LogLevel.Warning


LOG_THRESHOLD: LogLevel = threshold()


def formatData(value: Any) -> str:
	if value is None or value == () or value == [] or value == {}:
		return "◌"
	elif isinstance(value, dict):
		return " ".join(
			f"{Term.BOLD}{k}{Term.NORMAL}={formatData(v)}" for k, v in value.items()
		)
	elif isinstance(value, list) or isinstance(value, tuple):
		return ",".join(formatData(v) for v in value)
	elif isinstance(value, str):
		return repr(value) if " " in value else value
	elif isinstance(value, bytes):
		return repr(value)
	elif isinstance(value, bool):
		return "✓" if value else "✗"
	elif isinstance(value, float):
		return f"{value:0.2f}"
	else:
		return str(value)


def send(entry: LogEntry) -> LogEntry:
	clr: str = Term.Color(LOG_LEVEL_COLOR[entry.level])
	code: str = "" if entry.value is None else f" [{formatData(entry.value)}]"
	ERR.write(
		f"{clr}{Term.BOLD}[{entry.origin}]{Term.RESET}{code} {entry.message} {formatData(entry.context)}{Term.RESET}\n"
	)
	ERR.flush()
	return entry


def logged(level: LogLevel) -> bool:
	"""Tells if entries of the given level are currently emitted. This is
	used to guard against building entries when not necessary."""
	return level.value >= LOG_THRESHOLD.value


def entry(
	*,
	level: LogLevel,
	message: str,
	value: TPrimitive = None,
	origin: str | None = None,
	at: float | None = None,
	context: dict[str, TPrimitive],
) -> LogEntry:
	return LogEntry(
		origin=origin or LogOrigin.get(),
		time=time.time() if at is None else at,
		level=level,
		message=message,
		value=value,
		context=context,
	)


def log(
	level: LogLevel,
	message: str,
	value: TPrimitive = None,
	*,
	origin: str | None = None,
	context: dict[str, TPrimitive],
) -> LogEntry | None:
	if not logged(level):
		return None
	return send(
		entry(
			level=level, message=message, value=value, origin=origin, context=context
		)
	)


def debug(
	message: str, *, origin: str | None = None, **context: TPrimitive
) -> LogEntry | None:
	return log(LogLevel.Debug, message, origin=origin, context=context)


def info(
	message: str, *, origin: str | None = None, **context: TPrimitive
) -> LogEntry | None:
	return log(LogLevel.Info, message, origin=origin, context=context)


def warning(
	message: str, *, origin: str | None = None, **context: TPrimitive
) -> LogEntry | None:
	return log(LogLevel.Warning, message, origin=origin, context=context)


def error(
	message: str,
	code: int | str | None,
	*,
	origin: str | None = None,
	**context: TPrimitive,
) -> LogEntry | None:
	return log(LogLevel.Error, message, code, origin=origin, context=context)


def exception(
	exception: Exception,
	message: str | None = None,
) -> Exception:
	try:
		stream = ERR
		stream.write(
			f"!!! EXCP {f'{message}: [{exception.__class__.__name__}] {exception}' if message else f'[{exception.__class__.__name__}] {exception}'}\n"
		)
		tb = exception.__traceback__
		while tb:
			code = tb.tb_frame.f_code
			stream.write(
				f"... in {code.co_name:15s} at {tb.tb_lineno:4d} in {code.co_filename}\n",
			)
			tb = tb.tb_next
		stream.flush()
	except OSError:  # nosec: B110
		# The stream may be closed, in which case there is nowhere to report
		pass

	# Return the exception so that this function can be called like:
	#   raise exception(error)
	return exception


# EOF
