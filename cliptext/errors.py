"""Error types raised while compiling bar|beat notation.

Every problem found in a notation string is reported as a ``ParseError``.
The ``kind`` attribute says what went wrong and ``token`` / ``offset``
point at the part of the input that caused it, so callers can show a
useful message without re-parsing the text.
"""

import enum
import typing


class ErrorKind(enum.Enum):

	"""
	Categories of notation errors.
	"""

	MALFORMED_TOKEN = "malformed_token"
	INVALID_POSITION = "invalid_position"
	INVALID_TIME_SIGNATURE = "invalid_time_signature"
	PITCH_BEFORE_POSITION = "pitch_before_position"
	UNRESOLVED_PITCH = "unresolved_pitch"
	OUT_OF_RANGE_VALUE = "out_of_range_value"


class ParseError(ValueError):

	"""
	Raised when notation, a pitch name, a position or a time signature cannot be compiled.
	"""

	def __init__ (self, kind: ErrorKind, message: str, token: typing.Optional[str] = None, offset: typing.Optional[int] = None) -> None:

		self.kind = kind
		self.message = message
		self.token = token
		self.offset = offset

		if offset is not None:
			message = f"{message} (at position {offset})"

		super().__init__(message)


class TargetNotFoundError(LookupError):

	"""
	Raised when a clip identifier cannot be resolved to a note store.
	"""

	def __init__ (self, target: str) -> None:

		self.target = target

		super().__init__(f"Clip {target!r} does not exist")
