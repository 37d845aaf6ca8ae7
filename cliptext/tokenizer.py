"""Tokenizer for bar|beat notation.

Notation is a whitespace-separated list of words. Each word is classified
by its shape, in this order:

- ``v100`` / ``v80-100``: velocity, or a velocity range
- ``t0.5`` / ``t1/3`` / ``t1:2``: note duration (musical beats, or bars:beats)
- ``p0.8``: note probability
- ``1|1`` / ``2|3.5`` / ``|2`` / ``1|1,2,3``: time position (bar optional, beat lists allowed)
- ``C3`` / ``F#-1`` / ``Bb2`` / ``*``: pitch
- ``@3=`` / ``@3=1`` / ``@3-8=1`` / ``@5-8=1-2`` / ``@clear``: bar copy

Comments are ignored: ``// ...`` and ``# ...`` to the end of the line, and
``/* ... */`` blocks.

The tokenizer only checks that each word is well formed and that literal
values are in range. It does not know the time signature; the note builder
turns tokens into notes.
"""

import dataclasses
import enum
import re
import typing

import cliptext.bar_beat
import cliptext.constants.durations
import cliptext.constants.velocity
import cliptext.errors
import cliptext.pitch


class TokenKind(enum.Enum):

	VELOCITY = "velocity"
	VELOCITY_RANGE = "velocity_range"
	DURATION = "duration"
	PROBABILITY = "probability"
	POSITION = "position"
	PITCH = "pitch"
	BAR_COPY = "bar_copy"
	CLEAR_COPY = "clear_copy"


@dataclasses.dataclass(frozen=True)
class PositionValue:

	"""
	Payload of a position token. ``bar`` is None for the ``|beat`` shorthand.
	"""

	bar: typing.Optional[int]
	beats: typing.Tuple[float, ...]


@dataclasses.dataclass(frozen=True)
class BarCopyValue:

	"""
	Payload of a bar copy token (``@dest=source``).

	``source_start`` is None when the source is omitted (copy the previous bar).
	"""

	destination_start: int
	destination_end: int
	source_start: typing.Optional[int] = None
	source_end: typing.Optional[int] = None


@dataclasses.dataclass(frozen=True)
class Token:

	"""
	One classified word of notation.

	``value`` depends on ``kind``:
	VELOCITY → int, VELOCITY_RANGE → (low, high), DURATION → (bars, beats),
	PROBABILITY → float, POSITION → PositionValue, PITCH → int or None (``*``),
	BAR_COPY → BarCopyValue, CLEAR_COPY → None.
	"""

	kind: TokenKind
	text: str
	offset: int
	value: typing.Any = None


_COMMENT_PATTERN = re.compile(r"/\*.*?\*/|//[^\n]*|(?:^|(?<=\s))#[^\n]*", re.DOTALL)
_WORD_PATTERN = re.compile(r"\S+")

_VELOCITY_PATTERN = re.compile(r"^v(-?\d+)$")
_VELOCITY_RANGE_PATTERN = re.compile(r"^v(-?\d+)-(-?\d+)$")
_DURATION_PATTERN = re.compile(r"^t(.+)$")
_PROBABILITY_PATTERN = re.compile(r"^p(-?(?:\d+(?:\.\d*)?|\.\d+))$")
_POSITION_PATTERN = re.compile(r"^(-?\d+)?\|(.+)$")
_PITCH_PATTERN = re.compile(r"^[A-Ga-g][#b]?-?\d+$")
_BAR_COPY_PATTERN = re.compile(r"^@(\d+)(?:-(\d+))?=(?:(\d+)(?:-(\d+))?)?$")
_CLEAR_COPY = "@clear"


def strip_comments (text: str) -> str:

	"""
	Blank out comments, keeping every other character at its original offset.
	"""

	return _COMMENT_PATTERN.sub(lambda match: re.sub(r"[^\n]", " ", match.group()), text)


def tokenize (text: str) -> typing.Tuple[Token, ...]:

	"""Split notation into classified tokens.

	Parameters:
		text: The notation string.

	Returns:
		A tuple of tokens in source order. It can be iterated any number of times.

	Raises:
		ParseError: ``MALFORMED_TOKEN`` for a word that matches no token shape,
			``OUT_OF_RANGE_VALUE`` for a literal outside its legal range, or
			``UNRESOLVED_PITCH`` for a pitch outside 0-127.

	Example:
		```python
		[t.kind.value for t in tokenize("v80 C3 E3 1|1")]
		# → ['velocity', 'pitch', 'pitch', 'position']
		```
	"""

	return tuple(iter_tokens(text))


def iter_tokens (text: str) -> typing.Iterator[Token]:

	"""Lazily yield tokens; see ``tokenize``."""

	if not text:
		return

	for match in _WORD_PATTERN.finditer(strip_comments(text)):
		yield classify(match.group(), match.start())


def classify (word: str, offset: int = 0) -> Token:

	"""Classify a single word of notation."""

	match = _VELOCITY_PATTERN.match(word)
	if match:
		return Token(TokenKind.VELOCITY, word, offset, _velocity(match.group(1), word, offset))

	match = _VELOCITY_RANGE_PATTERN.match(word)
	if match:
		low = _velocity(match.group(1), word, offset)
		high = _velocity(match.group(2), word, offset)
		return Token(TokenKind.VELOCITY_RANGE, word, offset, (min(low, high), max(low, high)))

	match = _DURATION_PATTERN.match(word)
	if match:
		return Token(TokenKind.DURATION, word, offset, _duration(match.group(1), word, offset))

	match = _PROBABILITY_PATTERN.match(word)
	if match:
		return Token(TokenKind.PROBABILITY, word, offset, _probability(match.group(1), word, offset))

	match = _POSITION_PATTERN.match(word)
	if match:
		return Token(TokenKind.POSITION, word, offset, _position(match.group(1), match.group(2), word, offset))

	if word == cliptext.pitch.WILDCARD or _PITCH_PATTERN.match(word):
		return Token(TokenKind.PITCH, word, offset, _pitch(word, offset))

	match = _BAR_COPY_PATTERN.match(word)
	if match:
		return Token(TokenKind.BAR_COPY, word, offset, _bar_copy(match))

	if word == _CLEAR_COPY:
		return Token(TokenKind.CLEAR_COPY, word, offset)

	raise cliptext.errors.ParseError(
		cliptext.errors.ErrorKind.MALFORMED_TOKEN,
		f"Unrecognized token {word!r}",
		token = word,
		offset = offset
	)


def _malformed (message: str, word: str, offset: int) -> cliptext.errors.ParseError:

	return cliptext.errors.ParseError(cliptext.errors.ErrorKind.MALFORMED_TOKEN, message, token=word, offset=offset)


def _out_of_range (message: str, word: str, offset: int) -> cliptext.errors.ParseError:

	return cliptext.errors.ParseError(cliptext.errors.ErrorKind.OUT_OF_RANGE_VALUE, message, token=word, offset=offset)


def _velocity (text: str, word: str, offset: int) -> int:

	value = int(text)

	if not cliptext.constants.velocity.MIN_VELOCITY <= value <= cliptext.constants.velocity.MAX_VELOCITY:
		raise _out_of_range(f"MIDI velocity {value} in {word!r} outside valid range 0-127", word, offset)

	return value


def _duration (text: str, word: str, offset: int) -> typing.Tuple[int, float]:

	try:
		bars, beats = cliptext.bar_beat.parse_duration(text)
	except ValueError as e:
		raise _malformed(f"Invalid duration {word!r}: {e}", word, offset) from e

	if beats < 0 or (bars == 0 and beats == 0):
		raise _out_of_range(f"Note duration {word!r} must be greater than 0", word, offset)

	return bars, beats


def _probability (text: str, word: str, offset: int) -> float:

	value = float(text)

	if not cliptext.constants.durations.MIN_PROBABILITY <= value <= cliptext.constants.durations.MAX_PROBABILITY:
		raise _out_of_range(f"Note probability {value} outside valid range 0.0-1.0", word, offset)

	return value


def _position (bar_text: typing.Optional[str], beats_text: str, word: str, offset: int) -> PositionValue:

	try:
		beats = tuple(cliptext.bar_beat.parse_beat_value(part) for part in beats_text.split(","))
	except ValueError as e:
		raise _malformed(f"Invalid bar|beat position {word!r}: {e}", word, offset) from e

	bar = int(bar_text) if bar_text is not None else None

	return PositionValue(bar, beats)


def _pitch (word: str, offset: int) -> typing.Optional[int]:

	try:
		return cliptext.pitch.resolve_pitch_token(word)
	except cliptext.errors.ParseError as e:
		raise cliptext.errors.ParseError(e.kind, e.message, token=word, offset=offset) from e


def _bar_copy (match: re.Match) -> BarCopyValue:

	destination_start, destination_end, source_start, source_end = match.groups()

	start = int(destination_start)
	end = int(destination_end) if destination_end is not None else start

	if source_start is None:
		return BarCopyValue(start, end)

	source = int(source_start)

	return BarCopyValue(start, end, source, int(source_end) if source_end is not None else source)
