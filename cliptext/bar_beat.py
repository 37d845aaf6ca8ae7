"""Bar|beat positions, durations and time signatures.

Positions are written ``bar|beat`` and are 1-indexed: ``1|1`` is the start
of a clip. The beat counts in the time signature's own unit, so in 6/8 the
beat is an eighth note and ``1|3`` sits one quarter note into the bar.

All absolute times are in **beats**, where 1.0 = one quarter note::

    ts = TimeSignature(6, 8)
    ts.beats_per_bar                                   # 3.0
    to_absolute_beats(BarBeatPosition(2, 1), ts)       # 3.0
    from_absolute_beats(3.5, ts)                       # BarBeatPosition(bar=2, beat=2.0)

Beat values may be decimals (``2.5``), fractions (``4/3``) or mixed numbers
(``2+1/3``). Durations additionally accept ``bars:beats`` (``1:2`` is one
bar and two beats).
"""

import dataclasses
import math
import re
import typing

import cliptext.constants.durations
import cliptext.errors


# Largest clip length (in beats) any store range has to cover.
MAX_CLIP_BEATS = 1_000_000.0

_TIME_SIGNATURE_PATTERN = re.compile(r"^(\d+)/(\d+)$")
_BEAT_VALUE_PATTERN = re.compile(r"^(?:(-?\d+)\+(\d+)/(\d+)|(-?\d+)/(\d+)|(-?(?:\d+(?:\.\d+)?|\.\d+)))$")
_BAR_BEAT_DURATION_PATTERN = re.compile(r"^(\d+):(.+)$")


def _time_signature_error (message: str, token: typing.Optional[str] = None) -> cliptext.errors.ParseError:

	return cliptext.errors.ParseError(cliptext.errors.ErrorKind.INVALID_TIME_SIGNATURE, message, token=token)


@dataclasses.dataclass(frozen=True)
class TimeSignature:

	"""
	A clip time signature such as 4/4 or 6/8.

	The denominator must be a power of two (1, 2, 4, 8, 16, 32, ...).
	"""

	numerator: int = 4
	denominator: int = 4

	def __post_init__ (self) -> None:

		"""Reject signatures that cannot be laid out on a quarter-note grid."""

		if not isinstance(self.numerator, int) or self.numerator < 1:
			raise _time_signature_error(f"Time signature numerator must be 1 or greater, got: {self.numerator}", str(self))

		if not isinstance(self.denominator, int) or self.denominator < 1 or self.denominator & (self.denominator - 1):
			raise _time_signature_error(f"Time signature denominator must be a power of two, got: {self.denominator}", str(self))

	@property
	def beat_unit (self) -> float:

		"""Length of one musical beat in quarter-note beats."""

		return 4 / self.denominator

	@property
	def beats_per_bar (self) -> float:

		"""Length of one bar in quarter-note beats."""

		return self.numerator * self.beat_unit

	def __str__ (self) -> str:

		return f"{self.numerator}/{self.denominator}"


@dataclasses.dataclass(frozen=True)
class BarBeatPosition:

	"""
	A 1-indexed musical position. ``beat`` may be fractional (``1.5`` is the "and" of beat 1).
	"""

	bar: int
	beat: float

	def __post_init__ (self) -> None:

		if self.bar < 1:
			raise cliptext.errors.ParseError(
				cliptext.errors.ErrorKind.INVALID_POSITION,
				f"Bar number must be 1 or greater, got: {self.bar}",
				token = format_position(self)
			)

		if self.beat < 1:
			raise cliptext.errors.ParseError(
				cliptext.errors.ErrorKind.INVALID_POSITION,
				f"Beat must be 1 or greater, got: {format_number(self.beat)}",
				token = format_position(self)
			)


def parse_time_signature (text: str) -> TimeSignature:

	"""Parse an ``"N/M"`` string into a validated ``TimeSignature``.

	Raises:
		ParseError: ``INVALID_TIME_SIGNATURE`` if the text is not in ``N/M``
			form or the values are unsupported.
	"""

	match = _TIME_SIGNATURE_PATTERN.match(text.strip()) if isinstance(text, str) else None

	if match is None:
		raise _time_signature_error("Time signature must be in format N/M", str(text))

	return TimeSignature(int(match.group(1)), int(match.group(2)))


def to_absolute_beats (position: BarBeatPosition, time_signature: TimeSignature) -> float:

	"""Convert a bar|beat position to quarter-note beats from the clip start.

	Example:
		```python
		to_absolute_beats(BarBeatPosition(2, 1), TimeSignature(3, 4))  # → 3.0
		to_absolute_beats(BarBeatPosition(2, 1), TimeSignature(6, 8))  # → 3.0
		```
	"""

	return (position.bar - 1) * time_signature.beats_per_bar + (position.beat - 1) * time_signature.beat_unit


def from_absolute_beats (beats: float, time_signature: TimeSignature) -> BarBeatPosition:

	"""Convert quarter-note beats back to a bar|beat position.

	The input is rounded to 1/1000 of a beat first so that float noise
	from earlier arithmetic does not push a note into the previous bar.
	"""

	if beats < 0:
		raise cliptext.errors.ParseError(
			cliptext.errors.ErrorKind.INVALID_POSITION,
			f"Time must be 0 or greater, got: {beats}"
		)

	musical = round(beats, 3) / time_signature.beat_unit
	bar = int(musical // time_signature.numerator) + 1
	beat = round(musical - (bar - 1) * time_signature.numerator + 1, 6)

	return BarBeatPosition(bar, beat)


def format_number (value: float) -> str:

	"""Format a number without trailing zeros (``1.0`` → ``"1"``, ``1.25`` → ``"1.25"``)."""

	if float(value).is_integer():
		return str(int(value))

	return f"{value:.3f}".rstrip("0").rstrip(".")


def format_position (position: BarBeatPosition) -> str:

	"""Return the ``bar|beat`` text for a position."""

	return f"{position.bar}|{format_number(position.beat)}"


def parse_beat_value (text: str) -> float:

	"""Parse a beat value: decimal, ``n/d`` fraction or ``i+n/d`` mixed number.

	Raises:
		ValueError: If the text is not a beat value or divides by zero.
	"""

	match = _BEAT_VALUE_PATTERN.match(text)

	if match is None:
		raise ValueError(f"Invalid beat value: {text!r}")

	whole, mixed_num, mixed_den, frac_num, frac_den, decimal = match.groups()

	if decimal is not None:
		return float(decimal)

	if frac_num is not None:
		numerator, denominator, base = int(frac_num), int(frac_den), 0
	else:
		numerator, denominator, base = int(mixed_num), int(mixed_den), int(whole)

	if denominator == 0:
		raise ValueError(f"Division by zero in beat value: {text!r}")

	return base + numerator / denominator


def parse_position (text: str, time_signature: typing.Optional[TimeSignature] = None) -> BarBeatPosition:

	"""Parse a full ``bar|beat`` string into a validated position.

	Only a single explicit position is accepted here; beat lists and the
	``|beat`` shorthand are notation features handled by the tokenizer.
	"""

	bar_text, separator, beat_text = text.partition("|")

	if not separator or not re.fullmatch(r"-?\d+", bar_text):
		raise cliptext.errors.ParseError(
			cliptext.errors.ErrorKind.MALFORMED_TOKEN,
			f"Invalid bar|beat format: {text!r}. Expected \"{{int}}|{{beat}}\" like \"1|2\", \"2|3.5\", \"1|4/3\" or \"1|2+1/3\"",
			token = text
		)

	try:
		beat = parse_beat_value(beat_text)
	except ValueError as e:
		raise cliptext.errors.ParseError(cliptext.errors.ErrorKind.MALFORMED_TOKEN, str(e), token=text) from e

	return BarBeatPosition(int(bar_text), beat)


def parse_duration (text: str) -> typing.Tuple[int, float]:

	"""Split a duration into ``(bars, beats)`` in musical beats.

	``"0.5"`` → ``(0, 0.5)``; ``"1:2"`` → ``(1, 2.0)``; ``"1/3"`` → ``(0, 0.333…)``.
	Use ``duration_to_beats`` to turn the pair into quarter-note beats once
	the time signature is known.

	Raises:
		ValueError: If the text is not a duration.
	"""

	if "|" in text:
		raise ValueError(f"Invalid duration format: {text!r}. Use ':' for bar:beat format, not '|'")

	match = _BAR_BEAT_DURATION_PATTERN.match(text)

	if match is not None:
		return int(match.group(1)), parse_beat_value(match.group(2))

	return 0, parse_beat_value(text)


def duration_to_beats (bars: int, beats: float, time_signature: TimeSignature) -> float:

	"""Convert a musical ``(bars, beats)`` duration to quarter-note beats."""

	return (bars * time_signature.numerator + beats) * time_signature.beat_unit


def beats_to_duration (beats: float, time_signature: TimeSignature) -> float:

	"""Convert quarter-note beats to musical beats of the time signature."""

	return beats / time_signature.beat_unit


def is_same_time (a: float, b: float) -> bool:

	"""Return True if two absolute times fall within 1/1000 of a beat."""

	return math.isclose(a, b, abs_tol=cliptext.constants.durations.TIME_EPSILON)
