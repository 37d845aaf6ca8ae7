import pytest

import cliptext.bar_beat
import cliptext.errors


def _absolute (bar: int, beat: float, numerator: int, denominator: int) -> float:

	return cliptext.bar_beat.to_absolute_beats(
		cliptext.bar_beat.BarBeatPosition(bar, beat),
		cliptext.bar_beat.TimeSignature(numerator, denominator)
	)


def test_clip_start_is_zero () -> None:

	"""1|1 is beat 0 in 4/4."""

	assert _absolute(1, 1, 4, 4) == 0


def test_bar_two_in_six_eight () -> None:

	"""A 6/8 bar lasts three quarter notes."""

	assert _absolute(2, 1, 6, 8) == 3


def test_bar_two_in_three_four () -> None:

	"""A 3/4 bar lasts three quarter notes."""

	assert _absolute(2, 1, 3, 4) == 3


def test_beats_count_in_signature_unit () -> None:

	"""Beat 3 of a 6/8 bar is one quarter note in; beat 2 of a 2/2 bar is two."""

	assert _absolute(1, 3, 6, 8) == 1.0
	assert _absolute(1, 2, 2, 2) == 2.0
	assert _absolute(3, 2.5, 4, 4) == 9.5


def test_from_absolute_beats () -> None:

	"""Absolute beats convert back to bar|beat in the signature's unit."""

	six_eight = cliptext.bar_beat.TimeSignature(6, 8)

	assert cliptext.bar_beat.from_absolute_beats(3.5, six_eight) == cliptext.bar_beat.BarBeatPosition(2, 2.0)
	assert cliptext.bar_beat.from_absolute_beats(0, cliptext.bar_beat.TimeSignature()) == cliptext.bar_beat.BarBeatPosition(1, 1.0)


def test_from_absolute_beats_absorbs_float_noise () -> None:

	"""A time a hair below a barline still lands on the barline."""

	position = cliptext.bar_beat.from_absolute_beats(3.9999999, cliptext.bar_beat.TimeSignature(4, 4))

	assert position == cliptext.bar_beat.BarBeatPosition(2, 1.0)


def test_time_signature_properties () -> None:

	"""beats_per_bar and beat_unit are in quarter notes."""

	signature = cliptext.bar_beat.TimeSignature(7, 8)

	assert signature.beat_unit == 0.5
	assert signature.beats_per_bar == 3.5
	assert str(signature) == "7/8"


@pytest.mark.parametrize("numerator, denominator", [(0, 4), (4, 3), (4, 0), (3, 6)])
def test_invalid_time_signature (numerator: int, denominator: int) -> None:

	"""Zero numerators and non power-of-two denominators are rejected."""

	with pytest.raises(cliptext.errors.ParseError) as excinfo:
		cliptext.bar_beat.TimeSignature(numerator, denominator)

	assert excinfo.value.kind is cliptext.errors.ErrorKind.INVALID_TIME_SIGNATURE


def test_parse_time_signature () -> None:

	"""N/M strings parse; anything else names the expected format."""

	assert cliptext.bar_beat.parse_time_signature("6/8") == cliptext.bar_beat.TimeSignature(6, 8)

	with pytest.raises(cliptext.errors.ParseError, match="Time signature must be in format"):
		cliptext.bar_beat.parse_time_signature("invalid")

	with pytest.raises(cliptext.errors.ParseError, match="power of two"):
		cliptext.bar_beat.parse_time_signature("5/6")


def test_position_must_start_at_one () -> None:

	"""Bar 0 and beat 0 are invalid positions."""

	with pytest.raises(cliptext.errors.ParseError) as excinfo:
		cliptext.bar_beat.BarBeatPosition(0, 1)

	assert excinfo.value.kind is cliptext.errors.ErrorKind.INVALID_POSITION

	with pytest.raises(cliptext.errors.ParseError) as excinfo:
		cliptext.bar_beat.BarBeatPosition(1, 0.5)

	assert excinfo.value.kind is cliptext.errors.ErrorKind.INVALID_POSITION


def test_parse_beat_value_forms () -> None:

	"""Decimals, fractions and mixed numbers are all beat values."""

	assert cliptext.bar_beat.parse_beat_value("2") == 2
	assert cliptext.bar_beat.parse_beat_value("2.5") == 2.5
	assert cliptext.bar_beat.parse_beat_value("1/4") == 0.25
	assert cliptext.bar_beat.parse_beat_value("2+1/3") == pytest.approx(2 + 1 / 3)


def test_parse_beat_value_rejects_garbage () -> None:

	"""Non-numbers and zero denominators raise ValueError."""

	with pytest.raises(ValueError):
		cliptext.bar_beat.parse_beat_value("two")

	with pytest.raises(ValueError, match="Division by zero"):
		cliptext.bar_beat.parse_beat_value("1/0")


def test_parse_position () -> None:

	"""bar|beat text parses to a validated position."""

	assert cliptext.bar_beat.parse_position("2|3.5") == cliptext.bar_beat.BarBeatPosition(2, 3.5)
	assert cliptext.bar_beat.parse_position("1|4/3").beat == pytest.approx(4 / 3)

	with pytest.raises(cliptext.errors.ParseError) as excinfo:
		cliptext.bar_beat.parse_position("1-2")

	assert excinfo.value.kind is cliptext.errors.ErrorKind.MALFORMED_TOKEN

	with pytest.raises(cliptext.errors.ParseError) as excinfo:
		cliptext.bar_beat.parse_position("0|1")

	assert excinfo.value.kind is cliptext.errors.ErrorKind.INVALID_POSITION


def test_format_position () -> None:

	"""Whole beats drop their decimals; fractions keep up to three places."""

	assert cliptext.bar_beat.format_position(cliptext.bar_beat.BarBeatPosition(1, 1.0)) == "1|1"
	assert cliptext.bar_beat.format_position(cliptext.bar_beat.BarBeatPosition(3, 2.25)) == "3|2.25"
	assert cliptext.bar_beat.format_number(1 / 3) == "0.333"


def test_durations () -> None:

	"""Durations accept plain beats, fractions and bars:beats."""

	assert cliptext.bar_beat.parse_duration("0.5") == (0, 0.5)
	assert cliptext.bar_beat.parse_duration("1:2") == (1, 2.0)

	bars, beats = cliptext.bar_beat.parse_duration("1/3")
	assert bars == 0
	assert beats == pytest.approx(1 / 3)

	with pytest.raises(ValueError, match="Use ':'"):
		cliptext.bar_beat.parse_duration("1|2")


def test_duration_scales_with_signature () -> None:

	"""A bar-and-a-beat lasts longer in 4/4 than in 6/8."""

	four_four = cliptext.bar_beat.TimeSignature(4, 4)
	six_eight = cliptext.bar_beat.TimeSignature(6, 8)

	assert cliptext.bar_beat.duration_to_beats(1, 1, four_four) == 5.0
	assert cliptext.bar_beat.duration_to_beats(1, 1, six_eight) == 3.5
	assert cliptext.bar_beat.beats_to_duration(0.5, six_eight) == 1.0
