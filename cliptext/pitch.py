"""Pitch name and MIDI number conversion.

Note names are written ``<Pitch><Octave>``, e.g. ``C3``, ``F#4``, ``Bb-1``.
Convention: **C3 = 60**, so the lowest MIDI note (0) is ``C-2`` and the
highest (127) is ``G8``. Drum notes in the first octaves of a kit map are
therefore ``C1`` (36, kick) and ``D1`` (38, snare).

Input accepts sharps and flats with a case-insensitive letter. Output always
uses flats (``Db``, ``Eb``, ``Gb``, ``Ab``, ``Bb``), so a name produced by
``midi_to_note_name`` resolves back to the same pitch and the same text.

Module-level constants:
- `PITCH_CLASS_NAMES`: Flat spellings indexed by pitch class (0-11)
- `NOTE_NAME_TO_PC`: Maps pitch class names (sharps and flats) to 0-11
- `WILDCARD`: The ``*`` token meaning "any/unassigned pitch"
"""

import re
import typing

import cliptext.errors


MIN_PITCH = 0
MAX_PITCH = 127

MIN_OCTAVE = -2
MAX_OCTAVE = 8

# MIDI note = (octave + OCTAVE_OFFSET) * 12 + pitch class, so C3 = 60
OCTAVE_OFFSET = 2

WILDCARD = "*"

PITCH_CLASS_NAMES: typing.List[str] = [
	"C",
	"Db",
	"D",
	"Eb",
	"E",
	"F",
	"Gb",
	"G",
	"Ab",
	"A",
	"Bb",
	"B",
]

NOTE_NAME_TO_PC: typing.Dict[str, int] = {
	"C": 0,
	"C#": 1,
	"Db": 1,
	"D": 2,
	"D#": 3,
	"Eb": 3,
	"E": 4,
	"F": 5,
	"F#": 6,
	"Gb": 6,
	"G": 7,
	"G#": 8,
	"Ab": 8,
	"A": 9,
	"A#": 10,
	"Bb": 10,
	"B": 11,
}

_NOTE_NAME_PATTERN = re.compile(r"^([A-Ga-g])([#b]?)(-?\d+)$")


def is_valid_midi (pitch: typing.Any) -> bool:

	"""Return True if ``pitch`` is an integer MIDI note number (0-127)."""

	return isinstance(pitch, int) and not isinstance(pitch, bool) and MIN_PITCH <= pitch <= MAX_PITCH


def pitch_class_to_number (name: str) -> int:

	"""Return the pitch class (0-11) of a name like ``"C"``, ``"f#"`` or ``"Bb"``.

	Raises:
		ParseError: If the name is not a recognised pitch class.
	"""

	key = name[:1].upper() + name[1:]

	if key not in NOTE_NAME_TO_PC:
		raise cliptext.errors.ParseError(
			cliptext.errors.ErrorKind.UNRESOLVED_PITCH,
			f"Unknown pitch class: {name!r}. Expected e.g. 'C', 'F#', 'Bb'.",
			token = name
		)

	return NOTE_NAME_TO_PC[key]


def number_to_pitch_class (number: int) -> str:

	"""Return the flat spelling of a pitch class (0-11)."""

	if not isinstance(number, int) or not 0 <= number <= 11:
		raise ValueError(f"Pitch class must be an integer 0-11, got {number!r}")

	return PITCH_CLASS_NAMES[number]


def is_valid_note_name (name: str) -> bool:

	"""Return True if ``name`` resolves to a MIDI pitch."""

	try:
		note_name_to_midi(name)
	except cliptext.errors.ParseError:
		return False

	return True


def note_name_to_midi (name: str) -> int:

	"""Convert a note name to its MIDI number.

	Parameters:
		name: Note name such as ``"C3"``, ``"F#4"``, ``"bb-1"``.

	Returns:
		MIDI note number (0-127).

	Raises:
		ParseError: ``UNRESOLVED_PITCH`` if the name is malformed, the octave
			is outside -2..8, or the result falls outside 0-127.

	Example:
		```python
		note_name_to_midi("C3")   # → 60
		note_name_to_midi("C1")   # → 36
		note_name_to_midi("Gb1")  # → 42
		```
	"""

	match = _NOTE_NAME_PATTERN.match(name)

	if match is None:
		raise cliptext.errors.ParseError(
			cliptext.errors.ErrorKind.UNRESOLVED_PITCH,
			f"Invalid note name {name!r}. Expected a letter A-G, an optional # or b, and an octave, e.g. 'C3' or 'F#-1'.",
			token = name
		)

	letter, accidental, octave_text = match.groups()
	octave = int(octave_text)

	if not MIN_OCTAVE <= octave <= MAX_OCTAVE:
		raise cliptext.errors.ParseError(
			cliptext.errors.ErrorKind.UNRESOLVED_PITCH,
			f"Octave {octave} in {name!r} outside valid range {MIN_OCTAVE}..{MAX_OCTAVE}",
			token = name
		)

	pitch = (octave + OCTAVE_OFFSET) * 12 + pitch_class_to_number(letter + accidental)

	if not MIN_PITCH <= pitch <= MAX_PITCH:
		raise cliptext.errors.ParseError(
			cliptext.errors.ErrorKind.UNRESOLVED_PITCH,
			f"MIDI pitch {pitch} ({name}) outside valid range 0-127",
			token = name
		)

	return pitch


def midi_to_note_name (pitch: int) -> str:

	"""Convert a MIDI number to its canonical note name (flats, C3 = 60).

	Raises:
		ParseError: ``OUT_OF_RANGE_VALUE`` if the pitch is not an integer 0-127.
	"""

	if not is_valid_midi(pitch):
		raise cliptext.errors.ParseError(
			cliptext.errors.ErrorKind.OUT_OF_RANGE_VALUE,
			f"MIDI pitch {pitch!r} outside valid range 0-127",
			token = str(pitch)
		)

	octave = pitch // 12 - OCTAVE_OFFSET

	return f"{PITCH_CLASS_NAMES[pitch % 12]}{octave}"


def resolve_pitch_token (token: str) -> typing.Optional[int]:

	"""Resolve a pitch token, returning ``None`` for the ``*`` wildcard.

	The wildcard stands for "any/unassigned" in read-side displays such as
	drum maps. Writers that need a concrete pitch must reject ``None``.
	"""

	if token == WILDCARD:
		return None

	return note_name_to_midi(token)


def format_pitch (pitch: typing.Optional[int]) -> str:

	"""Inverse of ``resolve_pitch_token``: ``None`` formats as the wildcard."""

	if pitch is None:
		return WILDCARD

	return midi_to_note_name(pitch)
