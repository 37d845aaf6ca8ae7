"""Note builder: folds notation tokens into placed notes.

The builder is a reducer. ``step(state, token, time_signature)`` returns a
new ``ParserState`` and the notes the token emitted; ``build_notes`` folds a
whole token sequence. States are frozen and never modified in place, so any
intermediate state can be inspected or replayed in isolation.

**How notation places notes:**

- Modifiers (``v``, ``t``, ``p``) set the velocity, duration and probability
  for the pitches that follow. They are sticky until overridden.
- Pitches are collected into a group. Each pitch keeps the modifier values
  that were current when it was read, so ``v80 C4 v90 G4 1|1`` plays C4 at
  80 and G4 at 90.
- A position emits every pitch in the group at that time (a chord when the
  group holds several pitches). Another position with no new pitch in
  between emits the same group again, which makes drum lines short:
  ``C1 1|1 |2 |3 |4``.
- A modifier read after a group has been placed also updates the group, so
  ``C4 1|1 v90 |2`` plays the second hit at velocity 90. A modifier between
  a group's pitches and its first position does not reach that group; the
  builder logs a warning.
- The first pitch after a placed group starts a new group.
- ``@dest=source`` copies whole bars of already placed notes; ``@clear``
  forgets the notes recorded for copying.
- ``v0`` marks erasers: once the whole notation is placed, a velocity 0
  note deletes the earlier notes at its pitch and time and is dropped
  (``C3 D3 1|1 v0 C3 1|1`` leaves only D3).

A group that is never placed is an error: nothing from the notation is
returned, so a half-compiled clip is never written.
"""

import dataclasses
import logging
import math
import typing

import cliptext.bar_beat
import cliptext.constants.durations
import cliptext.constants.velocity
import cliptext.errors
import cliptext.note
import cliptext.tokenizer


logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class BufferedPitch:

	"""
	A pitch waiting to be placed, with the modifier values it was read under.
	"""

	pitch: int
	velocity: int
	velocity_deviation: int
	duration: float			# Musical beats of the time signature
	probability: float
	text: str = ""
	offset: int = 0


@dataclasses.dataclass(frozen=True)
class ParserState:

	"""
	Running state of the builder between tokens.
	"""

	velocity: int = cliptext.constants.velocity.DEFAULT_VELOCITY
	velocity_deviation: int = cliptext.constants.velocity.DEFAULT_VELOCITY_DEVIATION
	duration: float = cliptext.constants.durations.DEFAULT_DURATION
	probability: float = cliptext.constants.durations.DEFAULT_PROBABILITY

	current_bar: int = 1						# Bar used by the `|beat` shorthand
	pitches: typing.Tuple[BufferedPitch, ...] = ()
	group_open: bool = False					# Pitches read since the last position
	emitted: bool = False						# Current group has been placed at least once
	stale_modifier: bool = False				# Modifier read between a group and its position

	# Notes placed so far, by bar, for `@` copies. Replaced, never mutated.
	bar_notes: typing.Mapping[int, typing.Tuple[cliptext.note.NoteEvent, ...]] = dataclasses.field(default_factory=dict)


StepResult = typing.Tuple[ParserState, typing.Tuple[cliptext.note.NoteEvent, ...]]


def parse_notation (text: str, time_signature: typing.Optional[cliptext.bar_beat.TimeSignature] = None) -> typing.List[cliptext.note.NoteEvent]:

	"""Compile notation text into notes.

	Parameters:
		text: The notation, e.g. ``"v80 t2 C4 1|1 v120 t1 D4 1|3"``.
		time_signature: Signature used to lay out bars (default 4/4).

	Example:
		```python
		notes = parse_notation("C3 E3 G3 1|1 |3", TimeSignature(4, 4))
		# C major triad on beats 1 and 3 → 6 notes
		```
	"""

	if time_signature is None:
		time_signature = cliptext.bar_beat.TimeSignature()

	return build_notes(cliptext.tokenizer.iter_tokens(text), time_signature)


def build_notes (tokens: typing.Iterable[cliptext.tokenizer.Token], time_signature: cliptext.bar_beat.TimeSignature) -> typing.List[cliptext.note.NoteEvent]:

	"""Fold tokens into notes, in emission order.

	Raises:
		ParseError: On any invalid position, pitch, or a pitch group that is
			never placed. No notes are returned on error.
	"""

	state = ParserState()
	notes: typing.List[cliptext.note.NoteEvent] = []

	for token in tokens:
		state, emitted = step(state, token, time_signature)
		notes.extend(emitted)

	finish(state)

	notes = apply_deletions(notes)

	logger.debug(f"Built {len(notes)} notes in {time_signature}")

	return notes


def apply_deletions (notes: typing.Iterable[cliptext.note.NoteEvent]) -> typing.List[cliptext.note.NoteEvent]:

	"""Treat velocity 0 notes as erasers.

	A velocity 0 note removes every earlier note with the same pitch and
	start time, then is dropped itself. ``v0-50`` erases too, since its base
	velocity is 0. Notes after the eraser are kept.

	Example:
		```python
		[n.pitch for n in parse_notation("C3 D3 1|1 v0 C3 1|1")]  # → [62]
		```
	"""

	kept: typing.List[cliptext.note.NoteEvent] = []

	for note in notes:

		if note.velocity != 0:
			kept.append(note)
			continue

		kept = [
			earlier for earlier in kept
			if earlier.pitch != note.pitch or not cliptext.bar_beat.is_same_time(earlier.start_time, note.start_time)
		]

	return kept


def step (state: ParserState, token: cliptext.tokenizer.Token, time_signature: cliptext.bar_beat.TimeSignature) -> StepResult:

	"""Apply one token to ``state``.

	Returns:
		The new state and the notes emitted by this token (empty for anything
		but positions and bar copies).
	"""

	kind = token.kind
	kinds = cliptext.tokenizer.TokenKind

	if kind is kinds.VELOCITY:
		return _apply_modifier(state, velocity=token.value, velocity_deviation=0), ()

	if kind is kinds.VELOCITY_RANGE:
		low, high = token.value
		return _apply_modifier(state, velocity=low, velocity_deviation=high - low), ()

	if kind is kinds.DURATION:
		bars, beats = token.value
		return _apply_modifier(state, duration=bars * time_signature.numerator + beats), ()

	if kind is kinds.PROBABILITY:
		return _apply_modifier(state, probability=token.value), ()

	if kind is kinds.PITCH:
		return _add_pitch(state, token), ()

	if kind is kinds.POSITION:
		return _place(state, token, time_signature)

	if kind is kinds.BAR_COPY:
		_check_group_placed(state)
		return _copy_bars(state, token.value, time_signature)

	if kind is kinds.CLEAR_COPY:
		_check_group_placed(state)
		return dataclasses.replace(state, bar_notes={}, **_RESET_GROUP), ()

	raise ValueError(f"Unknown token kind: {kind!r}")


def finish (state: ParserState) -> None:

	"""Check the final state; raises if pitches were read but never placed."""

	_check_group_placed(state)


_RESET_GROUP: typing.Dict[str, typing.Any] = {
	"pitches": (),
	"group_open": False,
	"emitted": False,
	"stale_modifier": False,
}


def _apply_modifier (state: ParserState, **changes: typing.Any) -> ParserState:

	"""Replace modifier fields, updating an already placed group to match."""

	if state.group_open:
		return dataclasses.replace(state, stale_modifier=bool(state.pitches), **changes)

	pitches = tuple(dataclasses.replace(pitch, **changes) for pitch in state.pitches)

	return dataclasses.replace(state, pitches=pitches, **changes)


def _add_pitch (state: ParserState, token: cliptext.tokenizer.Token) -> ParserState:

	if token.value is None:
		raise cliptext.errors.ParseError(
			cliptext.errors.ErrorKind.UNRESOLVED_PITCH,
			"Wildcard pitch '*' cannot be written to a clip",
			token = token.text,
			offset = token.offset
		)

	pitch = BufferedPitch(
		pitch = token.value,
		velocity = state.velocity,
		velocity_deviation = state.velocity_deviation,
		duration = state.duration,
		probability = state.probability,
		text = token.text,
		offset = token.offset
	)

	pitches = state.pitches + (pitch,) if state.group_open else (pitch,)

	return dataclasses.replace(state, pitches=pitches, group_open=True, emitted=False, stale_modifier=False)


def _place (state: ParserState, token: cliptext.tokenizer.Token, time_signature: cliptext.bar_beat.TimeSignature) -> StepResult:

	"""Emit the buffered pitch group at every beat of a position token."""

	value: cliptext.tokenizer.PositionValue = token.value
	bar = value.bar if value.bar is not None else state.current_bar

	try:
		positions = [cliptext.bar_beat.BarBeatPosition(bar, beat) for beat in value.beats]
	except cliptext.errors.ParseError as e:
		raise cliptext.errors.ParseError(e.kind, e.message, token=token.text, offset=token.offset) from e

	if not state.pitches:
		logger.warning(f"Time position {token.text} has no pitches")
		return dataclasses.replace(state, current_bar=bar, group_open=False, stale_modifier=False), ()

	if state.stale_modifier:
		logger.warning(f"Modifier after pitch(es) but before time position {token.text} won't affect this group")

	notes = tuple(
		cliptext.note.NoteEvent(
			pitch = pitch.pitch,
			start_time = cliptext.bar_beat.to_absolute_beats(position, time_signature),
			duration = pitch.duration * time_signature.beat_unit,
			velocity = pitch.velocity,
			probability = pitch.probability,
			velocity_deviation = pitch.velocity_deviation
		)
		for position in positions
		for pitch in state.pitches
	)

	new_state = dataclasses.replace(
		state,
		current_bar = bar,
		group_open = False,
		emitted = True,
		stale_modifier = False,
		bar_notes = _record(state.bar_notes, notes, time_signature)
	)

	return new_state, notes


def _bar_of (note: cliptext.note.NoteEvent, time_signature: cliptext.bar_beat.TimeSignature) -> int:

	return math.floor(round(note.start_time / time_signature.beats_per_bar, 6)) + 1


def _record (bar_notes: typing.Mapping[int, typing.Tuple[cliptext.note.NoteEvent, ...]], notes: typing.Iterable[cliptext.note.NoteEvent], time_signature: cliptext.bar_beat.TimeSignature) -> typing.Dict[int, typing.Tuple[cliptext.note.NoteEvent, ...]]:

	"""Return a copy of ``bar_notes`` with ``notes`` appended to their bars."""

	recorded = dict(bar_notes)

	for note in notes:
		bar = _bar_of(note, time_signature)
		recorded[bar] = recorded.get(bar, ()) + (note,)

	return recorded


def _check_group_placed (state: ParserState) -> None:

	if state.pitches and not state.emitted:
		first = state.pitches[0]
		raise cliptext.errors.ParseError(
			cliptext.errors.ErrorKind.PITCH_BEFORE_POSITION,
			f"{len(state.pitches)} pitch(es) starting at {first.text!r} have no time position to place them",
			token = first.text,
			offset = first.offset
		)


def _copy_plan (copy: cliptext.tokenizer.BarCopyValue) -> typing.Optional[typing.List[typing.Tuple[int, int]]]:

	"""Return ``(source, destination)`` bar pairs for a copy, or None if the copy is invalid."""

	destination_start, destination_end = copy.destination_start, copy.destination_end

	if destination_start < 1 or destination_start > destination_end:
		logger.warning(f"Invalid destination range @{destination_start}-{destination_end}= (start > end or no such bar)")
		return None

	if copy.source_start is None:
		if destination_start - 1 < 1:
			logger.warning(f"Cannot copy from previous bar when destination starts at bar {destination_start}")
			return None
		sources = [destination_start - 1]

	else:
		if copy.source_start < 1 or copy.source_start > copy.source_end:
			logger.warning(f"Invalid source range {copy.source_start}-{copy.source_end} (start > end or no such bar)")
			return None
		sources = list(range(copy.source_start, copy.source_end + 1))

	# A single destination bar receives a source range in consecutive bars.
	if destination_start == destination_end:
		return [(source, destination_start + i) for i, source in enumerate(sources)]

	# A destination range repeats (tiles) the sources across every bar.
	return [
		(sources[i % len(sources)], destination)
		for i, destination in enumerate(range(destination_start, destination_end + 1))
	]


def _copy_bars (state: ParserState, copy: cliptext.tokenizer.BarCopyValue, time_signature: cliptext.bar_beat.TimeSignature) -> StepResult:

	"""Copy recorded bars to new bars, shifting them in time."""

	plan = _copy_plan(copy)

	if plan is None:
		return dataclasses.replace(state, **_RESET_GROUP), ()

	bar_notes: typing.Mapping[int, typing.Tuple[cliptext.note.NoteEvent, ...]] = state.bar_notes
	copied: typing.List[cliptext.note.NoteEvent] = []

	for source, destination in plan:

		if source == destination:
			logger.warning(f"Skipping copy of bar {source} to itself")
			continue

		source_notes = bar_notes.get(source, ())

		if not source_notes:
			logger.warning(f"Bar {source} is empty, nothing to copy")
			continue

		offset = (destination - source) * time_signature.beats_per_bar
		shifted = [note.shifted(offset) for note in source_notes]

		bar_notes = _record(bar_notes, shifted, time_signature)
		copied.extend(shifted)

	current_bar = copy.destination_start if copied else state.current_bar

	return dataclasses.replace(state, current_bar=current_bar, bar_notes=bar_notes, **_RESET_GROUP), tuple(copied)
