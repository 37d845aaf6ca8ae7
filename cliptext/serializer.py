"""Convert notes back into bar|beat notation.

The output is the inverse of ``note_builder.parse_notation``: parsing the
text again with the same time signature gives the same notes. Notes are
written in start-time then pitch order, one group per time position, and a
modifier is only written when its value changes::

    format_notation(notes, TimeSignature(4, 4))
    # 'v80 t2 C4 1|1 v120 t1 D4 1|3'
"""

import typing

import cliptext.bar_beat
import cliptext.constants.durations
import cliptext.constants.velocity
import cliptext.note
import cliptext.pitch


def format_notation (notes: typing.Iterable[cliptext.note.NoteEvent], time_signature: typing.Optional[cliptext.bar_beat.TimeSignature] = None) -> str:

	"""Return notation text for ``notes`` (empty string for no notes)."""

	if time_signature is None:
		time_signature = cliptext.bar_beat.TimeSignature()

	words: typing.List[str] = []

	velocity = cliptext.constants.velocity.DEFAULT_VELOCITY
	deviation = cliptext.constants.velocity.DEFAULT_VELOCITY_DEVIATION
	duration = cliptext.constants.durations.DEFAULT_DURATION
	probability = cliptext.constants.durations.DEFAULT_PROBABILITY

	for start_time, group in group_by_time(notes):

		for note in group:

			note_deviation = note.velocity_deviation

			if note.velocity != velocity or note_deviation != deviation:
				if note_deviation > 0:
					words.append(f"v{note.velocity}-{note.velocity + note_deviation}")
				else:
					words.append(f"v{note.velocity}")
				velocity, deviation = note.velocity, note_deviation

			note_duration = cliptext.bar_beat.beats_to_duration(note.duration, time_signature)

			if not cliptext.bar_beat.is_same_time(note_duration, duration):
				words.append(f"t{cliptext.bar_beat.format_number(note_duration)}")
				duration = note_duration

			if abs(note.probability - probability) > cliptext.constants.durations.TIME_EPSILON:
				words.append(f"p{cliptext.bar_beat.format_number(note.probability)}")
				probability = note.probability

			words.append(cliptext.pitch.midi_to_note_name(note.pitch))

		position = cliptext.bar_beat.from_absolute_beats(start_time, time_signature)
		words.append(cliptext.bar_beat.format_position(position))

	return " ".join(words)


def group_by_time (notes: typing.Iterable[cliptext.note.NoteEvent]) -> typing.List[typing.Tuple[float, typing.List[cliptext.note.NoteEvent]]]:

	"""Sort notes and group those that start together.

	Returns:
		``(start_time, notes)`` pairs in time order; notes within a group are
		ordered by pitch.
	"""

	groups: typing.List[typing.Tuple[float, typing.List[cliptext.note.NoteEvent]]] = []

	for note in sorted(notes, key=cliptext.note.sort_key):

		if groups and cliptext.bar_beat.is_same_time(groups[-1][0], note.start_time):
			groups[-1][1].append(note)
		else:
			groups.append((note.start_time, [note]))

	return groups
