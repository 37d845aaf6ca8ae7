"""Note stores: where a clip's notes are read from and written to.

The reconciliation engine only talks to a store through three calls, so
the same code updates a clip in a live host session, a MIDI file on disk,
or a plain list in a test::

    read_notes(pitch_range, time_range) -> list of NoteEvent
    clear_notes(pitch_range, time_range) -> None
    add_notes(notes) -> None

Ranges are inclusive ``(low, high)`` pitch pairs and half-open
``(start, end)`` beat pairs. The defaults cover every pitch and a time
window longer than any clip.

Two implementations are provided:

- ``InMemoryNoteStore`` keeps notes in a list and records every call.
- ``MidiFileNoteStore`` keeps notes in a Standard MIDI File. SMF has no
  field for note probability or velocity deviation, so both are dropped
  when writing and read back as 1.0 and 0.
"""

import logging
import os
import typing

import mido

import cliptext.bar_beat
import cliptext.note


logger = logging.getLogger(__name__)

PitchRange = typing.Tuple[int, int]
TimeRange = typing.Tuple[float, float]

FULL_PITCH_RANGE: PitchRange = (0, 127)
FULL_TIME_RANGE: TimeRange = (0.0, cliptext.bar_beat.MAX_CLIP_BEATS)


class NoteStore(typing.Protocol):

	"""
	The three note operations a clip must support.
	"""

	def read_notes (self, pitch_range: PitchRange = FULL_PITCH_RANGE, time_range: TimeRange = FULL_TIME_RANGE) -> typing.List[cliptext.note.NoteEvent]:
		...

	def clear_notes (self, pitch_range: PitchRange = FULL_PITCH_RANGE, time_range: TimeRange = FULL_TIME_RANGE) -> None:
		...

	def add_notes (self, notes: typing.Sequence[cliptext.note.NoteEvent]) -> None:
		...


def in_range (note: cliptext.note.NoteEvent, pitch_range: PitchRange, time_range: TimeRange) -> bool:

	"""Return True if a note's pitch and start time fall inside the ranges."""

	return pitch_range[0] <= note.pitch <= pitch_range[1] and time_range[0] <= note.start_time < time_range[1]


class InMemoryNoteStore:

	"""
	A note store backed by a list.

	``calls`` records ``(operation, args)`` for every call in order, so tests
	can check exactly what a caller asked the store to do.
	"""

	def __init__ (self, notes: typing.Optional[typing.Iterable[cliptext.note.NoteEvent]] = None, time_signature: typing.Optional[cliptext.bar_beat.TimeSignature] = None) -> None:

		self.notes: typing.List[cliptext.note.NoteEvent] = list(notes or [])
		self.time_signature = time_signature or cliptext.bar_beat.TimeSignature()
		self.calls: typing.List[typing.Tuple[str, tuple]] = []

	def read_notes (self, pitch_range: PitchRange = FULL_PITCH_RANGE, time_range: TimeRange = FULL_TIME_RANGE) -> typing.List[cliptext.note.NoteEvent]:

		self.calls.append(("read", (pitch_range, time_range)))

		return [note for note in self.notes if in_range(note, pitch_range, time_range)]

	def clear_notes (self, pitch_range: PitchRange = FULL_PITCH_RANGE, time_range: TimeRange = FULL_TIME_RANGE) -> None:

		self.calls.append(("clear", (pitch_range, time_range)))

		self.notes = [note for note in self.notes if not in_range(note, pitch_range, time_range)]

	def add_notes (self, notes: typing.Sequence[cliptext.note.NoteEvent]) -> None:

		self.calls.append(("add", (tuple(notes),)))

		self.notes.extend(notes)


class MidiFileNoteStore:

	"""
	A note store backed by a Standard MIDI File.

	All tracks are read; writing produces a single-track (type 0) file with a
	time signature event followed by the notes. A missing file reads as an
	empty clip in the default time signature. The file keeps its own time
	signature on every write; notes are stored in beats, so notation laid out
	in another signature still lands at the right time.
	"""

	def __init__ (self, path: typing.Union[str, os.PathLike], channel: int = 0, ticks_per_beat: int = 480) -> None:

		"""
		Parameters:
			path: MIDI file location. It is created on the first write.
			channel: MIDI channel (0-15) used when writing notes.
			ticks_per_beat: Resolution used when writing a new file.
		"""

		self.path = os.fspath(path)
		self.channel = channel
		self.ticks_per_beat = ticks_per_beat
		self.time_signature = cliptext.bar_beat.TimeSignature()

		if os.path.exists(self.path):
			self.time_signature, _ = self._load()

	def read_notes (self, pitch_range: PitchRange = FULL_PITCH_RANGE, time_range: TimeRange = FULL_TIME_RANGE) -> typing.List[cliptext.note.NoteEvent]:

		_, notes = self._load()

		return [note for note in notes if in_range(note, pitch_range, time_range)]

	def clear_notes (self, pitch_range: PitchRange = FULL_PITCH_RANGE, time_range: TimeRange = FULL_TIME_RANGE) -> None:

		_, notes = self._load()

		self._save([note for note in notes if not in_range(note, pitch_range, time_range)])

	def add_notes (self, notes: typing.Sequence[cliptext.note.NoteEvent]) -> None:

		_, existing = self._load()

		self._save(existing + list(notes))

	def _load (self) -> typing.Tuple[cliptext.bar_beat.TimeSignature, typing.List[cliptext.note.NoteEvent]]:

		"""Read the time signature and every note in the file."""

		if not os.path.exists(self.path):
			return self.time_signature, []

		mid = mido.MidiFile(self.path)
		ticks_per_beat = mid.ticks_per_beat
		time_signature = self.time_signature

		notes: typing.List[cliptext.note.NoteEvent] = []
		open_notes: typing.Dict[typing.Tuple[int, int], typing.List[typing.Tuple[int, int]]] = {}
		tick = 0

		for message in mido.merge_tracks(mid.tracks):

			tick += message.time

			if message.type == 'time_signature' and tick == 0:
				time_signature = cliptext.bar_beat.TimeSignature(message.numerator, message.denominator)

			elif message.type == 'note_on' and message.velocity > 0:
				open_notes.setdefault((message.channel, message.note), []).append((tick, message.velocity))

			elif message.type == 'note_off' or (message.type == 'note_on' and message.velocity == 0):

				pending = open_notes.get((message.channel, message.note))

				if not pending:
					logger.warning(f"Ignoring note-off without note-on for pitch {message.note} at tick {tick} in {self.path}")
					continue

				start_tick, velocity = pending.pop(0)

				if tick == start_tick:
					continue

				notes.append(cliptext.note.NoteEvent(
					pitch = message.note,
					start_time = start_tick / ticks_per_beat,
					duration = (tick - start_tick) / ticks_per_beat,
					velocity = velocity
				))

		hanging = sum(len(pending) for pending in open_notes.values())

		if hanging:
			logger.warning(f"Ignoring {hanging} note(s) without note-off in {self.path}")

		notes.sort(key=cliptext.note.sort_key)

		return time_signature, notes

	def _save (self, notes: typing.Sequence[cliptext.note.NoteEvent]) -> None:

		"""Write ``notes`` to the file, replacing its contents."""

		mid = mido.MidiFile(type=0, ticks_per_beat=self.ticks_per_beat)
		track = mido.MidiTrack()
		mid.tracks.append(track)

		track.append(mido.MetaMessage(
			'time_signature',
			numerator = self.time_signature.numerator,
			denominator = self.time_signature.denominator,
			time = 0
		))

		# (tick, order, message): note-offs sort before note-ons at the same tick
		events: typing.List[typing.Tuple[int, int, mido.Message]] = []

		for note in notes:

			if note.velocity == 0:
				logger.warning(f"Writing velocity 0 note {note.pitch} at beat {note.start_time} as velocity 1 (SMF velocity 0 means note-off)")

			start = round(note.start_time * self.ticks_per_beat)
			end = max(start + 1, round((note.start_time + note.duration) * self.ticks_per_beat))

			events.append((start, 1, mido.Message('note_on', channel=self.channel, note=note.pitch, velocity=max(1, note.velocity))))
			events.append((end, 0, mido.Message('note_off', channel=self.channel, note=note.pitch, velocity=0)))

		events.sort(key=lambda event: (event[0], event[1]))

		last_tick = 0

		for tick, _, message in events:
			message.time = tick - last_tick
			track.append(message)
			last_tick = tick

		track.append(mido.MetaMessage('end_of_track', time=0))

		mid.save(self.path)
		logger.debug(f"Saved {len(notes)} notes to {self.path}")
