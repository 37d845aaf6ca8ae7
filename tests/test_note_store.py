import logging

import mido
import pytest

import cliptext.bar_beat
import cliptext.errors
import cliptext.note
import cliptext.note_store

import conftest


def test_in_range_edges () -> None:

	"""Pitch ranges are inclusive; time ranges exclude their end."""

	note = conftest.make_note(pitch=60, start_time=4.0)

	assert cliptext.note_store.in_range(note, (60, 60), (4.0, 4.5))
	assert not cliptext.note_store.in_range(note, (61, 127), (0.0, 8.0))
	assert not cliptext.note_store.in_range(note, (0, 127), (0.0, 4.0))


def test_memory_store_ranges () -> None:

	"""Reads and clears only touch notes inside the ranges."""

	low = conftest.make_note(pitch=36, start_time=0.0)
	high = conftest.make_note(pitch=72, start_time=4.0)
	store = cliptext.note_store.InMemoryNoteStore([low, high])

	assert store.read_notes((0, 60)) == [low]
	assert store.read_notes(time_range=(2.0, 8.0)) == [high]

	store.clear_notes((0, 60))

	assert store.notes == [high]


def test_memory_store_records_calls (empty_store) -> None:

	"""Every call is recorded in order."""

	note = conftest.make_note()

	empty_store.add_notes([note])
	empty_store.read_notes()
	empty_store.clear_notes()

	assert empty_store.calls == [
		("add", ((note,),)),
		("read", (cliptext.note_store.FULL_PITCH_RANGE, cliptext.note_store.FULL_TIME_RANGE)),
		("clear", (cliptext.note_store.FULL_PITCH_RANGE, cliptext.note_store.FULL_TIME_RANGE)),
	]
	assert empty_store.notes == []


def test_midi_store_missing_file_is_empty (tmp_path) -> None:

	"""A file that does not exist yet reads as an empty 4/4 clip."""

	store = cliptext.note_store.MidiFileNoteStore(tmp_path / "new.mid")

	assert store.read_notes() == []
	assert store.time_signature == cliptext.bar_beat.TimeSignature(4, 4)


def test_midi_store_round_trip (tmp_path) -> None:

	"""Notes written to a MIDI file read back with pitch, timing and velocity."""

	path = tmp_path / "clip.mid"
	store = cliptext.note_store.MidiFileNoteStore(path)

	notes = [
		conftest.make_note(pitch=36, start_time=0.0, duration=0.25, velocity=110),
		conftest.make_note(pitch=42, start_time=0.5, duration=0.25, velocity=70),
		conftest.make_note(pitch=36, start_time=2.0, duration=1.5),
	]

	store.add_notes(notes)

	assert cliptext.note_store.MidiFileNoteStore(path).read_notes() == notes


def test_midi_store_drops_probability_and_deviation (tmp_path) -> None:

	"""SMF cannot hold probability or velocity deviation."""

	path = tmp_path / "clip.mid"
	store = cliptext.note_store.MidiFileNoteStore(path)

	store.add_notes([conftest.make_note(probability=0.5, velocity_deviation=20)])

	note, = store.read_notes()

	assert note.probability == 1.0
	assert note.velocity_deviation == 0


def test_midi_store_clear_range (tmp_path) -> None:

	"""clear_notes rewrites the file without the cleared notes."""

	path = tmp_path / "clip.mid"
	store = cliptext.note_store.MidiFileNoteStore(path)

	store.add_notes([conftest.make_note(pitch=36), conftest.make_note(pitch=72, start_time=1.0)])
	store.clear_notes((0, 60))

	assert [note.pitch for note in store.read_notes()] == [72]


def test_midi_store_reads_time_signature (tmp_path) -> None:

	"""The time signature at the start of the file becomes the clip's."""

	path = tmp_path / "waltz.mid"

	mid = mido.MidiFile(type=1, ticks_per_beat=96)
	track = mido.MidiTrack()
	mid.tracks.append(track)

	track.append(mido.MetaMessage('time_signature', numerator=3, denominator=4, time=0))
	track.append(mido.Message('note_on', note=60, velocity=100, time=288))
	track.append(mido.Message('note_on', note=60, velocity=0, time=96))
	mid.save(path)

	store = cliptext.note_store.MidiFileNoteStore(path)

	assert store.time_signature == cliptext.bar_beat.TimeSignature(3, 4)
	assert store.read_notes() == [conftest.make_note(pitch=60, start_time=3.0, duration=1.0)]


def test_midi_store_keeps_signature_on_write (tmp_path) -> None:

	"""Rewriting a file keeps its time signature."""

	path = tmp_path / "clip.mid"

	store = cliptext.note_store.MidiFileNoteStore(path)
	store.time_signature = cliptext.bar_beat.TimeSignature(6, 8)
	store.add_notes([conftest.make_note()])

	assert cliptext.note_store.MidiFileNoteStore(path).time_signature == cliptext.bar_beat.TimeSignature(6, 8)


def test_midi_store_zero_velocity_warns (tmp_path, caplog) -> None:

	"""Velocity 0 cannot be a note-on, so it is written as 1."""

	store = cliptext.note_store.MidiFileNoteStore(tmp_path / "clip.mid")

	with caplog.at_level(logging.WARNING, logger="cliptext.note_store"):
		store.add_notes([conftest.make_note(velocity=0)])

	assert store.read_notes()[0].velocity == 1
	assert "velocity 0" in caplog.text


def test_midi_store_unmatched_events_warn (tmp_path, caplog) -> None:

	"""Stray note-offs and hanging note-ons are skipped with a warning."""

	path = tmp_path / "broken.mid"

	mid = mido.MidiFile(type=0)
	track = mido.MidiTrack()
	mid.tracks.append(track)

	track.append(mido.Message('note_off', note=50, velocity=0, time=0))
	track.append(mido.Message('note_on', note=60, velocity=100, time=0))
	mid.save(path)

	with caplog.at_level(logging.WARNING, logger="cliptext.note_store"):
		notes = cliptext.note_store.MidiFileNoteStore(path).read_notes()

	assert notes == []
	assert "without note-on" in caplog.text
	assert "without note-off" in caplog.text


def test_note_event_validates_ranges () -> None:

	"""Notes outside the legal ranges cannot be built."""

	for bad in [dict(pitch=128), dict(duration=0), dict(start_time=-1), dict(velocity=200), dict(probability=2.0)]:

		with pytest.raises(cliptext.errors.ParseError) as excinfo:
			conftest.make_note(**bad)

		assert excinfo.value.kind is cliptext.errors.ErrorKind.OUT_OF_RANGE_VALUE


def test_note_event_dict_round_trip () -> None:

	"""to_dict and from_dict are inverses; from_dict fills defaults."""

	note = conftest.make_note(pitch=42, start_time=0.5, velocity=80, velocity_deviation=20, probability=0.8)

	assert cliptext.note.NoteEvent.from_dict(note.to_dict()) == note
	assert cliptext.note.NoteEvent.from_dict({"pitch": 60, "start_time": 0, "duration": 1}) == conftest.make_note()


def test_note_event_caps_velocity_deviation () -> None:

	"""A deviation reaching past 127 is cut down to fit."""

	assert conftest.make_note(velocity=120, velocity_deviation=20).velocity_deviation == 7
	assert conftest.make_note(velocity=127, velocity_deviation=5).velocity_deviation == 0
	assert conftest.make_note(velocity=100, velocity_deviation=27).velocity_deviation == 27
