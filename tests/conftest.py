import typing

import pytest

import cliptext.bar_beat
import cliptext.note
import cliptext.note_store


def make_note (pitch: int = 60, start_time: float = 0.0, duration: float = 1.0, **kwargs: typing.Any) -> cliptext.note.NoteEvent:

	"""Build a NoteEvent with short defaults for tests."""

	return cliptext.note.NoteEvent(pitch=pitch, start_time=start_time, duration=duration, **kwargs)


@pytest.fixture
def four_four () -> cliptext.bar_beat.TimeSignature:

	"""The default 4/4 signature."""

	return cliptext.bar_beat.TimeSignature(4, 4)


@pytest.fixture
def existing_note () -> cliptext.note.NoteEvent:

	"""A single note already in a clip: E3 on beat 4 of bar 1."""

	return make_note(pitch=64, start_time=3.0, velocity=90)


@pytest.fixture
def empty_store () -> cliptext.note_store.InMemoryNoteStore:

	"""An empty 4/4 clip."""

	return cliptext.note_store.InMemoryNoteStore()


@pytest.fixture
def store_with_note (existing_note: cliptext.note.NoteEvent) -> cliptext.note_store.InMemoryNoteStore:

	"""A 4/4 clip holding one note."""

	return cliptext.note_store.InMemoryNoteStore([existing_note])
