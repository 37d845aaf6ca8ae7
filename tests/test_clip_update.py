import logging

import pytest

import cliptext.bar_beat
import cliptext.clip_update
import cliptext.config
import cliptext.errors
import cliptext.note_store

import conftest


def test_merge_and_replace_counts (existing_note) -> None:

	"""Merge with one existing note gives two notes; replace gives one."""

	merged = cliptext.clip_update.update_clip(cliptext.note_store.InMemoryNoteStore([existing_note]), "C3 1|1")
	replaced = cliptext.clip_update.update_clip(cliptext.note_store.InMemoryNoteStore([existing_note]), "C3 1|1", update_mode="replace")

	assert merged.note_count == 2
	assert replaced.note_count == 1
	assert replaced.notes_added == 1


def test_clip_signature_is_used () -> None:

	"""Without an explicit signature the clip's own one lays out bars."""

	store = cliptext.note_store.InMemoryNoteStore(time_signature=cliptext.bar_beat.TimeSignature(3, 4))

	cliptext.clip_update.update_clip(store, "C3 1|1 D3 2|1")

	assert [(note.pitch, note.start_time) for note in store.notes] == [(60, 0.0), (62, 3.0)]


def test_explicit_signature_overrides_clip () -> None:

	"""A time_signature argument wins over the clip's."""

	store = cliptext.note_store.InMemoryNoteStore(time_signature=cliptext.bar_beat.TimeSignature(3, 4))

	cliptext.clip_update.update_clip(store, "D3 2|1", time_signature="4/4")

	assert store.notes[0].start_time == 4.0


def test_clip_time_signature_argument (empty_store) -> None:

	"""clip_time_signature takes the place of the store's attribute."""

	cliptext.clip_update.update_clip(empty_store, "D3 2|1", clip_time_signature=cliptext.bar_beat.TimeSignature(6, 8))

	assert empty_store.notes[0].start_time == 3.0


def test_invalid_signature_string (empty_store) -> None:

	"""A malformed signature names the expected format."""

	with pytest.raises(cliptext.errors.ParseError, match="Time signature must be in format"):
		cliptext.clip_update.update_clip(empty_store, "C3 1|1", time_signature="invalid")

	assert empty_store.calls == []


def test_parse_error_leaves_clip_untouched (store_with_note, existing_note) -> None:

	"""A notation error is raised before the store is read or written."""

	with pytest.raises(cliptext.errors.ParseError):
		cliptext.clip_update.update_clip(store_with_note, "C3 1|1 D3 0|1", update_mode="replace")

	assert store_with_note.calls == []
	assert store_with_note.notes == [existing_note]


def test_empty_notation_replace_clears (store_with_note) -> None:

	"""Replacing with nothing empties the clip."""

	result = cliptext.clip_update.update_clip(store_with_note, "", update_mode="replace")

	assert result.note_count == 0
	assert store_with_note.notes == []


def test_update_with_options () -> None:

	"""UpdateOptions drive mode and signature."""

	store = cliptext.note_store.InMemoryNoteStore([conftest.make_note(pitch=48)])
	options = cliptext.config.UpdateOptions(update_mode="replace", time_signature="3/4")

	result = cliptext.clip_update.update_clip_with_options(store, "C3 2|1", options, clip_id="bass")

	assert result == cliptext.clip_update.ClipUpdateResult(clip_id="bass", note_count=1, notes_added=1)
	assert store.notes[0].start_time == 3.0


def test_parse_target_ids () -> None:

	"""Comma lists are split and trimmed; blanks are dropped."""

	assert cliptext.clip_update.parse_target_ids(" 1, 2,,3 ") == ["1", "2", "3"]
	assert cliptext.clip_update.parse_target_ids(["a ", " b"]) == ["a", "b"]


def test_batch_skips_missing_clips (caplog) -> None:

	"""Unknown ids are skipped with a warning and the rest are updated."""

	stores = {
		"1": cliptext.note_store.InMemoryNoteStore(),
		"3": cliptext.note_store.InMemoryNoteStore(),
	}

	with caplog.at_level(logging.WARNING, logger="cliptext.clip_update"):
		batch = cliptext.clip_update.update_clips("1,2,3", stores, "C3 E3 1|1")

	assert [result.clip_id for result in batch.results] == ["1", "3"]
	assert [result.note_count for result in batch.results] == [2, 2]
	assert len(batch.warnings) == 1
	assert "'2'" in batch.warnings[0]
	assert "does not exist" in caplog.text


def test_batch_with_resolver_function () -> None:

	"""A callable resolver raising TargetNotFoundError is skipped the same way."""

	store = cliptext.note_store.InMemoryNoteStore()

	def resolve (clip_id: str) -> cliptext.note_store.InMemoryNoteStore:

		if clip_id != "lead":
			raise cliptext.errors.TargetNotFoundError(clip_id)

		return store

	batch = cliptext.clip_update.update_clips(["ghost", "lead"], resolve, "C3 1|1", update_mode="replace")

	assert [result.clip_id for result in batch.results] == ["lead"]
	assert batch.warnings == ["update_clips: skipping 'ghost': Clip 'ghost' does not exist"]
	assert len(store.notes) == 1


def test_batch_parse_errors_propagate () -> None:

	"""Notation errors are not skipped like missing clips."""

	stores = {"1": cliptext.note_store.InMemoryNoteStore()}

	with pytest.raises(cliptext.errors.ParseError):
		cliptext.clip_update.update_clips("1", stores, "C3")


def test_resolve_time_signature () -> None:

	"""Explicit beats clip beats default."""

	three_four = cliptext.bar_beat.TimeSignature(3, 4)

	assert cliptext.clip_update.resolve_time_signature("6/8", three_four) == cliptext.bar_beat.TimeSignature(6, 8)
	assert cliptext.clip_update.resolve_time_signature(None, three_four) == three_four
	assert cliptext.clip_update.resolve_time_signature(None, None) == cliptext.bar_beat.TimeSignature(4, 4)
