"""Merge/replace reconciliation of new notes with a clip's existing notes.

Two update modes:

- ``merge`` (default): keep every existing note and add the new ones. No
  deduplication: a new note with the same pitch and start time as an
  existing one is added alongside it.
- ``replace``: clear the clip, then add the new notes. Existing notes are
  never read.

``reconcile`` decides what should happen and returns the store commands;
``apply_commands`` carries them out.
"""

import dataclasses
import enum
import logging
import typing

import cliptext.note
import cliptext.note_store


logger = logging.getLogger(__name__)


class UpdateMode(enum.Enum):

	MERGE = "merge"
	REPLACE = "replace"

	@classmethod
	def parse (cls, value: typing.Union[str, "UpdateMode"]) -> "UpdateMode":

		"""Accept an ``UpdateMode`` or its string value."""

		if isinstance(value, cls):
			return value

		try:
			return cls(value)
		except ValueError:
			raise ValueError(f"Unknown update mode {value!r}. Expected 'merge' or 'replace'.") from None


@dataclasses.dataclass(frozen=True)
class StoreCommand:

	"""
	One call to make on a note store.
	"""

	operation: str				# 'clear' or 'add'
	pitch_range: cliptext.note_store.PitchRange = cliptext.note_store.FULL_PITCH_RANGE
	time_range: cliptext.note_store.TimeRange = cliptext.note_store.FULL_TIME_RANGE
	notes: typing.Tuple[cliptext.note.NoteEvent, ...] = ()


@dataclasses.dataclass(frozen=True)
class ReconcileResult:

	"""
	The outcome of reconciling new notes with a clip.
	"""

	final_note_count: int
	commands: typing.Tuple[StoreCommand, ...]
	final_notes: typing.Tuple[cliptext.note.NoteEvent, ...]


def reconcile (draft_notes: typing.Sequence[cliptext.note.NoteEvent], mode: typing.Union[str, UpdateMode] = UpdateMode.MERGE, existing_notes: typing.Optional[typing.Sequence[cliptext.note.NoteEvent]] = None) -> ReconcileResult:

	"""Plan the store commands that turn a clip into its updated note set.

	Parameters:
		draft_notes: Newly parsed notes.
		mode: ``merge`` or ``replace``.
		existing_notes: The clip's current notes. Only used in merge mode.

	Returns:
		The final note count, the commands to run in order, and the notes the
		clip holds afterwards (existing notes first in merge mode).

	Example:
		```python
		result = reconcile([new_note], "merge", existing_notes=[old_note])
		result.final_note_count  # → 2
		[c.operation for c in result.commands]  # → ['add']
		```
	"""

	mode = UpdateMode.parse(mode)
	drafts = tuple(draft_notes)
	add = (StoreCommand("add", notes=drafts),) if drafts else ()

	if mode is UpdateMode.REPLACE:
		return ReconcileResult(
			final_note_count = len(drafts),
			commands = (StoreCommand("clear"),) + add,
			final_notes = drafts
		)

	existing = tuple(existing_notes or ())

	return ReconcileResult(
		final_note_count = len(existing) + len(drafts),
		commands = add,
		final_notes = existing + drafts
	)


def apply_commands (store: cliptext.note_store.NoteStore, commands: typing.Iterable[StoreCommand]) -> None:

	"""Run store commands in order."""

	for command in commands:

		if command.operation == "clear":
			store.clear_notes(command.pitch_range, command.time_range)
			logger.info(f"Cleared notes in pitches {command.pitch_range}, beats {command.time_range}")

		elif command.operation == "add":
			store.add_notes(list(command.notes))
			logger.info(f"Added {len(command.notes)} notes")

		else:
			raise ValueError(f"Unknown store command: {command.operation!r}")


def update_store (store: cliptext.note_store.NoteStore, draft_notes: typing.Sequence[cliptext.note.NoteEvent], mode: typing.Union[str, UpdateMode] = UpdateMode.MERGE) -> ReconcileResult:

	"""Read existing notes if needed, reconcile, and apply the result to ``store``.

	In merge mode the read finishes before the add is issued. Nothing guards
	against the store changing between the two calls.
	"""

	mode = UpdateMode.parse(mode)
	existing: typing.List[cliptext.note.NoteEvent] = []

	if mode is UpdateMode.MERGE:
		existing = store.read_notes(cliptext.note_store.FULL_PITCH_RANGE, cliptext.note_store.FULL_TIME_RANGE)

	result = reconcile(draft_notes, mode, existing)
	apply_commands(store, result.commands)

	return result
