"""Apply notation to one clip or a batch of clips.

This is the entry point a host integration calls. For each clip it picks
the time signature, compiles the notation, and reconciles the result with
the clip's notes::

    store = InMemoryNoteStore(time_signature=TimeSignature(3, 4))
    update_clip(store, "C3 1|1 D3 2|1").note_count          # → 2
    update_clip(store, "E3 1|1", update_mode="replace").note_count  # → 1

The notation is fully compiled before the store is touched, so a notation
error leaves the clip unchanged.

In a batch, a clip id that cannot be resolved is skipped: a warning is
logged and collected in the result, and the remaining clips are updated.
Notation errors are not skipped; they propagate.
"""

import collections.abc
import dataclasses
import logging
import typing

import cliptext.bar_beat
import cliptext.config
import cliptext.errors
import cliptext.note_builder
import cliptext.note_store
import cliptext.reconcile


logger = logging.getLogger(__name__)

Resolver = typing.Union[
	typing.Callable[[str], cliptext.note_store.NoteStore],
	typing.Mapping[str, cliptext.note_store.NoteStore],
]


@dataclasses.dataclass(frozen=True)
class ClipUpdateResult:

	"""
	Result of updating one clip. ``note_count`` is the clip's note count afterwards.
	"""

	clip_id: typing.Optional[str]
	note_count: int
	notes_added: int = 0


@dataclasses.dataclass
class BatchUpdateResult:

	"""
	Results for every clip that was updated, plus warnings for skipped clips.
	"""

	results: typing.List[ClipUpdateResult] = dataclasses.field(default_factory=list)
	warnings: typing.List[str] = dataclasses.field(default_factory=list)


def resolve_time_signature (time_signature: typing.Union[str, cliptext.bar_beat.TimeSignature, None], clip_time_signature: typing.Optional[cliptext.bar_beat.TimeSignature]) -> cliptext.bar_beat.TimeSignature:

	"""Pick the signature for compiling: an explicit one wins over the clip's.

	Raises:
		ParseError: ``INVALID_TIME_SIGNATURE`` if an explicit string is not ``N/M``.
	"""

	if isinstance(time_signature, cliptext.bar_beat.TimeSignature):
		return time_signature

	if time_signature is not None:
		return cliptext.bar_beat.parse_time_signature(time_signature)

	if clip_time_signature is not None:
		return clip_time_signature

	return cliptext.bar_beat.TimeSignature()


def update_clip (
	store: cliptext.note_store.NoteStore,
	notation: str,
	time_signature: typing.Union[str, cliptext.bar_beat.TimeSignature, None] = None,
	update_mode: typing.Union[str, cliptext.reconcile.UpdateMode] = cliptext.reconcile.UpdateMode.MERGE,
	clip_time_signature: typing.Optional[cliptext.bar_beat.TimeSignature] = None,
	clip_id: typing.Optional[str] = None
) -> ClipUpdateResult:

	"""Compile ``notation`` and write it to ``store``.

	Parameters:
		store: The clip's note store.
		notation: Bar|beat notation.
		time_signature: Optional ``"N/M"`` used instead of the clip's signature
			to lay out the notation. The clip's own signature is not changed.
		update_mode: ``"merge"`` (default) or ``"replace"``.
		clip_time_signature: The clip's signature. When omitted, the store's
			``time_signature`` attribute is used if it has one, else 4/4.
		clip_id: Identifier echoed back in the result.

	Raises:
		ParseError: If the time signature or notation is invalid. The store is
			not modified.
	"""

	if clip_time_signature is None:
		clip_time_signature = getattr(store, "time_signature", None)

	signature = resolve_time_signature(time_signature, clip_time_signature)
	mode = cliptext.reconcile.UpdateMode.parse(update_mode)

	notes = cliptext.note_builder.parse_notation(notation, signature)
	result = cliptext.reconcile.update_store(store, notes, mode)

	logger.debug(f"Updated clip {clip_id!r} ({mode.value}, {signature}): {len(notes)} added, {result.final_note_count} total")

	return ClipUpdateResult(clip_id=clip_id, note_count=result.final_note_count, notes_added=len(notes))


def update_clip_with_options (store: cliptext.note_store.NoteStore, notation: str, options: cliptext.config.UpdateOptions, clip_id: typing.Optional[str] = None) -> ClipUpdateResult:

	"""``update_clip`` driven by an ``UpdateOptions`` value."""

	return update_clip(
		store,
		notation,
		time_signature = options.time_signature,
		update_mode = options.update_mode,
		clip_id = clip_id
	)


def parse_target_ids (targets: typing.Union[str, typing.Iterable[str]]) -> typing.List[str]:

	"""Split ``"1, 2,3"`` into ``["1", "2", "3"]``; iterables pass through stripped."""

	if isinstance(targets, str):
		targets = targets.split(",")

	return [target.strip() for target in targets if target.strip()]


def _lookup (resolve: Resolver, target: str) -> cliptext.note_store.NoteStore:

	if isinstance(resolve, collections.abc.Mapping):
		if target not in resolve:
			raise cliptext.errors.TargetNotFoundError(target)
		return resolve[target]

	return resolve(target)


def update_clips (
	targets: typing.Union[str, typing.Iterable[str]],
	resolve: Resolver,
	notation: str,
	time_signature: typing.Union[str, cliptext.bar_beat.TimeSignature, None] = None,
	update_mode: typing.Union[str, cliptext.reconcile.UpdateMode] = cliptext.reconcile.UpdateMode.MERGE
) -> BatchUpdateResult:

	"""Apply the same notation to several clips, one at a time.

	Parameters:
		targets: Clip ids, as a list or a comma-separated string.
		resolve: Maps a clip id to its store. A callable must raise
			``TargetNotFoundError`` for unknown ids; a mapping is looked up.

	Returns:
		Per-clip results in target order, omitting unresolved clips, and one
		warning per unresolved clip.
	"""

	batch = BatchUpdateResult()

	for target in parse_target_ids(targets):

		try:
			store = _lookup(resolve, target)
		except cliptext.errors.TargetNotFoundError as e:
			warning = f"update_clips: skipping {e.target!r}: {e}"
			logger.warning(warning)
			batch.warnings.append(warning)
			continue

		batch.results.append(update_clip(
			store,
			notation,
			time_signature = time_signature,
			update_mode = update_mode,
			clip_id = target
		))

	return batch
