"""
cliptext - read and write clip notes as compact bar|beat text.

A clip's notes are written as a stream of pitches, modifiers and
positions. Pitches collect into a group; a position places the group;
modifiers set the velocity, duration and probability of the pitches that
follow them::

    v100 t0.5 C3 E3 G3 1|1,3    # a C major triad on beats 1 and 3 of bar 1
    v80-100 C1 1|1,2,3,4        # four-on-the-floor with varied velocity
    @2-4=1                      # copy bar 1 into bars 2, 3 and 4

The same text goes both ways: ``parse_notation()`` compiles it to
``NoteEvent`` values, and ``format_notation()`` writes notes back out in
the shortest form that compiles to the same notes.

Writing into clips:

- **Merge or replace.** ``update_clip()`` adds to a clip's notes
  (``merge``, the default) or clears the clip first (``replace``).
- **Batches.** ``update_clips()`` applies one notation to several clips
  and skips ids that cannot be resolved, with a warning for each.
- **Stores.** A clip is anything with ``read_notes``, ``clear_notes`` and
  ``add_notes``. ``InMemoryNoteStore`` keeps a list; ``MidiFileNoteStore``
  keeps a Standard MIDI File.
- **Time signatures.** Bars follow the clip's signature (``3/4``, ``6/8``
  and so on). An explicit ``time_signature`` overrides it.

Command line::

    python -m cliptext parse "C3 E3 G3 1|1"
    python -m cliptext format clip.mid
    python -m cliptext update clip.mid,bass.mid "C1 1|1,3" --mode replace

Errors in the notation raise ``ParseError``, whose ``kind`` says what went
wrong and whose ``offset`` points into the source text. A clip is never
modified when its notation fails to compile.

Package-level exports: ``parse_notation``, ``format_notation``,
``update_clip``, ``update_clips``, ``NoteEvent``, ``TimeSignature``,
``ParseError``, ``ErrorKind``, ``UpdateMode``, ``InMemoryNoteStore``,
``MidiFileNoteStore``.
"""

import cliptext.bar_beat
import cliptext.clip_update
import cliptext.errors
import cliptext.note
import cliptext.note_builder
import cliptext.note_store
import cliptext.reconcile
import cliptext.serializer


parse_notation = cliptext.note_builder.parse_notation
format_notation = cliptext.serializer.format_notation
update_clip = cliptext.clip_update.update_clip
update_clips = cliptext.clip_update.update_clips
NoteEvent = cliptext.note.NoteEvent
TimeSignature = cliptext.bar_beat.TimeSignature
ParseError = cliptext.errors.ParseError
ErrorKind = cliptext.errors.ErrorKind
UpdateMode = cliptext.reconcile.UpdateMode
InMemoryNoteStore = cliptext.note_store.InMemoryNoteStore
MidiFileNoteStore = cliptext.note_store.MidiFileNoteStore
