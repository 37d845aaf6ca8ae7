import argparse
import json
import logging
import os
import sys
import typing

import cliptext.clip_update
import cliptext.config
import cliptext.errors
import cliptext.note_builder
import cliptext.note_store
import cliptext.serializer


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _build_parser () -> argparse.ArgumentParser:

	"""
	Define the command-line interface.
	"""

	parser = argparse.ArgumentParser(prog="cliptext", description="Read and write clip notes with bar|beat notation")
	parser.add_argument("--config", default=cliptext.config.DEFAULT_CONFIG_PATH, help=f"YAML config file (default: {cliptext.config.DEFAULT_CONFIG_PATH})")

	commands = parser.add_subparsers(dest="command", required=True)

	parse_command = commands.add_parser("parse", help="Compile notation and print the notes as JSON")
	parse_command.add_argument("notation")
	parse_command.add_argument("--time-signature", default=None, help="Time signature N/M (default: 4/4)")

	format_command = commands.add_parser("format", help="Print the notes of a MIDI file as notation")
	format_command.add_argument("midi_file")

	update_command = commands.add_parser("update", help="Write notation into one or more MIDI files")
	update_command.add_argument("midi_files", help="Comma-separated MIDI file paths")
	update_command.add_argument("notation")
	update_command.add_argument("--mode", choices=["merge", "replace"], default=None, help="Update mode (default: merge)")
	update_command.add_argument("--time-signature", default=None, help="Time signature N/M (default: each file's own)")

	return parser


def _resolve_midi_file (path: str) -> cliptext.note_store.MidiFileNoteStore:

	if not os.path.exists(path):
		raise cliptext.errors.TargetNotFoundError(path)

	return cliptext.note_store.MidiFileNoteStore(path)


def run (argv: typing.Optional[typing.Sequence[str]] = None) -> int:

	"""
	Run the command line and return the process exit code.

	Notation errors, bad config values and unreadable MIDI files are printed
	to stderr and give exit code 1.
	"""

	args = _build_parser().parse_args(argv)

	try:

		config = cliptext.config.load_config(args.config)
		options = cliptext.config.options_from_config(config)

		level = (config.get('logging') or {}).get('level')
		if level:
			logging.getLogger().setLevel(level)

		if args.command == "parse":
			signature = cliptext.clip_update.resolve_time_signature(args.time_signature or options.time_signature, None)
			notes = cliptext.note_builder.parse_notation(args.notation, signature)
			print(json.dumps([note.to_dict() for note in notes], indent=2))

		elif args.command == "format":
			store = cliptext.note_store.MidiFileNoteStore(args.midi_file)
			print(cliptext.serializer.format_notation(store.read_notes(), store.time_signature))

		elif args.command == "update":
			batch = cliptext.clip_update.update_clips(
				args.midi_files,
				_resolve_midi_file,
				args.notation,
				time_signature = args.time_signature or options.time_signature,
				update_mode = args.mode or options.update_mode
			)
			for result in batch.results:
				print(f"{result.clip_id}: {result.note_count} notes")
			if batch.warnings:
				logger.warning(f"Skipped {len(batch.warnings)} of {len(batch.warnings) + len(batch.results)} files")

	except (ValueError, OSError, EOFError) as e:
		print(f"error: {e}", file=sys.stderr)
		return 1

	return 0


def main () -> None:

	"""
	Main entry point for the cliptext command.
	"""

	sys.exit(run())


if __name__ == "__main__":
	main()
