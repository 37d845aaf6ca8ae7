import dataclasses
import typing

import cliptext.constants.velocity
import cliptext.errors


@dataclasses.dataclass(frozen=True)
class NoteEvent:

	"""
	A single note in a clip, timed in quarter-note beats from the clip start.
	"""

	pitch: int
	start_time: float
	duration: float
	velocity: int = cliptext.constants.velocity.DEFAULT_VELOCITY
	probability: float = 1.0
	velocity_deviation: int = 0		# Width of the random velocity range above `velocity`, capped so it ends at 127 or below

	def __post_init__ (self) -> None:

		"""Reject values outside the ranges a clip can hold."""

		if not 0 <= self.pitch <= 127:
			_out_of_range(f"MIDI pitch {self.pitch} outside valid range 0-127", self.pitch)

		if self.start_time < 0:
			_out_of_range(f"Note start time {self.start_time} must be 0 or greater", self.start_time)

		if self.duration <= 0:
			_out_of_range(f"Note duration {self.duration} must be greater than 0", self.duration)

		if not cliptext.constants.velocity.MIN_VELOCITY <= self.velocity <= cliptext.constants.velocity.MAX_VELOCITY:
			_out_of_range(f"MIDI velocity {self.velocity} outside valid range 0-127", self.velocity)

		if not 0.0 <= self.probability <= 1.0:
			_out_of_range(f"Note probability {self.probability} outside valid range 0.0-1.0", self.probability)

		if self.velocity_deviation < 0:
			_out_of_range(f"Velocity deviation {self.velocity_deviation} must be 0 or greater", self.velocity_deviation)

		# The velocity range tops out at 127
		headroom = cliptext.constants.velocity.MAX_VELOCITY - self.velocity
		if self.velocity_deviation > headroom:
			object.__setattr__(self, "velocity_deviation", headroom)

	def shifted (self, offset: float) -> "NoteEvent":

		"""Return a copy moved ``offset`` beats later."""

		return dataclasses.replace(self, start_time=self.start_time + offset)

	def to_dict (self) -> typing.Dict[str, typing.Any]:

		"""Return the note as a plain dict, e.g. for JSON output."""

		return dataclasses.asdict(self)

	@classmethod
	def from_dict (cls, data: typing.Mapping[str, typing.Any]) -> "NoteEvent":

		"""Build a note from a dict, filling optional fields with defaults."""

		return cls(
			pitch = int(data["pitch"]),
			start_time = float(data["start_time"]),
			duration = float(data["duration"]),
			velocity = int(round(data.get("velocity", cliptext.constants.velocity.DEFAULT_VELOCITY))),
			probability = float(data.get("probability", 1.0)),
			velocity_deviation = int(round(data.get("velocity_deviation", 0)))
		)


def _out_of_range (message: str, value: typing.Any) -> None:

	raise cliptext.errors.ParseError(cliptext.errors.ErrorKind.OUT_OF_RANGE_VALUE, message, token=str(value))


def sort_key (note: NoteEvent) -> typing.Tuple[float, int]:

	"""Order notes by start time, then pitch."""

	return (note.start_time, note.pitch)
