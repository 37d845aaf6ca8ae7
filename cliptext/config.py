"""Update options and YAML configuration.

A config file sets the defaults the command line uses when a flag is not
given::

    notes:
      update_mode: replace      # merge (default) or replace
      time_signature: "6/8"     # overrides the clip's own signature
    logging:
      level: INFO
"""

import dataclasses
import logging
import os
import typing

import yaml

import cliptext.bar_beat
import cliptext.reconcile


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "cliptext.yaml"


@dataclasses.dataclass(frozen=True)
class UpdateOptions:

	"""
	How notation is applied to a clip.

	Fields:
		update_mode: ``MERGE`` keeps the clip's notes and adds the new ones;
			``REPLACE`` clears the clip first.
		time_signature: ``"N/M"`` signature used to lay out bars. None uses
			the clip's own signature.
	"""

	update_mode: cliptext.reconcile.UpdateMode = cliptext.reconcile.UpdateMode.MERGE
	time_signature: typing.Optional[str] = None

	def __post_init__ (self) -> None:

		object.__setattr__(self, "update_mode", cliptext.reconcile.UpdateMode.parse(self.update_mode))

		# Fail here, before any clip is touched
		if self.time_signature is not None:
			cliptext.bar_beat.parse_time_signature(self.time_signature)


def load_config (config_path: str = DEFAULT_CONFIG_PATH) -> dict:

	"""
	Load configuration from a YAML file. A missing file gives an empty config.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return {}

	with open(config_path, 'r') as f:
		try:
			config = yaml.safe_load(f)
		except yaml.YAMLError as e:
			raise ValueError(f"Config file {config_path} is not valid YAML: {e}") from e

	if config is None:
		return {}

	if not isinstance(config, dict):
		raise ValueError(f"Config file {config_path} must contain a mapping, got {type(config).__name__}")

	return config


def options_from_config (config: typing.Mapping[str, typing.Any]) -> UpdateOptions:

	"""Build ``UpdateOptions`` from the ``notes`` section of a config mapping."""

	notes = config.get('notes') or {}

	return UpdateOptions(
		update_mode = notes.get('update_mode', cliptext.reconcile.UpdateMode.MERGE.value),
		time_signature = notes.get('time_signature')
	)
