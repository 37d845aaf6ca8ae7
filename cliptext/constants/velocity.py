"""Velocity defaults and limits for notation.

A ``v`` modifier sets the attack strength (0-127) of the pitches that
follow it. ``v<lo>-<hi>`` also sets a deviation: the clip picks a velocity
between ``lo`` and ``hi`` each time the note plays.
"""

DEFAULT_VELOCITY = 100          # Any note before the first `v` modifier
DEFAULT_VELOCITY_DEVIATION = 0  # No randomisation unless a `v<lo>-<hi>` range is given

MIN_VELOCITY = 0
MAX_VELOCITY = 127
