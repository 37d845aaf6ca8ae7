"""Constants for cliptext.

This package contains:

- ``cliptext.constants.velocity`` - MIDI velocity defaults and limits
- ``cliptext.constants.durations`` - Beat-based note durations for notation defaults
"""
