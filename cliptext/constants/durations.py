"""Beat-based duration and probability defaults for notation.

All values are in **musical beats** of the clip's time signature (one
quarter note in 4/4, one eighth note in 6/8). The note builder scales them
into quarter-note beats when it places notes.

Common ``t`` modifier values::

    t0.25   # a sixteenth in 4/4
    t1/3    # a triplet eighth in 4/4
    t1:0    # one whole bar
"""

DEFAULT_DURATION = 1.0
DEFAULT_PROBABILITY = 1.0

MIN_PROBABILITY = 0.0
MAX_PROBABILITY = 1.0

# Two times closer than this are treated as the same position.
TIME_EPSILON = 0.001
