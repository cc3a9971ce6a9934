"""
Constants shared across the graph execution runtime.
"""


LAMPORTS_PER_SOL = 1_000_000_000


class NodeDefaults:
    """
    Fallback values executors use when an input is absent.

    Shared between executors and the node catalog so both sides agree on
    what an unconnected, unset port means.
    """

    DELAY_MS = 1000
    DIVISOR = 1
    LOG_LABEL = 'Log'
    DISPLAY_LABEL = 'Display'


RESULT_PREVIEW_LEN = 80
