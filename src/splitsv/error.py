class InvalidSegmentAccess(AssertionError):
    """
    raised when a segment is used after it was released

    holding a breakpoint past the lifetime of its segments is a programming error, not a recoverable condition
    """

    pass


class ResourceExhaustedError(Exception):
    """
    raised when a breakpoint or cluster could not be built because memory ran out
    """

    pass


class ConfigurationError(Exception):
    pass
