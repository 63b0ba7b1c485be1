class FFNetError(Exception):
    """Base class for every error raised by ffnet."""


class AliasingError(FFNetError, ValueError):
    """A kernel that needs distinct buffers was given overlapping ones."""


class InvalidStateError(FFNetError, RuntimeError):
    """A layer or model method was called out of its expected order."""


class ShapeMismatchError(FFNetError, ValueError):
    """A buffer or a connection does not match the expected size."""


class GraphCycleError(FFNetError, ValueError):
    """The layer wiring of a model contains a cycle."""
