"""Exceptions raised by swim.

Three families exist: bad operator input (caught before the engine is
ever contacted), an aborted selection, and engine failures tagged with the
step that failed.
"""


class SwimError(Exception):
    """Base class for all errors swim reports to the operator."""


class InputError(SwimError, ValueError):
    """Malformed operator input, e.g. a port mapping with the wrong shape."""


class SelectionAborted(SwimError):
    """No container was selected: the operator cancelled, or none are running."""


class EngineError(SwimError):
    """A container engine call failed.

    :param step: name of the workflow step that failed (``inspect``, ``stop``, ...)
    :param cause: the underlying exception raised by the engine client
    """

    def __init__(self, step, cause):
        self.step = step
        self.cause = cause
        super(EngineError, self).__init__(f"{step} failed: {cause}")
