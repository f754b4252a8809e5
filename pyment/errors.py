class PymentError(Exception):
    """Base class for lifecycle failures the entrypoint treats as fatal."""


class BindError(PymentError):
    pass


class ShutdownError(PymentError):
    pass


class ServerStateError(PymentError, RuntimeError):
    """start()/shutdown() called out of order."""
