class PendantError(RuntimeError):
    """Base class for all errors raised by this package."""
    pass


class HidTransportError(PendantError):
    """Raised when the HID transport fails to open, read or write."""
    def __init__(self, message, path=None):
        super().__init__(message)
        self.path = path


class InvalidStateError(PendantError):
    """Raised when an operation is attempted outside its lifecycle state."""
    pass


class PendantDisconnectedError(PendantError):
    """Delivered on the event stream when the pendant goes away."""
    pass
