from ...errors import PendantError


class PendantNotFoundError(PendantError):
    """Raised when no matching pendant could be found."""
    pass


class MultiplePendantsError(PendantError):
    """Raised when more than one matching pendant is found."""
    def __init__(self, message, pendants):
        super().__init__(message)
        self.pendants = pendants  # list[PendantDeviceInfo] but avoid circular imports
