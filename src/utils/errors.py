# error taxonomy shared by the api, checkout and printing layers
from typing import Optional


class PosError(Exception):
    """Base class of every error the POS client raises on purpose."""


class ValidationError(PosError):
    """
    A required input is missing or malformed (e.g. no customer selected).
    Views are expected to prevent these by disabling actions.
    """


class NetworkError(PosError):
    """
    A backend request failed. Carries the HTTP status when there was a response.
    The operation can be retried, no local state is lost.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(NetworkError):
    """Backend answered 401, the session token is no longer valid."""


class UnsupportedCapabilityError(PosError):
    """The thermal printer transport is not available in this environment."""


class DeviceError(PosError):
    """
    Printer pairing or transfer failed.
    Never implies that the order itself failed to persist.
    """


class PrinterNotConnectedError(DeviceError):
    pass


class PrinterBusyError(DeviceError):
    pass
