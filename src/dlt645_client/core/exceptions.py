"""Exception hierarchy for DL/T 645 communication."""


class DLT645Error(Exception):
    """Base class for all DL/T 645 errors."""


class InvalidAddressError(DLT645Error, ValueError):
    """Device address is not exactly 12 decimal digits."""


class InvalidLengthError(DLT645Error, ValueError):
    """Encoded address does not have the expected byte length."""


class FrameError(DLT645Error, ValueError):
    """Received bytes do not form a valid frame."""


class FrameTooShortError(FrameError):
    """Buffer is shorter than the minimum frame length."""


class InvalidFrameError(FrameError):
    """Start/end markers or length field do not match the frame layout."""


class ChecksumError(FrameError):
    """Received checksum does not match the frame contents."""

    def __init__(self, expected: int, received: int):
        super().__init__(f"checksum error: expected 0x{expected:02X}, received 0x{received:02X}")
        self.expected = expected
        self.received = received


class ProtocolError(DLT645Error):
    """Device answered with an error control code.

    Attributes:
        control: Control code of the offending reply
        error_code: Unbiased error status byte, if the reply carried one
    """

    def __init__(self, control: int, error_code: int | None = None, message: str | None = None):
        if message is None:
            message = f"device reported error: control=0x{control:02X}"
            if error_code is not None:
                message += f", status=0x{error_code:02X}"
        super().__init__(message)
        self.control = control
        self.error_code = error_code


class TransportError(DLT645Error, ConnectionError):
    """I/O failure on the underlying serial line or socket."""


class ConnectError(TransportError):
    """The transport channel could not be established."""


class NotConnectedError(TransportError):
    """Operation requires an open channel but there is none."""


class TransportTimeoutError(TransportError, TimeoutError):
    """No complete reply arrived before the configured deadline."""
