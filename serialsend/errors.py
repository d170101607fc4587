class SerialSendError(Exception):
    """Base for every failure that ends a run with exit status 1."""
    phase = "run"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"[{self.phase}] {self.message}"


class UsageError(SerialSendError):
    phase = "parse"


class DeviceUnavailableError(SerialSendError):
    phase = "locate"


class ConfigurationError(SerialSendError):
    phase = "configure"


class WriteError(SerialSendError):
    phase = "transmit"


class CloseError(SerialSendError):
    phase = "close"
