import os
import sys
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .enums import Parity
from .errors import ConfigurationError

VERSION = "1.0.0"

DEFAULT_BAUD_RATE = 9600
DEFAULT_DEVICE_NUMBER = 50


class Configuration(BaseModel):
    """One run of the tool, as parsed from the command line."""
    model_config = ConfigDict(frozen=True)

    payload:             str
    baud_rate:           int  = Field(DEFAULT_BAUD_RATE, gt=0)
    start_device_number: int  = Field(DEFAULT_DEVICE_NUMBER)
    no_scan:             bool = False
    even_parity:         bool = False
    odd_parity:          bool = False
    dtr_enabled:         bool = True
    hex_decoding:        bool = False
    close_delay_ms:      int  = Field(0, ge=0)
    quiet:               bool = False

    @property
    def parity(self) -> Parity:
        # even wins when both flags are given
        if self.even_parity:
            return Parity.EVEN
        if self.odd_parity:
            return Parity.ODD
        return Parity.NONE


def check_device_template(template: str) -> str:
    """A device template must use the device number as ``{n}`` and nothing else."""
    try:
        first, second = template.format(n=0), template.format(n=1)
    except (KeyError, IndexError, AttributeError, ValueError) as e:
        raise ValueError(f"device template {template!r} does not format: {e!r}") from None
    if first == second:
        raise ValueError(f"device template {template!r} has no {{n}} placeholder")
    return template


def _default_device_template() -> str:
    return "COM{n}" if sys.platform == "win32" else "/dev/ttyUSB{n}"


class Settings(BaseModel):
    log_level:       str  = Field("INFO")
    log_to_file:     bool = Field(False)
    log_dir:         str  = Field("logs")
    device_template: str  = Field(default_factory=_default_device_template)

    @field_validator("device_template")
    @classmethod
    def validate_device_template(cls, v: str) -> str:
        return check_device_template(v)


@lru_cache
def get_settings() -> Settings:
    env = {
        "log_level":       os.getenv("SERIALSEND_LOG_LEVEL"),
        "log_to_file":     os.getenv("SERIALSEND_LOG_TO_FILE"),
        "log_dir":         os.getenv("SERIALSEND_LOG_DIR"),
        "device_template": os.getenv("SERIALSEND_DEVICE_TEMPLATE"),
    }
    try:
        return Settings(**{k: v for k, v in env.items() if v is not None})
    except ValidationError as e:
        raise ConfigurationError(f"Bad environment settings: {e}") from e
