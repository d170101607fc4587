from functools import lru_cache

import serial
from pydantic import BaseModel, Field, field_validator

from ..config import check_device_template, get_settings


class PortCfg(BaseModel):
    device_template: str = Field("COM{n}")    # {n} -> device number
    bytesize: int = serial.EIGHTBITS
    stopbits: int = serial.STOPBITS_ONE
    # timeouts, milliseconds
    read_interval_ms:   int = 50
    read_total_ms:      int = 50
    read_per_byte_ms:   int = 10
    write_total_ms:     int = 50
    write_per_byte_ms:  int = 10

    @field_validator("device_template")
    @classmethod
    def validate_device_template(cls, v: str) -> str:
        return check_device_template(v)

    def device_name(self, number: int) -> str:
        return self.device_template.format(n=number)

    def read_timeout(self, nbytes: int) -> float:
        return (self.read_total_ms + self.read_per_byte_ms * nbytes) / 1000

    def write_timeout(self, nbytes: int) -> float:
        return (self.write_total_ms + self.write_per_byte_ms * nbytes) / 1000

    @property
    def inter_byte_timeout(self) -> float:
        return self.read_interval_ms / 1000


@lru_cache
def get() -> PortCfg:
    return PortCfg(device_template=get_settings().device_template)
