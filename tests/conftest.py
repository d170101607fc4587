import logging

import pytest
import serial
from serial.urlhandler.protocol_loop import Serial as LoopSerial

from serialsend.config import get_settings
from serialsend.logging_config import CONSOLE_HANDLER_NAME
from serialsend.port import config_ext
from serialsend.port.config_ext import PortCfg


class Bench:
    """
    A set of loopback devices addressed by number, opened through ``opener``.
    A device that is already open cannot be opened again.
    """

    def __init__(self, present=(), template="COM{n}", factory=LoopSerial):
        self.cfg = PortCfg(device_template=template)
        self.present = {self.cfg.device_name(n) for n in present}
        self.factory = factory
        self.attempts = []
        self.dtr_at_open = []
        self.ports = {}

    def opener(self, name, dtr=True):
        self.attempts.append(name)
        if name not in self.present:
            raise serial.SerialException(f"could not open port {name}: [Errno 2] No such file or directory")
        held = self.ports.get(name)
        if held is not None and held.is_open:
            raise serial.SerialException(f"could not open port {name}: [Errno 16] Device or resource busy")
        port = self.factory()
        port.port = "loop://"
        port.dtr = dtr
        port.open()
        self.dtr_at_open.append(port.dtr)
        self.ports[name] = port
        return port


class FlakyLoop(LoopSerial):
    """
    Loopback port that, once open, fails the way the POSIX backend does:
    DTR changes raise the ioctl error, flush raises the tcdrain error.
    """

    def __init__(self, dtr_error=None, flush_error=None):
        self.dtr_error = dtr_error
        self.flush_error = flush_error
        self.armed = False
        super().__init__()

    def open(self):
        super().open()
        self.armed = True

    def _update_dtr_state(self):
        if self.armed and self.dtr_error is not None:
            raise self.dtr_error
        super()._update_dtr_state()

    def flush(self):
        if self.flush_error is not None:
            raise self.flush_error
        super().flush()


class FakePort:
    """Stand-in for a pyserial port with scripted write results."""

    def __init__(self, name="FAKE0", accept=None, write_error=None,
                 flush_error=None, close_error=None):
        self.port = name
        self.accept = list(accept or [])     # bytes accepted per write() call
        self.write_error = write_error
        self.flush_error = flush_error
        self.close_error = close_error
        self.written = bytearray()
        self.calls = []
        self.is_open = True

    def write(self, data):
        self.calls.append(bytes(data))
        if self.write_error is not None and len(self.calls) > len(self.accept):
            raise self.write_error
        n = self.accept[len(self.calls) - 1] if len(self.calls) <= len(self.accept) else len(data)
        n = min(n, len(data))
        self.written += data[:n]
        return n

    def flush(self):
        if self.flush_error is not None:
            raise self.flush_error

    def close(self):
        if self.close_error is not None:
            raise self.close_error
        self.is_open = False


@pytest.fixture(autouse=True)
def _reset_state():
    get_settings.cache_clear()
    config_ext.get.cache_clear()
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler.get_name() == CONSOLE_HANDLER_NAME:
            root.removeHandler(handler)
    root.setLevel(level)
    get_settings.cache_clear()
    config_ext.get.cache_clear()
