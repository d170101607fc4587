"""
driver.py – serial port layer.
* finds a port by device number, scanning downward
* applies line settings and timeouts
* writes the payload until every byte is accepted, then flushes and closes
"""

from __future__ import annotations
import logging
import time
from contextlib import contextmanager
from typing import Callable, Iterator, NamedTuple, Optional

import serial

try:
    import termios
    _FLUSH_ERRORS = (OSError, termios.error)
except ImportError:                       # Windows
    _FLUSH_ERRORS = (OSError,)

from ..config import Configuration
from ..errors import CloseError, ConfigurationError, DeviceUnavailableError, WriteError
from ..logging_config import get_logger, log_hex_data
from .config_ext import PortCfg, get as _cfg

_log = get_logger("serialsend.port.driver")

Opener = Callable[..., serial.SerialBase]


def open_device(name: str, dtr: bool = True) -> serial.SerialBase:
    """
    Open a device path or any pyserial URL (``loop://``, ``socket://`` …).
    DTR is set before the port opens so a released line never pulses.
    """
    port = serial.serial_for_url(name, do_not_open=True)
    port.dtr = dtr
    port.open()
    return port


class LocatedPort(NamedTuple):
    number: int
    name:   str
    port:   serial.SerialBase


# ────────── locate
def locate_port(start: int, no_scan: bool = False,
                opener: Opener = open_device,
                cfg: Optional[PortCfg] = None,
                dtr: bool = True) -> LocatedPort:
    """
    Open the device numbered ``start``; if it is absent and ``no_scan`` is
    off, try ``start-1`` and so on down to 0. The first device that opens wins.
    ``dtr`` is the DTR state the port opens with.
    """
    cfg = cfg or _cfg()
    _log.info("Searching serial ports...")

    number = start
    while number >= 0:
        name = cfg.device_name(number)
        _log.info("Trying %s...", name)
        try:
            port = opener(name, dtr=dtr)
        except ValueError as e:
            # malformed path or unknown URL scheme, not a missing device
            raise ConfigurationError(f"Cannot open {name}: {e}") from e
        except OSError as e:              # SerialException is an OSError
            _log.debug("%s unavailable: %s", name, e)
            if no_scan:
                raise DeviceUnavailableError(
                    f"{name} is not available and scanning is disabled") from e
            number -= 1
            continue
        _log.info("Opened %s", name)
        return LocatedPort(number, name, port)

    raise DeviceUnavailableError(
        f"No serial port available (searched device numbers {start} down to 0)")


# ────────── configure
def configure_port(port: serial.SerialBase, config: Configuration,
                   payload_len: int, cfg: Optional[PortCfg] = None) -> dict:
    """
    Apply baud rate, 8N1 framing (or even/odd parity), DTR and timeouts to
    an open port. Returns the port settings read back afterwards.
    """
    cfg = cfg or _cfg()
    try:
        port.baudrate = config.baud_rate
        port.bytesize = cfg.bytesize
        port.stopbits = cfg.stopbits
        port.parity = config.parity.value
        port.inter_byte_timeout = cfg.inter_byte_timeout
        port.timeout = cfg.read_timeout(payload_len)
        port.write_timeout = cfg.write_timeout(payload_len)
        if port.dtr != config.dtr_enabled:
            port.dtr = config.dtr_enabled
    except (ValueError, OSError) as e:
        raise ConfigurationError(f"Error setting device parameters on {port.port}: {e}") from e

    settings = port.get_settings()
    settings["dtr"] = port.dtr
    _log.debug("Port settings: %s", settings)
    _log.info("%s configured: %d baud, %d data bits, parity %s, %s stop bit, DTR %s",
              port.port, settings["baudrate"], settings["bytesize"],
              settings["parity"], settings["stopbits"],
              "on" if settings["dtr"] else "off")
    return settings


# ────────── transmit
def transmit(port: serial.SerialBase, data: bytes) -> int:
    """
    Write ``data`` in full, continuing after partial writes, then flush.
    Returns the number of bytes written.
    """
    log_hex_data(_log, logging.DEBUG, f"SENDING to {port.port}", data)
    _log.info("Sending text... ")

    total = 0
    while total < len(data):
        try:
            written = port.write(data[total:])
        except serial.SerialTimeoutException as e:
            raise WriteError(
                f"Write timeout on {port.port} after {total} of {len(data)} bytes") from e
        except OSError as e:
            raise WriteError(f"Error writing text to {port.port}: {e}") from e
        if not written:
            raise WriteError(
                f"{port.port} accepted no data after {total} of {len(data)} bytes")
        total += written
        if total < len(data):
            _log.debug("Partial write: %d/%d bytes", total, len(data))

    try:
        port.flush()
    except _FLUSH_ERRORS as e:
        raise WriteError(f"Error flushing {port.port}: {e}") from e

    _log.info("%d bytes written to %s", total, port.port)
    return total


# ────────── close
def close_port(port: serial.SerialBase, delay_ms: int = 0) -> None:
    if delay_ms > 0:
        _log.info("Delaying for %d ms before closing port...", delay_ms)
        time.sleep(delay_ms / 1000)

    _log.info("Closing serial port...")
    try:
        port.close()
    except OSError as e:                  # SerialException is an OSError
        raise CloseError(f"Error closing {port.port}: {e}") from e
    _log.info("Closed %s", port.port)


def _release(located: LocatedPort) -> None:
    try:
        located.port.close()
    except OSError as e:
        _log.warning("Could not close %s while handling an error: %s", located.name, e)


@contextmanager
def open_session(start: int, no_scan: bool = False, close_delay_ms: int = 0,
                 opener: Opener = open_device,
                 cfg: Optional[PortCfg] = None,
                 dtr: bool = True) -> Iterator[LocatedPort]:
    """
    Locate and hold a port for the body of the ``with`` block.

    On a clean exit the close delay is honoured and a failing close raises
    :class:`CloseError`. On any error the port is closed before the error
    propagates.
    """
    located = locate_port(start, no_scan, opener, cfg, dtr)
    try:
        yield located
    except BaseException:
        _release(located)
        raise
    close_port(located.port, close_delay_ms)
