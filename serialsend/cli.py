"""
cli.py – command line front end.

    serialsend [/quiet] [/noscan] [/baudrate N] [/devnum N] [/closedelay N]
               [/evenparity] [/oddparity] [/dtr 0|1] [/hex] "TEXT_TO_SEND"

Flags and text may be interleaved. Any token that is not a flag is the text
to send; if several are given the last one is used.
"""

import re
import sys
from typing import List, Optional, Sequence

from pydantic import ValidationError

from .config import VERSION, Configuration, get_settings
from .errors import ConfigurationError, SerialSendError, UsageError
from .logging_config import get_logger, setup_logging
from .port.driver import Opener, open_device
from .sender import send

log = get_logger("serialsend.cli")

USAGE = (
    "Usage:\n\n"
    "\tserialsend [/quiet] [/noscan] [/baudrate BAUDRATE] [/devnum DEVICE_NUMBER]\n"
    "\t           [/closedelay MILLISECONDS] [/evenparity] [/oddparity] [/dtr 0|1]\n"
    "\t           [/hex] \"TEXT_TO_SEND\""
)

_DTR_TRUE = {"true", "on", "yes"}
_INTEGER = re.compile(r"[+-]?[0-9]+")


def quiet_requested(argv: Sequence[str]) -> bool:
    # checked before parsing so that parsing itself stays silent
    return "/quiet" in argv


def _value(argv: List[str], i: int, flag: str) -> str:
    if i >= len(argv):
        raise UsageError(f"{flag} requires a value")
    return argv[i]


def _int_value(argv: List[str], i: int, flag: str) -> int:
    token = _value(argv, i, flag)
    if not _INTEGER.fullmatch(token):
        raise UsageError(f"{flag}: {token!r} is not an integer")
    return int(token)


def _dtr_value(token: str) -> bool:
    if _INTEGER.fullmatch(token):
        return int(token) != 0
    return token.strip().lower() in _DTR_TRUE


def parse_args(argv: Sequence[str]) -> Configuration:
    """Turn command line tokens (without the program name) into a Configuration."""
    argv = list(argv)
    values = {"quiet": quiet_requested(argv)}
    payload = ""

    i = 0
    while i < len(argv):
        token = argv[i]
        if token == "/quiet":
            pass
        elif token == "/baudrate":
            i += 1
            baud = _int_value(argv, i, token)
            if baud <= 0:
                raise UsageError(f"Baud rate error: {baud} is not a positive integer")
            values["baud_rate"] = baud
            log.info("%d baud specified", baud)
        elif token == "/devnum":
            # scanning starts here and works down to zero
            i += 1
            values["start_device_number"] = _int_value(argv, i, token)
            log.info("Device number %d specified", values["start_device_number"])
        elif token == "/closedelay":
            i += 1
            delay = _int_value(argv, i, token)
            if delay < 0:
                raise UsageError(f"Close delay error: {delay} is negative")
            values["close_delay_ms"] = delay
            log.info("Delay of %d ms specified before closing port", delay)
        elif token == "/noscan":
            values["no_scan"] = True
            log.info("no_scan selected, so only one device will be tried")
        elif token == "/evenparity":
            values["even_parity"] = True
            log.info("Even parity selected")
        elif token == "/oddparity":
            values["odd_parity"] = True
            log.info("Odd parity selected")
        elif token == "/dtr":
            i += 1
            values["dtr_enabled"] = _dtr_value(_value(argv, i, token))
            log.info("DTR %s specified", "on" if values["dtr_enabled"] else "off")
        elif token == "/hex":
            values["hex_decoding"] = True
            log.info("Escape sequence decoding enabled")
        else:
            payload = token
        i += 1

    if not payload:
        raise UsageError("No text to send was given")

    if values.get("even_parity") and values.get("odd_parity"):
        log.warning("Both /evenparity and /oddparity given; using even parity")

    try:
        return Configuration(payload=payload, **values)
    except ValidationError as e:
        raise UsageError(str(e)) from e


def main(argv: Optional[Sequence[str]] = None, opener: Opener = open_device) -> int:
    argv = sys.argv[1:] if argv is None else list(argv)
    quiet = quiet_requested(argv)
    try:
        settings = get_settings()
    except ConfigurationError as e:
        setup_logging(quiet=quiet)
        log.error("%s", e)
        return 1
    setup_logging(settings.log_level, quiet=quiet,
                  log_to_file=settings.log_to_file, log_dir=settings.log_dir)

    log.info("SerialSend %s", VERSION)

    try:
        config = parse_args(argv)
    except UsageError as e:
        log.error("%s", e)
        log.error(USAGE)
        return 1

    try:
        send(config, opener)
    except SerialSendError as e:
        log.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
