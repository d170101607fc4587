import logging
from typing import Optional

from .config import Configuration
from .escape import decode_payload
from .logging_config import get_logger, quiet_console
from .port.config_ext import PortCfg
from .port.driver import LocatedPort, Opener, configure_port, open_device, open_session, transmit

log = get_logger("serialsend.sender")


def send(config: Configuration, opener: Opener = open_device,
         cfg: Optional[PortCfg] = None) -> LocatedPort:
    """
    decode → locate → configure → transmit → flush → (delay) → close.

    Returns the port that was used; it is closed by the time this returns.
    Raises a :class:`~serialsend.errors.SerialSendError` subclass on failure.
    A quiet configuration keeps the console silent throughout.
    """
    with quiet_console(config.quiet):
        data = decode_payload(config.payload, config.hex_decoding)
        if config.hex_decoding and log.isEnabledFor(logging.DEBUG):
            log.debug("Decoded %d characters into %d bytes", len(config.payload), len(data))

        with open_session(config.start_device_number, config.no_scan,
                          config.close_delay_ms, opener, cfg,
                          dtr=config.dtr_enabled) as located:
            configure_port(located.port, config, len(data), cfg)
            transmit(located.port, data)
    return located
