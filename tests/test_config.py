import pydantic
import pytest

from serialsend.config import Configuration, get_settings
from serialsend.errors import ConfigurationError
from serialsend.enums import Parity
from serialsend.port import config_ext


def test_defaults():
    config = Configuration(payload="x")
    assert config.baud_rate == 9600
    assert config.start_device_number == 50
    assert config.dtr_enabled is True
    assert config.no_scan is False
    assert config.hex_decoding is False
    assert config.close_delay_ms == 0
    assert config.parity is Parity.NONE


@pytest.mark.parametrize("even, odd, expected", [
    (True, False, Parity.EVEN),
    (False, True, Parity.ODD),
    (True, True, Parity.EVEN),
])
def test_parity_precedence(even, odd, expected):
    assert Configuration(payload="x", even_parity=even, odd_parity=odd).parity is expected


def test_configuration_is_frozen():
    config = Configuration(payload="x")
    with pytest.raises(pydantic.ValidationError):
        config.baud_rate = 115200


def test_baud_rate_must_be_positive():
    with pytest.raises(pydantic.ValidationError):
        Configuration(payload="x", baud_rate=0)


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("SERIALSEND_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("SERIALSEND_LOG_TO_FILE", "1")
    monkeypatch.setenv("SERIALSEND_DEVICE_TEMPLATE", "/dev/ttyACM{n}")
    settings = get_settings()
    assert settings.log_level == "DEBUG"
    assert settings.log_to_file is True
    assert settings.log_dir == "logs"
    assert config_ext.get().device_name(2) == "/dev/ttyACM2"


def test_timeouts_scale_with_payload():
    cfg = config_ext.PortCfg()
    assert cfg.inter_byte_timeout == pytest.approx(0.050)
    assert cfg.read_timeout(0) == pytest.approx(0.050)
    assert cfg.write_timeout(10) == pytest.approx(0.150)
    assert cfg.device_name(7) == "COM7"


@pytest.mark.parametrize("template", ["COM{num}", "/dev/ttyUSB", "COM{0}", "COM{n", "COM{n.real.x}"])
def test_bad_device_template_from_environment(monkeypatch, template):
    monkeypatch.setenv("SERIALSEND_DEVICE_TEMPLATE", template)
    with pytest.raises(ConfigurationError):
        get_settings()


def test_bad_device_template_in_port_config():
    with pytest.raises(pydantic.ValidationError):
        config_ext.PortCfg(device_template="COM{num}")


def test_formatted_device_template():
    assert config_ext.PortCfg(device_template="/dev/ttyS{n:02d}").device_name(3) == "/dev/ttyS03"
