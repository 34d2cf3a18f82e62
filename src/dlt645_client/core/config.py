"""Client configuration using pydantic-settings."""

import logging
import sys
from enum import Enum
from typing import Literal

from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dlt645_client.protocol.address import encode_address
from dlt645_client.protocol.constants import DEFAULT_BAUD_RATE, DEFAULT_IDLE_TIMEOUT, DEFAULT_TIMEOUT


class TransportType(str, Enum):
    """Physical channel used to reach the meter."""

    SERIAL = "serial"
    TCP = "tcp"


class RS485Config(BaseModel):
    """RS-485 line control. Ignored unless ``enabled`` is true."""

    enabled: bool = False
    delay_rts_before_send: float = 0.0
    delay_rts_after_send: float = 0.0
    rts_high_during_send: bool = True
    rts_high_after_send: bool = False
    rx_during_tx: bool = False


class Settings(BaseSettings):
    """Client settings loaded from environment variables.

    All settings can be overridden via environment variables
    prefixed with DLT645_ (e.g., DLT645_ENDPOINT). Nested RS-485
    options use a double underscore (DLT645_RS485__ENABLED).
    """

    transport: TransportType = TransportType.SERIAL
    endpoint: str = "/dev/ttyUSB0"
    device_address: str = "000000000000"
    timeout: float = DEFAULT_TIMEOUT
    idle_timeout: float = DEFAULT_IDLE_TIMEOUT
    baud_rate: int = DEFAULT_BAUD_RATE
    data_bits: int = 8
    stop_bits: float = 1
    # No parity requires 2 stop bits on most meters
    parity: Literal["N", "E", "O"] = "E"
    rs485: RS485Config = RS485Config()
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="DLT645_", env_nested_delimiter="__")

    @field_validator("device_address")
    @classmethod
    def _check_device_address(cls, value: str) -> str:
        encode_address(value)
        return value

    @field_validator("data_bits")
    @classmethod
    def _check_data_bits(cls, value: int) -> int:
        if value not in (5, 6, 7, 8):
            raise ValueError("data_bits must be 5, 6, 7 or 8")
        return value

    @field_validator("stop_bits")
    @classmethod
    def _check_stop_bits(cls, value: float) -> float:
        if value not in (1, 1.5, 2):
            raise ValueError("stop_bits must be 1, 1.5 or 2")
        return value


def setup_logging(level: str = "INFO") -> None:
    """Configure library logging.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
