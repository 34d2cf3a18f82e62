"""Protocol constants for DL/T 645 communication."""

from enum import IntEnum

# ============================================================================
# Frame Structure
# ============================================================================

START_FRAME = 0x68
END_FRAME = 0x16

ADDRESS_LEN = 6
ADDRESS_DIGITS = 12
IDENTIFIER_LEN = 4
MAX_DATA_LEN = 0xFF

# START(1) + ADDR(6) + START(1) + CTRL(1) + LEN(1) + CS(1) + END(1)
FRAME_MIN_LEN = 12

# Offsets into a raw frame
SECOND_START_OFFSET = 7
CONTROL_OFFSET = 8
LENGTH_OFFSET = 9
DATA_OFFSET = 10

# Added to every identifier/payload byte on send, removed on receive
DATA_BIAS = 0x33

# ============================================================================
# Control Codes
# ============================================================================


class ControlCode(IntEnum):
    """Control codes used by the read commands."""

    # Read data
    READ_DATA = 0x11
    READ_DATA_REPLY = 0x91
    READ_DATA_REPLY_MORE = 0xB1
    READ_DATA_ERROR = 0xD1

    # Read follow-up data
    READ_FOLLOW_UP = 0x12
    READ_FOLLOW_UP_REPLY = 0x92
    READ_FOLLOW_UP_REPLY_MORE = 0xB2
    READ_FOLLOW_UP_ERROR = 0xD2


ERROR_CONTROL_CODES = frozenset({ControlCode.READ_DATA_ERROR, ControlCode.READ_FOLLOW_UP_ERROR})

REPLY_FLAG = 0x80  # Direction bit: set on slave -> master frames
FOLLOW_UP_FLAG = 0x20  # More data available

# ============================================================================
# Communication Settings
# ============================================================================

DEFAULT_TIMEOUT = 5.0  # Connect and read deadline (seconds)
DEFAULT_IDLE_TIMEOUT = 300.0  # Close idle channel after (seconds)
DEFAULT_BAUD_RATE = 19200
READ_CHUNK_SIZE = 256
MAX_FOLLOW_UP_FRAMES = 16
