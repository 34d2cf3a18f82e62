"""Checksum calculation for DL/T 645 frames."""


def calculate_checksum(data: bytes) -> int:
    """
    Calculate the DL/T 645 frame checksum.

    The checksum is the unsigned sum of all byte values, truncated to 8 bits.
    It covers every byte from the first start marker up to (not including)
    the checksum byte itself.

    Args:
        data: Bytes to calculate the checksum over

    Returns:
        8-bit checksum value

    Example:
        >>> calculate_checksum(b'\\x68\\x01\\x02')
        107
    """
    return sum(data) & 0xFF


def verify_checksum(data: bytes, expected: int) -> bool:
    """
    Verify checksum matches expected value.

    Args:
        data: Data bytes (excluding checksum and end marker)
        expected: Received checksum byte

    Returns:
        True if checksum matches, False otherwise
    """
    return calculate_checksum(data) == expected
