"""Device address conversion between decimal strings and packed BCD."""

from dlt645_client.core.exceptions import InvalidAddressError, InvalidLengthError
from dlt645_client.protocol.constants import ADDRESS_DIGITS, ADDRESS_LEN


def encode_address(address: str) -> bytes:
    """
    Convert a 12-digit decimal address to its on-wire BCD form.

    Each pair of digits is packed into one byte (first digit in the high
    nibble) and the resulting six bytes are stored in reverse order, so the
    least-significant digit pair is transmitted first.

    Args:
        address: Meter address, exactly 12 decimal digits

    Returns:
        6 encoded address bytes

    Raises:
        InvalidAddressError: If the address is not exactly 12 decimal digits

    Example:
        >>> encode_address("202204080026").hex(" ")
        '26 00 08 04 22 20'
    """
    if len(address) != ADDRESS_DIGITS:
        raise InvalidAddressError(f"address must be exactly {ADDRESS_DIGITS} digits, got {len(address)}: {address!r}")

    for pos, char in enumerate(address):
        # str.isdigit() also accepts non-ASCII digits such as superscripts
        if char not in "0123456789":
            raise InvalidAddressError(f"invalid digit {char!r} at position {pos}")

    encoded = bytearray(ADDRESS_LEN)
    for i in range(ADDRESS_LEN):
        high, low = int(address[2 * i]), int(address[2 * i + 1])
        encoded[ADDRESS_LEN - 1 - i] = (high << 4) | low

    return bytes(encoded)


def decode_address(data: bytes) -> str:
    """
    Convert 6 on-wire BCD bytes back to the 12-digit decimal address.

    Args:
        data: Encoded address bytes in protocol order

    Returns:
        12-digit decimal address string

    Raises:
        InvalidLengthError: If data is not exactly 6 bytes
        InvalidAddressError: If a nibble is not a decimal digit
    """
    if len(data) != ADDRESS_LEN:
        raise InvalidLengthError(f"encoded address must be exactly {ADDRESS_LEN} bytes, got {len(data)}")

    digits = []
    for byte in reversed(data):
        high, low = byte >> 4, byte & 0x0F
        if high > 9 or low > 9:
            raise InvalidAddressError(f"invalid BCD byte 0x{byte:02X} in address {bytes(data).hex()}")
        digits.append(f"{high}{low}")

    return "".join(digits)
