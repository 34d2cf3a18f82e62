"""Command-line entry point: read one data item from a meter."""

import argparse
import asyncio
import logging
import sys

from pydantic import ValidationError

from dlt645_client import __version__
from dlt645_client.client import Client
from dlt645_client.core.config import Settings, TransportType, setup_logging
from dlt645_client.core.exceptions import DLT645Error
from dlt645_client.protocol.constants import ControlCode
from dlt645_client.protocol.frames import Frame

logger = logging.getLogger(__name__)


def parse_hex(value: str) -> bytes:
    """argparse type for hex strings such as ``00010000``."""
    try:
        return bytes.fromhex(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a hex string: {value!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dlt645-read",
        description="Read a DL/T 645 data item. Defaults come from DLT645_* environment variables.",
    )
    parser.add_argument("identifier", type=parse_hex, help="data identifier DI3..DI0 as hex, e.g. 00010000")
    parser.add_argument("--transport", choices=[t.value for t in TransportType], help="serial or tcp")
    parser.add_argument("--endpoint", help="serial device path or host:port")
    parser.add_argument("--address", help="12-digit meter address")
    parser.add_argument("--timeout", type=float, help="reply timeout in seconds")
    parser.add_argument(
        "--control",
        type=lambda v: int(v, 0),
        help="control code (default: 0x11)",
    )
    parser.add_argument(
        "--follow",
        action="store_true",
        help="read with 0x11 and fetch all follow-up frames (not with --control)",
    )
    parser.add_argument("--log-level", help="DEBUG shows the raw frames")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Environment settings with command-line overrides applied."""
    overrides = {
        "transport": args.transport,
        "endpoint": args.endpoint,
        "device_address": args.address,
        "timeout": args.timeout,
        "log_level": args.log_level,
    }
    return Settings(**{k: v for k, v in overrides.items() if v is not None})


def format_frame(frame: Frame) -> str:
    return (
        f"address={frame.address} control=0x{frame.control:02X} "
        f"identifier={frame.identifier.hex()} payload={frame.payload.hex() or '-'}"
    )


async def run(args: argparse.Namespace, settings: Settings) -> list[Frame]:
    client = Client.from_settings(settings)
    try:
        if args.follow:
            return await client.read_all(args.identifier)
        return [await client.read(args.control, args.identifier)]
    finally:
        await client.close()


def main(argv: list[str] | None = None) -> int:
    """Run the CLI. Returns the process exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.follow and args.control is not None:
        parser.error("--control cannot be combined with --follow")
    if args.control is None:
        args.control = ControlCode.READ_DATA

    try:
        settings = load_settings(args)
    except ValidationError as e:
        parser.error(str(e))
    setup_logging(settings.log_level)

    try:
        frames = asyncio.run(run(args, settings))
    except (DLT645Error, ValueError) as e:
        logger.error("Read failed: %s", e)
        return 1

    for frame in frames:
        print(format_frame(frame))
    return 0


if __name__ == "__main__":
    sys.exit(main())
