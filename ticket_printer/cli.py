"""Command-line interface."""

import argparse
import asyncio
import logging
import os
import sys

from ticket_printer.config import (
    COOLDOWN,
    DEFAULT_ENCODING,
    DEFAULT_LOG_LEVEL,
    DEFAULT_NETWORK_PORT,
    DEFAULT_USB_PRODUCT_ID,
    DEFAULT_USB_VENDOR_ID,
    MODE_MOCK,
    MODE_NETWORK,
    MODE_USB,
    config,
)
from ticket_printer.printer import (
    DeviceError,
    PrintSink,
    check_encoding,
    create_printer,
    parse_usb_ids,
)
from ticket_printer.session import Session

logger = logging.getLogger(__name__)


def setup_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Configure logging."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _usb_ids(value: str):
    try:
        return parse_usb_ids(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def _encoding(value: str) -> str:
    try:
        return check_encoding(value)
    except LookupError as e:
        raise argparse.ArgumentTypeError(str(e))


def _positive_seconds(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")
    if not 0 < seconds < float("inf"):
        raise argparse.ArgumentTypeError(f"must be a finite number greater than 0, got {value}")
    return seconds


def build_parser() -> argparse.ArgumentParser:
    default_url = os.environ.get("TICKET_PRINTER_URL")
    parser = argparse.ArgumentParser(
        prog="ticket-printer",
        description="Print every message from a WebSocket source on a thermal receipt printer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  %(prog)s -u ws://10.0.0.5:8080/ws --mock        Print tickets to the console
  %(prog)s -u ws://10.0.0.5:8080/ws               USB printer ({DEFAULT_USB_VENDOR_ID:#06x}:{DEFAULT_USB_PRODUCT_ID:#06x})
  %(prog)s -u ws://10.0.0.5:8080/ws --usb 0x04b8:0x0202
  %(prog)s -u wss://example.com/ws --ip 192.168.1.87
  %(prog)s -u wss://example.com/ws --ip 192.168.1.87 --port 9101
        """,
    )

    parser.add_argument(
        "-u",
        "--url",
        default=default_url,
        required=default_url is None,
        help="WebSocket URL to connect to (default: $TICKET_PRINTER_URL)",
    )

    parser.add_argument(
        "-m",
        "--mock",
        action="store_true",
        help="Run in mock mode (print to console)",
    )

    parser.add_argument(
        "--ip",
        metavar="ADDR",
        help="Network printer IP address",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=DEFAULT_NETWORK_PORT,
        metavar="PORT",
        help=f"Network printer port (default: {DEFAULT_NETWORK_PORT})",
    )

    parser.add_argument(
        "--usb",
        type=_usb_ids,
        default=(DEFAULT_USB_VENDOR_ID, DEFAULT_USB_PRODUCT_ID, None, None),
        metavar="VID:PID",
        help="USB printer vendor:product IDs in hex, optionally :out_ep:in_ep",
    )

    parser.add_argument(
        "--cooldown",
        type=_positive_seconds,
        default=COOLDOWN,
        metavar="SECONDS",
        help=f"Wait between reconnect attempts (default: {COOLDOWN})",
    )

    parser.add_argument(
        "--encoding",
        type=_encoding,
        default=DEFAULT_ENCODING,
        help=f"Encoding for message text (default: {DEFAULT_ENCODING})",
    )

    parser.add_argument(
        "--log-level",
        default=DEFAULT_LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help=f"Logging level (default: {DEFAULT_LOG_LEVEL})",
    )

    return parser


def main(argv=None):
    """Main entry point with CLI argument parsing."""
    args = build_parser().parse_args(argv)

    if args.mock:
        mode = MODE_MOCK
    elif args.ip:
        mode = MODE_NETWORK
    else:
        mode = MODE_USB

    # Store config globally
    vendor_id, product_id, out_ep, in_ep = args.usb
    config["url"] = args.url
    config["mode"] = mode
    config["host"] = args.ip
    config["port"] = args.port
    config["usb_vendor_id"] = vendor_id
    config["usb_product_id"] = product_id
    config["usb_out_ep"] = out_ep
    config["usb_in_ep"] = in_ep
    config["cooldown"] = args.cooldown
    config["encoding"] = args.encoding

    setup_logging(args.log_level)

    logger.info("Starting ticket printer...")
    logger.info("Target WebSocket URL: %s", args.url)
    if mode == MODE_NETWORK:
        logger.info("Mode: NETWORK (%s:%s)", args.ip, args.port)
    elif mode == MODE_USB:
        logger.info("Mode: USB (%04x:%04x)", vendor_id, product_id)
    else:
        logger.info("Mode: MOCK (Console)")

    try:
        sink = PrintSink(create_printer(), encoding=args.encoding)
        sink.initialize()
    except DeviceError as e:
        logger.error("Failed to initialize printer: %s", e)
        sys.exit(1)
    logger.info("Printer initialized.")

    session = Session(args.url, sink, cooldown=args.cooldown)
    try:
        asyncio.run(session.run())
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == "__main__":
    main()
