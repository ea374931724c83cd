"""Printer acquisition and ticket rendering over ESC/POS."""

import logging
import sys
from dataclasses import dataclass
from functools import wraps

import usb.core
from escpos.escpos import Escpos
from escpos.exceptions import Error as EscposError
from escpos.printer import Network, Usb

from ticket_printer.config import (
    DEFAULT_ENCODING,
    DEFAULT_HEADER,
    DEFAULT_NETWORK_TIMEOUT,
    MODE_MOCK,
    MODE_NETWORK,
    MODE_USB,
    config,
)

logger = logging.getLogger(__name__)


class DeviceError(Exception):
    """The printer is unreachable or rejected a command."""


@dataclass(frozen=True)
class Ticket:
    """One message rendered for the printer."""

    body: str
    header: str = DEFAULT_HEADER


def device_errors(func):
    """Decorator to report any printer transport failure as DeviceError."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DeviceError:
            raise
        except (EscposError, OSError, usb.core.NoBackendError) as e:
            error_type = type(e).__name__
            error_msg = str(e) or "(no message)"
            raise DeviceError(f"[{error_type}] {error_msg}") from e

    return wrapper


def simulate(data: bytes) -> str:
    """Render raw printer bytes as readable text, control bytes as <xx>."""
    chars = []
    for byte in data:
        if byte == 0x0A or 0x20 <= byte < 0x7F:
            chars.append(chr(byte))
        else:
            chars.append(f"<{byte:02x}>")
    return "".join(chars)


class ConsolePrinter(Escpos):
    """Mock printer that writes a textual simulation of every command."""

    def __init__(self, stream=None, *args, **kwargs):
        Escpos.__init__(self, *args, **kwargs)
        self.stream = stream

    def open(self, raise_not_found: bool = True) -> None:
        pass

    def close(self) -> None:
        pass

    def _raw(self, msg: bytes) -> None:
        stream = self.stream or sys.stdout
        stream.write(simulate(msg))
        stream.flush()


def check_encoding(encoding: str) -> str:
    """Return the encoding name, or raise LookupError if it cannot encode text."""
    "".encode(encoding)
    return encoding


class PrintSink:
    """Exclusive owner of one printer. Not thread-safe; callers serialize access."""

    def __init__(self, printer: Escpos, encoding: str = DEFAULT_ENCODING):
        try:
            check_encoding(encoding)
        except LookupError as e:
            raise DeviceError(f"Unknown encoding: {encoding!r}") from e
        self.printer = printer
        self.encoding = encoding

    @device_errors
    def initialize(self) -> None:
        """Reset the printer (ESC @). Safe to call repeatedly."""
        self.printer.hw("INIT")

    @device_errors
    def render(self, ticket: Ticket) -> None:
        """Print a ticket: large bold header, blank line, body, feed and cut."""
        p = self.printer
        self.initialize()

        p.set(bold=True, smooth=True, double_height=True, double_width=True)
        p._raw(ticket.header.encode(self.encoding, errors="replace") + b"\n")
        p.set(bold=False, smooth=False, normal_textsize=True)
        p.ln()

        # Body goes out as-is, control characters included
        p._raw(ticket.body.encode(self.encoding, errors="replace") + b"\n")

        p.ln(2)
        p.cut()


def parse_usb_ids(value: str):
    """Parse "vendor:product[:out_ep:in_ep]" (hex) into a tuple of four ints or Nones.

    e.g. 0x0456:0x0808 or 0x154f:0x154f:0x02:0x82
    """
    parts = value.split(":")
    if len(parts) not in (2, 4):
        raise ValueError(f"expected VID:PID or VID:PID:OUT:IN, got {value!r}")
    vendor_id = int(parts[0], 16)
    product_id = int(parts[1], 16)
    if len(parts) == 4:
        return vendor_id, product_id, int(parts[2], 16), int(parts[3], 16)
    return vendor_id, product_id, None, None


def _usb_string(device, attr: str) -> str:
    try:
        return getattr(device, attr) or ""
    except (usb.core.USBError, ValueError, NotImplementedError):
        # Descriptor strings need access rights on most systems
        return ""


def list_usb_devices() -> list:
    """Log every attached USB device and return them."""
    try:
        devices = list(usb.core.find(find_all=True))
    except usb.core.NoBackendError as e:
        logger.warning("Cannot list USB devices: %s", e)
        return []

    for device in devices:
        logger.info(
            "Bus: %03d address: %03d VID: %04x PID: %04x "
            "Manufacturer: %s Product: %s S/N: %s",
            device.bus,
            device.address,
            device.idVendor,
            device.idProduct,
            _usb_string(device, "manufacturer"),
            _usb_string(device, "product"),
            _usb_string(device, "serial_number"),
        )
    return devices


@device_errors
def create_printer() -> Escpos:
    """Create and open a printer instance based on config."""
    mode = config.get("mode")

    if mode == MODE_MOCK:
        return ConsolePrinter()

    if mode == MODE_NETWORK:
        host = config.get("host")
        if not host:
            raise DeviceError("Network mode requires a printer host")
        printer = Network(
            host,
            port=config["port"],
            timeout=config.get("timeout", DEFAULT_NETWORK_TIMEOUT),
        )
        printer.open()
        return printer

    if mode == MODE_USB:
        list_usb_devices()
        kwargs = {}
        if config.get("usb_out_ep") is not None:
            kwargs["out_ep"] = config["usb_out_ep"]
        if config.get("usb_in_ep") is not None:
            kwargs["in_ep"] = config["usb_in_ep"]
        printer = Usb(config["usb_vendor_id"], config["usb_product_id"], **kwargs)
        printer.open()
        return printer

    raise DeviceError(f"Unknown printer mode: {mode!r}")
