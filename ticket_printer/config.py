"""Configuration defaults and global state."""

import os

# Printer modes
MODE_MOCK = "mock"
MODE_USB = "usb"
MODE_NETWORK = "network"

# Network printer defaults
DEFAULT_NETWORK_PORT = 9100
DEFAULT_NETWORK_TIMEOUT = 1  # seconds

# USB printer defaults (vendor:product)
DEFAULT_USB_VENDOR_ID = 0x0456
DEFAULT_USB_PRODUCT_ID = 0x0808

# Ticket defaults
DEFAULT_HEADER = "NEW MESSAGE"
DEFAULT_ENCODING = "cp437"

# Reconnection settings
COOLDOWN = 5  # seconds

# Logging
DEFAULT_LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG")

# Runtime configuration (populated by CLI)
config = {
    "url": None,
    "mode": MODE_USB,
    "host": None,
    "port": DEFAULT_NETWORK_PORT,
    "usb_vendor_id": DEFAULT_USB_VENDOR_ID,
    "usb_product_id": DEFAULT_USB_PRODUCT_ID,
    "usb_out_ep": None,
    "usb_in_ep": None,
    "cooldown": COOLDOWN,
    "encoding": DEFAULT_ENCODING,
}
