"""Apple Offline Finding BLE advertisement dissector."""

__version__ = "1.1.1"
