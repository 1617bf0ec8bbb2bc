"""Serial link building blocks: clocks, logging, synchronisation, serial ports and link layers."""

__version__ = "1.0.0"

__all__ = ["hal", "sync", "serial_port", "link_layer"]