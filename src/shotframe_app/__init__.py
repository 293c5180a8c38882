"""Shotframe application layer: IPC server and command-line entry point."""

__version__ = "0.3.0"
