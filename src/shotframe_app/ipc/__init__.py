"""IPC module for communication with the Shotframe front end."""

from src.shotframe_app.ipc.models import BackendStatus, IPCEvent, IPCMethod, IPCRequest, IPCResponse
from src.shotframe_app.ipc.server import handler, process_request, run_server

__all__ = [
    "BackendStatus",
    "IPCEvent",
    "IPCMethod",
    "IPCRequest",
    "IPCResponse",
    "handler",
    "process_request",
    "run_server",
]
