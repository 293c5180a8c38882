"""IPC server for the Shotframe front end.

This module implements a JSON-RPC-like protocol over stdin/stdout.

Protocol:
- Each message is a single line of JSON terminated by newline
- Request format: {"id": "...", "method": "...", "params": {...}}
- Response format: {"id": "...", "success": true/false, "result": ..., "error": ...}
- Event format: {"type": "event", "name": "...", "payload": {...}}

Requests run on a worker pool so a long interactive capture never holds up
other requests. Handlers may be plain functions or coroutines; a coroutine
handler gets its own event loop on the worker thread.
"""

import asyncio
import inspect
import json
import logging
import sys
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, TextIO

from src.core.errors import CaptureCancelled
from src.core.logging import log_exception
from src.shotframe_app import __version__
from src.shotframe_app.context import AppContext
from src.shotframe_app.ipc.models import BackendStatus, IPCEvent, IPCRequest, IPCResponse

logger = logging.getLogger(__name__)

MAX_WORKERS = 4

Handler = Callable[[AppContext, dict[str, Any]], Any]

# Handler registry
_handlers: dict[str, Handler] = {}


def handler(method: str) -> Callable[[Handler], Handler]:
    """Decorator to register an IPC method handler."""

    def decorator(func: Handler) -> Handler:
        _handlers[method] = func
        return func

    return decorator


def _register_handlers() -> None:
    """Import handler modules so their @handler decorators run."""
    from src.shotframe_app.ipc import capture_handlers, permissions_handlers  # noqa: F401


@handler("ping")
def handle_ping(context: AppContext, params: dict[str, Any]) -> str:
    """Simple ping handler for connection testing."""
    return "pong"


@handler("get_status")
def handle_get_status(context: AppContext, params: dict[str, Any]) -> dict[str, Any]:
    """Return backend status information."""
    import time

    status = BackendStatus(
        version=__version__,
        running=context.running,
        uptime_seconds=time.time() - context.start_time,
        python_version=f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        capture_in_progress=context.lock.locked,
    )
    return status.model_dump()


@handler("shutdown")
def handle_shutdown(context: AppContext, params: dict[str, Any]) -> str:
    """Signal the server to shut down gracefully."""
    context.running = False
    return "shutting_down"


def process_request(request_data: dict[str, Any], context: AppContext) -> IPCResponse:
    """Process a single IPC request and return a response."""
    try:
        request = IPCRequest.model_validate(request_data)
    except Exception as e:
        return IPCResponse(
            id=str(request_data.get("id", "unknown")),
            success=False,
            error=f"Invalid request format: {e}",
        )

    handler_func = _handlers.get(request.method)
    if handler_func is None:
        return IPCResponse(
            id=request.id,
            success=False,
            error=f"Unknown method: {request.method}",
        )

    try:
        if inspect.iscoroutinefunction(handler_func):
            result = asyncio.run(handler_func(context, request.params))
        else:
            result = handler_func(context, request.params)
        return IPCResponse(id=request.id, success=True, result=result)
    except CaptureCancelled as e:
        logger.info(f"{request.method}: {e}")
        return IPCResponse(id=request.id, success=False, error=str(e), cancelled=True)
    except Exception as e:
        log_exception(logger, f"Error handling {request.method}", e, method=request.method)
        return IPCResponse(id=request.id, success=False, error=str(e))


class ResponseWriter:
    """Serializes writes of responses and events from worker threads."""

    def __init__(self, stream: TextIO):
        self.stream = stream
        self._lock = threading.Lock()

    def write_line(self, line: str) -> None:
        with self._lock:
            self.stream.write(line + "\n")
            self.stream.flush()

    def send_response(self, response: IPCResponse) -> None:
        try:
            line = response.model_dump_json()
        except (ValueError, TypeError) as e:
            log_exception(logger, f"Failed to serialize response {response.id}", e)
            line = IPCResponse(
                id=response.id, success=False, error=f"Failed to serialize result: {e}"
            ).model_dump_json()
        self.write_line(line)

    def send_result(self, request_id: str, future: Future) -> None:
        """Done-callback for a worker future; always answers the request."""
        try:
            response = future.result()
        except Exception as e:
            log_exception(logger, f"Worker failed for request {request_id}", e)
            response = IPCResponse(id=request_id, success=False, error=str(e))
        self.send_response(response)

    def send_event(self, name: str, payload: dict[str, Any]) -> None:
        self.write_line(IPCEvent(name=name, payload=payload).model_dump_json())


def run_server(
    context: AppContext | None = None,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> None:
    """Run the IPC server until shutdown or stdin is closed.

    Args:
        context: Application context (built from the environment if None)
        stdin: Request stream (sys.stdin by default)
        stdout: Response stream (sys.stdout by default)
    """
    stdin = stdin or sys.stdin
    writer = ResponseWriter(stdout or sys.stdout)

    context = context or AppContext.create()
    context.emit = writer.send_event
    context.running = True

    _register_handlers()
    logger.info("IPC server starting")

    writer.write_line(json.dumps({"type": "ready", "version": __version__}))

    executor = ThreadPoolExecutor(max_workers=MAX_WORKERS, thread_name_prefix="ipc-worker")
    try:
        while context.running:
            try:
                line = stdin.readline()
            except KeyboardInterrupt:
                logger.info("Keyboard interrupt, shutting down")
                break

            if not line:
                logger.info("stdin closed, shutting down")
                break

            line = line.strip()
            if not line:
                continue

            try:
                request_data = json.loads(line)
            except json.JSONDecodeError as e:
                writer.send_response(IPCResponse(id="unknown", success=False, error=f"Invalid JSON: {e}"))
                continue

            if not isinstance(request_data, dict):
                writer.send_response(
                    IPCResponse(id="unknown", success=False, error="Request must be a JSON object")
                )
                continue

            if request_data.get("method") == "shutdown":
                # Answer inline so the loop sees the flag before reading again
                writer.send_response(process_request(request_data, context))
                continue

            request_id = str(request_data.get("id", "unknown"))
            future = executor.submit(process_request, request_data, context)
            future.add_done_callback(lambda done, rid=request_id: writer.send_result(rid, done))
    finally:
        executor.shutdown(wait=True)
        logger.info("IPC server stopped")
