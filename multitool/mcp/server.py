import sys
import json
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Dict, Any, BinaryIO, Callable, TextIO

from .protocol import INTERNAL_ERROR, SERVER_BUSY
from .state import _TRANSPORT_CLOSED, _RPC_WRITE_LOCK, _DISPATCH_EXECUTOR_LOCK

logger = logging.getLogger("MultiTool.mcp.server")


class McpServer:
    """
    JSON-RPC over stdio with optional thread-pooled dispatch.
    """
    def __init__(
        self,
        dispatch_fn: Callable[[Dict[str, Any]], None],
        max_workers: int = 4,
        queue_limit: Optional[int] = None,
        output: Optional[TextIO] = None,
    ):
        self.dispatch_fn = dispatch_fn
        self.max_workers = max(1, max_workers)
        self.queue_limit = max(self.max_workers, queue_limit or self.max_workers * 8)
        self.output = output

        self.transport_closed = _TRANSPORT_CLOSED
        self.write_lock = _RPC_WRITE_LOCK

        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = _DISPATCH_EXECUTOR_LOCK
        self._queue_semaphore = threading.BoundedSemaphore(self.queue_limit)

    def get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers,
                    thread_name_prefix="multitool-mcp-dispatch",
                )
            return self._executor

    def stop(self) -> None:
        """Shut down the dispatcher and close transport."""
        self.transport_closed.set()
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=False, cancel_futures=True)
                self._executor = None

    def send_rpc(self, message: Dict[str, Any]) -> None:
        """Serialize and send a JSON-RPC message as one line."""
        if self.transport_closed.is_set():
            return

        stream = self.output or sys.stdout
        try:
            serialized = json.dumps(message, ensure_ascii=False)
            with self.write_lock:
                if self.transport_closed.is_set():
                    return
                stream.write(serialized + "\n")
                stream.flush()
        except (BrokenPipeError, OSError) as exc:
            self.transport_closed.set()
            logger.warning("MCP stdio transport closed while sending: %s", exc)

    def send_result(self, msg_id: Any, result: Dict[str, Any]) -> None:
        self.send_rpc({"jsonrpc": "2.0", "id": msg_id, "result": result})

    def send_error(self, msg_id: Any, code: int, message: str) -> None:
        """Convenience method for sending JSON-RPC errors."""
        self.send_rpc({
            "jsonrpc": "2.0",
            "id": msg_id,
            "error": {
                "code": code,
                "message": message,
            },
        })

    def read_message(self, stream: BinaryIO) -> Optional[Dict[str, Any]]:
        """
        Read one inbound JSON-RPC message from a binary stream.
        Supports Content-Length framing and newline-delimited JSON.
        Malformed payloads are skipped; ``None`` means end of stream.
        """
        while True:
            line = stream.readline()
            if not line:
                return None
            if not line.strip():
                continue

            if line.lower().startswith(b"content-length:"):
                try:
                    content_length = int(line.split(b":", 1)[1].strip())
                    if content_length <= 0:
                        raise ValueError("content length must be positive")
                except ValueError:
                    logger.warning("Invalid Content-Length header: %r", line)
                    if not self._consume_framing_headers(stream):
                        return None
                    continue

                if not self._consume_framing_headers(stream):
                    return None

                payload = stream.read(content_length)
                if not payload or len(payload) != content_length:
                    return None
                msg = self._decode(payload)
            else:
                msg = self._decode(line)

            if msg is not None:
                return msg

    def _decode(self, raw: bytes) -> Optional[Dict[str, Any]]:
        try:
            msg = json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.debug("Skipping malformed JSON-RPC payload (%d bytes)", len(raw))
            return None
        return msg if isinstance(msg, dict) else None

    def _consume_framing_headers(self, stream: BinaryIO) -> bool:
        while True:
            header_line = stream.readline()
            if not header_line:
                return False
            if header_line in (b"\r\n", b"\n"):
                return True

    def submit_dispatch(self, msg: Dict[str, Any]) -> bool:
        """Submit a message for background dispatch if a slot is available."""
        if not self._queue_semaphore.acquire(blocking=False):
            msg_id = msg.get("id")
            if msg_id is not None:
                self.send_error(msg_id, SERVER_BUSY, "Server busy: dispatch queue is saturated.")
            else:
                logger.warning("Dropping notification while dispatch queue is saturated: %s", msg.get("method"))
            return False

        try:
            future = self.get_executor().submit(self.dispatch_guarded, msg)
        except RuntimeError:
            self._queue_semaphore.release()
            raise

        future.add_done_callback(lambda f: self._queue_semaphore.release())
        return True

    def dispatch_guarded(self, msg: Dict[str, Any]) -> None:
        try:
            self.dispatch_fn(msg)
        except Exception:
            logger.exception("Unexpected error during RPC dispatch")
            msg_id = msg.get("id")
            if msg_id is not None and not self.transport_closed.is_set():
                self.send_error(msg_id, INTERNAL_ERROR, "Internal error during request dispatch.")
