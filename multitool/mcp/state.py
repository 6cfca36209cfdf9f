import threading
from typing import Any, Dict

from .protocol import SUPPORTED_PROTOCOL_VERSIONS

# Global Session State
_SESSION_STATE: Dict[str, Any] = {
    "negotiated": False,
    "initialized": False,
    "protocol_version": SUPPORTED_PROTOCOL_VERSIONS[0],
    "client_capabilities": {},
    "client_info": {},
}

# Transport State
_TRANSPORT_CLOSED = threading.Event()

# RPC I/O locks
_RPC_WRITE_LOCK = threading.Lock()

# Dispatch locks
_DISPATCH_EXECUTOR_LOCK = threading.Lock()


def get_session_state() -> Dict[str, Any]:
    return _SESSION_STATE


def reset_session_state() -> None:
    _SESSION_STATE.clear()
    _SESSION_STATE.update({
        "negotiated": False,
        "initialized": False,
        "protocol_version": SUPPORTED_PROTOCOL_VERSIONS[0],
        "client_capabilities": {},
        "client_info": {},
    })
