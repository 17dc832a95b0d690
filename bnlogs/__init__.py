"""bnlogs: fan-out log tailer for Internet Computer API boundary nodes.

Opens one WebSocket connection per boundary node, keeps each alive with its
own ping ticker, strips terminal control sequences from every payload, and
multiplexes the resulting lines onto standard output.  Connections fail
independently and are never retried.
"""

__version__ = "0.1.0"
__description__ = "WebSocket client for Internet Computer API boundary node logs"

from bnlogs.core.sanitizer import sanitize_payload, strip_control_sequences
from bnlogs.core.session import ConnectionSession
from bnlogs.core.supervisor import FanoutSupervisor

__all__ = [
    "ConnectionSession",
    "FanoutSupervisor",
    "sanitize_payload",
    "strip_control_sequences",
    "__version__",
]
