from .executor import OperationExecutor
from .poller import PollingScheduler, PollingSession
from .state import OperationResult, SessionStatus
from .transport_task import TransportTask

__all__ = ["OperationExecutor",
           "PollingScheduler",
           "PollingSession",
           "OperationResult",
           "SessionStatus",
           "TransportTask"]
