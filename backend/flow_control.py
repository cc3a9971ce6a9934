"""
Flow Control Hub - Centralized routing for values emitted by output nodes.

Output nodes never print or log directly. They hand a SinkRecord to the sink
injected into the execution context, and the hub decides where it goes:
the application log, an in-memory buffer, a callback, or several at once.

Memory buffers keep records in emission order, and the hub counts every
routing outcome per destination.
"""

import inspect
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol

from utils.logging_utils import compact_json

logger = logging.getLogger(__name__)


# ============================================================================
# Data Flow Models
# ============================================================================

class FlowDestination(Enum):
    """Supported destinations for emitted values."""
    LOG = "log"                    # Write to the application log
    MEMORY = "memory"              # Keep in memory only
    CALLBACK = "callback"          # Hand to a user callback
    BROADCAST = "broadcast"        # Log, keep and call back


@dataclass
class SinkRecord:
    """A value emitted by an output node."""
    node_id: str
    label: str
    value: Any
    sequence_num: int = 0          # Emission order within the run
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'node_id': self.node_id,
            'label': self.label,
            'value': self.value,
            'sequence_num': self.sequence_num,
            'metadata': self.metadata,
        }


@dataclass
class FlowConfig:
    """Configuration for sink routing."""
    destination: FlowDestination = FlowDestination.LOG
    callback: Optional[Callable] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class OutputSink(Protocol):
    async def emit(self, record: SinkRecord) -> bool:
        ...


# ============================================================================
# Flow Control Hub
# ============================================================================

class FlowControlHub:
    """
    Output sink that routes records according to a FlowConfig.

    Example Usage:
        hub = FlowControlHub(create_flow_config("memory"))
        ctx = ExecutionContext(rpc_endpoint=url, sink=hub)
        ...
        hub.records  # every value emitted by output nodes, in order
    """

    def __init__(self, config: Optional[FlowConfig] = None):
        self.config = config or FlowConfig()
        self.records: List[SinkRecord] = []
        self._stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> Dict[str, int]:
        return {
            'total_routed': 0,
            'log_writes': 0,
            'memory_writes': 0,
            'callback_invocations': 0,
            'errors': 0,
        }

    async def emit(self, record: SinkRecord) -> bool:
        """
        Route a single record to the configured destination.

        Returns:
            True if routing succeeded. Failures are logged and counted.
        """
        cfg = self.config

        if cfg.destination == FlowDestination.LOG:
            success = self._route_to_log(record)
        elif cfg.destination == FlowDestination.MEMORY:
            success = self._route_to_memory(record)
        elif cfg.destination == FlowDestination.CALLBACK:
            success = await self._route_to_callback(record, cfg.callback)
        elif cfg.destination == FlowDestination.BROADCAST:
            success = await self._route_to_broadcast(record, cfg)
        else:
            logger.warning("Unknown destination: %s", cfg.destination)
            success = False

        if success:
            self._stats['total_routed'] += 1
        else:
            self._stats['errors'] += 1
        return success

    # ========================================================================
    # Destination-Specific Routing
    # ========================================================================

    def _route_to_log(self, record: SinkRecord) -> bool:
        logger.info("%s: %s", record.label, compact_json(record.value))
        self._stats['log_writes'] += 1
        return True

    def _route_to_memory(self, record: SinkRecord) -> bool:
        self.records.append(record)
        self._stats['memory_writes'] += 1
        return True

    async def _route_to_callback(self, record: SinkRecord, callback: Optional[Callable]) -> bool:
        if not callback:
            logger.error("No callback provided for CALLBACK destination")
            return False

        try:
            if inspect.iscoroutinefunction(callback):
                await callback(record)
            else:
                callback(record)
        except Exception as e:
            logger.exception("Sink callback error for node %s: %s", record.node_id, e)
            return False

        self._stats['callback_invocations'] += 1
        return True

    async def _route_to_broadcast(self, record: SinkRecord, config: FlowConfig) -> bool:
        results = [self._route_to_log(record), self._route_to_memory(record)]
        if config.callback:
            results.append(await self._route_to_callback(record, config.callback))
        return any(results)

    # ========================================================================
    # Helper Methods
    # ========================================================================

    def get_stats(self) -> Dict[str, int]:
        return self._stats.copy()

    def reset(self):
        self.records.clear()
        self._stats = self._empty_stats()


# ============================================================================
# Convenience Functions
# ============================================================================

def create_flow_config(
    destination: str = "log",
    callback: Optional[Callable] = None,
    **metadata
) -> FlowConfig:
    """
    Build a FlowConfig from a destination name.

    ``destination`` is one of "log", "memory", "callback" or "broadcast";
    an unknown name raises KeyError. Extra keyword arguments become the
    config metadata.
    """
    return FlowConfig(
        destination=FlowDestination[destination.upper()],
        callback=callback,
        metadata=metadata,
    )
