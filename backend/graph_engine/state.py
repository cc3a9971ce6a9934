"""
Execution state tracking for workflow runs.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

ProgressListener = Callable[[Dict[str, Any]], None]


@dataclass
class ExecutionState:
    """
    Lightweight run tracker.

    Keeps the success/failure counters and the node currently executing,
    and mirrors them to an optional listener after every change.
    """

    total_nodes: int
    listener: Optional[ProgressListener] = None

    def __post_init__(self):
        self.start_time = time.perf_counter()
        self.success = 0
        self.failed = 0
        self.current_node_id = None

    def set_current_node(self, node_id: str) -> None:
        self.current_node_id = node_id
        self.update()

    def increment(self, success: bool = True) -> None:
        if success:
            self.success += 1
        else:
            self.failed += 1
        self.update()

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.start_time) * 1000

    def update(self, extra_progress: Dict[str, Any] | None = None) -> None:
        if self.listener is None:
            return
        progress_payload = {
            'progress': f"{self.success + self.failed}/{self.total_nodes}",
            'current_node_id': self.current_node_id,
            'success': self.success,
            'failed': self.failed,
        }
        if extra_progress:
            progress_payload.update(extra_progress)
        self.listener(progress_payload)
