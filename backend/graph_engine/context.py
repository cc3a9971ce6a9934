"""
Per-run execution context passed to node executors.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from flow_control import OutputSink
from .data_store import NodeResultStore
from .identity import SignerResolver


@dataclass
class ExecutionContext:
    rpc_endpoint: str
    sink: OutputSink
    signer: Optional[SignerResolver] = None
    dry_run: bool = False
    verbose: bool = False

    def __post_init__(self):
        self.results = NodeResultStore()

    @property
    def has_signer(self) -> bool:
        return self.signer is not None and self.signer.is_available()
