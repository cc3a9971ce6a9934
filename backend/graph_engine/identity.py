"""
Local signer lookup.

Only presence is ever reported; key material is never read.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol, Union


class SignerResolver(Protocol):
    def is_available(self) -> bool:
        ...


class LocalSignerResolver:
    """Reports whether a keypair file is configured and present on disk."""

    def __init__(self, keypair_path: Optional[Union[str, Path]] = None):
        self.keypair_path = Path(keypair_path).expanduser() if keypair_path else None

    def is_available(self) -> bool:
        return self.keypair_path is not None and self.keypair_path.is_file()

    def __repr__(self) -> str:
        return f"LocalSignerResolver(configured={self.keypair_path is not None})"
