"""
Minimal Solana JSON-RPC client used by the workflow runtime.

Each query is a single request/response round trip. Requests are issued
through a blocking ``requests.Session`` on the shared I/O thread pool so the
run loop can await them.
"""

import itertools
import logging
from typing import Any, Dict, List, Optional, Protocol

import requests

from config import RPC_COMMITMENT, RPC_TIMEOUT
from utils.async_helpers import run_in_thread

logger = logging.getLogger(__name__)


class RpcError(Exception):
    """Transport failure or JSON-RPC error response."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class RpcHandle(Protocol):
    """The read-only query surface executors may use."""

    endpoint: str

    async def get_balance(self, public_key: str) -> int: ...

    async def get_account_info(self, public_key: str) -> Optional[Dict[str, Any]]: ...

    async def get_slot(self) -> int: ...

    async def get_block_height(self) -> int: ...

    async def get_latest_blockhash(self) -> Dict[str, Any]: ...


class SolanaRpcClient:
    """JSON-RPC 2.0 over HTTP POST."""

    def __init__(self, endpoint: str, commitment: str = RPC_COMMITMENT, timeout: float = RPC_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.endpoint = endpoint
        self.commitment = commitment
        self.timeout = timeout
        self._session = session or requests.Session()
        self._ids = itertools.count(1)

    def _call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }
        logger.debug("RPC %s -> %s", method, self.endpoint)
        try:
            response = self._session.post(self.endpoint, json=payload, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            raise RpcError(f"{method} failed: {e}") from e
        except ValueError as e:
            raise RpcError(f"{method} returned a non-JSON response") from e

        if not isinstance(body, dict):
            raise RpcError(f"{method} returned an unexpected payload")
        error = body.get("error")
        if error:
            raise RpcError(f"{method} failed: {error.get('message', error)}", code=error.get("code"))
        return body.get("result")

    def _config(self, **extra) -> Dict[str, Any]:
        config = {"commitment": self.commitment}
        config.update(extra)
        return config

    @staticmethod
    def _value(result: Any) -> Any:
        if isinstance(result, dict) and "value" in result:
            return result["value"]
        return result

    async def get_balance(self, public_key: str) -> int:
        result = await run_in_thread(self._call, "getBalance", [public_key, self._config()])
        return int(self._value(result))

    async def get_account_info(self, public_key: str) -> Optional[Dict[str, Any]]:
        result = await run_in_thread(
            self._call, "getAccountInfo", [public_key, self._config(encoding="base64")]
        )
        return self._value(result)

    async def get_slot(self) -> int:
        return int(await run_in_thread(self._call, "getSlot", [self._config()]))

    async def get_block_height(self) -> int:
        return int(await run_in_thread(self._call, "getBlockHeight", [self._config()]))

    async def get_latest_blockhash(self) -> Dict[str, Any]:
        result = await run_in_thread(self._call, "getLatestBlockhash", [self._config()])
        return self._value(result)

    def close(self) -> None:
        self._session.close()

    def __repr__(self) -> str:
        return f"SolanaRpcClient({self.endpoint!r}, commitment={self.commitment!r})"
