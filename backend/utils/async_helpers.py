"""
Worker threads for the blocking RPC transport.

SolanaRpcClient sends requests through a blocking requests.Session.
run_in_thread moves each call onto a shared, bounded pool so a run can await
it. The pool is created on first use; the host stops it at exit, and a later
call simply starts a fresh one.
"""

import asyncio
import functools
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Optional

from config import RPC_POOL_SIZE

logger = logging.getLogger(__name__)

_pool_lock = threading.Lock()
_rpc_pool: Optional[ThreadPoolExecutor] = None


def rpc_worker_pool() -> ThreadPoolExecutor:
    global _rpc_pool
    with _pool_lock:
        if _rpc_pool is None:
            _rpc_pool = ThreadPoolExecutor(max_workers=RPC_POOL_SIZE, thread_name_prefix="rpc_worker")
            logger.debug("Started %d RPC worker threads", RPC_POOL_SIZE)
        return _rpc_pool


async def run_in_thread(func: Callable, *args, **kwargs) -> Any:
    """Await ``func(*args, **kwargs)`` executed on an RPC worker thread."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(rpc_worker_pool(), functools.partial(func, *args, **kwargs))


def shutdown_rpc_workers(wait: bool = True) -> None:
    global _rpc_pool
    with _pool_lock:
        pool, _rpc_pool = _rpc_pool, None
    if pool is not None:
        logger.info("Stopping RPC worker threads")
        pool.shutdown(wait=wait)
