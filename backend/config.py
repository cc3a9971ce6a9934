import os

DEFAULT_RPC_ENDPOINT = os.getenv("WORKFLOW_RPC_ENDPOINT", "https://api.mainnet-beta.solana.com")
RPC_COMMITMENT = os.getenv("WORKFLOW_RPC_COMMITMENT", "confirmed")
RPC_TIMEOUT = float(os.getenv("WORKFLOW_RPC_TIMEOUT", "30"))

# Worker threads used to run blocking RPC requests off the event loop
RPC_POOL_SIZE = int(os.getenv("WORKFLOW_RPC_POOL_SIZE", "4"))

HOST = os.getenv("WORKFLOW_HOST", "127.0.0.1")
PORT = int(os.getenv("WORKFLOW_PORT", "5000"))
