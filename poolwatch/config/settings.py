import os
import pathlib
from typing import List, Mapping, Optional

from dotenv import load_dotenv

# .env lives at the project root, next to pyproject.toml
load_dotenv(dotenv_path=pathlib.Path(__file__).resolve().parents[2] / ".env")

FACTORY_ADDRESS = os.getenv("FACTORY_ADDRESS", "0x0BFbCF9fa4f9C56B0F40a671Ad40E0805A091865")

# Fee tiers in PancakeSwap V3, hundredths of a basis point
FEE_TIERS = (100, 500, 2500, 10000)

CACHE_DURATION = float(os.getenv("CACHE_DURATION", 5 * 60))     # seconds
UPDATE_INTERVAL = float(os.getenv("UPDATE_INTERVAL", 5 * 60))   # seconds
BATCH_SIZE = int(os.getenv("BATCH_SIZE", 5))
BATCH_DELAY = float(os.getenv("BATCH_DELAY", 0.5))              # seconds between batches

RPC_MAX_RETRIES = int(os.getenv("RPC_MAX_RETRIES", 3))
RPC_RETRY_BASE_DELAY = float(os.getenv("RPC_RETRY_BASE_DELAY", 1.0))
RPC_TIMEOUT = float(os.getenv("RPC_TIMEOUT", 30))
RPC_RATE_LIMIT = int(os.getenv("RPC_RATE_LIMIT", 0))            # requests per window, 0 = off
RPC_RATE_WINDOW = float(os.getenv("RPC_RATE_WINDOW", 1.0))

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3001))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

TOKENS_FILE = os.getenv("TOKENS_FILE", str(pathlib.Path(__file__).parent / "tokens.json"))

RPC_NODE_VARS = ("BSC_RPC_NODE_1", "BSC_RPC_NODE_2", "BSC_RPC_NODE_3")


def load_rpc_nodes(environ: Optional[Mapping[str, str]] = None) -> List[str]:
    """Collect RPC endpoint URLs from BSC_RPC_NODE_1..3 and RPC_NODES (comma separated)."""
    env = os.environ if environ is None else environ
    candidates = [env.get(name, "") for name in RPC_NODE_VARS]
    candidates += env.get("RPC_NODES", "").split(",")

    nodes: List[str] = []
    for url in candidates:
        url = (url or "").strip()
        if url and url not in nodes:
            nodes.append(url)
    return nodes


FACTORY_ABI = [
    {
        "inputs": [
            {"internalType": "address", "name": "tokenA", "type": "address"},
            {"internalType": "address", "name": "tokenB", "type": "address"},
            {"internalType": "uint24", "name": "fee", "type": "uint24"},
        ],
        "name": "getPool",
        "outputs": [{"internalType": "address", "name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    },
]

POOL_ABI = [
    {
        "inputs": [],
        "name": "slot0",
        "outputs": [
            {"internalType": "uint160", "name": "sqrtPriceX96", "type": "uint160"},
            {"internalType": "int24", "name": "tick", "type": "int24"},
            {"internalType": "uint16", "name": "observationIndex", "type": "uint16"},
            {"internalType": "uint16", "name": "observationCardinality", "type": "uint16"},
            {"internalType": "uint16", "name": "observationCardinalityNext", "type": "uint16"},
            {"internalType": "uint32", "name": "feeProtocol", "type": "uint32"},
            {"internalType": "bool", "name": "unlocked", "type": "bool"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {"name": "token0", "outputs": [{"type": "address"}],
     "inputs": [], "stateMutability": "view", "type": "function"},
    {"name": "token1", "outputs": [{"type": "address"}],
     "inputs": [], "stateMutability": "view", "type": "function"},
    {"name": "fee", "outputs": [{"type": "uint24"}],
     "inputs": [], "stateMutability": "view", "type": "function"},
    {"name": "liquidity", "outputs": [{"type": "uint128"}],
     "inputs": [], "stateMutability": "view", "type": "function"},
]

ERC20_DEC_ABI = [
    {"name": "decimals", "outputs": [{"type": "uint8"}],
     "inputs": [], "stateMutability": "view", "type": "function"},
    {"name": "symbol", "outputs": [{"type": "string"}],
     "inputs": [], "stateMutability": "view", "type": "function"},
]
