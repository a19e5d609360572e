"""
Network configuration for monad-deploy.

Contains RPC URLs and explorer endpoints for the supported chains.
Monad testnet is the default; a local dev node entry is kept for
anvil/hardhat style testing.
"""

from typing import Any


# =============================================================================
# CHAIN CONFIGURATIONS
# =============================================================================

CHAINS: dict[str, dict[str, Any]] = {
    "monad_testnet": {
        "chain_id": 10143,
        "name": "Monad Testnet",
        "network": "monad-testnet",
        "currency": "MON",
        "block_time": 1,
        "rpc_urls": [
            "https://testnet-rpc.monad.xyz",
        ],
        "explorer": {
            "name": "Monad Explorer",
            "url": "https://explorer.testnet.monad.xyz",
        },
    },
    "localhost": {
        "chain_id": 31337,
        "name": "Local Dev Node",
        "network": "localhost",
        "currency": "ETH",
        "block_time": 1,
        "rpc_urls": [
            "http://127.0.0.1:8545",
        ],
        "explorer": {
            "name": "None",
            "url": None,
        },
    },
}

DEFAULT_CHAIN = "monad_testnet"

# Chain ID to name mapping
CHAIN_ID_TO_NAME: dict[int, str] = {
    config["chain_id"]: name for name, config in CHAINS.items()
}

GAS_LIMIT_BUFFER: float = 1.1  # 10% buffer for gas limit estimates


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_chain_config(chain: str | int | None = None) -> dict[str, Any]:
    """Get configuration for a specific chain.

    Args:
        chain: Chain name (e.g., 'monad_testnet') or chain ID.
               If None, defaults to 'monad_testnet'.

    Returns:
        Chain configuration dictionary.

    Raises:
        ValueError: If chain is not supported.
    """
    if chain is None:
        chain = DEFAULT_CHAIN

    if isinstance(chain, int):
        name = CHAIN_ID_TO_NAME.get(chain)
        if name is None:
            raise ValueError(f"Unsupported chain ID: {chain}")
        chain = name

    chain = chain.lower().replace("-", "_")
    if chain not in CHAINS:
        raise ValueError(f"Unsupported chain: {chain}. Supported: {list(CHAINS.keys())}")

    return CHAINS[chain]


def get_rpc_url(chain: str | int | None = None) -> str:
    """Get the primary public RPC URL for a chain.

    Endpoint overrides from the environment are resolved by ``load_settings``.
    """
    config = get_chain_config(chain)
    return config["rpc_urls"][0]


def get_chain_id(chain: str | None = None) -> int:
    """Get the chain ID for a chain name."""
    config = get_chain_config(chain)
    return config["chain_id"]


def get_explorer_url(chain: str | int | None = None) -> str | None:
    """Get the block explorer URL for a chain."""
    config = get_chain_config(chain)
    return config["explorer"]["url"]


def get_tx_url(tx_hash: str, chain: str | int | None = None) -> str | None:
    """Explorer link for a transaction hash, or None when the chain has no explorer."""
    base = get_explorer_url(chain)
    if not base:
        return None
    return f"{base}/tx/{tx_hash}"


def get_address_url(address: str, chain: str | int | None = None) -> str | None:
    """Explorer link for an account or contract address."""
    base = get_explorer_url(chain)
    if not base:
        return None
    return f"{base}/address/{address}"
