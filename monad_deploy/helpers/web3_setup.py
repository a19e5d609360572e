"""
Web3 setup helper - provides common web3 instance utilities.

Public API
----------
get_web3_instance(rpc_url=None, chain=DEFAULT_CHAIN)
    Return a Web3 instance connected to the specified RPC URL.
    Falls back to the chain's public RPC (see Settings.rpc_url for overrides).
"""
from __future__ import annotations

import logging

from web3 import Web3

from ..config.network import DEFAULT_CHAIN, get_rpc_url
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

__all__ = ["get_web3_instance"]


def get_web3_instance(rpc_url: str | None = None, chain: str = DEFAULT_CHAIN, timeout: int = 30) -> Web3:
    """
    Get a Web3 instance connected to the specified RPC URL.

    Args:
        rpc_url: Optional RPC URL, normally ``Settings.rpc_url``. If not
                 provided, uses the chain's default endpoint.
        chain: Chain key used to resolve the default endpoint
        timeout: HTTP request timeout in seconds

    Returns:
        Web3 instance

    Raises:
        ConfigurationError: If no RPC URL is available
    """
    if not rpc_url:
        try:
            rpc_url = get_rpc_url(chain)
        except ValueError as e:
            raise ConfigurationError(str(e))

    logger.debug(f"Connecting to {rpc_url}")
    return Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
