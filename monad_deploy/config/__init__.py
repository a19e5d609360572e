"""
Configuration package for monad-deploy.
"""

from monad_deploy.config.network import (
    CHAINS,
    DEFAULT_CHAIN,
    GAS_LIMIT_BUFFER,
    get_chain_config,
    get_chain_id,
    get_rpc_url,
    get_explorer_url,
    get_tx_url,
    get_address_url,
)

from monad_deploy.config.settings import (
    DEFAULT_SOLIDITY_VERSION,
    DEFAULT_OPTIMIZATION_RUNS,
    DeployMode,
    Settings,
    VersionPolicy,
    load_settings,
)

from monad_deploy.config.abis import (
    ERC20_ABI
)

__all__ = [
    # Network
    'CHAINS',
    'DEFAULT_CHAIN',
    'GAS_LIMIT_BUFFER',
    'get_chain_config',
    'get_chain_id',
    'get_rpc_url',
    'get_explorer_url',
    'get_tx_url',
    'get_address_url',

    # Settings
    'DEFAULT_SOLIDITY_VERSION',
    'DEFAULT_OPTIMIZATION_RUNS',
    'DeployMode',
    'Settings',
    'VersionPolicy',
    'load_settings',

    # ABIs
    'ERC20_ABI',
]
