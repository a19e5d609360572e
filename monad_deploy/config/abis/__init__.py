"""
Contract ABI package for monad-deploy.
"""

from .erc20 import ERC20_ABI

__all__ = [
    # ERC20
    'ERC20_ABI',
]
