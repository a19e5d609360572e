"""
Helpers: Solidity source handling, compilation, web3 connection and contract calls.
"""
