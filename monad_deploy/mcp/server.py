"""
Monad Deploy MCP Server

FastMCP server exposing the compile/deploy workflow and ERC20 batch
transfers to AI agents.

Tools:
- deploy-contract: compile Solidity source and deploy it to Monad testnet
- send-token: send the same ERC20 amount to several recipients
- get-mon-balance: read the native MON balance of an address (no private key needed)

Every tool returns one JSON text. Logs go to stderr so stdout only carries
protocol frames.

Usage:
    monad-deploy-mcp
    # or
    python -m monad_deploy.mcp.server
"""

import json
import logging
from typing import Annotated, Any, List, Optional, Union

import anyio
from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from ..config.logging_config import get_server_logger
from ..config.settings import Settings, load_settings
from .tools import handle_deploy_contract, handle_get_mon_balance, handle_send_token

logger = logging.getLogger(__name__)

# Settings are read lazily so importing the module does not require a .env
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


# ============================================================================
# Initialize FastMCP Server
# ============================================================================

mcp = FastMCP("Monad Deploy")


@mcp.tool(
    name="get-mon-balance",
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        openWorldHint=True,
    )
)
async def get_mon_balance(
    address: Annotated[str, Field(description="Monad testnet address to check the balance of")],
) -> str:
    """
    Get the MON balance of an address on Monad testnet.

    Returns:
        JSON text:
        {
            "success": bool,
            "address": str,       # Checksummed address
            "balance": str,       # Whole MON, e.g. "1.5"
            "balanceWei": str,
            "symbol": "MON",
            "message": str,
            "error": str          # Only when success is false
        }
    """
    try:
        settings = get_settings()
    except Exception as e:
        logger.error(f"Configuration error: {e}")
        return json.dumps({"success": False, "error": str(e)})

    result = await anyio.to_thread.run_sync(lambda: handle_get_mon_balance({"address": address}, settings))
    return json.dumps(result)


@mcp.tool(
    name="deploy-contract",
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        openWorldHint=True,  # Sends transactions to a public network
    )
)
async def deploy_contract(
    sourceCode: Annotated[str, Field(description="Solidity source code to compile and deploy")],
    constructorArgs: Annotated[Optional[List[Any]], Field(description="Constructor arguments in order")] = None,
    contractName: Annotated[Optional[str], Field(description="Contract to deploy (default: first contract in the source)")] = None,
    saveArtifacts: Annotated[bool, Field(description="Save a deployment artifact")] = True,
    isolated: Annotated[bool, Field(description="Run the deployment in a separate worker process")] = False,
) -> str:
    """
    Compile Solidity source and deploy it to Monad testnet.

    The pragma is pinned to the configured compiler version (0.8.28 by default).

    Returns:
        JSON text:
        {
            "success": bool,
            "address": str,           # Deployed contract address
            "transactionHash": str,
            "contractName": str,
            "explorerUrl": str,
            "artifactPath": str,
            "error": str              # Only when success is false
        }
    """
    payload = {
        "sourceCode": sourceCode,
        "constructorArgs": constructorArgs,
        "contractName": contractName,
        "saveArtifacts": saveArtifacts,
        "isolated": isolated,
    }
    try:
        settings = get_settings()
    except Exception as e:
        logger.error(f"Configuration error: {e}")
        return json.dumps({"success": False, "error": str(e)})

    # Wrap sync call to prevent blocking event loop
    result = await anyio.to_thread.run_sync(lambda: handle_deploy_contract(payload, settings))
    return json.dumps(result)


@mcp.tool(
    name="send-token",
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=True,  # Moves funds
        openWorldHint=True,
    )
)
async def send_token(
    tokenAddress: Annotated[str, Field(description="ERC20 token contract address")],
    recipients: Annotated[List[str], Field(description="Recipient addresses")],
    amount: Annotated[Union[str, float, int], Field(description="Amount per recipient in whole tokens, e.g. '1.5'")],
) -> str:
    """
    Send the same amount of an ERC20 token to every recipient, one transfer at a time.

    Returns:
        JSON text:
        {
            "success": bool,      # true when at least one transfer went through
            "sent": [{"to": str, "txHash": str, "explorerUrl": str}],
            "failed": [{"to": str, "error": str}],
            "error": str          # "All transfers failed" or an input error
        }
    """
    payload = {"tokenAddress": tokenAddress, "recipients": recipients, "amount": amount}
    try:
        settings = get_settings()
    except Exception as e:
        logger.error(f"Configuration error: {e}")
        return json.dumps({"success": False, "error": str(e)})

    result = await anyio.to_thread.run_sync(lambda: handle_send_token(payload, settings))
    return json.dumps(result)


# ============================================================================
# Run Server
# ============================================================================

def main() -> None:
    settings = get_settings()
    get_server_logger(settings.log_dir)
    logger.info("=" * 60)
    logger.info("Monad Deploy MCP Server")
    logger.info(f"  Chain: {settings.chain} ({settings.chain_id})")
    logger.info(f"  Solidity: {settings.solidity_version}")
    logger.info(f"  Deploy mode: {settings.deploy_mode.value}")
    logger.info("  Tools: get-mon-balance, deploy-contract, send-token")
    logger.info("=" * 60)
    mcp.run()


if __name__ == "__main__":
    main()
