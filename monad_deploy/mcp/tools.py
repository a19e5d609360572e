"""
MCP tool handlers.

Each handler validates its payload with a pydantic model, runs the blocking
workflow and returns the JSON-ready response envelope. Handlers never raise:
every failure is reported as ``{"success": False, "error": ...}``.
The FastMCP wiring lives in ``monad_deploy.mcp.server``.
"""
from __future__ import annotations

import json
import logging
import subprocess
import sys
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as InputValidationError
from web3 import Web3

from ..commands.balance import get_native_balance
from ..commands.send_token import TokenSender
from ..config.settings import Settings
from ..exceptions import MonadDeployError
from ..helpers.web3_setup import get_web3_instance
from ..setup.deployer import load_account
from ..setup.workflow import compile_and_deploy

logger = logging.getLogger(__name__)

# Extra time on top of the receipt timeout for compiler download + compilation
ISOLATED_GRACE_SECONDS = 120


# ============================================================================
# Pydantic Input Models
# ============================================================================

class DeployContractInput(BaseModel):
    """Input for the deploy-contract tool."""
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    source_code: str = Field(
        ...,
        alias="sourceCode",
        description="Solidity source code; the pragma is pinned to the configured compiler version",
        min_length=1,
    )
    constructor_args: List[Any] = Field(
        default_factory=list,
        alias="constructorArgs",
        description="Constructor arguments in declaration order",
    )
    contract_name: Optional[str] = Field(
        default=None,
        alias="contractName",
        description="Contract to deploy; the first declared contract when omitted",
    )
    save_artifacts: bool = Field(
        default=True,
        alias="saveArtifacts",
        description="Write a deployment artifact on success",
    )
    isolated: bool = Field(
        default=False,
        description="Run the deployment in a separate worker process",
    )

    @field_validator("constructor_args", mode="before")
    @classmethod
    def none_means_no_args(cls, v):
        return [] if v is None else v


class SendTokenInput(BaseModel):
    """Input for the send-token tool."""
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    token_address: str = Field(
        ...,
        alias="tokenAddress",
        description="ERC20 token contract address",
    )
    recipients: List[str] = Field(
        ...,
        description="Recipient addresses",
        min_length=1,
    )
    amount: Union[str, float, int] = Field(
        ...,
        description="Amount per recipient in whole tokens (e.g. '1.5')",
    )

    @field_validator("amount")
    @classmethod
    def amount_positive(cls, v):
        try:
            positive = float(v) > 0
        except (TypeError, ValueError):
            raise ValueError(f"amount must be a number, got {v!r}")
        if not positive:
            raise ValueError("amount must be greater than 0")
        return v


class GetBalanceInput(BaseModel):
    """Input for the get-mon-balance tool."""
    model_config = ConfigDict(str_strip_whitespace=True)

    address: str = Field(
        ...,
        description="Monad testnet address to check the balance of",
        min_length=1,
    )


def _input_error(exc: InputValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", ""))
    return "Invalid input: " + "; ".join(parts)


def _failure(message: str) -> dict[str, Any]:
    return {"success": False, "error": message}


# ============================================================================
# Handlers
# ============================================================================

def run_isolated(request: dict[str, Any], timeout: float) -> dict[str, Any]:
    """Run one deployment through ``monad_deploy.setup.deploy_worker`` in a child process."""
    try:
        proc = subprocess.run(
            [sys.executable, "-m", "monad_deploy.setup.deploy_worker"],
            input=json.dumps(request),
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        logger.error(f"Isolated deployment timed out after {timeout:.0f}s")
        return _failure(f"Deployment timed out after {timeout:.0f}s")

    try:
        response = json.loads(proc.stdout)
    except json.JSONDecodeError:
        stderr_tail = (proc.stderr or "")[-500:]
        logger.error(f"Deploy worker exited with {proc.returncode} and no JSON output: {stderr_tail}")
        return _failure(f"Deploy worker failed with exit code {proc.returncode}: {stderr_tail}")

    if not isinstance(response, dict):
        return _failure("Deploy worker returned an unexpected response")
    return response


def handle_deploy_contract(payload: dict[str, Any], settings: Settings) -> dict[str, Any]:
    """Compile and deploy ``payload["sourceCode"]``; returns the response envelope."""
    try:
        params = DeployContractInput.model_validate(payload)
    except InputValidationError as e:
        return _failure(_input_error(e))

    logger.info(f"deploy-contract: {params.contract_name or 'auto-detect'} (isolated={params.isolated})")
    try:
        if params.isolated:
            request = {
                "sourceCode": params.source_code,
                "constructorArgs": params.constructor_args,
                "contractName": params.contract_name,
                "saveArtifacts": params.save_artifacts,
            }
            return run_isolated(request, timeout=settings.receipt_timeout + ISOLATED_GRACE_SECONDS)

        result = compile_and_deploy(
            params.source_code,
            settings,
            constructor_args=params.constructor_args,
            contract_name=params.contract_name,
            save_artifacts=params.save_artifacts,
        )
        return result.to_dict()
    except Exception as e:
        logger.error(f"deploy-contract failed: {e}", exc_info=True)
        return _failure(str(e))


def handle_send_token(
    payload: dict[str, Any],
    settings: Settings,
    sender: TokenSender | None = None,
) -> dict[str, Any]:
    """Send ``amount`` whole tokens to every recipient; returns the response envelope."""
    try:
        params = SendTokenInput.model_validate(payload)
    except InputValidationError as e:
        return _failure(_input_error(e))

    logger.info(f"send-token: {params.amount} of {params.token_address} to {len(params.recipients)} recipient(s)")
    try:
        if sender is None:
            account = load_account(settings.require_private_key())
            w3 = get_web3_instance(settings.rpc_url, settings.chain)
            sender = TokenSender(w3, account, chain=settings.chain, receipt_timeout=settings.receipt_timeout)
        result = sender.send_human_amount(params.token_address, params.recipients, params.amount)
        return result.to_dict()
    except MonadDeployError as e:
        logger.error(f"send-token rejected: {e}")
        return _failure(str(e))
    except Exception as e:
        logger.error(f"send-token failed: {e}", exc_info=True)
        return _failure(str(e))


def handle_get_mon_balance(
    payload: dict[str, Any],
    settings: Settings,
    w3: Web3 | None = None,
) -> dict[str, Any]:
    """Native balance of ``payload["address"]``; needs no private key."""
    try:
        params = GetBalanceInput.model_validate(payload)
    except InputValidationError as e:
        return _failure(_input_error(e))

    try:
        w3 = w3 or get_web3_instance(settings.rpc_url, settings.chain)
        return get_native_balance(w3, params.address, settings.chain).to_dict()
    except MonadDeployError as e:
        logger.error(f"get-mon-balance failed: {e}")
        return _failure(str(e))
    except Exception as e:
        logger.error(f"get-mon-balance failed: {e}", exc_info=True)
        return _failure(str(e))
