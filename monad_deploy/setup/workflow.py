"""
Compile-and-deploy pipeline shared by the CLI, the MCP tools and the isolated worker.

    source -> version policy -> contract name -> compile -> deploy -> artifact
"""
from __future__ import annotations

import logging
from typing import Any, Sequence

from eth_account.signers.local import LocalAccount
from web3 import Web3

from ..config.settings import DeployMode, Settings, VersionPolicy
from ..exceptions import MonadDeployError
from ..helpers.compiler import SolidityCompiler
from ..helpers.solidity_source import apply_version_policy, extract_contract_name
from ..helpers.web3_setup import get_web3_instance
from .artifacts import Artifact, ArtifactStore
from .deployer import Deployer, DeploymentResult, load_account

logger = logging.getLogger(__name__)

__all__ = ["compile_and_deploy"]


def _error_message(e: MonadDeployError) -> str:
    suggestion = getattr(e, "suggestion", None)
    return f"{e}\n{suggestion}" if suggestion else str(e)


def compile_and_deploy(
    source: Any,
    settings: Settings,
    *,
    constructor_args: Sequence[Any] = (),
    contract_name: str | None = None,
    save_artifacts: bool = True,
    policy: VersionPolicy | None = None,
    w3: Web3 | None = None,
    account: LocalAccount | None = None,
    compiler: SolidityCompiler | None = None,
    store: ArtifactStore | None = None,
) -> DeploymentResult:
    """
    Run the whole pipeline and report the outcome.

    Args:
        source: Solidity source text
        settings: Process settings
        constructor_args: Constructor arguments (strings are converted to ABI types)
        contract_name: Contract to deploy; taken from the source when omitted
        save_artifacts: Persist an artifact after a successful live deployment
        policy: Overrides ``settings.version_policy``
        w3, account, compiler, store: Injected collaborators (built from settings when None)

    Returns:
        DeploymentResult; failures are reported in the result, never raised
    """
    policy = policy or settings.version_policy
    name = contract_name
    try:
        pinned = apply_version_policy(source, settings.solidity_version, policy)
        name = contract_name or extract_contract_name(pinned)

        if settings.deploy_mode is DeployMode.MOCK:
            deployer = Deployer(None, None, chain=settings.chain, mode=DeployMode.MOCK)
        else:
            account = account or load_account(settings.require_private_key())
            w3 = w3 or get_web3_instance(settings.rpc_url, settings.chain)
            deployer = Deployer(
                w3,
                account,
                chain=settings.chain,
                receipt_timeout=settings.receipt_timeout,
            )

        compiler = compiler or SolidityCompiler(settings.solidity_version, settings.optimization_runs)
        logger.info(f"Compiling {name} with solc {settings.solidity_version}")
        output = compiler.compile(pinned, name, allow_fallback=contract_name is None)
    except MonadDeployError as e:
        logger.error(f"Deployment of {name or 'contract'} aborted: {e}")
        return DeploymentResult(success=False, contract_name=name, error=_error_message(e))

    result = deployer.deploy(output.abi, output.bytecode, constructor_args, output.contract_name)
    if not result.success:
        return result

    if not save_artifacts:
        return result
    if settings.deploy_mode is DeployMode.MOCK:
        logger.info("Mock deployment, artifact not saved")
        return result

    store = store or ArtifactStore(settings.artifacts_dir)
    artifact = Artifact(
        contract_name=output.contract_name,
        address=result.address,
        abi=output.abi,
        transaction_hash=result.transaction_hash,
        network=settings.network_name,
        chain_id=settings.chain_id,
        explorer_url=result.explorer_url,
    )
    try:
        result.artifact_path = str(store.save(artifact))
    except OSError as e:
        logger.error(f"Contract deployed but artifact could not be saved: {e}")
    return result
