from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from pathlib import Path
from typing import Any

from ..config.logging_config import get_cli_logger
from ..config.network import get_address_url
from ..config.settings import DeployMode, Settings, VersionPolicy, load_settings
from ..exceptions import CallErrorKind, ContractCallError, MonadDeployError
from ..helpers.contract_io import ContractHandle
from ..helpers.solidity_source import check_pragma, contract_name_from_path, normalize_pragma
from ..helpers.web3_setup import get_web3_instance
from ..commands.balance import get_native_balance
from ..commands.send_token import TokenSender
from .artifacts import ArtifactStore
from .deployer import load_account
from .workflow import compile_and_deploy

_KIND_HINTS = {
    CallErrorKind.NOT_OWNER: "Only the contract owner can call this function. Check PRIVATE_KEY.",
    CallErrorKind.UNAUTHORIZED: "The sending account is not authorized for this function.",
    CallErrorKind.INSUFFICIENT_FUNDS: "The account does not have enough MON to pay for gas.",
    CallErrorKind.NONCE: "Nonce conflict; wait for pending transactions and retry.",
    CallErrorKind.NETWORK: "Could not reach the RPC endpoint. Check MONAD_RPC_URL.",
}


def _settings(args: argparse.Namespace) -> Settings:
    settings = load_settings(args.env_file)
    overrides: dict[str, Any] = {}
    if getattr(args, "artifacts_dir", None):
        overrides["artifacts_dir"] = Path(args.artifacts_dir)
    if getattr(args, "strict", False):
        overrides["version_policy"] = VersionPolicy.STRICT
    if getattr(args, "mock", False):
        overrides["deploy_mode"] = DeployMode.MOCK
    if overrides:
        settings = dataclasses.replace(settings, **overrides)
    get_cli_logger(debug=args.debug, log_dir=settings.log_dir)
    return settings


def _read_source(path: str) -> str:
    p = Path(path)
    if not p.exists():
        raise MonadDeployError(f"Contract file not found: {p}")
    try:
        return p.read_text()
    except (OSError, UnicodeDecodeError) as e:
        raise MonadDeployError(f"Cannot read {p}: {e}") from e


def _plain(value: Any) -> Any:
    """Make call results JSON friendly."""
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def cmd_deploy(args: argparse.Namespace) -> int:
    try:
        settings = _settings(args)
        source = _read_source(args.path)
        result = compile_and_deploy(
            source,
            settings,
            constructor_args=args.args,
            contract_name=args.contract_name or contract_name_from_path(args.path),
            save_artifacts=not args.no_save,
        )
    except MonadDeployError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Unexpected error: {type(e).__name__}: {e}", file=sys.stderr)
        return 1

    if not result.success:
        print(f"Deployment failed: {result.error}", file=sys.stderr)
        if result.transaction_hash:
            print(f"Transaction: {result.transaction_hash}", file=sys.stderr)
        return 1

    print(f"Contract {result.contract_name} deployed at: {result.address}")
    print(f"Transaction: {result.transaction_hash}")
    if result.explorer_url:
        print(f"Explorer: {result.explorer_url}")
        print(f"Contract page: {get_address_url(result.address, settings.chain)}")
    if result.artifact_path:
        print(f"Artifact: {result.artifact_path}")
    return 0


def cmd_interact(args: argparse.Namespace) -> int:
    try:
        settings = _settings(args)
        artifact = ArtifactStore(settings.artifacts_dir).load(args.target)
        w3 = get_web3_instance(settings.rpc_url, settings.chain)
        account = load_account(settings.require_private_key()) if args.mode == "write" else None
        handle = ContractHandle.from_artifact(
            w3,
            artifact,
            account,
            chain=settings.chain,
            receipt_timeout=settings.receipt_timeout,
        )
        print(f"{artifact.contract_name} at {artifact.address}")

        if args.mode == "read":
            value = handle.read(args.function, *args.args)
            print(f"Result: {json.dumps(_plain(value), default=str)}")
        else:
            receipt = handle.write(args.function, *args.args)
            tx_hash = receipt.get("transactionHash")
            if isinstance(tx_hash, (bytes, bytearray)):
                tx_hash = "0x" + bytes(tx_hash).hex()
            print(f"Transaction confirmed in block {receipt.get('blockNumber')}: {tx_hash}")
        return 0
    except ContractCallError as e:
        print(f"Error: {e}", file=sys.stderr)
        hint = _KIND_HINTS.get(e.kind)
        if hint:
            print(hint, file=sys.stderr)
        if e.transaction_hash:
            print(f"Transaction: {e.transaction_hash}", file=sys.stderr)
        return 1
    except MonadDeployError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_check_version(args: argparse.Namespace) -> int:
    try:
        settings = _settings(args)
        source = _read_source(args.path)
    except MonadDeployError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    check = check_pragma(source, settings.solidity_version)
    if check.ok:
        print(check.message)
        return 0
    print(f"{check.message}. Required: {check.required}", file=sys.stderr)
    if check.suggestion:
        print(check.suggestion, file=sys.stderr)
    print(f"Run 'monad-deploy fix-version {args.path}' to fix it automatically.", file=sys.stderr)
    return 1


def cmd_fix_version(args: argparse.Namespace) -> int:
    try:
        settings = _settings(args)
        source = _read_source(args.path)
        fixed = normalize_pragma(source, settings.solidity_version)
        if fixed == source:
            print(f"{args.path} already declares solidity {settings.solidity_version}")
            return 0
        Path(args.path).write_text(fixed)
    except (MonadDeployError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"Updated {args.path} to pragma solidity {settings.solidity_version};")
    return 0


def cmd_send_token(args: argparse.Namespace) -> int:
    try:
        settings = _settings(args)
        account = load_account(settings.require_private_key())
        w3 = get_web3_instance(settings.rpc_url, settings.chain)
        sender = TokenSender(w3, account, chain=settings.chain, receipt_timeout=settings.receipt_timeout)
        result = sender.send_human_amount(args.token, args.recipients, args.amount)
    except MonadDeployError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Unexpected error: {type(e).__name__}: {e}", file=sys.stderr)
        return 1

    for outcome in result.sent:
        print(f"OK    {outcome.to} | {outcome.tx_hash}")
    for outcome in result.failed:
        print(f"FAIL  {outcome.to} | {outcome.error}", file=sys.stderr)
    if not result.success:
        print("All transfers failed", file=sys.stderr)
        return 1
    print(f"Sent to {len(result.sent)} of {len(result.sent) + len(result.failed)} recipient(s)")
    return 0


def cmd_balance(args: argparse.Namespace) -> int:
    try:
        settings = _settings(args)
        w3 = get_web3_instance(settings.rpc_url, settings.chain)
        result = get_native_balance(w3, args.address, settings.chain)
    except MonadDeployError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Balance for {result.address}: {result.formatted} {result.symbol}")
    return 0


def cmd_artifacts(args: argparse.Namespace) -> int:
    try:
        settings = _settings(args)
        artifacts = ArtifactStore(settings.artifacts_dir).list()
    except MonadDeployError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.format == "json":
        print(json.dumps({"artifacts": [a.to_dict() for a in artifacts]}, indent=2))
        return 0
    if not artifacts:
        print(f"No artifacts in {settings.artifacts_dir}")
        return 0
    for a in artifacts:
        print(f"{a.contract_name} | {a.address} | {a.network} | {a.deployed_at}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="monad-deploy",
        description="Compile, deploy and interact with Solidity contracts on Monad testnet",
    )
    parser.add_argument("--env-file", help="Path to .env file to load before resolving env vars")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    sub = parser.add_subparsers(dest="cmd")

    # deploy
    p_deploy = sub.add_parser("deploy", help="Compile a .sol file and deploy it")
    p_deploy.add_argument("path", help="Path to the Solidity file")
    p_deploy.add_argument("args", nargs="*", help="Constructor arguments")
    p_deploy.add_argument("--contract-name", help="Contract to deploy (default: file name)")
    p_deploy.add_argument("--no-save", action="store_true", help="Do not write a deployment artifact")
    p_deploy.add_argument("--strict", action="store_true", help="Reject a pragma that differs from the pinned version")
    p_deploy.add_argument("--mock", action="store_true", help="Return a canned deployment without touching the network")
    p_deploy.add_argument("--artifacts-dir", help="Artifact directory (default ARTIFACTS_DIR or ./artifacts)")
    p_deploy.set_defaults(func=cmd_deploy)

    # interact
    p_int = sub.add_parser("interact", help="Call a function on a deployed contract")
    p_int.add_argument("target", help="Contract name or 0x address from the artifact directory")
    p_int.add_argument("mode", choices=["read", "write"])
    p_int.add_argument("function", help="Function name")
    p_int.add_argument("args", nargs="*", help="Function arguments")
    p_int.add_argument("--artifacts-dir", help="Artifact directory (default ARTIFACTS_DIR or ./artifacts)")
    p_int.set_defaults(func=cmd_interact)

    # check-version
    p_check = sub.add_parser("check-version", help="Check that a contract declares the pinned Solidity version")
    p_check.add_argument("path", help="Path to the Solidity file")
    p_check.set_defaults(func=cmd_check_version)

    # fix-version
    p_fix = sub.add_parser("fix-version", help="Rewrite the pragma of a contract to the pinned version")
    p_fix.add_argument("path", help="Path to the Solidity file")
    p_fix.set_defaults(func=cmd_fix_version)

    # send-token
    p_send = sub.add_parser("send-token", help="Send the same amount of an ERC20 token to several recipients")
    p_send.add_argument("token", help="Token contract address")
    p_send.add_argument("amount", help="Amount per recipient in whole tokens (e.g. 1.5)")
    p_send.add_argument("recipients", nargs="+", help="Recipient addresses")
    p_send.set_defaults(func=cmd_send_token)

    # balance
    p_bal = sub.add_parser("balance", help="Show the native MON balance of an address")
    p_bal.add_argument("address", help="0x address to query")
    p_bal.set_defaults(func=cmd_balance)

    # artifacts
    p_list = sub.add_parser("artifacts", help="List stored deployment artifacts")
    p_list.add_argument("--artifacts-dir", help="Artifact directory (default ARTIFACTS_DIR or ./artifacts)")
    p_list.add_argument("--format", choices=["table", "json"], default="table")
    p_list.set_defaults(func=cmd_artifacts)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 2
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
