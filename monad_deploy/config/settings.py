"""
Process-wide settings for monad-deploy.

Settings are read once per process (``load_settings``) and passed explicitly
into the compiler, deployer, batch runner and tool adapters.

Environment variables
---------------------
MONAD_RPC_URL / RPC_URL   RPC endpoint (defaults to the chain's public RPC)
PRIVATE_KEY               signing key, required for deploy/write/transfer
CHAIN                     chain key from ``config.network.CHAINS``
SOLIDITY_VERSION          pinned compiler version (default 0.8.28)
OPTIMIZATION_RUNS         optimizer runs (default 200)
ARTIFACTS_DIR             artifact directory (default ./artifacts)
VERSION_POLICY            "rewrite" or "strict"
DEPLOY_MODE               "live" or "mock"
RECEIPT_TIMEOUT           seconds to wait for a receipt (default 120)
MONAD_LOG_DIR             directory for rotating log files (optional)
"""
from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from ..exceptions import ConfigurationError
from .network import DEFAULT_CHAIN, get_chain_config

DEFAULT_SOLIDITY_VERSION = "0.8.28"
DEFAULT_OPTIMIZATION_RUNS = 200
DEFAULT_RECEIPT_TIMEOUT = 120


class VersionPolicy(str, Enum):
    """How entry points treat a ``pragma solidity`` that differs from the pinned version."""

    REWRITE = "rewrite"
    STRICT = "strict"


class DeployMode(str, Enum):
    """Live deployments hit the RPC; mock deployments return a canned result."""

    LIVE = "live"
    MOCK = "mock"


@dataclass(frozen=True)
class Settings:
    rpc_url: str
    private_key: str | None = None
    chain: str = DEFAULT_CHAIN
    solidity_version: str = DEFAULT_SOLIDITY_VERSION
    optimization_runs: int = DEFAULT_OPTIMIZATION_RUNS
    artifacts_dir: Path = Path("artifacts")
    version_policy: VersionPolicy = VersionPolicy.REWRITE
    deploy_mode: DeployMode = DeployMode.LIVE
    receipt_timeout: int = DEFAULT_RECEIPT_TIMEOUT
    log_dir: Path | None = None

    @property
    def chain_config(self) -> dict[str, Any]:
        return get_chain_config(self.chain)

    @property
    def chain_id(self) -> int:
        return self.chain_config["chain_id"]

    @property
    def network_name(self) -> str:
        return self.chain_config["network"]

    def require_private_key(self) -> str:
        """Return the signing secret or raise ConfigurationError if none was configured."""
        if not self.private_key:
            raise ConfigurationError(
                "PRIVATE_KEY is not set. Add it to your .env file or environment "
                "before deploying or sending transactions."
            )
        return self.private_key


def _parse_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _parse_enum(env: Mapping[str, str], name: str, enum_cls, default):
    raw = env.get(name)
    if not raw:
        return default
    try:
        return enum_cls(raw.strip().lower())
    except ValueError:
        options = ", ".join(m.value for m in enum_cls)
        raise ConfigurationError(f"{name} must be one of: {options} (got {raw!r})")


def load_settings(env_file: str | None = None, environ: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from a .env file and the process environment.

    Args:
        env_file: Optional path to a .env file. When omitted python-dotenv
                  searches for a ``.env`` next to the working directory.
        environ: Mapping to read instead of ``os.environ`` (tests).

    Returns:
        Settings instance

    Raises:
        ConfigurationError: If a value is malformed or the chain is unknown.
    """
    if environ is None:
        load_dotenv(env_file)
        environ = os.environ

    chain = environ.get("CHAIN") or DEFAULT_CHAIN
    try:
        chain_config = get_chain_config(chain)
    except ValueError as e:
        raise ConfigurationError(str(e))

    rpc_url = environ.get("MONAD_RPC_URL") or environ.get("RPC_URL") or chain_config["rpc_urls"][0]
    private_key = (environ.get("PRIVATE_KEY") or "").strip() or None
    log_dir = environ.get("MONAD_LOG_DIR")

    return Settings(
        rpc_url=rpc_url,
        private_key=private_key,
        chain=chain.lower().replace("-", "_"),
        solidity_version=environ.get("SOLIDITY_VERSION") or DEFAULT_SOLIDITY_VERSION,
        optimization_runs=_parse_int(environ, "OPTIMIZATION_RUNS", DEFAULT_OPTIMIZATION_RUNS),
        artifacts_dir=Path(environ.get("ARTIFACTS_DIR") or "artifacts"),
        version_policy=_parse_enum(environ, "VERSION_POLICY", VersionPolicy, VersionPolicy.REWRITE),
        deploy_mode=_parse_enum(environ, "DEPLOY_MODE", DeployMode, DeployMode.LIVE),
        receipt_timeout=_parse_int(environ, "RECEIPT_TIMEOUT", DEFAULT_RECEIPT_TIMEOUT),
        log_dir=Path(log_dir) if log_dir else None,
    )
