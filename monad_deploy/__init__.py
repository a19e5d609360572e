"""
monad-deploy: compile, deploy and interact with Solidity contracts on Monad testnet
"""

from importlib.metadata import PackageNotFoundError, version

from .config.settings import DeployMode, Settings, VersionPolicy, load_settings
from .exceptions import (
    CallErrorKind,
    CompilationError,
    ConfigurationError,
    ContractCallError,
    MonadDeployError,
    NotFoundError,
    TransactionError,
    ValidationError,
)
from .helpers.compiler import CompilationOutput, SolidityCompiler
from .helpers.contract_io import ContractHandle
from .setup.artifacts import Artifact, ArtifactStore
from .setup.deployer import Deployer, DeploymentResult, load_account
from .setup.workflow import compile_and_deploy
from .commands.balance import BalanceResult, get_native_balance
from .commands.send_token import TokenSender, TransferBatchResult

try:
    __version__ = version("monad-deploy")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "Settings",
    "load_settings",
    "DeployMode",
    "VersionPolicy",
    "SolidityCompiler",
    "CompilationOutput",
    "Deployer",
    "DeploymentResult",
    "load_account",
    "Artifact",
    "ArtifactStore",
    "ContractHandle",
    "TokenSender",
    "TransferBatchResult",
    "BalanceResult",
    "get_native_balance",
    "compile_and_deploy",
    "MonadDeployError",
    "ConfigurationError",
    "CompilationError",
    "ValidationError",
    "NotFoundError",
    "TransactionError",
    "ContractCallError",
    "CallErrorKind",
]
