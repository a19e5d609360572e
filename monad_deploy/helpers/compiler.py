"""
Solidity compiler adapter built on py-solc-x.

Wraps ``solcx.compile_standard`` with a single in-memory source, collects
warnings, aggregates errors into one CompilationError and exposes the
ABI and bytecode of the requested contract.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from packaging.version import Version
from solcx import (
    compile_standard,
    get_installed_solc_versions,
    import_installed_solc,
    install_solc,
)
from solcx.exceptions import SolcError

from ..config.settings import DEFAULT_OPTIMIZATION_RUNS, DEFAULT_SOLIDITY_VERSION
from ..exceptions import CompilationError
from .solidity_source import contract_name_from_path

logger = logging.getLogger(__name__)

__all__ = ["CompilationOutput", "SolidityCompiler", "SOURCE_FILE_NAME"]

SOURCE_FILE_NAME = "contract.sol"


@dataclass(frozen=True)
class CompilationOutput:
    contract_name: str
    abi: list[dict[str, Any]]
    bytecode_object: str
    solc_version: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def bytecode(self) -> str:
        """Creation bytecode, always ``0x``-prefixed."""
        if self.bytecode_object.startswith("0x"):
            return self.bytecode_object
        return "0x" + self.bytecode_object


def _format_diagnostic(entry: dict[str, Any]) -> str:
    return (entry.get("formattedMessage") or entry.get("message") or str(entry)).strip()


class SolidityCompiler:
    """Compile a single Solidity source with a pinned solc release.

    Args:
        solc_version: Exact compiler version, e.g. ``"0.8.28"``
        optimizer_runs: Optimizer ``runs`` setting
        optimize: Whether the optimizer is enabled
    """

    def __init__(
        self,
        solc_version: str = DEFAULT_SOLIDITY_VERSION,
        optimizer_runs: int = DEFAULT_OPTIMIZATION_RUNS,
        optimize: bool = True,
    ):
        self.solc_version = solc_version
        self.optimizer_runs = optimizer_runs
        self.optimize = optimize
        self._solc_ready = False

    def build_input(self, source: str, file_name: str = SOURCE_FILE_NAME) -> dict[str, Any]:
        """Standard-JSON input requesting only the ABI and creation bytecode."""
        return {
            "language": "Solidity",
            "sources": {file_name: {"content": source}},
            "settings": {
                "optimizer": {
                    "enabled": self.optimize,
                    "runs": self.optimizer_runs,
                },
                "outputSelection": {
                    "*": {
                        "*": ["abi", "evm.bytecode.object"],
                    }
                },
            },
        }

    def ensure_solc(self) -> Version:
        """Make the pinned compiler available, downloading it only as a last resort."""
        wanted = Version(self.solc_version)
        if self._solc_ready:
            return wanted

        if wanted in get_installed_solc_versions():
            logger.debug(f"solc {wanted} already installed")
            self._solc_ready = True
            return wanted

        try:
            imported = import_installed_solc()
        except Exception as e:
            logger.debug(f"Could not import system solc: {e}")
            imported = []
        if wanted in imported:
            logger.info(f"Using system solc {wanted}")
            self._solc_ready = True
            return wanted

        logger.info(f"Installing solc {wanted}")
        try:
            install_solc(wanted)
        except Exception as e:
            raise CompilationError(f"Failed to install solc {wanted}: {e}")
        self._solc_ready = True
        return wanted

    def compile(
        self,
        source: str,
        contract_name: str | None = None,
        *,
        allow_fallback: bool = False,
    ) -> CompilationOutput:
        """
        Compile ``source`` and return the named contract's ABI and bytecode.

        Args:
            source: Solidity source code (pragma already pinned)
            contract_name: Contract to extract; the first compiled contract when None
            allow_fallback: Use the first compiled contract if ``contract_name`` is missing

        Returns:
            CompilationOutput

        Raises:
            CompilationError: On compiler errors or when the contract is not in the output
        """
        version = self.ensure_solc()
        input_json = self.build_input(source)

        try:
            output = compile_standard(input_json, solc_version=version)
        except SolcError as e:
            diagnostics = [
                _format_diagnostic(entry)
                for entry in (e.error_dict or [])
                if entry.get("severity") == "error"
            ]
            if not diagnostics:
                diagnostics = [e.message]
            logger.error(f"Compilation failed with {len(diagnostics)} error(s)")
            raise CompilationError(
                "Compilation failed:\n" + "\n".join(diagnostics),
                errors=diagnostics,
            )

        errors: list[str] = []
        warnings: list[str] = []
        for entry in output.get("errors", []):
            text = _format_diagnostic(entry)
            if entry.get("severity") == "error":
                errors.append(text)
            else:
                warnings.append(text)
                logger.warning(f"solc: {text}")
        if errors:
            raise CompilationError("Compilation failed:\n" + "\n".join(errors), errors=errors)

        contracts = output.get("contracts", {}).get(SOURCE_FILE_NAME, {})
        if not contracts:
            raise CompilationError("No contracts found in compiled output")

        name = contract_name or next(iter(contracts))
        if name not in contracts:
            if not allow_fallback:
                raise CompilationError(f"Contract {name} not found in compiled output")
            fallback = next(iter(contracts))
            logger.warning(f"Contract {name} not found, using {fallback} instead")
            name = fallback

        compiled = contracts[name]
        bytecode = compiled.get("evm", {}).get("bytecode", {}).get("object")
        abi = compiled.get("abi")
        if not bytecode or abi is None:
            raise CompilationError(f"Contract {name} has no deployable bytecode (abstract or interface?)")

        logger.info(f"Compiled {name} with solc {version} ({len(bytecode) // 2} bytes)")
        return CompilationOutput(
            contract_name=name,
            abi=abi,
            bytecode_object=bytecode,
            solc_version=str(version),
            warnings=tuple(warnings),
        )

    def compile_file(self, path: str | Path, *, allow_fallback: bool = False) -> CompilationOutput:
        """Compile a ``.sol`` file, taking the contract name from the file name."""
        path = Path(path)
        try:
            source = path.read_text()
        except OSError as e:
            raise CompilationError(f"Cannot read {path}: {e}")
        return self.compile(source, contract_name_from_path(path), allow_fallback=allow_fallback)
