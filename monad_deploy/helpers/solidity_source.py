"""
Solidity source helpers - pragma pinning and contract name detection.

Public API
----------
normalize_pragma(source, required_version)
    Rewrite (or insert) ``pragma solidity`` so the source declares exactly
    ``required_version``. Never fails.
check_pragma(source, required_version)
    Strict check: report whether the pragma matches, with a fix suggestion.
apply_version_policy(source, required_version, policy)
    Rewrite in ``rewrite`` mode, raise CompilationError in ``strict`` mode.
extract_contract_name(source, default="SimpleContract")
contract_name_from_path(path)
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from ..config.settings import DEFAULT_SOLIDITY_VERSION, VersionPolicy
from ..exceptions import CompilationError

logger = logging.getLogger(__name__)

__all__ = [
    "FALLBACK_SOURCE",
    "DEFAULT_CONTRACT_NAME",
    "VersionCheck",
    "normalize_pragma",
    "check_pragma",
    "apply_version_policy",
    "extract_contract_name",
    "contract_name_from_path",
]

PRAGMA_RE = re.compile(r"pragma\s+solidity\s+([^;]+);")
SPDX_RE = re.compile(r"//\s*SPDX-License-Identifier:[^\n]*\n?")
CONTRACT_RE = re.compile(r"contract\s+([a-zA-Z0-9_]+)")

DEFAULT_CONTRACT_NAME = "SimpleContract"

FALLBACK_SOURCE = """// SPDX-License-Identifier: MIT
pragma solidity {version};

contract SimpleStorage {{
    uint256 private value;

    function setValue(uint256 _newValue) public {{
        value = _newValue;
    }}

    function getValue() public view returns (uint256) {{
        return value;
    }}
}}
"""


def normalize_pragma(source, required_version: str = DEFAULT_SOLIDITY_VERSION) -> str:
    """Return ``source`` with its pragma pinned to ``required_version``.

    An existing directive is rewritten whatever its form (caret, range, wrong
    exact version). Without one, a directive is inserted after the SPDX
    comment, or at the top when there is no SPDX comment. Non-string input
    yields the SimpleStorage fallback contract.
    """
    if not isinstance(source, str):
        logger.warning("Source is not text, compiling the SimpleStorage fallback instead")
        return FALLBACK_SOURCE.format(version=required_version)

    directive = f"pragma solidity {required_version};"

    match = PRAGMA_RE.search(source)
    if match:
        found = match.group(1).strip()
        if found != required_version:
            logger.info(f"Replacing Solidity version '{found}' with '{required_version}'")
        return source[:match.start()] + directive + source[match.end():]

    spdx = SPDX_RE.search(source)
    if spdx:
        logger.info(f"No pragma found, adding version {required_version} after SPDX")
        head = source[:spdx.end()]
        if not head.endswith("\n"):
            head += "\n"
        return f"{head}{directive}\n{source[spdx.end():]}"

    logger.info(f"No pragma found, adding version {required_version} at the top")
    return f"{directive}\n\n{source}"


@dataclass(frozen=True)
class VersionCheck:
    ok: bool
    found: str | None
    required: str
    message: str
    suggestion: str | None = None


def check_pragma(source: str, required_version: str = DEFAULT_SOLIDITY_VERSION) -> VersionCheck:
    """Strictly compare the declared pragma against ``required_version``."""
    expected = f"pragma solidity {required_version};"
    match = PRAGMA_RE.search(source)
    if not match:
        return VersionCheck(
            ok=False,
            found=None,
            required=required_version,
            message="No pragma solidity statement found in contract",
            suggestion=f"Add the following line at the top of your contract:\n  {expected}",
        )

    found = match.group(1).strip()
    if found == required_version:
        return VersionCheck(
            ok=True,
            found=found,
            required=required_version,
            message=f"Contract uses correct Solidity version: {required_version}",
        )

    if found.startswith("^"):
        hint = "Remove the caret (^) from the version specifier."
    elif " - " in found:
        hint = "Do not use version ranges."
    elif found.startswith(">="):
        hint = "Do not use >=, use exact version."
    else:
        hint = f"Exactly version {required_version} is required."

    return VersionCheck(
        ok=False,
        found=found,
        required=required_version,
        message=f"Invalid Solidity version: {found}",
        suggestion=f"{hint}\n- pragma solidity {found};\n+ {expected}",
    )


def apply_version_policy(
    source,
    required_version: str = DEFAULT_SOLIDITY_VERSION,
    policy: VersionPolicy = VersionPolicy.REWRITE,
) -> str:
    """Pin the pragma (rewrite policy) or reject a mismatch (strict policy)."""
    if policy is VersionPolicy.REWRITE or not isinstance(source, str):
        return normalize_pragma(source, required_version)

    result = check_pragma(source, required_version)
    if not result.ok:
        raise CompilationError(
            f"{result.message}. Required: {required_version}",
            suggestion=result.suggestion,
        )
    return source


def extract_contract_name(source: str, default: str = DEFAULT_CONTRACT_NAME) -> str:
    """Name of the first ``contract <Name>`` declaration, or ``default``."""
    if not isinstance(source, str):
        return default
    match = CONTRACT_RE.search(source)
    return match.group(1) if match else default


def contract_name_from_path(path: str | Path) -> str:
    """Contract name derived from a file name (``contracts/Token.sol`` -> ``Token``)."""
    return Path(path).stem
