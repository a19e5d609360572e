"""
Isolated deployment runner.

Runs one compile-and-deploy in its own process so a hung compiler or RPC
call cannot stall the MCP server. Reads a JSON request on stdin and writes
one JSON result on stdout; logs go to stderr.

Usage:
    echo '{"sourceCode": "contract A {}", "contractName": "A"}' | python -m monad_deploy.setup.deploy_worker
"""
from __future__ import annotations

import json
import logging
import sys
from typing import Any, TextIO

from ..config.logging_config import setup_logger
from ..config.settings import Settings, load_settings
from .workflow import compile_and_deploy


def run_request(request: dict[str, Any], settings: Settings) -> dict[str, Any]:
    """Execute one deployment request and return the tool envelope."""
    result = compile_and_deploy(
        request.get("sourceCode"),
        settings,
        constructor_args=request.get("constructorArgs") or [],
        contract_name=request.get("contractName"),
        save_artifacts=request.get("saveArtifacts", True),
    )
    return result.to_dict()


def main(stdin: TextIO | None = None, stdout: TextIO | None = None) -> int:
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    try:
        request = json.load(stdin)
        if not isinstance(request, dict):
            raise ValueError("Request must be a JSON object")
        settings = load_settings()
        setup_logger("monad_deploy", level=logging.INFO, stream=sys.stderr, log_dir=settings.log_dir)
        response = run_request(request, settings)
    except Exception as e:
        response = {
            "success": False,
            "error": str(e),
            "errorType": type(e).__name__,
        }
    json.dump(response, stdout)
    return 0 if response.get("success") else 1


if __name__ == "__main__":
    raise SystemExit(main())
