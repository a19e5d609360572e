"""
Deployment artifact store.

One pretty-printed JSON file per contract name, ``<dir>/<contractName>.json``.
Redeploying a contract overwrites its artifact; lookups by address scan the
directory. There is no locking, the last writer wins.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

__all__ = ["Artifact", "ArtifactStore"]

_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Artifact:
    contract_name: str
    address: str
    abi: list[dict[str, Any]]
    transaction_hash: str
    network: str
    chain_id: int
    explorer_url: str | None = None
    deployed_at: str = field(default_factory=_utc_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "contractName": self.contract_name,
            "address": self.address,
            "abi": self.abi,
            "transactionHash": self.transaction_hash,
            "network": self.network,
            "chainId": self.chain_id,
            "explorerUrl": self.explorer_url,
            "deployedAt": self.deployed_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Artifact":
        if not isinstance(data, dict):
            raise ValidationError("Malformed artifact: expected a JSON object")
        for key in ("contractName", "address"):
            if not isinstance(data.get(key), str):
                raise ValidationError(f"Malformed artifact: {key} must be a string")
        try:
            return cls(
                contract_name=data["contractName"],
                address=data["address"],
                abi=data["abi"],
                transaction_hash=data["transactionHash"],
                network=data.get("network", ""),
                chain_id=int(data.get("chainId", 0)),
                explorer_url=data.get("explorerUrl"),
                deployed_at=data.get("deployedAt", ""),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Malformed artifact: {e}")


class ArtifactStore:
    """Directory of deployment artifacts keyed by contract name."""

    def __init__(self, artifacts_dir: str | Path = "artifacts"):
        self.artifacts_dir = Path(artifacts_dir)

    def path_for(self, contract_name: str) -> Path:
        if not isinstance(contract_name, str) or not _NAME_RE.match(contract_name):
            raise ValidationError(f"Invalid contract name for artifact: {contract_name!r}")
        return self.artifacts_dir / f"{contract_name}.json"

    def save(self, artifact: Artifact) -> Path:
        """Write (or overwrite) the artifact and return its path."""
        path = self.path_for(artifact.contract_name)
        self.artifacts_dir.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(artifact.to_dict(), f, indent=2)
        logger.info(f"Artifact saved: {path}")
        return path

    def load_by_name(self, contract_name: str) -> Artifact:
        path = self.path_for(contract_name)
        if not path.exists():
            raise NotFoundError(f"No artifact found for {contract_name} in {self.artifacts_dir}")
        with open(path) as f:
            return Artifact.from_dict(json.load(f))

    def _read_all(self) -> list[Artifact]:
        if not self.artifacts_dir.exists():
            return []
        artifacts: list[Artifact] = []
        for p in sorted(self.artifacts_dir.glob("*.json")):
            try:
                with open(p) as f:
                    artifacts.append(Artifact.from_dict(json.load(f)))
            except (OSError, json.JSONDecodeError, ValidationError) as e:
                logger.warning(f"Skipping unreadable artifact {p}: {e}")
        return artifacts

    def load_by_address(self, address: str) -> Artifact:
        """First artifact whose address matches, ignoring case."""
        wanted = (address or "").lower()
        for artifact in self._read_all():
            if artifact.address.lower() == wanted:
                return artifact
        raise NotFoundError(f"No artifact found for address {address}")

    def load(self, name_or_address: str) -> Artifact:
        """Look up by address when the key starts with ``0x``, by name otherwise."""
        if name_or_address.startswith("0x"):
            return self.load_by_address(name_or_address)
        return self.load_by_name(name_or_address)

    def list(self) -> list[Artifact]:
        return self._read_all()
