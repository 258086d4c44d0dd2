"""
Configuration Models

Effective deployment configuration and the closed sets of values it uses.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Dict, List

from jayce.constants import (
    ACCOUNT_PUBLISH_FUNCTION,
    OBJECT_CODE_DEPLOYMENT_DOMAIN_SEPARATOR,
    OBJECT_FROM_SEED_ADDRESS_SCHEME,
    OBJECT_PUBLISH_FUNCTION,
)
from jayce.utils import bcs_bytes, bcs_u64, named_object_address, normalize_address


class Network(Enum):
    """Target network."""

    MAINNET = "mainnet"
    TESTNET = "testnet"
    DEVNET = "devnet"
    LOCAL = "local"


class FailurePolicy(Enum):
    """What happens to the remaining modules once one fails."""

    ABORT_ON_FIRST_FAILURE = "abort-on-first-failure"
    CONTINUE_ON_FAILURE = "continue-on-failure"


class ModuleType(Enum):
    """
    Publication mode.

    Each variant knows which framework entry function publishes a package
    and at which address the package lands for a given sequence number.
    """

    OBJECT = "object"
    ACCOUNT = "account"

    @property
    def publish_function(self) -> str:
        if self is ModuleType.OBJECT:
            return OBJECT_PUBLISH_FUNCTION
        return ACCOUNT_PUBLISH_FUNCTION

    def package_address(self, deployer: str, sequence_number: int) -> str:
        """
        Address the package is published at.

        Object deployments derive a fresh object address from the deployer
        and the sequence number the framework sees during execution plus one.
        """
        if self is ModuleType.ACCOUNT:
            return normalize_address(deployer)
        seed = bcs_bytes(OBJECT_CODE_DEPLOYMENT_DOMAIN_SEPARATOR) + bcs_u64(
            sequence_number + 1
        )
        return named_object_address(deployer, seed, OBJECT_FROM_SEED_ADDRESS_SCHEME)


@dataclass
class DeployConfig:
    """Effective configuration after CLI and file values are merged."""

    private_key: Optional[str]
    module_type: ModuleType
    modules_path: List[Path]
    addresses_name: List[str]
    network: Network
    yes: bool = False
    output_json: Path = Path("deploy-report.json")
    deployed_addresses: Dict[str, str] = field(default_factory=dict)
    rest_url: Optional[str] = None
    faucet_url: Optional[str] = None
    failure_policy: FailurePolicy = FailurePolicy.ABORT_ON_FIRST_FAILURE
    max_attempts: int = 3
    max_workers: int = 4
    timeout_secs: Optional[float] = None

    @property
    def modules(self) -> list[tuple[Path, str]]:
        """Module paths paired with their address names."""
        return list(zip(self.modules_path, self.addresses_name))

    def __repr__(self) -> str:
        # Never print key material
        return (
            f"DeployConfig(network={self.network.value}, "
            f"module_type={self.module_type.value}, modules={len(self.modules_path)})"
        )
