"""
Module Loader

Reads compiled Move packages from disk.

Each configured path is a package directory holding a Move.toml and the
output of `aptos move compile --dev`. Addresses declared as "_" are
placeholders; their [dev-addresses] value is the sentinel baked into the
bytecode, later replaced by the real address.
"""

import tomllib
from pathlib import Path
from typing import Dict

from jayce.constants import (
    BUILD_DIR,
    BYTECODE_DIR,
    MANIFEST_FILE,
    PACKAGE_METADATA_FILE,
    PLACEHOLDER_VALUE,
)
from jayce.exceptions import ModuleLoadError
from jayce.models.config import DeployConfig
from jayce.models.modules import Module
from jayce.utils import address_to_bytes

# 0x0 - 0xa are framework addresses; using one as a sentinel would rewrite
# framework references too.
RESERVED_ADDRESS_MAX = 0xA


class ModuleLoader:
    """Loads one Module per configured package path."""

    def __init__(self, config: DeployConfig):
        self.config = config

    def load_all(self) -> list[Module]:
        """
        Load every configured package, in configuration order.

        Raises:
            ModuleLoadError: If any package is missing or malformed
        """
        return [self.load(path, name) for path, name in self.config.modules]

    def load(self, path: Path, address_name: str) -> Module:
        package_dir = Path(path).expanduser()
        if not package_dir.is_dir():
            raise ModuleLoadError(f"Package directory not found: {package_dir}")

        manifest = self._read_manifest(package_dir)
        package_name = manifest.get("package", {}).get("name")
        if not isinstance(package_name, str) or not package_name:
            raise ModuleLoadError(
                f"Missing [package].name in {package_dir / MANIFEST_FILE}"
            )

        placeholders = self._placeholders(manifest, package_dir)
        if address_name not in placeholders:
            raise ModuleLoadError(
                f"Address '{address_name}' is not a placeholder of package '{package_name}'",
                context=f"Declare {address_name} = \"{PLACEHOLDER_VALUE}\" under [addresses] in {MANIFEST_FILE}",
            )

        build_dir = package_dir / BUILD_DIR / package_name
        metadata_path = build_dir / PACKAGE_METADATA_FILE
        bytecode_dir = build_dir / BYTECODE_DIR
        if not metadata_path.is_file() or not bytecode_dir.is_dir():
            raise ModuleLoadError(
                f"No build output for package '{package_name}'",
                context=f"Run: aptos move compile --dev --package-dir {package_dir}",
            )

        code_files = sorted(bytecode_dir.glob("*.mv"))
        if not code_files:
            raise ModuleLoadError(f"No compiled modules in {bytecode_dir}")

        return Module(
            address_name=address_name,
            package_name=package_name,
            path=package_dir,
            metadata=metadata_path.read_bytes(),
            code=tuple(f.read_bytes() for f in code_files),
            placeholders=placeholders,
        )

    def _read_manifest(self, package_dir: Path) -> dict:
        manifest_path = package_dir / MANIFEST_FILE
        try:
            with open(manifest_path, "rb") as f:
                return tomllib.load(f)
        except FileNotFoundError:
            raise ModuleLoadError(f"{MANIFEST_FILE} not found in {package_dir}")
        except tomllib.TOMLDecodeError as e:
            raise ModuleLoadError(f"Malformed {manifest_path}", context=str(e))

    def _placeholders(self, manifest: dict, package_dir: Path) -> Dict[str, bytes]:
        addresses = manifest.get("addresses", {})
        dev_addresses = manifest.get("dev-addresses", {})
        concrete = {
            str(value).lower() for value in addresses.values() if value != PLACEHOLDER_VALUE
        }

        placeholders: Dict[str, bytes] = {}
        for name, value in addresses.items():
            if value != PLACEHOLDER_VALUE:
                continue
            sentinel = dev_addresses.get(name)
            if not sentinel:
                raise ModuleLoadError(
                    f"Placeholder '{name}' has no dev address in {package_dir / MANIFEST_FILE}",
                    context="Add it under [dev-addresses] and compile with --dev",
                )
            try:
                raw = address_to_bytes(sentinel)
            except ValueError as e:
                raise ModuleLoadError(f"Invalid dev address for '{name}'", context=str(e))
            if int.from_bytes(raw, "big") <= RESERVED_ADDRESS_MAX or str(sentinel).lower() in concrete:
                raise ModuleLoadError(
                    f"Dev address {sentinel} for '{name}' collides with a real address"
                )
            placeholders[name] = raw

        seen: Dict[bytes, str] = {}
        for name, raw in placeholders.items():
            if raw in seen:
                raise ModuleLoadError(
                    f"Placeholders '{seen[raw]}' and '{name}' share the same dev address"
                )
            seen[raw] = name
        return placeholders


def load_modules(config: DeployConfig) -> list[Module]:
    """Load all packages named by the configuration."""
    return ModuleLoader(config).load_all()
