"""Configuration loading for jayce deployments"""

import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

from jayce.constants import (
    DEFAULT_FAILURE_POLICY,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_WORKERS,
    DEFAULT_MODULE_TYPE,
    DEFAULT_NETWORK,
    DEFAULT_OUTPUT_JSON,
    ERROR_LOCAL_NEEDS_REST_URL,
    ERROR_NO_PRIVATE_KEY,
    NETWORK_FAUCET_URLS,
    NETWORK_REST_URLS,
)
from jayce.exceptions import ConfigError
from jayce.models.config import DeployConfig, FailurePolicy, ModuleType, Network
from jayce.utils import normalize_address

# Documented defaults. Fields missing here have no default (None) or a
# network-derived one (rest_url, faucet_url).
DEFAULTS: Dict[str, Any] = {
    "module_type": DEFAULT_MODULE_TYPE,
    "network": DEFAULT_NETWORK,
    "yes": False,
    "output_json": DEFAULT_OUTPUT_JSON,
    "deployed_addresses": {},
    "failure_policy": DEFAULT_FAILURE_POLICY,
    "max_attempts": DEFAULT_MAX_ATTEMPTS,
    "max_workers": DEFAULT_MAX_WORKERS,
    "timeout_secs": None,
    "private_key": None,
    "rest_url": None,
    "faucet_url": None,
}

FIELDS = (
    "private_key",
    "module_type",
    "modules_path",
    "addresses_name",
    "network",
    "yes",
    "output_json",
    "deployed_addresses",
    "rest_url",
    "faucet_url",
    "failure_policy",
    "max_attempts",
    "max_workers",
    "timeout_secs",
)


def load_config_file(path: Path) -> Dict[str, Any]:
    """
    Read a TOML deploy configuration.

    Args:
        path: Path to the TOML file

    Returns:
        Dictionary of the keys present in the file

    Raises:
        ConfigError: If the file is missing, unreadable, malformed or has unknown keys
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {path}")
    except OSError as e:
        raise ConfigError(f"Cannot read config file: {path}", context=str(e))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Malformed config file: {path}", context=str(e))

    unknown = sorted(set(data) - set(FIELDS))
    if unknown:
        raise ConfigError(
            f"Unknown keys in {path}: {', '.join(unknown)}",
            context=f"Valid keys: {', '.join(FIELDS)}",
        )
    return data


class ConfigResolver:
    """Merges CLI-supplied and file-supplied settings into one DeployConfig"""

    def __init__(
        self,
        cli_values: Dict[str, Any],
        file_values: Optional[Dict[str, Any]] = None,
    ):
        """
        Args:
            cli_values: Fields the user set on the command line (or via env);
                anything left at its click default must not be present
            file_values: Fields read from the TOML file
        """
        self.cli_values = {k: v for k, v in cli_values.items() if v is not None}
        self.file_values = file_values or {}

    def merged(self) -> Dict[str, Any]:
        """CLI value, else file value, else documented default."""
        merged: Dict[str, Any] = {}
        for name in FIELDS:
            if name in self.cli_values:
                merged[name] = self.cli_values[name]
            elif name in self.file_values:
                merged[name] = self.file_values[name]
            else:
                merged[name] = DEFAULTS.get(name)
        return merged

    def resolve(self) -> DeployConfig:
        """
        Produce the effective configuration.

        Raises:
            ConfigError: On a missing or invalid field
        """
        values = self.merged()

        network = _enum(Network, values["network"], "network")
        module_type = _enum(ModuleType, values["module_type"], "module_type")
        failure_policy = _enum(FailurePolicy, values["failure_policy"], "failure_policy")

        modules_path = _string_list(values["modules_path"], "modules_path")
        addresses_name = _string_list(values["addresses_name"], "addresses_name")
        if len(modules_path) != len(addresses_name):
            raise ConfigError(
                "Modules path and addresses name must have the same length",
                context=f"{len(modules_path)} paths, {len(addresses_name)} names",
            )
        duplicates = sorted({n for n in addresses_name if addresses_name.count(n) > 1})
        if duplicates:
            raise ConfigError(f"Duplicate address names: {', '.join(duplicates)}")

        deployed = _address_map(values["deployed_addresses"])
        overlap = sorted(set(deployed) & set(addresses_name))
        if overlap:
            raise ConfigError(
                f"Addresses both deployed and being deployed: {', '.join(overlap)}"
            )

        rest_url = _optional_string(values["rest_url"], "rest_url") or NETWORK_REST_URLS[
            network.value
        ]
        if not rest_url:
            raise ConfigError(ERROR_LOCAL_NEEDS_REST_URL, context="Pass --rest-url")
        faucet_url = _optional_string(
            values["faucet_url"], "faucet_url"
        ) or NETWORK_FAUCET_URLS[network.value]

        private_key = _optional_string(values["private_key"], "private_key")
        if not private_key and not faucet_url:
            raise ConfigError(
                ERROR_NO_PRIVATE_KEY.format(network=network.value),
                context="Pass --private-key or set JAYCE_PRIVATE_KEY",
            )

        return DeployConfig(
            private_key=private_key,
            module_type=module_type,
            modules_path=[Path(p) for p in modules_path],
            addresses_name=addresses_name,
            network=network,
            yes=_bool(values["yes"], "yes"),
            output_json=Path(
                _optional_string(values["output_json"], "output_json")
                or DEFAULT_OUTPUT_JSON
            ),
            deployed_addresses=deployed,
            rest_url=rest_url.rstrip("/"),
            faucet_url=faucet_url.rstrip("/") if faucet_url else None,
            failure_policy=failure_policy,
            max_attempts=_positive_int(values["max_attempts"], "max_attempts"),
            max_workers=_positive_int(values["max_workers"], "max_workers"),
            timeout_secs=_optional_positive_float(values["timeout_secs"], "timeout_secs"),
        )


def resolve_config(
    cli_values: Dict[str, Any], config_path: Optional[Path] = None
) -> DeployConfig:
    """Load the optional config file and merge it with the CLI values."""
    file_values = load_config_file(Path(config_path)) if config_path else None
    return ConfigResolver(cli_values, file_values).resolve()


def _enum(enum_cls, value, name: str):
    if isinstance(value, enum_cls):
        return value
    valid = ", ".join(m.value for m in enum_cls)
    if not isinstance(value, str):
        raise ConfigError(f"Invalid {name}: {value!r}", context=f"Expected one of: {valid}")
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        raise ConfigError(f"Invalid {name}: {value!r}", context=f"Expected one of: {valid}")


def _string_list(value, name: str) -> list[str]:
    if value is None:
        raise ConfigError(
            f"Missing required field: '{name}'",
            context=f"Pass --{name.replace('_', '-')} or set it in the config file",
        )
    if isinstance(value, (str, Path)):
        value = [value]
    if not isinstance(value, (list, tuple)) or not all(
        isinstance(v, (str, Path)) for v in value
    ):
        raise ConfigError(f"Invalid '{name}': expected a list of strings")
    items = [str(v).strip() for v in value if str(v).strip()]
    if not items:
        raise ConfigError(f"Missing required field: '{name}'")
    return items


def _optional_string(value, name: str) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, Path):
        return str(value)
    if not isinstance(value, str):
        raise ConfigError(f"Invalid '{name}': expected a string")
    return value.strip() or None


def _bool(value, name: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"Invalid '{name}': expected true or false")
    return value


def _positive_int(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(f"Invalid '{name}': {value!r} (must be an integer >= 1)")
    return value


def _optional_positive_float(value, name: str) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"Invalid '{name}': {value!r} (must be > 0)")
    return float(value)


def _address_map(value) -> Dict[str, str]:
    if not isinstance(value, dict):
        raise ConfigError("Invalid 'deployed_addresses': expected a table of name = address")
    result: Dict[str, str] = {}
    for name, address in value.items():
        if not isinstance(address, str):
            raise ConfigError(f"Invalid address for '{name}': expected a hex string")
        try:
            result[name] = normalize_address(address)
        except ValueError as e:
            raise ConfigError(f"Invalid address for '{name}'", context=str(e))
    return result
