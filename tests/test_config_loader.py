"""
Tests for configuration loading and precedence
CLI values beat the config file, which beats the documented defaults
"""

from pathlib import Path

import pytest

from conftest import PRIVATE_KEY
from jayce.core.config_loader import ConfigResolver, load_config_file, resolve_config
from jayce.exceptions import ConfigError
from jayce.models.config import FailurePolicy, ModuleType, Network
from jayce.utils import normalize_address

BASE = {
    "modules_path": ["./lib"],
    "addresses_name": ["lib_addr"],
    "private_key": PRIVATE_KEY,
}


def write_config(tmp_path, text):
    path = tmp_path / "jayce.toml"
    path.write_text(text)
    return path


class TestPrecedence:
    """Test class for value precedence"""

    def test_defaults(self):
        """Test unset fields take the documented defaults"""
        config = ConfigResolver(BASE).resolve()

        assert config.network is Network.DEVNET
        assert config.module_type is ModuleType.OBJECT
        assert config.failure_policy is FailurePolicy.ABORT_ON_FIRST_FAILURE
        assert config.output_json == Path("deploy-report.json")
        assert config.max_attempts == 3
        assert config.max_workers == 4
        assert config.timeout_secs is None
        assert config.yes is False
        assert config.deployed_addresses == {}
        assert config.rest_url == "https://api.devnet.aptoslabs.com/v1"

    def test_cli_beats_file(self):
        """Test a CLI value wins over the file value"""
        config = ConfigResolver(
            {**BASE, "network": "testnet"}, {"network": "mainnet", "max_workers": 2}
        ).resolve()

        assert config.network is Network.TESTNET
        assert config.max_workers == 2

    def test_explicit_default_still_wins(self):
        """Test a CLI value equal to the default still overrides the file"""
        config = ConfigResolver({**BASE, "network": "devnet"}, {"network": "testnet"}).resolve()
        assert config.network is Network.DEVNET

    def test_none_cli_values_ignored(self):
        """Test unset CLI values fall through to the file"""
        config = ConfigResolver({**BASE, "network": None}, {"network": "testnet"}).resolve()
        assert config.network is Network.TESTNET

    def test_file_only(self, tmp_path):
        """Test every field can come from the config file"""
        path = write_config(
            tmp_path,
            f"""
private_key = "{PRIVATE_KEY}"
modules_path = ["./lib", "./app"]
addresses_name = ["lib_addr", "app_addr"]
network = "testnet"
module_type = "account"
failure_policy = "continue-on-failure"
output_json = "out/report.json"
max_attempts = 5
timeout_secs = 30
yes = true

[deployed_addresses]
std_addr = "0x1"
""",
        )

        config = resolve_config({}, path)

        assert config.modules == [(Path("./lib"), "lib_addr"), (Path("./app"), "app_addr")]
        assert config.module_type is ModuleType.ACCOUNT
        assert config.failure_policy is FailurePolicy.CONTINUE_ON_FAILURE
        assert config.output_json == Path("out/report.json")
        assert config.max_attempts == 5
        assert config.timeout_secs == 30.0
        assert config.yes is True
        assert config.deployed_addresses == {"std_addr": normalize_address("0x1")}
        assert config.faucet_url == "https://faucet.testnet.aptoslabs.com"

    def test_single_string_list(self):
        """Test a single path string is accepted as a one-element list"""
        config = ConfigResolver(
            {"modules_path": "./lib", "addresses_name": "lib_addr", "private_key": PRIVATE_KEY}
        ).resolve()
        assert config.addresses_name == ["lib_addr"]


class TestValidation:
    """Test class for configuration errors"""

    def test_length_mismatch(self):
        """Test paths and names must pair up"""
        with pytest.raises(ConfigError, match="same length"):
            ConfigResolver({**BASE, "addresses_name": ["a", "b"]}).resolve()

    def test_missing_modules(self):
        """Test modules_path is required"""
        with pytest.raises(ConfigError, match="modules_path"):
            ConfigResolver({"addresses_name": ["a"], "private_key": PRIVATE_KEY}).resolve()

    def test_duplicate_names(self):
        """Test address names must be unique"""
        with pytest.raises(ConfigError, match="Duplicate"):
            ConfigResolver(
                {**BASE, "modules_path": ["./a", "./b"], "addresses_name": ["x", "x"]}
            ).resolve()

    def test_invalid_module_type(self):
        """Test unknown module types are rejected"""
        with pytest.raises(ConfigError, match="module_type"):
            ConfigResolver({**BASE, "module_type": "script"}).resolve()

    def test_local_needs_rest_url(self):
        """Test local has no default endpoint"""
        with pytest.raises(ConfigError, match="REST url"):
            ConfigResolver({**BASE, "network": "local"}).resolve()

        config = ConfigResolver(
            {**BASE, "network": "local", "rest_url": "http://127.0.0.1:8080/v1/"}
        ).resolve()
        assert config.rest_url == "http://127.0.0.1:8080/v1"

    def test_mainnet_needs_private_key(self):
        """Test a network without faucet requires a key"""
        with pytest.raises(ConfigError, match="No private key"):
            ConfigResolver({**BASE, "private_key": None, "network": "mainnet"}).resolve()

    def test_devnet_without_key(self):
        """Test devnet allows a generated, faucet-funded key"""
        config = ConfigResolver({**BASE, "private_key": None}).resolve()
        assert config.private_key is None

    def test_deployed_overlap(self):
        """Test a name cannot be both deployed and deployed again"""
        with pytest.raises(ConfigError, match="lib_addr"):
            ConfigResolver({**BASE, "deployed_addresses": {"lib_addr": "0x1"}}).resolve()

    def test_invalid_deployed_address(self):
        """Test deployed addresses must be hex"""
        with pytest.raises(ConfigError, match="std_addr"):
            ConfigResolver({**BASE, "deployed_addresses": {"std_addr": "nope"}}).resolve()

    @pytest.mark.parametrize("field,value", [("max_attempts", 0), ("max_workers", "4"), ("timeout_secs", -1)])
    def test_invalid_numbers(self, field, value):
        """Test numeric fields are validated"""
        with pytest.raises(ConfigError, match=field):
            ConfigResolver({**BASE, field: value}).resolve()


class TestConfigFile:
    """Test class for load_config_file"""

    def test_missing_file(self, tmp_path):
        """Test a missing file is a config error"""
        with pytest.raises(ConfigError, match="not found"):
            load_config_file(tmp_path / "missing.toml")

    def test_malformed_file(self, tmp_path):
        """Test invalid TOML is a config error"""
        with pytest.raises(ConfigError, match="Malformed"):
            load_config_file(write_config(tmp_path, "network = ["))

    def test_unknown_keys(self, tmp_path):
        """Test typos in keys are reported"""
        with pytest.raises(ConfigError, match="netwrok"):
            load_config_file(write_config(tmp_path, 'netwrok = "devnet"'))
