"""
Jayce Constants

Centralized constants for network endpoints, defaults, and retry tuning.
"""

# Network endpoints (local has none; --rest-url is required there)
NETWORK_REST_URLS = {
    "mainnet": "https://api.mainnet.aptoslabs.com/v1",
    "testnet": "https://api.testnet.aptoslabs.com/v1",
    "devnet": "https://api.devnet.aptoslabs.com/v1",
    "local": None,
}

NETWORK_FAUCET_URLS = {
    "mainnet": None,
    "testnet": "https://faucet.testnet.aptoslabs.com",
    "devnet": "https://faucet.devnet.aptoslabs.com",
    "local": None,
}

# Configuration defaults
DEFAULT_NETWORK = "devnet"
DEFAULT_MODULE_TYPE = "object"
DEFAULT_FAILURE_POLICY = "abort-on-first-failure"
DEFAULT_OUTPUT_JSON = "deploy-report.json"
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_MAX_WORKERS = 4

# Retry / polling
RETRY_BASE_DELAY = 0.5
RETRY_MAX_DELAY = 8.0
CONFIRM_POLL_INTERVAL = 1.0
CONFIRM_TIMEOUT = 60.0
HTTP_TIMEOUT = 10

# Transaction parameters
DEFAULT_MAX_GAS_AMOUNT = 200_000
DEFAULT_GAS_UNIT_PRICE = 100
TRANSACTION_EXPIRATION_SECS = 600
FAUCET_FUND_AMOUNT = 100_000_000

# Move framework entry points
OBJECT_PUBLISH_FUNCTION = "0x1::object_code_deployment::publish"
ACCOUNT_PUBLISH_FUNCTION = "0x1::code::publish_package_txn"
OBJECT_CODE_DEPLOYMENT_DOMAIN_SEPARATOR = b"aptos_framework::object_code_deployment"
OBJECT_FROM_SEED_ADDRESS_SCHEME = 0xFE

# Package layout
MANIFEST_FILE = "Move.toml"
BUILD_DIR = "build"
PACKAGE_METADATA_FILE = "package-metadata.bcs"
BYTECODE_DIR = "bytecode_modules"
PLACEHOLDER_VALUE = "_"

# Logs
LOG_DIR = ".jayce/logs"
LOG_DATE_FORMAT = "%Y-%m-%d"
LOG_TIME_FORMAT = "%H-%M-%S"

# Error Messages
ERROR_LOCAL_NEEDS_REST_URL = "Network 'local' has no default REST url"
ERROR_NO_PRIVATE_KEY = "No private key supplied and network '{network}' has no faucet"
