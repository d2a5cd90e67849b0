"""Core constants for rpcpipe.

Single source of truth for the client identity and well-known endpoints. All
modules should import from here instead of hardcoding URLs or header values.
"""

__version__ = "0.1.0"

APPLICATION_JSON = "application/json"

# Header a Solana node uses to identify the calling client library
SOLANA_CLIENT_HEADER = "solana-client"

LOCALNET_URL = "http://localhost:8899"
DEVNET_URL = "https://api.devnet.solana.com"
MAINNET_URL = "https://api.mainnet-beta.solana.com"


def client_version() -> str:
    """Get the client identity sent in the ``solana-client`` header."""
    return f"python/rpcpipe-{__version__}"


def localnet_url() -> str:
    """Get the URL of a local test validator."""
    return LOCALNET_URL


def devnet_url() -> str:
    """Get the public devnet endpoint."""
    return DEVNET_URL


def mainnet_url() -> str:
    """Get the public mainnet-beta endpoint."""
    return MAINNET_URL
