import os

from ..errors import ConfigurationError
from .block_explorer import block_explorer_config

OVERRIDE_ENV = "ETHERSCAN_API_KEY"


def get_api_key(network: str) -> str:
    """Resolve the block explorer API key for a network.

    ETHERSCAN_API_KEY wins when set, otherwise the network's own variable
    (e.g. BSCSCAN_API_KEY) is used.

    Raises:
        ConfigurationError: if the network is unknown or no key is configured.
    """
    network = network.lower()
    if network not in block_explorer_config:
        raise ConfigurationError(
            f"Unsupported network: {network}. Supported networks are: {', '.join(block_explorer_config.keys())}"
        )

    api_key = os.getenv(OVERRIDE_ENV)
    if api_key:
        return api_key

    env_name = block_explorer_config[network]["api_key_env"]
    api_key = os.getenv(env_name)
    if not api_key:
        raise ConfigurationError(
            f"Please set {OVERRIDE_ENV} or {env_name} in your environment or .env"
        )
    return api_key
