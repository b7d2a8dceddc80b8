from .core.env import Env, get_env, get_env_flags
from .core.logging import setup_logging
from .settings import GatewaySettings, get_gateway_settings

__all__ = [
    "Env",
    "get_env",
    "get_env_flags",
    "setup_logging",
    "GatewaySettings",
    "get_gateway_settings",
]
