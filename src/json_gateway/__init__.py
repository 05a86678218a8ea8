from json_gateway.app import Gateway, create_app
from json_gateway.config import GatewayConfig

__all__ = ["Gateway", "GatewayConfig", "create_app"]
