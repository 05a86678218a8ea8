import logging

from json_gateway.app import Gateway
from json_gateway.config import GatewayConfig

logger = logging.getLogger("json-gateway")


def main() -> None:
    config = GatewayConfig.from_env()
    logging.basicConfig(level=config.log_level)

    gateway = Gateway(config)
    logger.info(
        "Gateway listening on %s:%d, forwarding to %s",
        config.host, config.port, config.backend_url,
    )
    try:
        gateway.app.run(host=config.host, port=config.port, threaded=True)
    finally:
        gateway.close()
