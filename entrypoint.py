import asyncio
import os

import uvicorn
from logging_config import setup_logging

# Setup logging before importing app
log_level = os.getenv("LOG_LEVEL", "INFO")
log_file = os.getenv("LOG_FILE", None)
setup_logging(log_level=log_level, log_file=log_file)

from app import create_registry_app, create_relay_app
from constants import HOST, REGISTRY_PORT, RELAY_PORT, WORLDS_FILE
from logging_config import get_logger

logger = get_logger(__name__)


async def serve(host: str = HOST, relay_port: int = RELAY_PORT, registry_port: int = REGISTRY_PORT) -> None:
    """Run the WebSocket relay and the HTTP world registry side by side in one event loop."""
    relay = uvicorn.Server(uvicorn.Config(create_relay_app(), host=host, port=relay_port, log_config=None))
    registry = uvicorn.Server(uvicorn.Config(create_registry_app(), host=host, port=registry_port, log_config=None))
    logger.info(f"WebSocket relay running on ws://{host}:{relay_port}")
    logger.info(f"World registry API available at http://{host}:{registry_port} (file: {WORLDS_FILE})")
    await asyncio.gather(relay.serve(), registry.serve())


def main() -> None:
    asyncio.run(serve())


if __name__ == "__main__":
    main()
