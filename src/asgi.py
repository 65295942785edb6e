"""
ASGI entry point for uvicorn
This module exposes the FastAPI app for use with uvicorn command line
"""

import logging
import os

from config_loader import load_config, setup_logging
from services.hue_link_server import build_components

config = load_config(os.environ.get('CONFIG_FILE', 'config/config.yaml'))
setup_logging(config)

logger = logging.getLogger(__name__)

logger.info("Initializing application components...")
components = build_components(config)

# Expose the FastAPI app for uvicorn
app = components.api.app


@app.on_event("shutdown")
async def shutdown_event():
    """Release HTTP sessions and stop any pairing attempt"""
    logger.info("Shutting down application...")
    await components.pairing_sessions.close()
    await components.http.close()
    logger.info("Application shut down complete")

logger.info("ASGI app ready for uvicorn")
