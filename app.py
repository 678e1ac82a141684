"""
Recipient Duplicate Detection Entry Point
-----------------------------------------
This file serves as the entry point for running the API server.
"""

import logging

from recipient_dedupe import config

# Configure logging
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)

# Import the app from the main module
from recipient_dedupe.main import app

# If this file is run directly, start the server
if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting Recipient Duplicate Detection API on {config.HOST}:{config.PORT}")
    uvicorn.run("app:app", host=config.HOST, port=config.PORT, reload=True)
