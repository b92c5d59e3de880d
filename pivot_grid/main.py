"""
main.py - Main entry point for the Pivot Grid Engine
"""
import logging

import uvicorn

from pivot_grid.config import config_manager
from pivot_grid.controller import PivotGridController
from pivot_grid.rest_api import create_api


def main():
    """
    Start the Pivot Grid Engine server.
    """
    config = config_manager.load_config('env')
    logging.basicConfig(level=getattr(logging, config.log_level))
    logger = logging.getLogger(__name__)

    api = create_api(PivotGridController(config=config))
    logger.info("Starting Pivot Grid Engine on %s:%d", config.host, config.port)
    uvicorn.run(api.get_app(), host=config.host, port=config.port)


if __name__ == "__main__":
    main()
