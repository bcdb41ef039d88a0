#!/usr/bin/env python3

import uvicorn
from api.app import create_app
from logger import get_logger

logger = get_logger()


def cmd_serve(args, services):
    """Run the HTTP API."""
    config = services.config
    host = args.host or config.api_host
    port = args.port or config.api_port

    if not config.api_tokens:
        logger.warning(
            "No API tokens configured; every request will be rejected. "
            "Add them under [api.tokens] in the config file."
        )

    logger.info(f"Starting API on http://{host}:{port}")
    uvicorn.run(create_app(services), host=host, port=port, log_level=config.log_level.lower())


def setup_parser(subparsers):
    """Setup serve command parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP API",
        description="Serve the wellness API with uvicorn",
    )
    parser.add_argument("--host", help="Bind address, default from config")
    parser.add_argument("--port", type=int, help="Port, default from config")
    parser.set_defaults(func=cmd_serve)
