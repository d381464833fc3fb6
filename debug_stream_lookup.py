#!/usr/bin/env python3
"""
Debug script for single stream lookup

Runs get_stream for one stream id with debug logging on, so every request,
retry and fallback the service makes is visible, then prints the result.
"""

import sys
import asyncio
import logging
import argparse

from rich.console import Console

from moveflow.config import load_config
from moveflow.stream_query_service import StreamQueryService


def setup_debug_logging():
    """Configure detailed logging for debugging."""
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    logging.basicConfig(level=logging.DEBUG, format=log_format)

    # Silence some noisy loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return logging.getLogger("debug_stream_lookup")


def main():
    parser = argparse.ArgumentParser(description="Debug a single MoveFlow stream lookup")
    parser.add_argument('stream_id', help='On-chain stream id')
    parser.add_argument('--raw', action='store_true', help='Also print the raw view function result')
    args = parser.parse_args()

    logger = setup_debug_logging()
    try:
        config = load_config(require_key=False)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    logger.info(f"Looking up stream {args.stream_id} on {config.network.name} (contract {config.network.contract})")
    service = StreamQueryService(config)
    console = Console()

    async def run():
        try:
            if args.raw:
                async with service.node_factory() as node:
                    raw = await service.client.fetch_stream(node, args.stream_id,
                                                            timeout=config.timeouts.fetch_request)
                console.rule("view result")
                console.print_json(data=raw)
            return await service.get_stream(args.stream_id)
        finally:
            await service.client.close()

    try:
        result = asyncio.run(run())
    except Exception as e:
        logger.error(f"Error occurred: {str(e)}", exc_info=True)
        sys.exit(1)

    console.rule("get_stream")
    console.print_json(data=result)
    if not result.get('success'):
        sys.exit(1)


if __name__ == "__main__":
    main()
