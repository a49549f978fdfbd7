#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Entry Point
Runs the dashboard API server

Version: 1.0.0
"""

import argparse
import logging
import sys

import uvicorn

from config import config
from utils.logger import setup_logging

logger = logging.getLogger(__name__)

def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='StudySync - gamified study tracker')
    parser.add_argument('--host', type=str, default=config.server.host, help='Bind address')
    parser.add_argument('--port', type=int, default=config.server.port, help='Listen port')
    parser.add_argument('--reload', action='store_true', help='Reload on code changes (development)')
    return parser.parse_args(argv)

def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging()

    logger.info("🚀 Starting StudySync v1.0")
    logger.info(f"🌐 Host: {args.host}:{args.port}")
    logger.info(f"☁️ Remote sync: {'✅' if config.remote.enabled else '❌'}")
    logger.info(f"🤖 Assistant: {'✅' if config.ai.enabled else '❌'}")

    uvicorn.run(
        "dashboard.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,
        log_level=config.log_level.value.lower(),
    )
    return 0

if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logger.info("👋 Stopped by user")
