#!/usr/bin/env python3
# ================================================================================
# Gallery Sanity Check
# ================================================================================
#
# Runs a Selenium-style sanity check of the component gallery and saves a
# screenshot of it.
#
# Requires chromedriver (or Chrome, for --backend cdp) on the PATH. Run it
# from the top-level directory of the gallery package after its dependencies
# have been fetched.
#
# The components themselves are tested elsewhere, and much more thoroughly.
# This check exists solely for the gallery.
#
# Usage:
#   python run_sanity_check.py
#   python run_sanity_check.py --backend cdp --readiness-timeout 600
#   SANITY_APP_PORT=8200 python run_sanity_check.py
#
# Exit codes:
#   0  all scenarios passed
#   2  the automation driver could not be launched
#   1  anything else (the error is raised with a traceback)
#
# ================================================================================

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from gallery_sanity.common import (
    ConfigLoader,
    HarnessConfig,
    SUPPORTED_BACKENDS,
    init_logger,
)
from gallery_sanity.runner import run_sanity_check


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Gallery sanity check",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Default: pub serve on 8123, chromedriver on 127.0.0.1:9515
  python run_sanity_check.py

  # Attach Playwright to Chrome over CDP instead of chromedriver
  python run_sanity_check.py --backend cdp

  # Give a slow first compile more time
  python run_sanity_check.py --readiness-timeout 900
        """
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML configuration file (default: config/config.yaml)"
    )

    parser.add_argument(
        "--backend",
        choices=SUPPORTED_BACKENDS,
        default=None,
        help="Remote automation backend (default: webdriver)"
    )

    parser.add_argument(
        "--app-port",
        type=int,
        default=None,
        help="Port the application server listens on (default: 8123)"
    )

    parser.add_argument(
        "--driver-endpoint",
        default=None,
        help="Automation driver URL (default: http://127.0.0.1:9515/)"
    )

    parser.add_argument(
        "--readiness-timeout",
        type=float,
        default=None,
        help="Seconds to wait for the page to load; 0 waits forever (default: 300)"
    )

    parser.add_argument(
        "--screenshot",
        default=None,
        help="Screenshot file name (default: screenshot.png)"
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Diagnostic log level (default: INFO)"
    )

    return parser


def load_config(args: argparse.Namespace) -> HarnessConfig:
    """Merge command line flags over the YAML/environment configuration."""
    loader = ConfigLoader(config_path=args.config)

    overrides = {
        "driver.backend": args.backend,
        "app.port": args.app_port,
        "driver.endpoint": args.driver_endpoint,
        "readiness.timeout": args.readiness_timeout,
        "screenshot.filename": args.screenshot,
        "logging.level": args.log_level,
    }
    for key, value in overrides.items():
        if value is not None:
            loader.set(key, value)

    init_logger(loader)
    return HarnessConfig.from_loader(loader)


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    config = load_config(args)
    logger.debug(f"Configuration: {config}")

    sys.exit(run_sanity_check(config))


if __name__ == "__main__":
    main()
