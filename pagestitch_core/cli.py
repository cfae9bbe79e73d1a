#!/usr/bin/env python3
import argparse
import asyncio
import sys
from typing import List, Optional

from .config import IMAGE_FORMATS, CaptureConfig
from .exceptions import ConfigurationError, PageStitchError
from .log_config import LogConfig, configure_logging
from .storage import save_screenshot


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pagestitch",
        description="Full-page screenshot by scrolling and stitching viewport tiles",
    )
    p.add_argument("url", help="Page to capture")
    p.add_argument("-o", "--output", help="Output file (default: screenshots/<domain>/fullpage_<ts>.png)")
    p.add_argument("--width", type=int, dest="viewport_width", help="Viewport width")
    p.add_argument("--height", type=int, dest="viewport_height", help="Viewport height")
    p.add_argument("--overlap", type=int, help="Overlap between tiles in pixels")
    p.add_argument("--use-proxy", action="store_true", default=None,
                   help="Retry a failed navigation once through the authenticated proxy")
    p.add_argument("--proxy-server", help="Proxy URL for the retry, e.g. http://proxy:8001")
    p.add_argument("--proxy-username", help="Proxy username")
    p.add_argument("--proxy-password", help="Proxy password")
    p.add_argument("--executable", dest="browser_executable", help="Alternate browser binary")
    p.add_argument("--format", dest="image_format", choices=IMAGE_FORMATS, help="Output image format")
    p.add_argument("--timeout", type=int, dest="navigation_timeout_ms", help="Navigation timeout in ms")
    p.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    return p


def config_from_args(args: argparse.Namespace) -> CaptureConfig:
    return CaptureConfig.from_env(
        viewport_width=args.viewport_width,
        viewport_height=args.viewport_height,
        overlap=args.overlap,
        use_proxy=args.use_proxy,
        proxy_server=args.proxy_server,
        proxy_username=args.proxy_username,
        proxy_password=args.proxy_password,
        browser_executable=args.browser_executable,
        image_format=args.image_format,
        navigation_timeout_ms=args.navigation_timeout_ms,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    log_config = LogConfig.from_env()
    if args.log_level:
        log_config.log_level = args.log_level
    configure_logging(log_config, secrets=config.sensitive_values)

    try:
        path = asyncio.run(save_screenshot(args.url, args.output, config))
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except PageStitchError as e:
        print(f"Capture failed: {e}", file=sys.stderr)
        return 1

    print(f"Saved screenshot to {path}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
