"""CLI entry point for the Deye Google Home bridge.

Runs the fulfillment server and offers a few checks against a running
server and against Deye Cloud.
"""
import argparse
import asyncio
import json
import sys

import requests
import uvicorn

from config import load_config
from deye.client import DeyeCloudError
from logging_config import setup_logging

VERSION = "1.0.0"


# ============== CLI Commands ==============

def cmd_start():
    """Start the server in the foreground."""
    config = load_config()
    setup_logging(level=config.log_level, log_format=config.log_format)

    if not config.has_deye_credentials():
        print("[WARNING] DEYE_APP_ID / DEYE_APP_SECRET / DEYE_EMAIL / DEYE_PASSWORD not set.")
        print("  Account linking works, but device intents will return hardError.\n")

    print(f"Starting Deye Google Home bridge on {config.host}:{config.port}")
    print(f"  Fulfillment endpoint: http://localhost:{config.port}/fulfillment")
    uvicorn.run("main:app", host=config.host, port=config.port)


def cmd_status():
    """Check whether a local server is up."""
    config = load_config()
    url = f"http://localhost:{config.port}/health"

    try:
        response = requests.get(url, timeout=5)
        response.raise_for_status()
        data = response.json()
    except requests.RequestException as e:
        print(f"[X] Server not reachable at {url}: {e}")
        sys.exit(1)

    print(f"[OK] Server is {data.get('status', 'unknown')} at {url}")
    print(f"  Deye Cloud configured: {data.get('deye_configured')}")


def cmd_devices():
    """List devices on the Deye account, bypassing the server."""
    from main import create_deye_client

    config = load_config()
    client = create_deye_client(config)
    if client is None:
        print("[X] Deye Cloud credentials are not configured.")
        sys.exit(1)

    try:
        devices = asyncio.run(client.get_device_list())
    except DeyeCloudError as e:
        print(f"[X] Failed to list devices: {e}")
        sys.exit(1)

    print(json.dumps(devices, indent=2))


def cmd_version():
    """Show version information."""
    print(f"deye-google-home v{VERSION}")


def cmd_help():
    """Show detailed help."""
    print("""
Deye Google Home bridge - Google smart-home fulfillment for Deye Cloud

USAGE:
    deye-google-home <command>

COMMANDS:
    start       Start the server (foreground)
    status      Check a running local server via /health
    devices     List devices on the configured Deye account
    version     Show version information
    help        Show this help message

CONFIGURATION (environment or .env):
    DEYE_APP_ID, DEYE_APP_SECRET, DEYE_EMAIL, DEYE_PASSWORD
    DEYE_API_BASE_URL     (default https://eu1-developer.deyecloud.com)
    OAUTH_CLIENT_ID       (default deye-google-home)
    OAUTH_CLIENT_SECRET
    PORT                  (default 3000)
    LOG_LEVEL, LOG_FORMAT (plain or json)
""")


# ============== Main Entry Point ==============

COMMANDS = {
    "start": cmd_start,
    "status": cmd_status,
    "devices": cmd_devices,
    "version": cmd_version,
    "help": cmd_help,
}


def main(argv=None):
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        prog="deye-google-home",
        description="Deye Google Home bridge",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="start",
        choices=list(COMMANDS),
        help="Command to run (default: start)"
    )
    parser.add_argument("--version", "-v", action="store_true", help=argparse.SUPPRESS)

    args = parser.parse_args(argv)

    if args.version:
        cmd_version()
    else:
        COMMANDS[args.command]()


if __name__ == "__main__":
    main()
