"""CLI entry point for the Kong OAuth 2.0 consent application.

Commands:
    start     Run the consent application in the foreground
    status    Show configuration and check that Kong is reachable
    version   Show version information
    help      Show detailed help
"""
import argparse
import sys

import requests
import uvicorn

from config import SERVICE_NAME, VERSION, load_settings
from logging_config import setup_logging


def check_kong_admin(admin_endpoint: str, timeout: float, verify: bool) -> tuple[bool, str]:
    """Call the Kong Admin API root. Returns (reachable, detail)."""
    if not admin_endpoint:
        return False, "KONG_ADMIN_ENDPOINT not set"
    try:
        response = requests.get(admin_endpoint, timeout=timeout, verify=verify)
        if response.status_code != 200:
            return False, f"HTTP {response.status_code}"
        version = response.json().get("version", "unknown")
    except requests.RequestException as e:
        return False, str(e)
    return True, f"Kong {version}"


def cmd_start(host: str = None, port: int = None):
    """Run the server in the foreground."""
    settings = load_settings()
    setup_logging(settings.log_level, settings.log_format)
    uvicorn.run(
        "main:app",
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
    )


def cmd_status():
    """Show current configuration and Kong reachability."""
    settings = load_settings()

    print("\n" + "=" * 50)
    print("  Kong OAuth 2.0 Consent Status")
    print("=" * 50)

    print("\n[Config]")
    for key, value in sorted(settings.masked().items()):
        print(f"  {key:<26}{value}")

    missing = settings.missing()
    if missing:
        print(f"\n  Missing:  {', '.join(missing)}")

    print("\n[Kong Admin API]")
    reachable, detail = check_kong_admin(
        settings.kong_admin_endpoint,
        settings.provider_timeout_seconds,
        settings.provider_verify_tls,
    )
    print(f"  Status:   {'Reachable' if reachable else 'Unreachable'}")
    print(f"  Detail:   {detail}")

    print("\n" + "=" * 50 + "\n")
    return 0 if reachable and not missing else 1


def cmd_version():
    print(f"{SERVICE_NAME} v{VERSION}")


def cmd_help():
    """Show detailed help."""
    print("""
Kong OAuth 2.0 Consent - consent application for Kong's OAuth 2.0 plugin

USAGE:
    kong-consent <command> [--host HOST] [--port PORT]

COMMANDS:
    start       Run the consent application (default)
    status      Show configuration and check Kong reachability
    version     Show version information
    help        Show this help message

CONFIGURATION (environment or .env):
    KONG_ADMIN_ENDPOINT     Kong Admin API base URL
    KONG_PROXY_ENDPOINT     Kong proxy base URL
    API_PATH                Path of the API protected by the OAuth 2.0 plugin
    PROVISION_KEY           The plugin's provision key
    DEMO_CLIENT_ID          client_id used by the home page link
""")


def main(argv=None):
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        prog="kong-consent",
        description="Kong OAuth 2.0 Consent application",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="start",
        choices=["start", "status", "version", "help"],
        help="Command to run (default: start)"
    )
    parser.add_argument("--host", help="Bind address (default: CONSENT_HOST)")
    parser.add_argument("--port", type=int, help="Bind port (default: CONSENT_PORT)")

    args = parser.parse_args(argv)

    if args.command == "start":
        cmd_start(args.host, args.port)
    elif args.command == "status":
        sys.exit(cmd_status())
    elif args.command == "version":
        cmd_version()
    elif args.command == "help":
        cmd_help()


if __name__ == "__main__":
    main()
