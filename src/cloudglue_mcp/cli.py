"""
Command-line helpers for cloudglue-mcp.

Usage:
    cloudglue-mcp-config show
    cloudglue-mcp-config validate
    cloudglue-mcp-config validate --check-api
    cloudglue-mcp-config job transcribe JOB_ID --wait
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from cloudglue_mcp.config import loader
from cloudglue_mcp.exceptions import CloudglueMcpError
from cloudglue_mcp.utils.logging import configure_logging


def _config_file():
    """(path, parsed) of the config file in effect, project before user."""
    project_path = loader._find_project_config()
    if project_path:
        return project_path, loader._load_yaml_config(project_path)
    user_path = loader._get_user_config_path()
    if user_path.exists():
        return user_path, loader._load_yaml_config(user_path)
    return None, None


def _cmd_show(args):
    """Handle the show subcommand."""
    try:
        config = loader.resolve_config()
    except CloudglueMcpError as e:
        print(f"ERROR: {e}")
        sys.exit(1)
    print(json.dumps(config.to_dict(), indent=2))


async def _check_api(config) -> str | None:
    """Error message if the API rejects the configured key, else None."""
    from cloudglue_mcp.api.client import CloudglueClient

    async with CloudglueClient.from_config(config) as client:
        try:
            await client.list_collections(limit=1)
        except CloudglueMcpError as e:
            return str(e)
    return None


def _cmd_validate(args):
    """Handle the validate subcommand."""
    config_path, yaml_config = _config_file()
    if config_path:
        print(f"Config file: {config_path}")
        if yaml_config is None:
            print("  Failed to parse config file.")
            sys.exit(1)
    else:
        print("No config file found.")
        print("  Searched: .cloudglue-mcp/config.yaml (project)")
        print(f"  Searched: {loader._get_user_config_path()} (user)")

    errors = []
    try:
        config = loader.resolve_config()
    except CloudglueMcpError as e:
        print(f"\nErrors (1):\n  x {e}")
        print("\nConfig is invalid.")
        sys.exit(1)

    if not config.api_key:
        errors.append("API key not set (--api-key, CLOUDGLUE_API_KEY or api_key in config)")
    else:
        print(f"API key: set (from {config.source.value})")
    print(f"Base URL: {config.base_url}")
    print(f"Working directory: {config.working_dir}")
    if not config.working_dir.is_dir():
        errors.append(f"Working directory does not exist: {config.working_dir}")

    if args.check_api and not errors:
        api_error = asyncio.run(_check_api(config))
        if api_error:
            errors.append(f"API check failed: {api_error}")
        else:
            print("API check: ok")

    if errors:
        print(f"\nErrors ({len(errors)}):")
        for error in errors:
            print(f"  x {error}")
        print(f"\nConfig is invalid: {len(errors)} error(s).")
    else:
        print("\nConfig is valid.")

    sys.exit(1 if errors else 0)


async def _job_status(config, kind: str, job_id: str, wait: bool) -> dict:
    from cloudglue_mcp.api.client import CloudglueClient

    async with CloudglueClient.from_config(config) as client:
        if wait:
            return await client.wait_for_job(kind, job_id)
        return await client.get_job(kind, job_id)


def _cmd_job(args):
    """Handle the job subcommand."""
    try:
        config = loader.resolve_config()
        configure_logging(config.log_level)
        job = asyncio.run(_job_status(config, args.kind, args.job_id, args.wait))
    except CloudglueMcpError as e:
        print(f"ERROR: {e}")
        sys.exit(1)
    print(json.dumps(job, indent=2))
    if args.wait and job.get("status") != "completed":
        sys.exit(1)


def main(argv: list[str] | None = None):
    """Main entry point for the cloudglue-mcp-config command."""
    parser = argparse.ArgumentParser(
        prog="cloudglue-mcp-config",
        description="Inspect cloudglue-mcp configuration and jobs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    %(prog)s show
    %(prog)s validate --check-api
    %(prog)s job describe JOB_ID --wait
        """,
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("show", help="Print the resolved configuration as JSON")

    validate_parser = subparsers.add_parser("validate", help="Validate configuration")
    validate_parser.add_argument(
        "--check-api", action="store_true",
        help="Also make one API call to verify the key",
    )

    job_parser = subparsers.add_parser("job", help="Show the status of an analysis job")
    job_parser.add_argument("kind", choices=["describe", "transcribe", "extract", "segments"])
    job_parser.add_argument("job_id", help="Job ID")
    job_parser.add_argument(
        "--wait", action="store_true",
        help="Poll until the job finishes",
    )

    args = parser.parse_args(argv)

    if args.command == "show":
        _cmd_show(args)
    elif args.command == "validate":
        _cmd_validate(args)
    elif args.command == "job":
        _cmd_job(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
