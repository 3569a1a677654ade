"""
Command-line interface for the Steam catalog sync.

Provides commands to inspect configuration, fetch a single app,
run a sync and query the local catalog.
"""

import asyncio
import json
import sys
from datetime import datetime, timezone
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from steam_catalog.config import get_settings
from steam_catalog.logger import get_logger, setup_logging

logger = get_logger(__name__, component="cli")


class CLIOutput(BaseModel):
    """Structured output for CLI commands."""

    success: bool
    command: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data: dict[str, Any] | list[Any] | None = None
    error: str | None = None


def print_json(output: CLIOutput) -> None:
    """Print output as formatted JSON."""
    print(json.dumps(output.model_dump(mode="json"), indent=2, ensure_ascii=False))


def get_option(args: list[str], name: str, default: str | None = None) -> str | None:
    """Value following ``--name`` in args, or default."""
    flag = f"--{name}"
    if flag in args:
        idx = args.index(flag)
        if idx + 1 < len(args):
            return args[idx + 1]
    return default


async def cmd_fetch_app(app_id: int) -> bool:
    """Fetch and normalize one app from the Store API."""
    from steam_catalog.catalog.normalizer import normalize
    from steam_catalog.ingestion.extractors import SteamStoreExtractor

    logger.info("Fetching app", app_id=app_id)

    async with SteamStoreExtractor() as extractor:
        result = await extractor.extract(app_id=app_id)

    record = normalize(result.data) if result.success else None
    error = result.error_message
    if result.success and record is None:
        error = f"app_id={app_id} is unavailable or not a game"

    output = CLIOutput(
        success=record is not None,
        command="fetch-app",
        data=record.to_document() if record else None,
        error=error,
    )
    print_json(output)
    return output.success


async def cmd_sync(max_minutes: float | None = None) -> bool:
    """Run one sync and print its summary."""
    from steam_catalog.ingestion.orchestrator import SyncOrchestrator

    settings = get_settings()
    if max_minutes is not None:
        settings = settings.model_copy(
            update={"sync": settings.sync.model_copy(update={"max_runtime_minutes": max_minutes})}
        )

    result = await SyncOrchestrator(settings=settings).run()

    output = CLIOutput(
        success=result.success,
        command="sync",
        data=result.to_dict(),
        error=result.error_message,
    )
    print_json(output)
    return result.success


def cmd_query(args: list[str]) -> bool:
    """Query the local catalog."""
    from steam_catalog.query import QueryFilters, QueryService

    filters = QueryFilters(
        platform=get_option(args, "platform"),
        keyword=get_option(args, "keyword"),
        tags=get_option(args, "tags"),
        expectations=get_option(args, "expectations"),
        demand=get_option(args, "demand"),
    )
    result = QueryService().query(
        filters,
        sort=get_option(args, "sort", "rating") or "rating",
        page=int(get_option(args, "page", "1") or 1),
        size=int(get_option(args, "size", "0") or 0) or None,
    )

    print_json(CLIOutput(success=True, command="query", data=result.to_document()))
    return True


def cmd_test_config() -> bool:
    """Test configuration loading."""
    settings = get_settings()

    output = CLIOutput(
        success=True,
        command="test-config",
        data={
            "environment": settings.environment,
            "store_url": settings.steam.store_url,
            "app_list_url": settings.steam.app_list_url,
            "app_list_fallback_url": settings.steam.app_list_fallback_url,
            "country_code": settings.steam.country_code,
            "batch_size": settings.sync.batch_size,
            "delay_seconds": settings.sync.delay_seconds,
            "max_runtime_minutes": settings.sync.max_runtime_minutes,
            "catalog_path": str(settings.storage.catalog_path),
            "progress_path": str(settings.storage.progress_path),
        },
    )
    print_json(output)
    return True


def print_usage() -> None:
    """Print CLI usage information."""
    usage = """
Steam Catalog Sync CLI
======================

Usage: steam-catalog <command> [arguments]

Commands:
  test-config                 Show the effective configuration
  fetch-app <app_id>          Fetch and normalize one app from the Store API
  sync                        Run one catalog sync
  query                       Query the local catalog

Options:
  sync   --max-minutes <n>    Override the run budget
  query  --keyword <text>     Match title or tags
         --tags <a,b>         Require any of these tags
         --platform <name>    PC, Mac, Linux, PS, Xbox, NS
         --expectations <a,b> Story, Open World, Multiplayer, ...
         --demand <a,b>       Sale, Free, Positive, Trending
         --sort <key>         rating, price_asc, price_desc, dau
         --page <n> --size <n>

Examples:
  steam-catalog sync --max-minutes 20
  steam-catalog query --tags RPG --demand Sale --sort price_asc
"""
    print(usage)


def main() -> None:
    """Main CLI entry point."""
    if len(sys.argv) < 2:
        print_usage()
        sys.exit(1)

    # Section settings read os.environ only, so .env must be loaded first
    load_dotenv()
    setup_logging()
    command = sys.argv[1]
    args = sys.argv[2:]

    try:
        if command == "test-config":
            ok = cmd_test_config()

        elif command == "fetch-app":
            if not args:
                print("Error: app_id required")
                sys.exit(1)
            ok = asyncio.run(cmd_fetch_app(int(args[0])))

        elif command == "sync":
            max_minutes = get_option(args, "max-minutes")
            ok = asyncio.run(cmd_sync(float(max_minutes) if max_minutes else None))

        elif command == "query":
            ok = cmd_query(args)

        elif command in ("help", "--help", "-h"):
            print_usage()
            ok = True

        else:
            print(f"Unknown command: {command}")
            print_usage()
            sys.exit(1)

    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.exception("CLI error", error=str(e))
        print_json(CLIOutput(success=False, command=command, error=str(e)))
        sys.exit(1)

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
