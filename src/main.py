"""
Desguace WooCommerce integration - command line entry point.

Commands:
    init-config    seed general and notification defaults
    check-config   print every configuration row as JSON
    woo-config     print stored WooCommerce credentials (secret masked)
    woo-save       store WooCommerce credentials
    woo-test       probe the shop (stored or given credentials)
    woo-products   list one page of shop products
"""

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence
from typing import Any

from src.config.settings import Settings
from src.database.postgres import PostgresClient
from src.domain.errors import WooCommerceConfigError
from src.logger.logger import Logger, get_logger, init_logger
from src.logger.postgres_writer import PostgresWriter
from src.logger.types import Category, param
from src.repository.config_repository import ConfigRepository
from src.services.config_initializer import dump_config, initialize_defaults
from src.services.woocommerce_service import DEFAULT_PER_PAGE, WooCommerceService


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="desguace-woo")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-config", help="Seed default configuration")
    commands.add_parser("check-config", help="Print all configuration rows")
    commands.add_parser("woo-config", help="Print stored WooCommerce configuration")

    save = commands.add_parser("woo-save", help="Store WooCommerce credentials")
    save.add_argument("--url", required=True)
    save.add_argument("--key", required=True, dest="consumer_key")
    save.add_argument("--secret", required=True, dest="consumer_secret")
    save.add_argument("--version", default="wc/v3")

    test = commands.add_parser("woo-test", help="Test the WooCommerce connection")
    test.add_argument("--url")
    test.add_argument("--key", dest="consumer_key")
    test.add_argument("--secret", dest="consumer_secret")
    test.add_argument("--version", default="wc/v3")

    products = commands.add_parser("woo-products", help="List WooCommerce products")
    products.add_argument("--page", type=int, default=1)
    products.add_argument("--per-page", type=int, default=DEFAULT_PER_PAGE)
    products.add_argument("--search", default="")

    return parser


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def _credentials(args: argparse.Namespace) -> dict[str, Any]:
    return {
        "url": args.url,
        "consumer_key": args.consumer_key,
        "consumer_secret": args.consumer_secret,
        "version": args.version,
    }


async def run_command(
    args: argparse.Namespace,
    repository: ConfigRepository,
    service: WooCommerceService,
) -> int:
    """Execute one parsed command, returning the process exit code."""
    if args.command == "init-config":
        written = initialize_defaults(repository)
        print(f"Configuration initialized: {written} entries")
        return 0

    if args.command == "check-config":
        rows = dump_config(repository)
        print(f"Configuration entries found: {len(rows)}")
        _print_json(rows)
        return 0

    if args.command == "woo-config":
        config = await service.load_config()
        _print_json(config.masked())
        return 0

    if args.command == "woo-save":
        try:
            config = service.validate_config(_credentials(args))
        except WooCommerceConfigError as e:
            for problem in e.errors:
                print(f"invalid: {problem}", file=sys.stderr)
            return 1
        await service.save_config(config, updated_by="cli")
        print("WooCommerce configuration saved")
        return 0

    if args.command == "woo-test":
        config = None
        if args.url or args.consumer_key or args.consumer_secret:
            try:
                config = service.validate_config(_credentials(args))
            except WooCommerceConfigError as e:
                for problem in e.errors:
                    print(f"invalid: {problem}", file=sys.stderr)
                return 1
        ok = await service.test_connection(config)
        print("Connection to WooCommerce succeeded" if ok else "Could not connect to WooCommerce")
        return 0 if ok else 1

    if args.command == "woo-products":
        page = await service.list_products(
            page=args.page, per_page=args.per_page, search=args.search
        )
        _print_json(page.to_dict())
        return 0

    raise ValueError(f"Unknown command: {args.command}")


async def shutdown(
    postgres_client: PostgresClient,
    log_writer: PostgresWriter | None,
    logger: Logger,
) -> None:
    """Close process-scoped resources."""
    await postgres_client.close()
    if log_writer:
        await log_writer.close()
    logger.debug("Shutdown complete")


def _init_logging(settings: Settings, writer: PostgresWriter | None) -> Logger:
    init_logger(
        service_name=settings.service_name,
        environment=settings.environment,
        writer=writer,
        level=settings.log_level,
    )
    return get_logger().with_category(Category.CLI).with_request_id()


async def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    settings = Settings()

    log_writer: PostgresWriter | None = None
    if settings.log_to_postgres:
        log_writer = PostgresWriter(dsn=settings.postgres.dsn)
        try:
            await log_writer.connect()
        except Exception as e:
            await log_writer.close()
            _init_logging(settings, None).error(
                "Could not connect log writer to PostgreSQL",
                e,
                param("command", args.command),
            )
            return 1

    logger = _init_logging(settings, log_writer)

    postgres_client = PostgresClient(settings.postgres)
    try:
        await postgres_client.connect()
        logger.debug(
            "Connected to PostgreSQL",
            param("host", settings.postgres.host),
            param("database", settings.postgres.database),
        )

        repository = ConfigRepository(postgres_client)
        if not repository.ensure_table_exists():
            return 1
        service = WooCommerceService(repository, settings.woocommerce)

        return await run_command(args, repository, service)
    except Exception as e:
        logger.error(f"Command {args.command} failed", e, param("command", args.command))
        return 1
    finally:
        await shutdown(postgres_client, log_writer, logger)


def cli() -> None:
    """Console script entry."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
