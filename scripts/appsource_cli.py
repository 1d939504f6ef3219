"""CLI entrypoint for reading container settings and querying the Ingestion API."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from appsource.api import IngestionApiClient
from appsource.auth import build_auth_provider
from appsource.config import DEFAULT_CONFIG_DATA, AppConfig, expand_env_vars, load_env_file
from appsource.container_config import DEFAULT_SETTINGS_PATH, get_server_configuration
from appsource.executors import create_executor
from appsource.products import AppSourceProducts
from appsource.telemetry import build_telemetry


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="AppSource and container helper tooling")
    parser.add_argument(
        "--config",
        type=Path,
        help="Optional path to a JSON config file overriding defaults",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Verbosity for logging output",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to .env file (default: .env)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    server_config = sub.add_parser("server-config", help="Print a container's service settings")
    server_config.add_argument("container", help="Container name or id")
    server_config.add_argument("--settings-path", default=DEFAULT_SETTINGS_PATH)

    products = sub.add_parser("products", help="List AppSource products")
    products.add_argument("--id", dest="product_id")
    products.add_argument("--name", dest="product_name")

    submissions = sub.add_parser("submissions", help="List submissions of a product")
    submissions.add_argument("product_id")

    get = sub.add_parser("get", help="GET an Ingestion API path")
    get.add_argument("path", help="Path below the API base URL, e.g. /products")
    get.add_argument("--collection", action="store_true", help="Follow nextlink pages")

    return parser.parse_args(argv)


def load_config(path: Optional[Path]) -> AppConfig:
    if not path:
        return AppConfig.from_dict(expand_env_vars(DEFAULT_CONFIG_DATA))
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    return AppConfig.from_json(path)


def build_client(config: AppConfig) -> IngestionApiClient:
    return IngestionApiClient(
        auth_provider=build_auth_provider(config.auth),
        telemetry=build_telemetry(config.telemetry),
        config=config.api,
    )


def run(args: argparse.Namespace, config: AppConfig) -> Any:
    if args.command == "server-config":
        executor = create_executor(config.executor)
        return get_server_configuration(args.container, executor, args.settings_path).to_dict()

    client = build_client(config)
    if args.command == "products":
        return AppSourceProducts(client).list_products(args.product_id, args.product_name)
    if args.command == "submissions":
        return AppSourceProducts(client).list_submissions(args.product_id)
    if args.collection:
        return client.get_collection(None, args.path)
    return client.get(None, args.path)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    load_env_file(ROOT / args.env_file)

    config = load_config(args.config)
    result = run(args, config)
    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
