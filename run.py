"""Entry point for the Booky reading tracker."""

import argparse
import logging
import sys

from booky.config import AppConfig, load_config
from booky.storage.backends import JsonFileBackend, SqliteBackend


def serve(config: AppConfig) -> None:
    """Launch the HTTP API with uvicorn."""
    import uvicorn

    from booky.api.app import create_app

    uvicorn.run(create_app(config), host=config.server.host, port=config.server.port)


def import_file(config: AppConfig, path: str) -> None:
    from booky.api.app import create_store
    from booky.importer import import_books_from_file

    created = import_books_from_file(create_store(config), path)
    print(f"Imported {len(created)} books")


def migrate(config: AppConfig) -> None:
    """Copy the JSON file collection into the SQLite key-value store."""
    from booky.storage.migrate import migrate_collection

    source = JsonFileBackend(config.storage.books_file)
    target = SqliteBackend(
        config.storage.sqlite_path,
        key=config.storage.key,
        timeout=config.storage.timeout_seconds,
    )
    try:
        count = migrate_collection(source, target)
    finally:
        target.close()
    print(f"Migrated {count} books to {config.storage.sqlite_path}")


def reset(config: AppConfig) -> None:
    from booky.api.app import create_store

    create_store(config).delete_all()
    print("All books deleted")


def health(config: AppConfig) -> int:
    from booky.api.app import create_store

    status = create_store(config).health_check()
    print(f"{status.status}: {status.message}")
    return 0 if status.healthy else 1


def main() -> None:
    """Parse the command line and run the requested command."""
    parser = argparse.ArgumentParser(description="Booky reading tracker")
    parser.add_argument("--config", default="config.yaml", help="Path to config.yaml")
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("serve", help="Run the HTTP API (default)")
    import_parser = subparsers.add_parser("import", help="Import books from a JSON file")
    import_parser.add_argument("path")
    subparsers.add_parser("migrate", help="Copy books.json into the SQLite store")
    subparsers.add_parser("reset", help="Delete every book")
    subparsers.add_parser("health", help="Check that storage is reachable")
    args = parser.parse_args()

    config = load_config(args.config)
    logging.basicConfig(
        level=config.app.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "import":
        import_file(config, args.path)
    elif args.command == "migrate":
        migrate(config)
    elif args.command == "reset":
        reset(config)
    elif args.command == "health":
        sys.exit(health(config))
    else:
        serve(config)


if __name__ == "__main__":
    main()
