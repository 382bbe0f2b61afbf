"""
Command line interface for the avalanche report service.
"""

import argparse
import json
import sys
from pathlib import Path

import uvicorn

from avalanche_report.app import Application
from avalanche_report.config.logging import setup_logging
from avalanche_report.config.secrets import Secrets
from avalanche_report.config.settings import load_config
from avalanche_report.config.types import Options
from avalanche_report.database import Database
from avalanche_report.database.migrations import run_migrations
from avalanche_report.exceptions import AvalancheReportError
from avalanche_report.exceptions import MigrationError
from avalanche_report.services.forecast_areas import upsert_forecast_area
from avalanche_report.spreadsheet.registry import ForecastSchemas
from avalanche_report.utils.logging_utils import get_logger


logger = get_logger(__name__)

def serve(options: Options, secrets: Secrets, args: argparse.Namespace) -> int:
    application = Application.build(options, secrets)
    application.start()
    try:
        uvicorn.run(
            application.web,
            host=options.listen_host,
            port=options.listen_port,
            log_config=None,
        )
    finally:
        application.stop()
    return 0

def migrate(options: Options, secrets: Secrets, args: argparse.Namespace) -> int:
    applied = run_migrations(Database.open(options.data_dir))
    print(f"Applied {len(applied)} migrations")
    return 0

def parse(options: Options, secrets: Secrets, args: argparse.Namespace) -> int:
    schemas = ForecastSchemas.load_directory(args.schemas) if args.schemas else ForecastSchemas.load_packaged()
    forecast, schema = schemas.parse(Path(args.file).read_bytes())
    logger.info("Parsed %s with schema %s", args.file, schema.schema_version)
    print(json.dumps(forecast.to_dict(), indent=2, ensure_ascii=False))
    return 0

def import_area(options: Options, secrets: Secrets, args: argparse.Namespace) -> int:
    database = Database.open(options.data_dir)
    run_migrations(database)
    upsert_forecast_area(database, args.area_id, Path(args.file).read_text(encoding="utf-8"))
    print(f"Stored forecast area {args.area_id}")
    return 0

def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='avalanche-report',
        description='Publish avalanche forecasts from Google Drive spreadsheets'
    )
    parser.add_argument('-c', '--config', help='Path to the YAML configuration file')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='command')

    serve_parser = subparsers.add_parser('serve', help='Run migrations and start the web server')
    serve_parser.set_defaults(handler=serve)

    migrate_parser = subparsers.add_parser('migrate', help='Apply pending database migrations')
    migrate_parser.set_defaults(handler=migrate)

    parse_parser = subparsers.add_parser('parse', help='Parse a forecast workbook and print it as JSON')
    parse_parser.add_argument('file', help='Path to an .xlsx forecast')
    parse_parser.add_argument('--schemas', help='Directory of schema option files to use instead of the packaged ones')
    parse_parser.set_defaults(handler=parse)

    area_parser = subparsers.add_parser('import-area', help='Store a forecast area boundary')
    area_parser.add_argument('area_id', help='Forecast area id')
    area_parser.add_argument('file', help='Path to a GeoJSON file')
    area_parser.set_defaults(handler=import_area)

    return parser

def main(argv: list[str] | None = None) -> int:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        options = load_config(args.config)
        secrets = Secrets.initialize(options.secrets_dir)
        setup_logging(options.logging, verbose=args.verbose, secret_values=secrets.values())
        return args.handler(options, secrets, args)
    except MigrationError as e:
        logger.error("Migration failed: %s", e)
        return 1
    except AvalancheReportError as e:
        logger.error(str(e))
        return 1
    except OSError as e:
        logger.error("File error: %s", e)
        return 1

if __name__ == '__main__':
    sys.exit(main())
