"""Command-line entrypoint: schema setup, integrity checks and read queries."""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.engine import Engine

from certledger.api.assertions_api import fetch_assertion, list_assertions
from certledger.api.certificates_api import fetch_certificate, list_certificates
from certledger.api.factories_api import fetch_factory, list_factories
from certledger.api.organizations_api import fetch_organization, list_organizations
from certledger.api.standards_api import fetch_standard, list_standards, list_standards_by_body
from certledger.config.loader import (
    ALLOWED_LOG_LEVELS,
    DEFAULT_CONFIG_PATH,
    default_config,
    load_config,
)
from certledger.database.block_repo import find_block_by_num
from certledger.database.client import get_engine, session_context
from certledger.database.integrity import check_integrity
from certledger.database.migrate import migrate
from certledger.errors import CertLedgerError
from certledger.ops.metrics import InMemoryMetrics
from certledger.query.head import BlockHeightResolver
from certledger.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def _load_runtime_config(args: argparse.Namespace) -> Dict[str, Any]:
    if args.config is not None:
        config = load_config(args.config)
    elif DEFAULT_CONFIG_PATH.exists():
        config = load_config()
    else:
        config = default_config()
    if args.database_url:
        config["database"]["url"] = args.database_url
    if args.log_level:
        config["logging"]["level"] = args.log_level
    return config


def _engine_from_config(config: Dict[str, Any]) -> Engine:
    db = config["database"]
    return get_engine(
        db["url"],
        pool_size=db["pool_size"],
        max_overflow=db["max_overflow"],
        pool_timeout=db["pool_timeout"],
    )


def _query(engine: Engine, func: Callable[..., Dict[str, Any]], **kwargs: Any) -> Dict[str, Any]:
    with session_context(engine) as session:
        return func(session, **kwargs)


def cmd_init_db(args: argparse.Namespace, engine: Engine) -> int:
    migrate(engine)
    _emit({"status": "ok", "database": engine.url.render_as_string(hide_password=True)})
    return 0


def cmd_head(args: argparse.Namespace, engine: Engine) -> int:
    with session_context(engine) as session:
        head = BlockHeightResolver(session).resolve(None)
        block = find_block_by_num(session, head)
        _emit({"head": head, "block_id": block.block_id if block else None})
    return 0


def cmd_check_integrity(args: argparse.Namespace, engine: Engine) -> int:
    with session_context(engine) as session:
        issues = check_integrity(session, args.entity_type)
    _emit({"issues": [issue.to_dict() for issue in issues], "count": len(issues)})
    return 1 if issues else 0


def cmd_factories(args: argparse.Namespace, engine: Engine) -> int:
    if args.factory_id:
        result = _query(
            engine, fetch_factory,
            factory_id=args.factory_id, head=args.head, expand=args.expand,
            metrics=args.metrics,
        )
    else:
        result = _query(
            engine, list_factories,
            name=args.name, city=args.city, state_province=args.state_province,
            country=args.country, postal_code=args.postal_code, search=args.search,
            expand=args.expand or None, head=args.head, limit=args.limit,
            offset=args.offset, metrics=args.metrics,
        )
    _emit(result)
    return 0


def cmd_organizations(args: argparse.Namespace, engine: Engine) -> int:
    if args.organization_id:
        result = _query(
            engine, fetch_organization,
            organization_id=args.organization_id, head=args.head, metrics=args.metrics,
        )
    else:
        result = _query(
            engine, list_organizations,
            name=args.name, organization_type=args.organization_type, head=args.head,
            limit=args.limit, offset=args.offset, metrics=args.metrics,
        )
    _emit(result)
    return 0


def cmd_certificates(args: argparse.Namespace, engine: Engine) -> int:
    if args.certificate_id:
        result = _query(
            engine, fetch_certificate,
            certificate_id=args.certificate_id, head=args.head, metrics=args.metrics,
        )
    else:
        result = _query(
            engine, list_certificates,
            certifying_body_id=args.certifying_body_id, factory_id=args.factory_id,
            standard_id=args.standard_id, head=args.head, limit=args.limit,
            offset=args.offset, metrics=args.metrics,
        )
    _emit(result)
    return 0


def cmd_standards(args: argparse.Namespace, engine: Engine) -> int:
    if args.standard_id_arg:
        result = _query(
            engine, fetch_standard,
            standard_id=args.standard_id_arg, head=args.head, metrics=args.metrics,
        )
    else:
        result = _query(
            engine, list_standards,
            name=args.name, organization_id=args.organization_id,
            standard_id=args.standard_id, head=args.head, limit=args.limit,
            offset=args.offset, metrics=args.metrics,
        )
    _emit(result)
    return 0


def cmd_standards_body(args: argparse.Namespace, engine: Engine) -> int:
    _emit(_query(
        engine, list_standards_by_body,
        organization_id=args.organization_id, head=args.head, limit=args.limit,
        offset=args.offset, metrics=args.metrics,
    ))
    return 0


def cmd_assertions(args: argparse.Namespace, engine: Engine) -> int:
    if args.assertion_id:
        result = _query(
            engine, fetch_assertion,
            assertion_id=args.assertion_id, head=args.head, metrics=args.metrics,
        )
    else:
        result = _query(
            engine, list_assertions,
            assertion_type=args.assertion_type, object_id=args.object_id, head=args.head,
            limit=args.limit, offset=args.offset, metrics=args.metrics,
        )
    _emit(result)
    return 0


def _add_read_arguments(parser: argparse.ArgumentParser, paged: bool = True) -> None:
    parser.add_argument("--head", type=int, help="Block height to read at (default: latest block)")
    if paged:
        parser.add_argument("--limit", type=int, help="Page size (default 100)")
        parser.add_argument("--offset", type=int, help="Page offset (default 0)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="certledger",
        description="Block-height-versioned queries over a certification ledger",
    )
    parser.add_argument("--config", type=Path, help=f"Config file (default: {DEFAULT_CONFIG_PATH})")
    parser.add_argument("--database-url", type=str, help="SQLAlchemy URL, overrides the config")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=ALLOWED_LOG_LEVELS,
        help="Log level, overrides the config",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    init_parser = subparsers.add_parser("init-db", help="Create tables, extensions and constraints")
    init_parser.set_defaults(func=cmd_init_db)

    head_parser = subparsers.add_parser("head", help="Show the latest committed block")
    head_parser.set_defaults(func=cmd_head)

    integrity_parser = subparsers.add_parser("check-integrity", help="Report overlapping or inverted versions")
    integrity_parser.add_argument("--entity-type", type=str, help="Only check this table")
    integrity_parser.set_defaults(func=cmd_check_integrity)

    factories_parser = subparsers.add_parser("factories", help="Fetch one factory or list factories")
    factories_parser.add_argument("factory_id", nargs="?", help="Factory organization id")
    factories_parser.add_argument("--name", type=str, help="Exact name")
    factories_parser.add_argument("--city", type=str, help="Fuzzy city match")
    factories_parser.add_argument("--state-province", type=str, help="Fuzzy state/province match")
    factories_parser.add_argument("--country", type=str, help="Fuzzy country match")
    factories_parser.add_argument("--postal-code", type=str, help="Fuzzy postal code match")
    factories_parser.add_argument("--search", type=str, help="Full-text search over names, standards and addresses")
    factories_parser.add_argument("--expand", action="store_true", help="Include certificates inline")
    _add_read_arguments(factories_parser)
    factories_parser.set_defaults(func=cmd_factories)

    organizations_parser = subparsers.add_parser("organizations", help="Fetch one organization or list organizations")
    organizations_parser.add_argument("organization_id", nargs="?", help="Organization id")
    organizations_parser.add_argument("--name", type=str, help="Exact name")
    organizations_parser.add_argument(
        "--organization-type",
        type=int,
        help="1 CertifyingBody, any other integer StandardsBody",
    )
    _add_read_arguments(organizations_parser)
    organizations_parser.set_defaults(func=cmd_organizations)

    certificates_parser = subparsers.add_parser("certificates", help="Fetch one certificate or list certificates")
    certificates_parser.add_argument("certificate_id", nargs="?", help="Certificate id")
    certificates_parser.add_argument("--certifying-body-id", type=str)
    certificates_parser.add_argument("--factory-id", type=str)
    certificates_parser.add_argument("--standard-id", type=str)
    _add_read_arguments(certificates_parser)
    certificates_parser.set_defaults(func=cmd_certificates)

    standards_parser = subparsers.add_parser("standards", help="Fetch one standard or list standards")
    standards_parser.add_argument("standard_id_arg", nargs="?", metavar="standard_id", help="Standard id")
    standards_parser.add_argument("--name", type=str)
    standards_parser.add_argument("--organization-id", type=str)
    standards_parser.add_argument("--standard-id", type=str)
    _add_read_arguments(standards_parser)
    standards_parser.set_defaults(func=cmd_standards)

    body_parser = subparsers.add_parser("standards-body", help="List the standards of one standards body")
    body_parser.add_argument("--organization-id", type=str, required=True)
    _add_read_arguments(body_parser)
    body_parser.set_defaults(func=cmd_standards_body)

    assertions_parser = subparsers.add_parser("assertions", help="Fetch one assertion or list assertions")
    assertions_parser.add_argument("assertion_id", nargs="?", help="Assertion id")
    assertions_parser.add_argument("--assertion-type", type=str, help="Factory, Certificate or Standard")
    assertions_parser.add_argument("--object-id", type=str)
    _add_read_arguments(assertions_parser)
    assertions_parser.set_defaults(func=cmd_assertions)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    config = _load_runtime_config(args)
    configure_logging(config["logging"]["level"])
    args.metrics = InMemoryMetrics()
    engine = _engine_from_config(config)
    try:
        return args.func(args, engine)
    except CertLedgerError as e:
        logger.error("Command '%s' failed: %s", args.command, e.message)
        _emit(e.to_dict())
        return 1
    finally:
        engine.dispose()


if __name__ == "__main__":
    sys.exit(main())
