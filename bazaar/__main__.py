"""
bazaar.__main__ — Entry point for ``python -m bazaar``
=======================================================

Sub-commands::

    python -m bazaar init-db                  # create tables + seed empty datasets
    python -m bazaar import-json src/data     # load legacy flat JSON files
    python -m bazaar add-user u1 "Ann" volunteer --email ann@example.org
    python -m bazaar issue-token u1           # print a bearer token for u1
    python -m bazaar serve --port 8000        # run the API under uvicorn

Secrets come from ``.env``; policy constants from ``config.yaml``.
"""

from __future__ import annotations

import argparse
import logging
import sys

from dotenv import load_dotenv

from bazaar.config import DEFAULT_CONFIG, load_config
from bazaar.database.engine import create_db_engine, init_db
from bazaar.database.models import UserRole
from bazaar.database.store import DatasetStore
from bazaar.engine.records import UserProfile
from bazaar.services import directory_service
from bazaar.services.import_service import import_json_directory

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("bazaar")


def _store() -> DatasetStore:
    engine = create_db_engine()
    init_db(engine)
    return DatasetStore(engine)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
def cmd_init_db(args: argparse.Namespace) -> int:
    _store()
    logger.info("Database ready.")
    return 0


def cmd_import_json(args: argparse.Namespace) -> int:
    try:
        counts = import_json_directory(_store(), args.directory)
    except FileNotFoundError as exc:
        logger.error("%s", exc)
        return 1
    if not counts:
        logger.warning("Nothing imported from %s", args.directory)
    for key, n in counts.items():
        logger.info("  %-18s %d", key, n)
    return 0


def cmd_add_user(args: argparse.Namespace) -> int:
    profile = UserProfile(
        id=args.user_id, name=args.name, role=UserRole(args.role), email=args.email,
    )
    directory_service.upsert_user(_store(), profile)
    logger.info("Saved %s %s (%s)", profile.role.value, profile.id, profile.name)
    return 0


def cmd_issue_token(args: argparse.Namespace) -> int:
    # deps validates JWT_SECRET on import
    from bazaar.api.deps import issue_token

    print(issue_token(args.user_id))
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    try:
        port = args.port or load_config().dashboard_port
    except FileNotFoundError:
        port = DEFAULT_CONFIG.dashboard_port
    uvicorn.run("bazaar.api.main:app", host=args.host, port=port, reload=args.reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bazaar", description="VolunteerBazaar service tools")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init-db", help="create tables and seed empty datasets")
    p.set_defaults(func=cmd_init_db)

    p = sub.add_parser("import-json", help="import legacy <dataset>.json files")
    p.add_argument("directory")
    p.set_defaults(func=cmd_import_json)

    p = sub.add_parser("add-user", help="create or replace a user profile")
    p.add_argument("user_id")
    p.add_argument("name")
    p.add_argument("role", choices=[r.value for r in UserRole])
    p.add_argument("--email", default="")
    p.set_defaults(func=cmd_add_user)

    p = sub.add_parser("issue-token", help="print a bearer token for a user id")
    p.add_argument("user_id")
    p.set_defaults(func=cmd_issue_token)

    p = sub.add_parser("serve", help="run the HTTP API")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=None)
    p.add_argument("--reload", action="store_true")
    p.set_defaults(func=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
