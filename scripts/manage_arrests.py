"""Admin command line for the arrest map's Firestore data.

Reads and writes the same collections as the API, with the same validation
and admin check. Writes need an ID token for the admin account.

Prerequisites:
  FIREBASE_PROJECT_ID and FIREBASE_API_KEY in .env (or the environment)

Usage:
  python scripts/manage_arrests.py regions                         # Canonical region keys
  python scripts/manage_arrests.py table                           # Ranked data table
  python scripts/manage_arrests.py set "Tamil Nadu" 120 45         # Set arrests / FIRs
  python scripts/manage_arrests.py set Orissa 10 2 --add           # Add to existing counts
  python scripts/manage_arrests.py delete "J&K"                    # Remove a region's record
  python scripts/manage_arrests.py import counts.csv [--add]       # Batch (<= 50 rows)

The token comes from --token or ARRESTMAP_ID_TOKEN.
"""

import argparse
import asyncio
import csv
import logging
import os
import sys
from pathlib import Path

import httpx
from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT_DIR / "backend"))

load_dotenv(ROOT_DIR / ".env")

from aggregation import aggregate  # noqa: E402
from arrests import ArrestRecords  # noqa: E402
from auth import AuthSession, FirebaseIdentityProvider  # noqa: E402
from config import (  # noqa: E402
    FIREBASE_API_KEY, FIREBASE_PROJECT_ID, FIRESTORE_BASE_URL, HTTP_TIMEOUT, IDENTITY_TOOLKIT_URL,
)
from errors import ArrestMapError, NotAuthenticated, ValidationError  # noqa: E402
from ranking import rank  # noqa: E402
from regions import display_name, get_valid_regions_list  # noqa: E402
from store import FirestoreRestStore  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("arrestmap.admin")


def build_records(client: httpx.AsyncClient) -> tuple[ArrestRecords, FirebaseIdentityProvider]:
    store = FirestoreRestStore(FIREBASE_PROJECT_ID, api_key=FIREBASE_API_KEY, base_url=FIRESTORE_BASE_URL,
                               client=client) if FIREBASE_PROJECT_ID else None
    identity = FirebaseIdentityProvider(FIREBASE_API_KEY, IDENTITY_TOOLKIT_URL,
                                        client=client) if FIREBASE_API_KEY else None
    return ArrestRecords(store, identity), identity


def log_auth_change(user):
    if user is None:
        logger.info("Signed out")
    else:
        logger.info(f"Signed in as {user.email}")


async def sign_in(identity, token: str) -> AuthSession:
    if identity is None or not token:
        raise NotAuthenticated()
    session = AuthSession(identity)
    session.on_change(log_auth_change)
    await session.sign_in(token)
    if not session.is_authenticated:
        raise NotAuthenticated()
    if not session.is_admin:
        logger.warning("Signed-in account is not the admin; writes will be rejected")
    return session


def read_csv_updates(path: Path) -> list[dict]:
    try:
        with open(path, newline="", encoding="utf-8") as f:
            reader = csv.DictReader(f)
            return [
                {
                    "region": row.get("region") or row.get("state") or "",
                    "arrests": (row.get("arrests") or row.get("count") or "").strip(),
                    "fir": (row.get("fir") or "0").strip(),
                }
                for row in reader
            ]
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        logger.debug(f"CSV read failed: {e}")
        raise ValidationError(f"Cannot read {path}", field="csv") from e


# ─────────────────────────── Commands ───────────────────────────

def cmd_regions(args):
    for key in get_valid_regions_list():
        print(f"  {key:<28} {display_name(key)}")


async def _table():
    async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as client:
        records, _ = build_records(client)
        snapshot = aggregate(await records.load_records())
    print(f"\n  {'Region':<28} {'Arrests':>10} {'FIRs':>10}")
    print(f"  {'─' * 50}")
    for row in rank(snapshot.raw_view):
        print(f"  {row.displayName:<28} {row.arrests:>10,} {row.fir:>10,}")
    print(f"  {'─' * 50}")
    print(f"  {'Total':<28} {snapshot.total_arrests:>10,} {snapshot.total_fir:>10,}")
    print(f"  Regions with data: {snapshot.regions_with_data}\n")


def cmd_table(args):
    asyncio.run(_table())


async def _set(args):
    async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as client:
        records, identity = build_records(client)
        session = await sign_in(identity, args.token)
        key = await records.update(args.region, args.arrests, args.fir,
                                   id_token=session.current_user.id_token, additive=args.add)
        logger.info(f"Saved {display_name(key)}")
        session.sign_out()


def cmd_set(args):
    asyncio.run(_set(args))


async def _delete(args):
    async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as client:
        records, identity = build_records(client)
        session = await sign_in(identity, args.token)
        key = await records.delete(args.region, id_token=session.current_user.id_token)
        logger.info(f"Deleted {display_name(key)}")
        session.sign_out()


def cmd_delete(args):
    asyncio.run(_delete(args))


async def _import(args):
    updates = read_csv_updates(args.csv)
    async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as client:
        records, identity = build_records(client)
        session = await sign_in(identity, args.token)
        keys = await records.batch_update(updates, id_token=session.current_user.id_token,
                                          additive=args.add)
        logger.info(f"Imported {len(keys)} regions from {args.csv}")
        session.sign_out()


def cmd_import(args):
    asyncio.run(_import(args))


def main():
    parser = argparse.ArgumentParser(
        description="Manage arrest / FIR counts for the India arrest map",
    )
    parser.add_argument("--token", default=os.getenv("ARRESTMAP_ID_TOKEN", ""),
                        help="Firebase ID token of the admin account")
    sub = parser.add_subparsers(dest="command")

    p_reg = sub.add_parser("regions", help="List canonical region keys")
    p_reg.set_defaults(func=cmd_regions)

    p_tab = sub.add_parser("table", help="Print the ranked data table")
    p_tab.set_defaults(func=cmd_table)

    p_set = sub.add_parser("set", help="Set (or add to) one region's counts")
    p_set.add_argument("region")
    p_set.add_argument("arrests")
    p_set.add_argument("fir", nargs="?", default="0")
    p_set.add_argument("--add", action="store_true", help="Add to the stored counts")
    p_set.set_defaults(func=cmd_set)

    p_del = sub.add_parser("delete", help="Delete one region's record")
    p_del.add_argument("region")
    p_del.set_defaults(func=cmd_delete)

    p_imp = sub.add_parser("import", help="Batch update from a CSV (region,arrests,fir)")
    p_imp.add_argument("csv", type=Path)
    p_imp.add_argument("--add", action="store_true", help="Add to the stored counts")
    p_imp.set_defaults(func=cmd_import)

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)
    try:
        args.func(args)
    except ArrestMapError as e:
        logger.error(e.message)
        sys.exit(1)


if __name__ == "__main__":
    main()
