from __future__ import annotations

import argparse
import logging
import os
import shlex
import sys
from datetime import datetime
from pathlib import Path

from .clients.library_api_client import LibraryAPIClient
from .config import SERVER
from .errors import message_for
from .library_view import (
    SORT_FIELDS,
    export_library_csv,
    filter_platform,
    format_playtime,
    group_by_genre,
    search_items,
    sort_items,
)
from .models import LibraryItem
from .pipelines.context import AppContext
from .pipelines.library_workflow import LibraryWorkflow, WorkflowState


def setup_logging(log_file: Path) -> None:
    """Configure logging to both console and file."""
    log_file.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(
        "%(asctime)s.%(msecs)03d - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    # File handler
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)

    # Console handler (stderr, so listings on stdout stay clean)
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # Silence verbose HTTP debug logs by default
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)

    logging.info(f"Logging to file: {log_file}")


def _default_log_file(*, command_name: str, logs_dir: Path) -> Path:
    logs_dir.mkdir(parents=True, exist_ok=True)

    now = datetime.now()
    stamp = now.strftime("%Y%m%d-%H%M%S") + f".{now.microsecond // 1000:03d}"
    candidate = logs_dir / f"log-{stamp}-{command_name}.log"
    if not candidate.exists():
        return candidate
    return logs_dir / f"log-{stamp}-{command_name}-{os.getpid()}.log"


def _context(args: argparse.Namespace) -> AppContext:
    return AppContext.from_root(args.root, args.credentials)


def _setup_logging_from_args(ctx: AppContext, args: argparse.Namespace) -> None:
    setup_logging(
        args.log_file or _default_log_file(command_name=args.command, logs_dir=ctx.paths.data_logs)
    )
    if args.debug:
        root_logger = logging.getLogger()
        root_logger.setLevel(logging.DEBUG)
        for handler in root_logger.handlers:
            handler.setLevel(logging.DEBUG)

    argv = " ".join(shlex.quote(a) for a in sys.argv)
    logging.info(f"Invocation: {argv}")


def _build_workflow(ctx: AppContext, args: argparse.Namespace, *, enrich: bool) -> LibraryWorkflow:
    if args.api_url:
        remote = LibraryAPIClient(args.api_url)
        return LibraryWorkflow(remote, remote if enrich else None, enrich=enrich)
    creds = ctx.credentials()
    fetcher = ctx.build_metadata_fetcher(creds) if enrich else None
    return LibraryWorkflow(ctx.build_library_service(creds), fetcher, enrich=enrich)


def _run_workflow(workflow: LibraryWorkflow, raw_input: str) -> bool:
    if workflow.fetch_library(raw_input) == WorkflowState.SUCCEEDED:
        return True
    print(f"Error: {message_for(workflow.error)}", file=sys.stderr)
    return False


def _item_line(item: LibraryItem) -> str:
    extras: list[str] = []
    if item.release_year is not None:
        extras.append(str(item.release_year))
    if item.genres:
        extras.append(", ".join(item.genres))
    suffix = f"  [{' | '.join(extras)}]" if extras else ""
    return f"{item.app_id:>9}  {item.name}  ({format_playtime(item.playtime_minutes)}){suffix}"


def _command_library(args: argparse.Namespace) -> int:
    ctx = _context(args)
    _setup_logging_from_args(ctx, args)

    workflow = _build_workflow(ctx, args, enrich=args.enrich)
    if not _run_workflow(workflow, args.input):
        return 1

    items = search_items(workflow.items, args.search, fuzzy=args.fuzzy)
    items = filter_platform(items, args.platform)
    items = sort_items(items, args.sort, args.ascending)

    name = workflow.profile.persona_name if workflow.profile else workflow.current.steam_id
    print(f"{name}: {workflow.count} games ({len(items)} shown)")
    if args.group_by_genre:
        for genre, group in group_by_genre(items):
            print(f"\n{genre} ({len(group)})")
            for it in group:
                print(_item_line(it))
    else:
        for it in items:
            print(_item_line(it))

    if args.output:
        out = export_library_csv(items, args.output)
        logging.info(f"Wrote {len(items)} games to {out}")

    if args.save:
        store = ctx.build_profile_store()
        identity = workflow.to_saved_identity()
        if not store.has_consent():
            print("Saving profiles requires consent: run `steam-library profiles consent on`.", file=sys.stderr)
        elif identity is not None and store.upsert(identity):
            print(f"Saved profile {identity.steam_id}.")
    return 0


def _command_metadata(args: argparse.Namespace) -> int:
    ctx = _context(args)
    _setup_logging_from_args(ctx, args)

    fetcher = ctx.build_metadata_fetcher()
    result = fetcher.ensure_metadata(args.appids)
    by_id = result.by_app_id()
    for app_id in args.appids:
        rec = by_id.get(app_id)
        if rec is None:
            print(f"{app_id:>9}  (no metadata)")
            continue
        year = f" ({rec.year})" if rec.year is not None else ""
        genres = f"  [{', '.join(rec.genres)}]" if rec.genres else ""
        print(f"{app_id:>9}  {rec.name}{year}{genres}")
    logging.info(f"[IGDB] {fetcher.format_stats()}")
    return 0


def _command_profiles(args: argparse.Namespace) -> int:
    ctx = _context(args)
    _setup_logging_from_args(ctx, args)
    store = ctx.build_profile_store()

    if args.action == "consent":
        granted = args.value == "on"
        if not store.set_consent(granted):
            return 1
        print("Consent granted." if granted else "Consent revoked; saved profiles removed.")
        return 0

    if not store.has_consent():
        print("No storage consent: run `steam-library profiles consent on` first.", file=sys.stderr)
        return 1

    if args.action == "list":
        for p in store.list_profiles():
            saved = datetime.fromtimestamp(p.saved_at_ms / 1000).strftime("%Y-%m-%d %H:%M")
            label = p.display_name or p.vanity_name or ""
            print(f"{p.steam_id}  {label}  (saved {saved})")
        return 0

    if args.action == "remove":
        return 0 if store.remove(args.value) else 1

    # save
    workflow = _build_workflow(ctx, args, enrich=False)
    if not _run_workflow(workflow, args.value):
        return 1
    identity = workflow.to_saved_identity()
    if identity is None or not store.upsert(identity):
        return 1
    print(f"Saved profile {identity.steam_id} ({identity.display_name or '-'}).")
    return 0


def _command_serve(args: argparse.Namespace) -> int:
    from .api import create_app

    ctx = _context(args)
    _setup_logging_from_args(ctx, args)

    creds = ctx.credentials()
    if not creds.has_steam:
        logging.warning("STEAM_API_KEY not configured; library requests will fail")
    if not creds.has_igdb:
        logging.warning("IGDB credentials not configured; metadata lookups return cached data only")
    app = create_app(ctx.build_library_service(creds), ctx.build_metadata_fetcher(creds))
    app.run(host=args.host, port=args.port, threaded=True)
    return 0


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)

    parser = argparse.ArgumentParser(description="Browse Steam libraries enriched with IGDB metadata")
    sub = parser.add_subparsers(dest="command", required=True)

    p_common = argparse.ArgumentParser(add_help=False)
    p_common.add_argument(
        "--root",
        type=Path,
        default=Path.cwd(),
        help="Project root holding the data/ directory (default: current directory)",
    )
    p_common.add_argument(
        "--credentials", type=Path, help="Credentials YAML (default: data/credentials.yaml)"
    )
    p_common.add_argument(
        "--log-file",
        type=Path,
        help="Log file path (default: data/logs/log-<timestamp>-<command>.log)",
    )
    p_common.add_argument("--debug", action="store_true", help="Enable DEBUG logging (default: INFO)")

    p_remote = argparse.ArgumentParser(add_help=False)
    p_remote.add_argument(
        "--api-url",
        type=str,
        help="Use a running `steam-library serve` instance instead of calling Steam directly",
    )

    p_lib = sub.add_parser(
        "library",
        help="Resolve a profile and list its games",
        parents=[p_common, p_remote],
    )
    p_lib.add_argument("input", type=str, help="SteamID64, vanity name or steamcommunity.com profile URL")
    p_lib.add_argument("--enrich", action="store_true", help="Merge IGDB genres/platforms/years")
    p_lib.add_argument("--search", type=str, help="Only games whose name contains this text")
    p_lib.add_argument("--fuzzy", action="store_true", help="Also accept close (fuzzy) name matches")
    p_lib.add_argument("--platform", type=str, help="Only games on this platform (needs --enrich)")
    p_lib.add_argument("--sort", choices=SORT_FIELDS, default=SORT_FIELDS[0], help="Sort field")
    direction = p_lib.add_mutually_exclusive_group()
    direction.add_argument("--asc", dest="ascending", action="store_true", default=None)
    direction.add_argument("--desc", dest="ascending", action="store_false", default=None)
    p_lib.add_argument("--group-by-genre", action="store_true", help="Group output by genre")
    p_lib.add_argument("--output", type=Path, help="Also write the listed games to this CSV")
    p_lib.add_argument("--save", action="store_true", help="Save the profile (requires consent)")
    p_lib.set_defaults(_fn=_command_library)

    p_meta = sub.add_parser(
        "metadata",
        help="Look up IGDB metadata for Steam appids (cache first)",
        parents=[p_common],
    )
    p_meta.add_argument("appids", type=int, nargs="+", help="Steam appids")
    p_meta.set_defaults(_fn=_command_metadata)

    p_prof = sub.add_parser(
        "profiles",
        help="Manage saved profiles (consent-gated)",
        parents=[p_common, p_remote],
    )
    prof_sub = p_prof.add_subparsers(dest="action", required=True)
    prof_sub.add_parser("list", help="List saved profiles")
    p_save = prof_sub.add_parser("save", help="Resolve a profile and save it")
    p_save.add_argument("value", metavar="INPUT", type=str)
    p_remove = prof_sub.add_parser("remove", help="Remove a saved profile")
    p_remove.add_argument("value", metavar="STEAMID", type=str)
    p_consent = prof_sub.add_parser("consent", help="Grant or revoke local storage consent")
    p_consent.add_argument("value", choices=("on", "off"))
    p_prof.set_defaults(_fn=_command_profiles)

    p_serve = sub.add_parser("serve", help="Run the HTTP API", parents=[p_common])
    p_serve.add_argument("--host", type=str, default=SERVER.host)
    p_serve.add_argument("--port", type=int, default=SERVER.port)
    p_serve.set_defaults(_fn=_command_serve)

    ns = parser.parse_args(argv)
    return int(ns._fn(ns) or 0)


if __name__ == "__main__":
    raise SystemExit(main())
