# src/sentry_mobi/main.py
from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any, Dict

import httpx

from .auth import DictSession, SentryToken, login
from .config import Settings
from .errors import SentryMobiError, handle_error
from .logging_setup import bind_request_id, setup_logging_from_env
from .mutation import StatusUpdate
from . import render

EXIT_FAILURE = 1
EXIT_NEEDS_AUTH = 2


def _uri(args: argparse.Namespace) -> str:
    """The front-end path this command corresponds to, used as the login redirect target."""
    if args.cmd == "orgs":
        return "/"
    if args.cmd == "projects":
        return f"/{args.org}"
    if args.cmd == "issues":
        return f"/{args.org}/{args.proj}"
    return f"/{args.org}/{args.proj}/issues/{args.issue_id}"


def run(args: argparse.Namespace, settings: Settings,
        transport: httpx.BaseTransport | None = None) -> Dict[str, Any]:
    session = DictSession()
    token = args.token or os.getenv("SENTRY_TOKEN") or ""
    if token:
        login(session, token)

    creds = SentryToken.from_session(session, _uri(args))
    with creds.client(settings, transport=transport) as api:
        if args.cmd == "orgs":
            if args.all_regions:
                return render.organization_overview(api.list_organizations_all_regions())
            page = api.list_organizations(cursor=args.cursor, query=args.query)
            return render.organization_overview(page.items, page.next_cursor)
        if args.cmd == "projects":
            page = api.list_projects(args.org, cursor=args.cursor, query=args.query)
            return render.organization_details(args.org, page.items, page.next_cursor)
        if args.cmd == "issues":
            page = api.list_issues(args.org, args.proj, query=args.query, cursor=args.cursor)
            return render.project_details(args.org, args.proj, page.items, args.query, page.next_cursor)
        if args.cmd == "issue":
            issue, event = api.get_issue_with_latest_event(args.org, args.issue_id)
            return render.issue_details(args.org, args.proj, issue, event)
        if args.cmd == "status":
            label = api.update_issue_status(args.org, args.issue_id, StatusUpdate.parse(args.status))
            return {"issue_id": args.issue_id, "status": label}
    raise ValueError(f"Unknown command: {args.cmd}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sentry-mobi")
    parser.add_argument("--token", help="Sentry user API token (default: $SENTRY_TOKEN)")
    parser.add_argument("--env-file", help="Pfad zur .env")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_orgs = sub.add_parser("orgs", help="list organizations, bookmarked first")
    p_orgs.add_argument("--cursor")
    p_orgs.add_argument("--query")
    p_orgs.add_argument("--all-regions", action="store_true", help="query every region domain")

    p_proj = sub.add_parser("projects", help="list projects of an organization")
    p_proj.add_argument("org")
    p_proj.add_argument("--cursor")
    p_proj.add_argument("--query")

    p_iss = sub.add_parser("issues", help="list issues of a project")
    p_iss.add_argument("org")
    p_iss.add_argument("proj")
    p_iss.add_argument("--query", help="Sentry search, passed through verbatim, e.g. 'is:unresolved'")
    p_iss.add_argument("--cursor")

    p_one = sub.add_parser("issue", help="issue details with its latest event")
    p_one.add_argument("org")
    p_one.add_argument("proj")
    p_one.add_argument("issue_id")

    p_st = sub.add_parser("status", help="change the status of an issue")
    p_st.add_argument("org")
    p_st.add_argument("proj")
    p_st.add_argument("issue_id")
    p_st.add_argument("status", choices=[s.value for s in StatusUpdate])
    return parser


def main(argv: list[str] | None = None, transport: httpx.BaseTransport | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        setup_logging_from_env()
        bind_request_id(os.getenv("REQUEST_ID"))
        settings = Settings.from_env(args.env_file)
        doc = run(args, settings, transport=transport)
    except RuntimeError as e:
        # kaputte Konfiguration (SENTRY_TIMEOUT_S, LOG_MAX_BYTES, ...)
        print(f"configuration error: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except SentryMobiError as e:
        resp = handle_error(e)
        if resp.is_redirect:
            print(f"not logged in: pass --token or set SENTRY_TOKEN (then open {resp.location})", file=sys.stderr)
            return EXIT_NEEDS_AUTH
        print(resp.body, file=sys.stderr)
        return EXIT_FAILURE

    print(json.dumps(doc, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
