"""Entry point for the sentry-mobi core CLI.
Usage:
    python main.py orgs
    python main.py issues ORG PROJ --query is:unresolved
"""
from sentry_mobi.main import main

if __name__ == "__main__":
    raise SystemExit(main())
