"""Lightweight REST client for the lineuplab API."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import httpx


def load_json(value: str) -> dict:
    if not value:
        return {}
    path = Path(value)
    text = path.read_text(encoding="utf-8") if path.exists() else value
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise SystemExit(f"Invalid JSON: {exc}") from exc


def main() -> None:
    parser = argparse.ArgumentParser(description="Interact with the lineuplab REST API")
    parser.add_argument("base_url", help="Base URL of the API, e.g. http://localhost:8000")
    parser.add_argument("--create-roster", metavar="JSON", help="Create a roster from a JSON file or literal")
    parser.add_argument("--get-roster", metavar="ROSTER_ID", help="Fetch a roster and exit")
    parser.add_argument("--set-overrides", metavar="JSON", help="Merge admin overrides for --week")
    parser.add_argument("--recompute", metavar="ROSTER_ID", help="Recompute a roster's lineup")
    parser.add_argument("--lineup", metavar="ROSTER_ID", help="Fetch a stored lineup for --week")
    parser.add_argument("--week", type=int, default=None, help="NFL week (default: server's current week)")
    parser.add_argument("--dry-run", action="store_true", help="Recompute without persisting or notifying")
    args = parser.parse_args()

    with httpx.Client(base_url=args.base_url) as client:
        week = args.week
        if week is None:
            resp = client.get("/nfl/week")
            resp.raise_for_status()
            week = resp.json()["week"]

        if args.create_roster:
            resp = client.post("/rosters", json=load_json(args.create_roster))
            resp.raise_for_status()
            print(json.dumps(resp.json(), indent=2))
        if args.get_roster:
            resp = client.get(f"/rosters/{args.get_roster}")
            if resp.status_code == 404:
                raise SystemExit(f"roster {args.get_roster} not found")
            resp.raise_for_status()
            print(json.dumps(resp.json(), indent=2))
        if args.set_overrides:
            resp = client.put(f"/overrides/{week}", json=load_json(args.set_overrides))
            resp.raise_for_status()
            print("Overrides:", json.dumps(resp.json(), indent=2))
        if args.recompute:
            resp = client.post(
                f"/rosters/{args.recompute}/recompute",
                json={"week": week, "dry_run": args.dry_run},
                timeout=60.0,
            )
            if resp.status_code in {404, 422, 503}:
                raise SystemExit(f"recompute failed ({resp.status_code}): {resp.json().get('detail')}")
            resp.raise_for_status()
            payload = resp.json()
            print(f"changed={payload['changed']} notified={payload['notified']} saved={payload['saved']}")
            print(json.dumps(payload["lineup"]["slots"], indent=2))
        if args.lineup:
            resp = client.get(f"/rosters/{args.lineup}/lineups/{week}")
            if resp.status_code == 404:
                raise SystemExit(f"no lineup for roster {args.lineup} week {week}")
            resp.raise_for_status()
            print(json.dumps(resp.json(), indent=2))


if __name__ == "__main__":
    main()
