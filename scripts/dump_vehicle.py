#!/usr/bin/env python3
"""Run the Tesla OAuth flow and dump normalized vehicle data.

Usage
-----
Set environment variables and run the three steps::

    export TESLA_CLIENT_ID="..."
    export TESLA_CLIENT_SECRET="..."
    export EVCONNECT_CREDENTIALS_PATH="~/.config/evconnect/tokens.json"

    python scripts/dump_vehicle.py auth-url        # open the printed URL
    python scripts/dump_vehicle.py exchange "https://.../callback?code=...&state=..."
    python scripts/dump_vehicle.py dump --detailed

Options for ``dump``::

    --vehicle-id ID     Only query this vehicle (default: all vehicles)
    --detailed          Include doors, tires and system checks
    --raw               Also print the raw vehicle_data document
    --json              Output as machine-readable JSON
    --output FILE       Write JSON output to FILE instead of stdout

``exchange`` also accepts a bare code plus ``--state``.  The state token
issued by ``auth-url`` is kept in the credentials file, so both steps must
use the same ``EVCONNECT_CREDENTIALS_PATH``.

Without stored credentials ``dump`` prints the demo vehicle.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, urlsplit

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from evconnect import EvConnectClient, EvConnectConfig, EvConnectError  # noqa: E402
from evconnect._api import fetch_vehicle_data  # noqa: E402
from evconnect.models import NormalizedVehicleState  # noqa: E402

# ── helpers ──────────────────────────────────────────────────


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


def _print_state(title: str, state: NormalizedVehicleState, out: list[str]) -> dict[str, Any]:
    data = state.model_dump(mode="json")
    out.append(f"\n  --- {title} ---")
    if state.is_fallback:
        out.append("  (demo data: not authenticated or live fetch failed)")
    for key, value in data.items():
        if key == "system_checks":
            out.append(f"  {key}:")
            for check in value:
                out.append(f"      [{check['status']}] {check['name']}: {check['detail']}")
            continue
        marker = " (estimate)" if key in state.estimated_fields else ""
        out.append(f"  {key}: {value}{marker}")
    return data


def _load_config() -> EvConnectConfig:
    config = EvConnectConfig.from_env()
    if config.credentials_path:
        config = EvConnectConfig.from_env(credentials_path=os.path.expanduser(config.credentials_path))
    else:
        print(
            "warning: EVCONNECT_CREDENTIALS_PATH is not set; tokens will not survive this process",
            file=sys.stderr,
        )
    return config


# ── commands ─────────────────────────────────────────────────


async def cmd_auth_url(client: EvConnectClient, _args: argparse.Namespace) -> int:
    result = client.login(os.environ.get("TESLA_EMAIL", ""), "tesla")
    if not result.configured:
        print("Tesla API is not configured: set TESLA_CLIENT_ID and TESLA_CLIENT_SECRET", file=sys.stderr)
        return 2
    print(result.auth_url)
    return 0


def _code_and_state(value: str, state: str | None) -> tuple[str, str | None]:
    """Split a pasted redirect URL into its ``code`` and ``state`` parameters."""
    if "?" not in value:
        return value, state
    query = parse_qs(urlsplit(value).query)
    codes = query.get("code", [""])
    states = query.get("state")
    return codes[0], state or (states[0] if states else None)


async def cmd_exchange(client: EvConnectClient, args: argparse.Namespace) -> int:
    code, state = _code_and_state(args.code, args.state)
    if await client.authenticate_with_code(code, state):
        print("Authenticated.")
        return 0
    print("Token exchange failed (see log output with -v).", file=sys.stderr)
    return 1


async def cmd_dump(client: EvConnectClient, args: argparse.Namespace) -> int:
    result: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "authenticated": client.is_authenticated(),
        "vehicles": [],
    }
    out: list[str] = [_section("evconnect dump_vehicle")]
    out.append(f"  time          : {result['timestamp']}")
    out.append(f"  authenticated : {result['authenticated']}")

    vehicles = await client.get_vehicles()
    out.append(_section("VEHICLES"))
    for vehicle in vehicles:
        out.append(f"  {vehicle.id}  {vehicle.vin}  {vehicle.display_name!r}  state={vehicle.state}")

    target_ids = [args.vehicle_id] if args.vehicle_id else [v.id for v in vehicles]
    for vehicle_id in target_ids:
        out.append(_section(f"VEHICLE {vehicle_id}"))
        if args.detailed:
            state: NormalizedVehicleState = await client.get_detailed_vehicle_data(vehicle_id)
        else:
            state = await client.get_vehicle_data(vehicle_id)
        entry: dict[str, Any] = {"id": vehicle_id, "state": _print_state("normalized", state, out)}

        if args.raw and client.is_authenticated():
            try:
                entry["raw"] = await fetch_vehicle_data(client.session, vehicle_id)
            except EvConnectError as exc:
                entry["raw_error"] = str(exc)
                out.append(f"\n  raw: ERROR {exc}")
            else:
                out.append("\n  --- raw vehicle_data ---")
                out.append(json.dumps(entry["raw"], indent=2, default=str))
        result["vehicles"].append(entry)

    if args.json_mode or args.output:
        payload = json.dumps(result, indent=2, default=str, ensure_ascii=False)
        if args.output:
            Path(args.output).write_text(payload, encoding="utf-8")
            print(f"JSON written to {args.output}", file=sys.stderr)
        else:
            print(payload)
    else:
        print("\n".join(out))
    return 0


async def main() -> int:
    parser = argparse.ArgumentParser(
        description="Authenticate against the Tesla Fleet API and dump normalized vehicle data.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("auth-url", help="Print the OAuth authorization URL")

    exchange = sub.add_parser("exchange", help="Exchange an authorization code for tokens")
    exchange.add_argument("code", help="The redirect URI the browser landed on, or just its code parameter")
    exchange.add_argument("--state", help="The state query parameter from the redirect URI")

    dump = sub.add_parser("dump", help="Dump normalized vehicle data")
    dump.add_argument("--vehicle-id", help="Only query this vehicle (default: all vehicles)")
    dump.add_argument("--detailed", action="store_true", help="Include doors, tires and system checks")
    dump.add_argument("--raw", action="store_true", help="Also fetch the raw vehicle_data document")
    dump.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    dump.add_argument("--output", "-o", help="Write JSON output to FILE instead of stdout")

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    commands = {"auth-url": cmd_auth_url, "exchange": cmd_exchange, "dump": cmd_dump}
    async with EvConnectClient(_load_config()) as client:
        return await commands[args.command](client, args)


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
