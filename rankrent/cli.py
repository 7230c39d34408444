from __future__ import annotations

import argparse
import logging

from rich.console import Console
from rich.table import Table

from rankrent.config import DEFAULT_CONFIG_PATH
from rankrent.followup import FOLLOW_UP_OUTCOMES, OUTCOME_LABELS, is_follow_up_due, latest_note, next_follow_up
from rankrent.leads import LeadStore
from rankrent.run import Dashboard, build_dashboard, resolve_config
from rankrent.spa import copy_spa_files
from rankrent.utils import short_snippet, utc_now
from rankrent.view import SORT_FIELDS, Filters


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rankrent", description="RankRent Pro lead dashboard")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Path to YAML config")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("areas", help="List areas (leads grouped by city)")

    leads_cmd = sub.add_parser("leads", help="List leads in the current area")
    leads_cmd.add_argument("--area", default=None, help="Switch to this area id first")
    leads_cmd.add_argument("--contacted-only", action="store_true", help="Only show contacted leads")
    leads_cmd.add_argument("--sort", choices=SORT_FIELDS, default=None, help="Sort field (default: reviews, descending)")
    leads_cmd.add_argument("--desc", action="store_true", help="Sort descending")

    sub.add_parser("due", help="List leads whose follow-up is due")

    toggle_cmd = sub.add_parser("toggle", help="Flip a lead's contacted flag")
    toggle_cmd.add_argument("lead_id")

    log_cmd = sub.add_parser("log-call", help="Record a call against a lead")
    log_cmd.add_argument("lead_id")
    log_cmd.add_argument("--outcome", choices=FOLLOW_UP_OUTCOMES, default="follow_up_1_day")
    log_cmd.add_argument("--notes", default="")

    delete_cmd = sub.add_parser("delete", help="Delete a lead")
    delete_cmd.add_argument("lead_id")

    sub.add_parser("clients", help="List clients")
    sub.add_parser("clear-cache", help="Drop local call logs and reload leads")
    sub.add_parser("copy-spa", help="Copy SPA routing fallback files into the build directory")

    return parser


def _print_error(console: Console, message: str | None) -> int:
    console.print(f"[red]Error:[/red] {message}")
    return 1


def _load_leads(dashboard: Dashboard, console: Console) -> LeadStore | None:
    store = dashboard.leads
    store.load()
    if store.error:
        _print_error(console, store.error)
        return None
    return store


def cmd_areas(dashboard: Dashboard, console: Console) -> int:
    store = _load_leads(dashboard, console)
    if store is None:
        return 1

    table = Table(title="Areas")
    table.add_column("Id")
    table.add_column("City")
    table.add_column("Leads", justify="right")
    table.add_column("Contacted", justify="right")
    for area in store.areas:
        marker = " *" if area.id == store.current_area else ""
        contacted = sum(1 for lead in area.leads if lead.contacted)
        table.add_row(f"{area.id}{marker}", area.name, str(len(area.leads)), str(contacted))
    console.print(table)
    return 0


def cmd_leads(dashboard: Dashboard, console: Console, args: argparse.Namespace) -> int:
    store = _load_leads(dashboard, console)
    if store is None:
        return 1

    if args.area:
        store.set_current_area(args.area)
    store.set_filters(Filters(show_contacted_only=args.contacted_only))
    if args.sort:
        store.sort_field = args.sort
        store.sort_direction = "desc" if args.desc else "asc"

    now = utc_now()
    table = Table(title=f"Leads: {store.current_area or 'all areas'} ({store.sort_field} {store.sort_direction})")
    table.add_column("#", justify="right")
    table.add_column("Id")
    table.add_column("Name")
    table.add_column("Reviews", justify="right")
    table.add_column("Phone")
    table.add_column("Website")
    table.add_column("Contacted")
    table.add_column("Latest Note")
    for index, lead in enumerate(store.filtered_leads):
        name = f"[bold orange3]! {lead.name}[/bold orange3]" if is_follow_up_due(lead, now) else lead.name
        table.add_row(
            str(index),
            lead.id,
            name,
            str(abs(lead.reviews)),
            lead.phone,
            lead.website,
            "yes" if lead.contacted else "no",
            short_snippet(latest_note(lead), 60),
        )
    console.print(table)
    return 0


def cmd_due(dashboard: Dashboard, console: Console) -> int:
    store = _load_leads(dashboard, console)
    if store is None:
        return 1

    now = utc_now()
    table = Table(title="Follow-ups Due")
    table.add_column("Id")
    table.add_column("Name")
    table.add_column("City")
    table.add_column("Phone")
    table.add_column("Due")
    for lead in store.leads:
        if is_follow_up_due(lead, now):
            due = next_follow_up(lead)
            table.add_row(lead.id, lead.name, lead.city, lead.phone, due.isoformat() if due else "")
    console.print(table)
    return 0


def cmd_toggle(dashboard: Dashboard, console: Console, lead_id: str) -> int:
    store = _load_leads(dashboard, console)
    if store is None:
        return 1
    try:
        lead = store.toggle_contacted(lead_id)
    except Exception:  # noqa: BLE001
        return _print_error(console, store.error)
    if lead is None:
        return _print_error(console, f"Lead not found: {lead_id}")
    console.print(f"{lead.name}: contacted={'yes' if lead.contacted else 'no'}")
    return 0


def cmd_log_call(dashboard: Dashboard, console: Console, args: argparse.Namespace) -> int:
    store = _load_leads(dashboard, console)
    if store is None:
        return 1
    try:
        log = store.add_call_log(args.lead_id, outcome=args.outcome, notes=args.notes)
    except Exception:  # noqa: BLE001
        return _print_error(console, store.error)
    if log is None:
        return _print_error(console, f"Lead not found: {args.lead_id}")
    console.print(f"Logged {log.id}: {OUTCOME_LABELS.get(log.outcome, log.outcome)} (next: {log.next_follow_up or 'none'})")
    return 0


def cmd_delete(dashboard: Dashboard, console: Console, lead_id: str) -> int:
    store = dashboard.leads
    try:
        store.delete(lead_id)
    except Exception:  # noqa: BLE001
        return _print_error(console, store.error)
    console.print(f"Deleted lead {lead_id}")
    return 0


def cmd_clients(dashboard: Dashboard, console: Console) -> int:
    store = dashboard.clients
    store.load()
    if store.error:
        return _print_error(console, store.error)

    table = Table(title="Clients")
    table.add_column("Id")
    table.add_column("Name")
    table.add_column("Email")
    table.add_column("Phone")
    table.add_column("City")
    table.add_column("Contacted")
    for client in store.sorted_clients:
        table.add_row(client.id, client.name, client.email, client.phone, client.city or "", "yes" if client.contacted else "no")
    console.print(table)
    return 0


def cmd_clear_cache(dashboard: Dashboard, console: Console) -> int:
    store = dashboard.leads
    store.clear_cache()
    if store.error:
        return _print_error(console, store.error)
    console.print(f"Cache cleared, {len(store.leads)} leads reloaded")
    return 0


def cmd_copy_spa(dashboard: Dashboard, console: Console) -> int:
    spa = dashboard.config["spa"]
    results = copy_spa_files(spa["source_dir"], spa["build_dir"], spa["files"])
    table = Table(title=f"SPA files -> {spa['build_dir']}")
    table.add_column("File")
    table.add_column("Result")
    for name, status in results.items():
        table.add_row(name, status)
    console.print(table)
    return 0


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    parser = _build_parser()
    args = parser.parse_args()

    dashboard = build_dashboard(resolve_config(args.config))
    console = Console()
    try:
        if args.command == "areas":
            raise SystemExit(cmd_areas(dashboard, console))
        if args.command == "leads":
            raise SystemExit(cmd_leads(dashboard, console, args))
        if args.command == "due":
            raise SystemExit(cmd_due(dashboard, console))
        if args.command == "toggle":
            raise SystemExit(cmd_toggle(dashboard, console, args.lead_id))
        if args.command == "log-call":
            raise SystemExit(cmd_log_call(dashboard, console, args))
        if args.command == "delete":
            raise SystemExit(cmd_delete(dashboard, console, args.lead_id))
        if args.command == "clients":
            raise SystemExit(cmd_clients(dashboard, console))
        if args.command == "clear-cache":
            raise SystemExit(cmd_clear_cache(dashboard, console))
        if args.command == "copy-spa":
            raise SystemExit(cmd_copy_spa(dashboard, console))
    finally:
        dashboard.dispose()

    raise SystemExit(1)
