# Command-line dashboards
#
# Usage: civicpulse login EMAIL --role citizen
#        civicpulse citizen reports --status pending
#        civicpulse admin verify 42 --approve
#        civicpulse analytics zones

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional

import httpx

from . import __version__
from .classifier import Classification, format_date, format_datetime, rating_label, status_label, verification_badge, workload_class
from .client import ApiClient
from .config import API_URL, LOG_LEVEL, SESSION_FILE
from .errors import CivicPulseError, RedirectRequired
from .session import Session, SessionStore
from .views import (
    HOME_FOR_ROLE, AdminDashboard, AnalyticsDashboard, CitizenDashboard, FeedbackPage,
    OfficerDashboard, login, register,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------
def _prompt(message: str) -> bool:
    try:
        return input(f"{message} [y/N] ").strip().lower() in ("y", "yes")
    except EOFError:
        return False

def _always(message: str) -> bool:
    return True

def _rows(items: List[Classification], empty: str = "No reports found.") -> None:
    if not items:
        print(empty)
        return
    for c in items:
        print(f"#{c.id:<5} {c.status_label:<12} {c.priority:<7} {c.category:<13} "
              f"{c.title[:40]:<40} {c.location[:30]:<30} {c.created}")

def _counts(title: str, counts) -> None:
    print(title)
    print(f"  Total: {counts.total}  Pending: {counts.pending}  "
          f"In progress: {counts.in_progress}  Resolved: {counts.resolved}")

def _grievance_detail(g, client: ApiClient) -> None:
    label, _ = verification_badge(g.verification_status)
    print(f"Report #{g.id}: {g.title or 'Untitled Report'}")
    print(f"  Status:       {status_label(g.status)} ({label})")
    print(f"  Category:     {g.category or 'N/A'}")
    print(f"  Location:     {g.location or 'N/A'}")
    print(f"  Submitted:    {format_datetime(g.created_at)}")
    if g.assigned_to:
        print(f"  Assigned to:  {g.assigned_to.name or g.assigned_to.id}")
    if g.resolved_at:
        print(f"  Resolved:     {format_datetime(g.resolved_at)}")
    if g.rejection_reason:
        print(f"  Rejected:     {g.rejection_reason}")
    if g.image_path:
        print(f"  Image:        {client.image_url(g.image_path)}")
    print(f"  Description:  {g.description or 'No description'}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
async def cmd_login(args, client, sessions, confirm):
    session = await login(client, sessions, args.email, args.password, args.role)
    print(f"Login successful. Welcome, {session.user.display_name}.")
    print(f"Dashboard: civicpulse {HOME_FOR_ROLE.get(session.user.role, 'citizen')}")

async def cmd_register(args, client, sessions, confirm):
    message = await register(client, args.name, args.email, args.phone, args.password,
                             args.confirm_password or args.password, args.role)
    print(message)

async def cmd_logout(args, client, sessions, confirm):
    if confirm("Are you sure you want to logout?"):
        sessions.clear()
        print("Logged out.")

async def cmd_whoami(args, client, sessions, confirm):
    user = sessions.require().user
    print(f"{user.display_name} <{user.email or 'N/A'}> {user.role} #{user.id}")
    if user.phone:
        print(f"Phone: {user.phone}")


async def cmd_citizen(args, client, sessions, confirm):
    page = CitizenDashboard(client, sessions.require("citizen"), confirm=confirm)
    if args.action == "track":
        _grievance_detail(await page.track(args.id), client)
        return
    if args.action == "profile":
        if args.name or args.email or args.phone:
            user = page.user
            await page.update_profile(sessions, args.name or user.name, args.email or user.email,
                                                args.phone if args.phone is not None else user.phone)
            print("Profile updated!")
        u = page.user
        print(f"Name: {u.display_name}\nEmail: {u.email or 'N/A'}\nPhone: {u.phone or 'N/A'}")
        return

    await page.load()
    if args.action == "stats":
        _counts("My reports", page.stats())
        print("\nRecent reports")
        _rows(page.recent_reports())
    elif args.action == "reports":
        _rows(page.my_reports(args.status, args.category))
    elif args.action == "submit":
        created = await page.submit(args.title, args.category, args.location, args.image,
                                    description=args.description or "",
                                    latitude=args.lat, longitude=args.lng)
        print(f"Report submitted! ID: {created.id}")


async def cmd_officer(args, client, sessions, confirm):
    page = OfficerDashboard(client, sessions.require("officer"), confirm=confirm,
                            category=getattr(args, "zone_category", None))
    await page.load()
    if args.action == "overview":
        stats = page.stats()
        _counts("Assigned to me", stats)
        print(f"  Urgent: {stats.urgent}  Success rate: "
              f"{round(stats.resolved / stats.total * 100) if stats.total else 0}%")
        zone = page.zone()
        print(f"\nZone analytics ({zone.category or 'all categories'})")
        print(f"  Total: {zone.total}  Pending: {zone.pending}  In progress: {zone.in_progress}  "
              f"Resolved: {zone.resolved}")
        print(f"  Zone resolution rate: {zone.resolution_rate}%  Your contribution: {zone.contribution}%")
        print("\nPriority issues")
        _rows(page.priority_issues(), "No urgent issues.")
        print("\nRecent assignments")
        _rows(page.recent_assignments(), "No assignments yet.")
    elif args.action == "assigned":
        _rows(page.assigned_reports(args.status, args.priority))
    elif args.action == "all":
        _rows(page.all_reports(args.search, args.status, args.category))
    elif args.action == "update":
        updated = await page.update_status(args.id, args.status, args.notes)
        print(f"Status updated successfully! #{updated.id} is now {status_label(updated.status)}.")


async def cmd_admin(args, client, sessions, confirm):
    page = AdminDashboard(client, sessions.require("admin"), confirm=confirm)
    await page.load()
    action = args.action
    if action == "overview":
        counts, today, users, officers = page.overview()
        _counts("System", counts)
        print(f"  Users: {users}  Officers: {officers}")
        print(f"Today: {today.new} new, {today.verified} verified, {today.resolved} resolved")
    elif action == "reports":
        _rows(page.reports(args.search, args.status, args.category))
    elif action == "pending":
        _rows(page.pending(args.search, args.category), "No reports pending verification.")
    elif action == "verify":
        await page.verify(args.id, args.approve, args.reason)
        print(f"Report #{args.id} {'approved' if args.approve else 'rejected'}.")
    elif action == "assign":
        updated = await page.assign(args.id, args.officer_id)
        print(f"Report #{updated.id} assigned to officer #{args.officer_id}.")
    elif action == "delete":
        await page.delete(args.id)
        print(f"Report #{args.id} deleted.")
    elif action == "users":
        for row in page.citizens():
            u = row.user
            print(f"#{u.id:<5} {u.display_name:<25} {u.email or 'N/A':<30} {u.phone or 'N/A':<12} "
                  f"{row.report_count} reports  joined {format_date(u.created_at)}")
    elif action == "officers":
        for o in page.officers():
            print(f"#{o.id:<5} {o.display_name:<25} {o.email or 'N/A':<30} {o.department}")
    elif action == "workload":
        for department, entries in page.workload().items():
            print(department)
            for e in entries:
                print(f"  #{e.officer_id:<5} {e.name:<25} assigned {e.assigned:<3} resolved {e.resolved:<3} "
                      f"in progress {e.in_progress:<3} pending {e.pending:<3} "
                      f"{e.completion_percent}% rating {e.rating:.1f} [{workload_class(e.assigned)}]")
    elif action == "officer":
        officer, entry, assigned = page.officer_detail(args.id)
        print(f"{officer.display_name} ({officer.email or 'N/A'}), {entry.department}")
        print(f"  Assigned {entry.assigned}, resolved {entry.resolved}, "
              f"completion {entry.completion_percent}%, rating {entry.rating:.1f}/5")
        _rows(assigned, "No assigned reports.")
    elif action == "export":
        path = page.export(args.file)
        print(f"Exported to {path}")


async def cmd_analytics(args, client, sessions, confirm):
    sessions.require()
    page = AnalyticsDashboard(client)
    data = await page.load()
    section = args.section
    if section == "overview":
        print(f"Total: {data.total_complaints}  Resolved: {data.resolved_complaints}  "
              f"In progress: {data.in_progress_complaints}  Pending: {data.pending_complaints}")
        print(f"Resolution rate: {data.resolution_rate:.1f}%  "
              f"Average resolution time: {data.average_resolution_time:.1f} days")
    elif section == "categories":
        for c in page.categories():
            print(f"{c.category or 'Unknown':<15} {c.count:>5} {c.percentage:>6.1f}%")
    elif section == "zones":
        for z in page.zone_table():
            print(f"{z.name[:35]:<35} {z.count:>5} {z.tier.value}")
    elif section == "sla":
        for row, css in page.sla():
            print(f"{row.category or 'Unknown':<15} target {row.sla_target_days}d  total {row.total_complaints:<4} "
                  f"within {row.within_sla:<4} breached {row.breached_sla:<4} "
                  f"avg {row.average_resolution_days:.1f}d  {row.compliance_rate:.1f}% [{css}]")
    elif section == "redzones":
        zones = page.red_zones()
        if not zones:
            print("No red zones.")
        for z in zones:
            print(f"{z.location or 'Unknown':<35} {z.complaint_count:>4} {z.most_common_category or 'N/A':<13} "
                  f"{z.risk_level or 'N/A'}")


async def cmd_feedback(args, client, sessions, confirm):
    page = FeedbackPage(client, sessions.require("citizen"), args.id, confirm=confirm)
    existing = await page.load()
    if args.action == "show":
        _grievance_detail(page.grievance, client)
        if existing is None:
            print("No feedback submitted yet.")
        else:
            print(f"Feedback: {existing.rating}/5 ({rating_label(existing.rating)})"
                  f"{' - ' + existing.comment if existing.comment else ''}")
    elif args.action == "submit":
        fb = await page.submit(args.rating, args.comment)
        print(f"Thank you! Feedback submitted: {fb.rating}/5 ({rating_label(fb.rating)})")
    elif args.action == "reopen":
        result = await page.reopen(args.reason, args.rating)
        print(result.get("message") or "Complaint reopened.")


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------
def _filters(p, search=False, status=True, category=True, priority=False):
    if search:
        p.add_argument("--search", default="", help="Match id, location, category or description")
    if status:
        p.add_argument("--status", default="all", help="pending, in-progress, resolved, completed, verified, rejected")
    if category:
        p.add_argument("--category", default="all")
    if priority:
        p.add_argument("--priority", default="all")

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="civicpulse", description="Civic grievance dashboards")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--api-url", default=API_URL, help="Backend base URL (default: %(default)s)")
    parser.add_argument("--session-file", type=Path, default=SESSION_FILE)
    parser.add_argument("--yes", "-y", action="store_true", help="Answer yes to confirmations")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("login")
    p.add_argument("email")
    p.add_argument("--password", required=True)
    p.add_argument("--role", choices=["citizen", "officer", "admin"], default=None)
    p.set_defaults(func=cmd_login)

    p = sub.add_parser("register")
    p.add_argument("name")
    p.add_argument("email")
    p.add_argument("phone")
    p.add_argument("--password", required=True)
    p.add_argument("--confirm-password")
    p.add_argument("--role", choices=["citizen", "officer", "admin"], default="citizen")
    p.set_defaults(func=cmd_register)

    sub.add_parser("logout").set_defaults(func=cmd_logout)
    sub.add_parser("whoami").set_defaults(func=cmd_whoami)

    # Citizen
    citizen = sub.add_parser("citizen").add_subparsers(dest="action", required=True)
    citizen.add_parser("stats")
    _filters(citizen.add_parser("reports"))
    citizen.add_parser("track").add_argument("id", type=int)
    p = citizen.add_parser("submit")
    p.add_argument("--title", required=True)
    p.add_argument("--category", required=True)
    p.add_argument("--location", required=True)
    p.add_argument("--description", default="")
    p.add_argument("--image", type=Path, required=True)
    p.add_argument("--lat", type=float)
    p.add_argument("--lng", type=float)
    p = citizen.add_parser("profile")
    p.add_argument("--name")
    p.add_argument("--email")
    p.add_argument("--phone")

    # Officer
    officer = sub.add_parser("officer").add_subparsers(dest="action", required=True)
    officer.add_parser("overview").add_argument(
        "--zone-category", help="Limit headline and zone stats to one category (e.g. Water)")
    _filters(officer.add_parser("assigned"), category=False, priority=True)
    _filters(officer.add_parser("all"), search=True)
    p = officer.add_parser("update")
    p.add_argument("id", type=int)
    p.add_argument("status", help="PENDING, IN_PROGRESS, RESOLVED or COMPLETED")
    p.add_argument("--notes")

    # Admin
    admin = sub.add_parser("admin").add_subparsers(dest="action", required=True)
    admin.add_parser("overview")
    _filters(admin.add_parser("reports"), search=True)
    _filters(admin.add_parser("pending"), search=True, status=False)
    p = admin.add_parser("verify")
    p.add_argument("id", type=int)
    decision = p.add_mutually_exclusive_group(required=True)
    decision.add_argument("--approve", dest="approve", action="store_true")
    decision.add_argument("--reject", dest="approve", action="store_false")
    p.add_argument("--reason", default="")
    p = admin.add_parser("assign")
    p.add_argument("id", type=int)
    p.add_argument("officer_id", type=int)
    admin.add_parser("delete").add_argument("id", type=int)
    admin.add_parser("users")
    admin.add_parser("officers")
    admin.add_parser("workload")
    admin.add_parser("officer").add_argument("id", type=int)
    admin.add_parser("export").add_argument("file", type=Path)

    for name, func in (("citizen", cmd_citizen), ("officer", cmd_officer), ("admin", cmd_admin)):
        sub.choices[name].set_defaults(func=func)

    p = sub.add_parser("analytics")
    p.add_argument("section", nargs="?", default="overview",
                   choices=["overview", "categories", "zones", "sla", "redzones"])
    p.set_defaults(func=cmd_analytics)

    # Feedback
    feedback = sub.add_parser("feedback")
    feedback.set_defaults(func=cmd_feedback)
    actions = feedback.add_subparsers(dest="action", required=True)
    actions.add_parser("show").add_argument("id", type=int)
    p = actions.add_parser("submit")
    p.add_argument("id", type=int)
    p.add_argument("--rating", type=int, required=True, help="1 (Very Dissatisfied) to 5 (Very Satisfied)")
    p.add_argument("--comment", default="")
    p = actions.add_parser("reopen")
    p.add_argument("id", type=int)
    p.add_argument("--reason", required=True)
    p.add_argument("--rating", type=int)
    return parser


async def run(args, transport: Optional[httpx.AsyncBaseTransport] = None,
              confirm: Optional[Callable[[str], bool]] = None) -> None:
    sessions = SessionStore(args.session_file)
    session: Optional[Session] = sessions.load()
    if confirm is None:
        confirm = _always if args.yes else _prompt
    async with ApiClient(base_url=args.api_url, token=session.token if session else None,
                         transport=transport, on_unauthorized=sessions.clear) as client:
        await args.func(args, client, sessions, confirm)


def main(argv: Optional[List[str]] = None, transport: Optional[httpx.AsyncBaseTransport] = None,
         confirm: Optional[Callable[[str], bool]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else LOG_LEVEL,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        asyncio.run(run(args, transport=transport, confirm=confirm))
    except RedirectRequired as e:
        print(f"{e} (go to: civicpulse {e.target})", file=sys.stderr)
        return 2
    except CivicPulseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
