"""
Command-line admin console for the moderation API.

Usage:
  nwu-admin stats
  nwu-admin users --limit 50
  nwu-admin approve <userId>
  nwu-admin broadcast "Title" "Message body"

The bearer token comes from --token or NWU_ADMIN_TOKEN; the API base URL from
--base-url or NWU_API_URL.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Any, Optional, Sequence

import requests

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:3000"
REQUEST_TIMEOUT = 30


class AdminApiError(Exception):
    def __init__(self, status_code: int, detail: str):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class AdminApiClient:
    """Thin wrapper over the /admin endpoints."""

    def __init__(
        self,
        base_url: str,
        token: str,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers["Authorization"] = f"Bearer {token}"

    def _request(self, method: str, path: str, **kwargs) -> Any:
        response = self.session.request(
            method, f"{self.base_url}{path}", timeout=REQUEST_TIMEOUT, **kwargs
        )
        if not response.ok:
            try:
                detail = response.json().get("detail", response.text)
            except ValueError:
                detail = response.text
            raise AdminApiError(response.status_code, str(detail))
        return response.json()

    def stats(self) -> dict:
        return self._request("GET", "/admin/stats")

    def users(self, limit: int = 20, skip: int = 0) -> dict:
        return self._request("GET", "/admin/users", params={"limit": limit, "skip": skip})

    def verifications(self) -> list[dict]:
        return self._request("GET", "/admin/verifications")

    def approve(self, user_id: str) -> dict:
        return self._request("PATCH", f"/admin/users/{user_id}/approve")

    def reject(self, user_id: str, reason: str) -> dict:
        return self._request(
            "PATCH", f"/admin/users/{user_id}/reject", json={"reason": reason}
        )

    def ban(self, user_id: str) -> dict:
        return self._request("PATCH", f"/admin/users/{user_id}/ban")

    def unban(self, user_id: str) -> dict:
        return self._request("PATCH", f"/admin/users/{user_id}/unban")

    def reports(self) -> list[dict]:
        return self._request("GET", "/admin/reports")

    def resolve_report(self, report_id: str) -> dict:
        return self._request("PATCH", f"/admin/reports/{report_id}/resolve")

    def dismiss_report(self, report_id: str) -> dict:
        return self._request("PATCH", f"/admin/reports/{report_id}/dismiss")

    def broadcast(self, title: str, message: str) -> dict:
        return self._request(
            "PATCH", "/admin/broadcast", json={"title": title, "message": message}
        )

    def audit_logs(self, limit: int = 100) -> list[dict]:
        return self._request("GET", "/admin/audit-logs", params={"limit": limit})


def _cell(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, dict):
        return str(value.get("name") or value.get("email") or value.get("id") or "-")
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


def render_table(rows: Sequence[dict], columns: Sequence[tuple[str, str]]) -> str:
    """Fixed-width text table; ``columns`` is a list of (key, header)."""
    headers = [header for _, header in columns]
    body = [[_cell(row.get(key)) for key, _ in columns] for row in rows]
    widths = [
        max([len(headers[i])] + [len(line[i]) for line in body])
        for i in range(len(columns))
    ]
    lines = [
        "  ".join(h.ljust(w) for h, w in zip(headers, widths)),
        "  ".join("-" * w for w in widths),
    ]
    lines.extend("  ".join(c.ljust(w) for c, w in zip(line, widths)) for line in body)
    if not body:
        lines.append("(no rows)")
    return "\n".join(lines)


USER_COLUMNS = [
    ("id", "ID"),
    ("name", "Name"),
    ("email", "Email"),
    ("status", "Status"),
    ("department", "Department"),
    ("createdAt", "Joined"),
]
REPORT_COLUMNS = [
    ("id", "ID"),
    ("reporter", "Reporter"),
    ("reportedUser", "Reported"),
    ("reason", "Reason"),
    ("status", "Status"),
    ("createdAt", "Filed"),
]
AUDIT_COLUMNS = [
    ("createdAt", "When"),
    ("action", "Action"),
    ("performedBy", "Admin"),
    ("details", "Details"),
]


def _run(client: AdminApiClient, args: argparse.Namespace) -> str:
    command = args.command
    if command == "stats":
        stats = client.stats()
        return render_table(
            [{"metric": k, "value": v} for k, v in stats.items()],
            [("metric", "Metric"), ("value", "Value")],
        )
    if command == "users":
        result = client.users(limit=args.limit, skip=args.skip)
        table = render_table(result["users"], USER_COLUMNS)
        return f"{table}\n\n{len(result['users'])} of {result['total']} users"
    if command == "verifications":
        rows = [
            {
                **user,
                "idCard": user["verification"].get("idCardUrl"),
                "selfie": user["verification"].get("selfieUrl"),
            }
            for user in client.verifications()
        ]
        return render_table(
            rows,
            [("id", "ID"), ("email", "Email"), ("idCard", "ID card"), ("selfie", "Selfie")],
        )
    if command in ("approve", "ban", "unban"):
        user = getattr(client, command)(args.user_id)
        return f"{user['email']} is now {user['status']}"
    if command == "reject":
        user = client.reject(args.user_id, args.reason)
        return f"Rejected verification for {user['email']}"
    if command == "reports":
        return render_table(client.reports(), REPORT_COLUMNS)
    if command in ("resolve-report", "dismiss-report"):
        method = client.resolve_report if command == "resolve-report" else client.dismiss_report
        report = method(args.report_id)
        return f"Report {report['id']} is now {report['status']}"
    if command == "broadcast":
        result = client.broadcast(args.title, args.message)
        return f"Broadcast {result['broadcastId']} {result['status']}"
    if command == "audit-logs":
        return render_table(client.audit_logs(limit=args.limit), AUDIT_COLUMNS)
    raise ValueError(f"Unknown command: {command}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="NWU Connect admin console.")
    parser.add_argument(
        "--base-url",
        default=os.environ.get("NWU_API_URL", DEFAULT_BASE_URL),
        help="API base URL (default: $NWU_API_URL or %(default)s).",
    )
    parser.add_argument(
        "--token",
        default=os.environ.get("NWU_ADMIN_TOKEN"),
        help="Admin ID token (default: $NWU_ADMIN_TOKEN).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("stats", help="Dashboard counters.")
    users = sub.add_parser("users", help="List users, newest first.")
    users.add_argument("--limit", type=int, default=20)
    users.add_argument("--skip", type=int, default=0)
    sub.add_parser("verifications", help="Pending verification submissions.")
    for name in ("approve", "ban", "unban"):
        cmd = sub.add_parser(name, help=f"{name.capitalize()} a user.")
        cmd.add_argument("user_id")
    reject = sub.add_parser("reject", help="Reject a verification submission.")
    reject.add_argument("user_id")
    reject.add_argument("reason")
    sub.add_parser("reports", help="List user reports.")
    for name in ("resolve-report", "dismiss-report"):
        cmd = sub.add_parser(name)
        cmd.add_argument("report_id")
    broadcast = sub.add_parser("broadcast", help="Notify every active user.")
    broadcast.add_argument("title")
    broadcast.add_argument("message")
    audit = sub.add_parser("audit-logs", help="Recent admin actions.")
    audit.add_argument("--limit", type=int, default=100)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s:%(message)s")
    if not args.token:
        parser.error("an admin token is required (--token or NWU_ADMIN_TOKEN)")

    client = AdminApiClient(args.base_url, args.token)
    try:
        print(_run(client, args))
    except AdminApiError as exc:
        logger.error("API error %s: %s", exc.status_code, exc.detail)
        return 1
    except requests.RequestException as exc:
        logger.error("Could not reach %s: %s", args.base_url, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
