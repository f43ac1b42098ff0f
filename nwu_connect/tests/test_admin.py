import unittest

from nwu_connect.records import ReportRecord
from nwu_connect.tests.helpers import ApiTestCase


class AdminAccessTests(ApiTestCase):
    def test_regular_user_is_rejected(self):
        self.make_user("alice")
        response = self.client.get("/admin/stats", headers=self.headers("alice"))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["detail"], "Admin access required")

    def test_unknown_account_is_rejected(self):
        response = self.client.get("/admin/users", headers=self.headers("stranger"))
        self.assertEqual(response.status_code, 403)

    def test_admin_status_also_grants_access(self):
        self.make_user("root", status="admin")
        response = self.client.get("/admin/stats", headers=self.headers("root"))
        self.assertEqual(response.status_code, 200)


class AdminApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.admin = self.make_user("root", role="admin")
        self.alice = self.make_user("alice", status="pending", token="alice-device")
        self.bob = self.make_user("bob", token="bob-device")
        self.auth = self.headers("root")

    def _submit_verification(self, user):
        user.verification.submitted = True
        user.verification.id_card_url = "id.jpg"
        user.verification.selfie_url = "selfie.jpg"
        self.db.save_user(user)

    def _audit_actions(self):
        return [e.action for e in self.db.list_audit_logs()]

    def test_stats(self):
        self._submit_verification(self.alice)
        self.db.save_report(
            ReportRecord(reporter_id=self.bob.id, reported_user_id=self.alice.id, reason="spam")
        )
        profile = self.db.get_profile("bob")
        profile.is_online = True
        self.db.save_profile(profile)

        stats = self.client.get("/admin/stats", headers=self.auth).json()
        self.assertEqual(
            stats,
            {
                "totalUsers": 3,
                "pendingVerifications": 1,
                "activeReports": 1,
                "onlineNow": 1,
            },
        )

    def test_users_pagination(self):
        page = self.client.get("/admin/users?limit=2&skip=1", headers=self.auth).json()
        self.assertEqual(page["total"], 3)
        self.assertEqual(len(page["users"]), 2)

    def test_verifications_lists_pending_submissions(self):
        self.assertEqual(
            self.client.get("/admin/verifications", headers=self.auth).json(), []
        )
        self._submit_verification(self.alice)
        pending = self.client.get("/admin/verifications", headers=self.auth).json()
        self.assertEqual([u["id"] for u in pending], [self.alice.id])

    def test_approve_notifies_and_audits(self):
        self._submit_verification(self.alice)
        response = self.client.patch(
            f"/admin/users/{self.alice.id}/approve", headers=self.auth
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "approved")
        self.assertEqual(self.push.sent[0].title, "Verification Approved")
        self.assertEqual(self._audit_actions(), ["user.approve"])
        entry = self.db.list_audit_logs()[0]
        self.assertEqual(entry.performed_by, self.admin.id)
        self.assertEqual(entry.metadata, {"userId": self.alice.id})

    def test_reject_clears_submission(self):
        self._submit_verification(self.alice)
        body = self.client.patch(
            f"/admin/users/{self.alice.id}/reject",
            json={"reason": "Blurry photo"},
            headers=self.auth,
        ).json()
        self.assertFalse(body["verification"]["submitted"])
        self.assertEqual(body["verification"]["rejectionReason"], "Blurry photo")
        self.assertEqual(body["status"], "pending")
        self.assertEqual(self.push.sent[0].title, "Verification Rejected")
        self.assertEqual(self._audit_actions(), ["user.reject"])

    def test_ban_and_unban(self):
        banned = self.client.patch(f"/admin/users/{self.bob.id}/ban", headers=self.auth)
        self.assertEqual(banned.json()["status"], "banned")
        blocked = self.client.get("/feed", headers=self.headers("bob"))
        self.assertEqual(blocked.status_code, 403)

        unbanned = self.client.patch(
            f"/admin/users/{self.bob.id}/unban", headers=self.auth
        )
        self.assertEqual(unbanned.json()["status"], "approved")
        self.assertEqual(self.client.get("/feed", headers=self.headers("bob")).status_code, 200)
        self.assertEqual(sorted(self._audit_actions()), ["user.ban", "user.unban"])

    def test_unknown_user(self):
        response = self.client.patch("/admin/users/missing/approve", headers=self.auth)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(self._audit_actions(), [])

    def test_reports_populated_and_resolved(self):
        filed = self.client.post(
            "/reports",
            json={"reportedUserId": "alice", "reason": "spam", "description": "ads"},
            headers=self.headers("bob"),
        )
        self.assertEqual(filed.status_code, 201)
        report_id = filed.json()["id"]
        self.assertEqual(filed.json()["status"], "open")

        reports = self.client.get("/admin/reports", headers=self.auth).json()
        self.assertEqual(reports[0]["reporter"]["email"], "bob@nwu.edu.bd")
        self.assertEqual(reports[0]["reportedUser"]["id"], self.alice.id)

        resolved = self.client.patch(
            f"/admin/reports/{report_id}/resolve", headers=self.auth
        ).json()
        self.assertEqual(resolved["status"], "resolved")
        dismissed = self.client.patch(
            f"/admin/reports/{report_id}/dismiss", headers=self.auth
        ).json()
        self.assertEqual(dismissed["status"], "dismissed")
        self.assertEqual(
            sorted(self._audit_actions()), ["report.dismiss", "report.resolve"]
        )

    def test_report_validation(self):
        bob = self.headers("bob")
        self.assertEqual(
            self.client.post(
                "/reports", json={"reportedUserId": "bob", "reason": "x"}, headers=bob
            ).status_code,
            400,
        )
        self.assertEqual(
            self.client.post(
                "/reports", json={"reportedUserId": "nobody", "reason": "x"}, headers=bob
            ).status_code,
            404,
        )
        self.assertEqual(
            self.client.post("/reports", json={"reportedUserId": "alice"}, headers=bob).status_code,
            422,
        )

    def test_unknown_report(self):
        response = self.client.patch("/admin/reports/missing/resolve", headers=self.auth)
        self.assertEqual(response.status_code, 404)

    def test_broadcast_delivered_to_non_banned_users(self):
        self.make_user("mallory", status="banned", token="mallory-device")
        response = self.client.patch(
            "/admin/broadcast",
            json={"title": "Exam week", "message": "Library open 24h"},
            headers=self.auth,
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["sentTo"], "all")
        self.assertEqual(body["status"], "queued")

        # The in-memory queue is drained by a background task after the response.
        broadcast = self.db.get_broadcast(body["broadcastId"])
        self.assertEqual(broadcast.status, "sent")
        self.assertEqual(broadcast.sent_count, 3)
        self.assertEqual(
            {p.token for p in self.push.sent}, {"alice-device", "bob-device"}
        )
        self.assertEqual(self.queue.size(), 0)
        self.assertEqual(self._audit_actions(), ["broadcast.send"])

    def test_audit_logs_embed_admin(self):
        self.client.patch(f"/admin/users/{self.bob.id}/ban", headers=self.auth)
        logs = self.client.get("/admin/audit-logs", headers=self.auth).json()
        self.assertEqual(len(logs), 1)
        self.assertEqual(logs[0]["action"], "user.ban")
        self.assertEqual(logs[0]["performedBy"]["id"], self.admin.id)
        self.assertIn("bob@nwu.edu.bd", logs[0]["details"])


if __name__ == "__main__":
    unittest.main()
