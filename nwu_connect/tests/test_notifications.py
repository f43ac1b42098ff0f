import unittest

from nwu_connect.records import NotificationRecord
from nwu_connect.services.notifications import send_notification
from nwu_connect.tests.helpers import ApiTestCase


class SendNotificationTests(ApiTestCase):
    def test_persists_and_pushes_with_string_data(self):
        self.make_user("alice", token="device-1")
        notification = send_notification(
            "alice", "Hello", "World", {"type": "test", "count": 3},
            db=self.db, push=self.push,
        )
        self.assertEqual(self.db.get_notification(notification.id).title, "Hello")
        self.assertEqual(len(self.push.sent), 1)
        self.assertEqual(self.push.sent[0].data, {"type": "test", "count": "3"})

    def test_missing_token_skips_push(self):
        self.make_user("alice")
        with self.assertLogs("nwu_connect.services.notifications", level="WARNING"):
            notification = send_notification(
                "alice", "Hello", "World", db=self.db, push=self.push
            )
        self.assertIsNotNone(notification)
        self.assertEqual(self.push.sent, [])

    def test_push_failure_is_logged_not_raised(self):
        self.make_user("alice", token="device-1")
        self.push.fail = True
        with self.assertLogs("nwu_connect.services.notifications", level="ERROR"):
            notification = send_notification(
                "alice", "Hello", "World", db=self.db, push=self.push
            )
        self.assertIn(notification.id, self.db.notifications)

    def test_unknown_user_still_stores_notification(self):
        notification = send_notification(
            "ghost", "Hello", "World", db=self.db, push=self.push
        )
        self.assertEqual(notification.user_id, "ghost")
        self.assertEqual(self.push.sent, [])


class NotificationApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.make_user("alice")
        self.make_user("bob")
        self.old = NotificationRecord(user_id="alice", title="Old", body="", created_at=100.0)
        self.new = NotificationRecord(user_id="alice", title="New", body="", created_at=200.0)
        self.other = NotificationRecord(user_id="bob", title="Bob's", body="")
        for record in (self.old, self.new, self.other):
            self.db.save_notification(record)

    def test_list_newest_first(self):
        items = self.client.get("/notifications", headers=self.headers("alice")).json()
        self.assertEqual([n["title"] for n in items], ["New", "Old"])

    def test_unread_count_and_mark_read(self):
        alice = self.headers("alice")
        self.assertEqual(
            self.client.get("/notifications/unread-count", headers=alice).json(),
            {"count": 2},
        )
        marked = self.client.put(f"/notifications/{self.old.id}/read", headers=alice)
        self.assertTrue(marked.json()["isRead"])
        self.assertEqual(
            self.client.get("/notifications/unread-count", headers=alice).json()["count"],
            1,
        )

    def test_cannot_mark_someone_elses_notification(self):
        response = self.client.put(
            f"/notifications/{self.other.id}/read", headers=self.headers("alice")
        )
        self.assertEqual(response.status_code, 404)
        self.assertFalse(self.db.get_notification(self.other.id).is_read)

    def test_read_all(self):
        alice = self.headers("alice")
        self.assertEqual(
            self.client.put("/notifications/read-all", headers=alice).json(),
            {"modifiedCount": 2},
        )
        self.assertEqual(
            self.client.put("/notifications/read-all", headers=alice).json(),
            {"modifiedCount": 0},
        )
        self.assertFalse(self.db.get_notification(self.other.id).is_read)


if __name__ == "__main__":
    unittest.main()
