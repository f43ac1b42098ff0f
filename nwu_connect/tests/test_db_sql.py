import unittest
from unittest import mock

from sqlalchemy.exc import IntegrityError

from nwu_connect.db_sql import SqlDbClient, SwipeRow
from nwu_connect.errors import ConflictError, NotFoundError
from nwu_connect.records import (
    AuditLogRecord,
    BroadcastRecord,
    CommentRecord,
    EditRecord,
    MessageRecord,
    NotificationRecord,
    PostRecord,
    ProfileRecord,
    ReplyRecord,
    UserRecord,
    Viewer,
)
from nwu_connect.services import feed


class SqlDbClientTests(unittest.TestCase):
    def setUp(self):
        self.db = SqlDbClient("sqlite+pysqlite:///:memory:")

    def test_requires_url(self):
        with self.assertRaises(ValueError):
            SqlDbClient("")

    def test_user_round_trip_and_conflicts(self):
        user = UserRecord(firebase_uid="uid-1", email="a@nwu.edu.bd", name="Alice")
        user.verification.submitted = True
        user.verification.id_card_url = "id.jpg"
        self.db.save_user(user)

        loaded = self.db.get_user_by_uid("uid-1")
        self.assertEqual(loaded.id, user.id)
        self.assertTrue(loaded.verification.submitted)
        self.assertEqual(loaded.verification.id_card_url, "id.jpg")
        self.assertEqual(self.db.get_user_by_email("a@nwu.edu.bd").id, user.id)
        self.assertEqual(self.db.count_users(status="pending", verification_submitted=True), 1)
        self.assertEqual([u.id for u in self.db.list_pending_verifications()], [user.id])

        with self.assertRaises(ConflictError):
            self.db.save_user(UserRecord(firebase_uid="uid-2", email="a@nwu.edu.bd"))

    def test_list_users_newest_first(self):
        for index, ts in enumerate((100.0, 300.0, 200.0)):
            self.db.save_user(
                UserRecord(firebase_uid=f"u{index}", email=f"u{index}@x", created_at=ts)
            )
        self.assertEqual([u.firebase_uid for u in self.db.list_users()], ["u1", "u2", "u0"])
        self.assertEqual(
            [u.firebase_uid for u in self.db.list_users(limit=1, skip=1)], ["u2"]
        )
        self.assertEqual(self.db.count_users(), 3)

    def test_profile_json_fields_and_friends(self):
        self.db.save_profile(
            ProfileRecord(
                user_id="alice",
                name="Alice",
                department="CSE",
                interests=["Music"],
                photos=["a.jpg"],
                location={"address": "Khulna"},
                privacy={"email": "private"},
            )
        )
        self.assertTrue(self.db.add_friend("alice", "bob"))
        self.assertTrue(self.db.add_friend("alice", "bob"))
        self.assertFalse(self.db.add_friend("nobody", "bob"))

        profile = self.db.get_profile("alice")
        self.assertEqual(profile.friend_ids, ["bob"])
        self.assertEqual(profile.interests, ["Music"])
        self.assertEqual(profile.address, "Khulna")
        self.assertEqual(profile.privacy_level("email"), "private")
        self.assertEqual(profile.privacy_level("bio"), "public")

    def test_sample_profiles_excludes_ids(self):
        for uid in ("a", "b", "c"):
            self.db.save_profile(ProfileRecord(user_id=uid, name=uid, department="CSE"))
        sampled = {p.user_id for p in self.db.sample_profiles(["a"], 10)}
        self.assertEqual(sampled, {"b", "c"})
        self.assertEqual(len(self.db.sample_profiles([], 2)), 2)

    def test_post_visibility_query(self):
        def post(uid, visibility, department, **kwargs):
            record = PostRecord(
                user_id=uid, visibility=visibility, author_department=department, **kwargs
            )
            self.db.save_post(record)
            return record.id

        public = post("bob", "public", "EEE")
        dept = post("carol", "department", "CSE")
        post("dave", "department", "Law")
        friends = post("bob", "friends", "EEE")
        post("erin", "friends", "CSE")
        post("bob", "public", "EEE", is_archived=True)
        own = post("alice", "friends", "CSE")

        viewer = Viewer(user_id="alice", department="CSE", friend_ids=["bob"])
        visible = {p.id for p in self.db.sample_visible_posts(viewer, 50)}
        self.assertEqual(visible, {public, dept, friends, own})

        lonely = Viewer(user_id="zed", department="Law")
        self.assertEqual(
            [p.id for p in self.db.list_user_posts("bob", lonely)], [public]
        )
        self.assertEqual(self.db.count_user_posts("bob"), 3)

    def test_comments_replies_and_history(self):
        record = PostRecord(
            user_id="alice",
            visibility="public",
            author_department="CSE",
            content="v2",
            edit_history=[EditRecord(content="v1", edited_at=10.0)],
        )
        self.db.save_post(record)
        comment = CommentRecord(user_id="bob", text="hi")
        self.db.append_comment(record.id, comment)
        updated = self.db.append_reply(record.id, comment.id, ReplyRecord(user_id="alice", text="yo"))

        self.assertEqual(updated.comments[0].replies[0].text, "yo")
        self.assertIsNone(self.db.append_reply(record.id, "missing", ReplyRecord("a", "x")))
        self.assertIsNone(self.db.append_comment("missing", comment))
        loaded = self.db.get_post(record.id)
        self.assertEqual(loaded.edit_history[0].content, "v1")
        self.assertTrue(self.db.delete_post(record.id))
        self.assertFalse(self.db.delete_post(record.id))

    def test_post_mutations_keep_interleaved_comments(self):
        record = PostRecord(
            user_id="alice", visibility="public", author_department="CSE", content="v1"
        )
        self.db.save_post(record)
        stale = self.db.get_post(record.id)
        self.db.append_comment(record.id, CommentRecord(user_id="bob", text="first!"))

        with mock.patch.object(
            self.db, "save_post", side_effect=AssertionError("full rewrite")
        ):
            feed.toggle_like("carol", stale.id, db=self.db)
            feed.edit_post("alice", stale.id, "v2", db=self.db)
            self.db.append_comment(record.id, CommentRecord(user_id="dave", text="late"))
            feed.toggle_archive("alice", stale.id, db=self.db)

        stored = self.db.get_post(record.id)
        self.assertEqual([c.text for c in stored.comments], ["first!", "late"])
        self.assertEqual(stored.likes, ["carol"])
        self.assertEqual(stored.content, "v2")
        self.assertEqual([e.content for e in stored.edit_history], ["v1"])
        self.assertTrue(stored.is_archived)

    def test_post_owner_mutations_reject_other_users(self):
        record = PostRecord(user_id="alice", visibility="public", author_department="CSE")
        self.db.save_post(record)
        self.assertIsNone(self.db.toggle_archived(record.id, "bob"))
        self.assertIsNone(self.db.append_edit(record.id, "bob", "hijack"))
        self.assertIsNone(self.db.toggle_like("missing", "bob"))
        with self.assertRaises(NotFoundError):
            feed.edit_post("bob", record.id, "hijack", db=self.db)

        liked = self.db.toggle_like(record.id, "bob")
        self.assertEqual(liked.likes, ["bob"])
        self.assertEqual(self.db.toggle_like(record.id, "bob").likes, [])
        stored = self.db.get_post(record.id)
        self.assertFalse(stored.is_archived)
        self.assertEqual(stored.edit_history, [])

    def test_swipe_pair_is_unique(self):
        self.db.upsert_swipe("alice", "bob", "pass")
        self.db.upsert_swipe("alice", "bob", "like")
        self.assertEqual(self.db.get_swipe("alice", "bob").action, "like")
        self.assertEqual(self.db.list_swiped_ids("alice"), ["bob"])
        self.assertEqual(self.db.list_swiped_ids("alice", action="pass"), [])

        with self.db.Session() as session:
            session.add(
                SwipeRow(
                    swiper_id="alice",
                    target_id="bob",
                    action="like",
                    created_at=0.0,
                    updated_at=0.0,
                )
            )
            with self.assertRaises(IntegrityError):
                session.commit()

    def test_match_and_conversation_are_idempotent(self):
        conversation, created = self.db.get_or_create_conversation("alice", "bob")
        self.assertTrue(created)
        again, created = self.db.get_or_create_conversation("bob", "alice")
        self.assertFalse(created)
        self.assertEqual(again.id, conversation.id)

        match, created = self.db.get_or_create_match("alice", "bob", conversation.id)
        self.assertTrue(created)
        same, created = self.db.get_or_create_match("bob", "alice")
        self.assertFalse(created)
        self.assertEqual(same.id, match.id)
        self.assertEqual(same.conversation_id, conversation.id)
        self.assertEqual([m.id for m in self.db.list_matches("bob")], [match.id])

    def test_messages_and_read_receipts(self):
        conversation, _ = self.db.get_or_create_conversation("alice", "bob")
        for sender, ts in (("alice", 1.0), ("alice", 2.0), ("bob", 3.0)):
            self.db.save_message(
                MessageRecord(
                    conversation_id=conversation.id,
                    sender_id=sender,
                    content=f"{sender}-{ts}",
                    created_at=ts,
                )
            )
        self.assertEqual(self.db.mark_messages_read(conversation.id, "bob"), 2)
        self.assertEqual(self.db.mark_messages_read(conversation.id, "bob"), 0)
        messages = self.db.list_messages(conversation.id)
        self.assertEqual(
            [(m.sender_id, m.read, m.status) for m in messages],
            [("alice", True, "seen"), ("alice", True, "seen"), ("bob", False, "sent")],
        )

        conversation.last_message = "latest"
        conversation.last_message_at = 5.0
        self.db.save_conversation(conversation)
        self.assertEqual(self.db.list_conversations("alice")[0].last_message, "latest")

    def test_notifications(self):
        first = NotificationRecord(user_id="alice", title="a", body="", data={"k": "v"})
        second = NotificationRecord(user_id="alice", title="b", body="")
        self.db.save_notification(first)
        self.db.save_notification(second)
        self.assertEqual(self.db.count_unread_notifications("alice"), 2)
        self.assertEqual(self.db.get_notification(first.id).data, {"k": "v"})
        self.assertEqual(self.db.mark_all_notifications_read("alice"), 2)
        self.assertEqual(self.db.count_unread_notifications("alice"), 0)

    def test_audit_log_metadata_and_broadcast(self):
        self.db.save_audit_log(
            AuditLogRecord(action="user.ban", details="Banned x", metadata={"userId": "u1"})
        )
        entry = self.db.list_audit_logs()[0]
        self.assertEqual(entry.metadata, {"userId": "u1"})

        broadcast = BroadcastRecord(title="t", message="m")
        self.db.save_broadcast(broadcast)
        broadcast.status = "sent"
        broadcast.sent_count = 4
        self.db.save_broadcast(broadcast)
        loaded = self.db.get_broadcast(broadcast.id)
        self.assertEqual((loaded.status, loaded.sent_count), ("sent", 4))


if __name__ == "__main__":
    unittest.main()
