import unittest

from nwu_connect.constants import PHOTO_MESSAGE_PREVIEW
from nwu_connect.records import ConversationRecord, MessageRecord
from nwu_connect.tests.helpers import ApiTestCase


class ChatApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.make_user("alice", photos=["alice.jpg"], token="alice-device")
        self.make_user("bob", token="bob-device")
        self.make_user("carol")

    def _send(self, uid, target, **payload):
        body = {"targetId": target}
        body.update(payload)
        return self.client.post("/chat/send", json=body, headers=self.headers(uid))

    def test_start_is_idempotent(self):
        first = self.client.post(
            "/chat/start", json={"targetId": "bob"}, headers=self.headers("alice")
        ).json()
        second = self.client.post(
            "/chat/start", json={"targetId": "alice"}, headers=self.headers("bob")
        ).json()
        self.assertEqual(first["id"], second["id"])
        self.assertEqual(len(self.db.conversations), 1)

    def test_start_with_self(self):
        response = self.client.post(
            "/chat/start", json={"targetId": "alice"}, headers=self.headers("alice")
        )
        self.assertEqual(response.status_code, 400)

    def test_send_text_message(self):
        response = self._send("alice", "bob", content="Hi Bob")
        self.assertEqual(response.status_code, 200)
        message = response.json()
        self.assertEqual(message["senderId"], "alice")
        self.assertEqual(message["status"], "sent")
        self.assertFalse(message["read"])

        conversation = self.db.get_conversation(message["conversationId"])
        self.assertEqual(conversation.last_message, "Hi Bob")

        mirrored = self.realtime.get(
            f"chats/{conversation.id}/messages/{message['id']}"
        )
        self.assertEqual(mirrored["content"], "Hi Bob")
        self.assertIsInstance(mirrored["createdAt"], int)

        self.assertEqual(len(self.push.sent), 1)
        push = self.push.sent[0]
        self.assertEqual(push.token, "bob-device")
        self.assertEqual(push.title, "Alice")
        self.assertEqual(push.data["conversationId"], conversation.id)

    def test_image_message_uses_photo_preview(self):
        message = self._send(
            "alice", "bob", type="image", imageUrl="https://cdn/x.jpg"
        ).json()
        conversation = self.db.get_conversation(message["conversationId"])
        self.assertEqual(conversation.last_message, PHOTO_MESSAGE_PREVIEW)
        self.assertEqual(self.push.sent[0].body, PHOTO_MESSAGE_PREVIEW)

    def test_message_validation(self):
        self.assertEqual(self._send("alice", "bob", type="image").status_code, 400)
        self.assertEqual(self._send("alice", "bob", content="   ").status_code, 400)
        self.assertEqual(self._send("alice", "alice", content="me").status_code, 400)
        self.assertEqual(
            self._send("alice", "bob", content="x", type="video").status_code, 422
        )

    def test_realtime_failure_still_saves_message(self):
        def _fail(*args, **kwargs):
            raise RuntimeError("realtime down")

        self.realtime.set = _fail
        with self.assertLogs("nwu_connect.services.chat", level="ERROR"):
            response = self._send("alice", "bob", content="still here")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(self.db.messages), 1)

    def test_read_receipts(self):
        conversation_id = self._send("alice", "bob", content="one").json()[
            "conversationId"
        ]
        self._send("alice", "bob", content="two")
        self._send("bob", "alice", content="reply")

        result = self.client.post(
            f"/chat/read/{conversation_id}", headers=self.headers("bob")
        ).json()
        self.assertEqual(result, {"success": True, "updated": 2})

        statuses = {
            m.content: (m.read, m.status) for m in self.db.messages.values()
        }
        self.assertEqual(statuses["one"], (True, "seen"))
        self.assertEqual(statuses["reply"], (False, "sent"))

        mirrored = self.realtime.get(f"chats/{conversation_id}/messages")
        seen = {v["content"]: v["status"] for v in mirrored.values()}
        self.assertEqual(seen, {"one": "seen", "two": "seen", "reply": "sent"})

        again = self.client.post(
            f"/chat/read/{conversation_id}", headers=self.headers("bob")
        ).json()
        self.assertEqual(again["updated"], 0)

    def test_non_participant_is_forbidden(self):
        conversation_id = self._send("alice", "bob", content="private").json()[
            "conversationId"
        ]
        carol = self.headers("carol")
        self.assertEqual(
            self.client.get(f"/chat/messages/{conversation_id}", headers=carol).status_code,
            403,
        )
        self.assertEqual(
            self.client.post(f"/chat/read/{conversation_id}", headers=carol).status_code,
            403,
        )

    def test_unknown_conversation(self):
        response = self.client.get("/chat/messages/missing", headers=self.headers("alice"))
        self.assertEqual(response.status_code, 404)

    def test_messages_oldest_first(self):
        conversation = ConversationRecord(participants=["alice", "bob"])
        self.db.save_conversation(conversation)
        for index, ts in enumerate((300.0, 100.0, 200.0)):
            self.db.save_message(
                MessageRecord(
                    conversation_id=conversation.id,
                    sender_id="alice",
                    content=f"m{index}",
                    created_at=ts,
                )
            )
        messages = self.client.get(
            f"/chat/messages/{conversation.id}?limit=2", headers=self.headers("bob")
        ).json()
        self.assertEqual([m["content"] for m in messages], ["m1", "m2"])

    def test_conversations_most_recent_first(self):
        older = ConversationRecord(participants=["alice", "bob"], last_message_at=100.0)
        newer = ConversationRecord(participants=["carol", "alice"], last_message_at=200.0)
        self.db.save_conversation(older)
        self.db.save_conversation(newer)

        conversations = self.client.get(
            "/chat/conversations", headers=self.headers("alice")
        ).json()
        self.assertEqual([c["id"] for c in conversations], [newer.id, older.id])
        self.assertEqual(conversations[0]["otherUser"]["name"], "Carol")
        self.assertEqual(conversations[1]["otherUser"]["id"], "bob")


if __name__ == "__main__":
    unittest.main()
