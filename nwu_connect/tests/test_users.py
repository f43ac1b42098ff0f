import unittest

from nwu_connect.tests.helpers import ApiTestCase


class AuthGuardTests(ApiTestCase):
    def test_health_needs_no_token(self):
        self.assertEqual(self.client.get("/health").json(), {"status": "ok"})
        self.assertEqual(self.client.get("/").status_code, 200)

    def test_missing_token_is_rejected(self):
        response = self.client.get("/user/me")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["detail"], "Not authenticated")

    def test_invalid_token_is_rejected(self):
        response = self.client.get(
            "/user/me", headers={"Authorization": "Bearer not-a-token"}
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["detail"], "Invalid or expired token")

    def test_banned_user_blocked_except_me_and_sync(self):
        self.make_user("mallory", status="banned")
        headers = self.headers("mallory")

        response = self.client.get("/feed", headers=headers)
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["detail"], "Account is banned")

        me = self.client.get("/user/me", headers=headers)
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()["status"], "banned")
        sync = self.client.post(
            "/user/sync", json={"email": "mallory@nwu.edu.bd"}, headers=headers
        )
        self.assertEqual(sync.status_code, 200)


class UserApiTests(ApiTestCase):
    def test_sync_creates_then_updates_email(self):
        headers = self.headers("alice", "alice@nwu.edu.bd")
        created = self.client.post(
            "/user/sync", json={"email": "alice@nwu.edu.bd"}, headers=headers
        )
        self.assertEqual(created.status_code, 200)
        body = created.json()
        self.assertEqual(body["status"], "pending")
        self.assertEqual(body["role"], "user")
        self.assertFalse(body["verification"]["submitted"])

        again = self.client.post(
            "/user/sync", json={"email": "alice@nwu.edu.bd"}, headers=headers
        ).json()
        self.assertEqual(again["id"], body["id"])

        changed = self.client.post(
            "/user/sync", json={"email": "alice.new@nwu.edu.bd"}, headers=headers
        ).json()
        self.assertEqual(changed["id"], body["id"])
        self.assertEqual(changed["email"], "alice.new@nwu.edu.bd")
        self.assertEqual(len(self.db.users), 1)

    def test_sync_falls_back_to_token_email(self):
        response = self.client.post(
            "/user/sync", json={}, headers=self.headers("bob", "bob@nwu.edu.bd")
        )
        self.assertEqual(response.json()["email"], "bob@nwu.edu.bd")

    def test_sync_email_taken_by_other_account(self):
        self.make_user("alice")
        response = self.client.post(
            "/user/sync",
            json={"email": "alice@nwu.edu.bd"},
            headers=self.headers("bob"),
        )
        self.assertEqual(response.status_code, 409)

    def test_me_merges_profile(self):
        self.make_user("alice", name="Alice A", photos=["p1.jpg"], student_id="2021001")
        body = self.client.get("/user/me", headers=self.headers("alice")).json()
        self.assertEqual(body["name"], "Alice A")
        self.assertEqual(body["photoUrl"], "p1.jpg")
        self.assertEqual(body["studentId"], "2021001")
        self.assertEqual(body["friendIds"], [])

    def test_me_unknown_user(self):
        response = self.client.get("/user/me", headers=self.headers("ghost"))
        self.assertEqual(response.status_code, 404)

    def test_welcome_and_device_token(self):
        self.make_user("alice")
        headers = self.headers("alice")
        self.assertTrue(
            self.client.patch("/user/welcome", headers=headers).json()["welcomeSeen"]
        )
        response = self.client.put(
            "/user/device-token", json={"fcmToken": "tok-1"}, headers=headers
        )
        self.assertEqual(response.json(), {"success": True})
        self.assertEqual(self.db.get_user_by_uid("alice").notification_token, "tok-1")

    def test_update_profile_onboards_and_caps_photos(self):
        self.make_user(
            "alice",
            photos=["p1", "p2", "p3", "p4", "p5"],
        )
        headers = self.headers("alice")
        response = self.client.patch(
            "/user/profile",
            json={
                "name": "Alice",
                "department": "Law",
                "bio": "hello",
                "photo": "new.jpg",
                "privacy": {"email": "private"},
            },
            headers=headers,
        )
        self.assertEqual(response.status_code, 200)
        profile = self.db.get_profile("alice")
        self.assertEqual(profile.photos, ["new.jpg", "p1", "p2", "p3", "p4"])
        self.assertEqual(profile.department, "Law")
        self.assertEqual(profile.student_id, "")
        self.assertEqual(profile.privacy["email"], "private")
        self.assertEqual(profile.privacy["bio"], "public")
        user = self.db.get_user_by_uid("alice")
        self.assertTrue(user.onboarding_completed)
        self.assertEqual(user.profile_image, "new.jpg")

        # Re-sending an existing photo does not duplicate it.
        self.client.patch(
            "/user/profile",
            json={"name": "Alice", "department": "Law", "photo": "p2"},
            headers=headers,
        )
        self.assertEqual(self.db.get_profile("alice").photos.count("p2"), 1)

    def test_update_profile_validates_department_and_privacy(self):
        self.make_user("alice")
        headers = self.headers("alice")
        bad_dept = self.client.patch(
            "/user/profile", json={"name": "A", "department": "Magic"}, headers=headers
        )
        self.assertEqual(bad_dept.status_code, 400)
        bad_privacy = self.client.patch(
            "/user/profile",
            json={"name": "A", "department": "CSE", "privacy": {"bio": "secret"}},
            headers=headers,
        )
        self.assertEqual(bad_privacy.status_code, 400)

    def test_verification_submission_clears_rejection(self):
        user = self.make_user("alice", status="pending")
        user.verification.rejection_reason = "blurry"
        self.db.save_user(user)
        response = self.client.patch(
            "/user/verification",
            json={"idCardUrl": "id.jpg", "selfieUrl": "me.jpg"},
            headers=self.headers("alice"),
        )
        verification = response.json()["verification"]
        self.assertTrue(verification["submitted"])
        self.assertEqual(verification["idCardUrl"], "id.jpg")
        self.assertIsNone(verification["rejectionReason"])

    def test_presence_creates_missing_profile(self):
        self.make_user("alice", with_profile=False)
        response = self.client.post(
            "/user/presence", json={"isOnline": True}, headers=self.headers("alice")
        )
        self.assertTrue(response.json()["isOnline"])
        self.assertTrue(self.db.get_profile("alice").is_online)


class PublicProfileTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.make_user(
            "alice",
            student_id="2021001",
            bio="about me",
            friend_ids=["bob"],
            privacy={
                "email": "private",
                "studentId": "friends",
                "year": "public",
                "section": "public",
                "location": "public",
                "interests": "public",
                "department": "public",
                "bio": "public",
            },
        )
        self.make_user("bob")
        self.make_user("carol")

    def test_unknown_user(self):
        response = self.client.get("/user/nobody", headers=self.headers("bob"))
        self.assertEqual(response.status_code, 404)

    def test_friend_sees_friends_fields(self):
        body = self.client.get("/user/alice", headers=self.headers("bob")).json()
        self.assertTrue(body["isFriend"])
        self.assertEqual(body["connectionStatus"], "friend")
        self.assertEqual(body["studentId"], "2021001")
        self.assertNotIn("email", body)
        self.assertEqual(body["friendsCount"], 1)

    def test_stranger_sees_public_fields_only(self):
        body = self.client.get("/user/alice", headers=self.headers("carol")).json()
        self.assertFalse(body["isFriend"])
        self.assertEqual(body["connectionStatus"], "none")
        self.assertNotIn("studentId", body)
        self.assertNotIn("email", body)
        self.assertEqual(body["bio"], "about me")
        self.assertTrue(body["isVerified"])

    def test_pending_connection_and_self_view(self):
        self.db.upsert_swipe("carol", "alice", "like")
        body = self.client.get("/user/alice", headers=self.headers("carol")).json()
        self.assertEqual(body["connectionStatus"], "pending")

        own = self.client.get("/user/alice", headers=self.headers("alice")).json()
        self.assertTrue(own["isSelf"])
        self.assertEqual(own["email"], "alice@nwu.edu.bd")


class ProfileApiTests(ApiTestCase):
    def test_get_profile_null_then_upsert(self):
        self.make_user("alice", with_profile=False)
        headers = self.headers("alice")
        self.assertIsNone(self.client.get("/profile", headers=headers).json())

        payload = {"name": "Alice", "bio": "hi", "department": "EEE", "interests": ["Music"]}
        first = self.client.put("/profile", json=payload, headers=headers).json()
        self.assertEqual(first["interests"], ["Music"])
        self.assertEqual(first["privacy"]["email"], "public")

        second = self.client.put(
            "/profile",
            json={"name": "Alice B", "bio": "", "department": "EEE"},
            headers=headers,
        ).json()
        self.assertEqual(second["name"], "Alice B")
        self.assertEqual(second["interests"], ["Music"])
        self.assertEqual(len(self.db.profiles), 1)


if __name__ == "__main__":
    unittest.main()
