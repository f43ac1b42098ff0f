import importlib.util
import random
import unittest
from pathlib import Path

from nwu_connect.db import InMemoryDbClient
from nwu_connect.records import UserRecord

SCRIPTS_DIR = Path(__file__).resolve().parents[2] / "scripts"


def _load(name):
    spec = importlib.util.spec_from_file_location(name, SCRIPTS_DIR / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class SetAdminTests(unittest.TestCase):
    def setUp(self):
        self.script = _load("set_admin")
        self.db = InMemoryDbClient()

    def test_promotes_existing_account(self):
        self.db.save_user(UserRecord(firebase_uid="u1", email="a@nwu.edu.bd"))
        self.assertTrue(self.script.promote(self.db, "a@nwu.edu.bd"))
        user = self.db.get_user_by_email("a@nwu.edu.bd")
        self.assertTrue(user.is_admin)
        self.assertEqual(user.status, "admin")

    def test_unknown_email(self):
        with self.assertLogs(level="ERROR"):
            self.assertFalse(self.script.promote(self.db, "ghost@nwu.edu.bd"))


class SeedMockDataTests(unittest.TestCase):
    def test_seeds_consistent_data(self):
        script = _load("seed_mock_data")
        db = InMemoryDbClient(rng=random.Random(5))
        rng = random.Random(5)

        profiles = script.seed_users(db, rng, 12)
        self.assertEqual(len(profiles), 12)
        self.assertEqual(db.count_users(), 12)
        self.assertTrue(all(p.user_id.startswith("mock-") for p in profiles))

        self.assertEqual(script.seed_posts(db, rng, profiles, 20), 20)
        self.assertEqual(len(db.posts), 20)

        matches = script.seed_swipes(db, rng, profiles, 200)
        self.assertEqual(len(db.matches), matches)
        for match in db.matches.values():
            a, b = match.users
            self.assertIn(b, db.get_profile(a).friend_ids)
            self.assertIn(a, db.get_profile(b).friend_ids)
            self.assertIsNotNone(db.get_conversation(match.conversation_id))


if __name__ == "__main__":
    unittest.main()
