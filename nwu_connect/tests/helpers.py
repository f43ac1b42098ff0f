import random
import unittest

from fastapi.testclient import TestClient

from nwu_connect.app import create_app
from nwu_connect.auth import InMemoryIdentityVerifier
from nwu_connect.db import InMemoryDbClient
from nwu_connect.dependencies import (
    get_db_client,
    get_identity_verifier,
    get_push_gateway,
    get_queue_client,
    get_realtime_client,
    get_storage_client,
)
from nwu_connect.push import InMemoryPushGateway
from nwu_connect.queue import InMemoryJobQueue
from nwu_connect.realtime import InMemoryRealtimeClient
from nwu_connect.records import ProfileRecord, UserRecord
from nwu_connect.storage import InMemoryStorageClient


class ApiTestCase(unittest.TestCase):
    """Spins up the app with fresh in-memory collaborators for every test."""

    def setUp(self):
        self.db = InMemoryDbClient(rng=random.Random(7))
        self.verifier = InMemoryIdentityVerifier()
        self.realtime = InMemoryRealtimeClient()
        self.push = InMemoryPushGateway()
        self.storage = InMemoryStorageClient()
        self.queue = InMemoryJobQueue()

        self.app = create_app()
        self.app.dependency_overrides.update(
            {
                get_db_client: lambda: self.db,
                get_identity_verifier: lambda: self.verifier,
                get_realtime_client: lambda: self.realtime,
                get_push_gateway: lambda: self.push,
                get_storage_client: lambda: self.storage,
                get_queue_client: lambda: self.queue,
            }
        )
        self.client = TestClient(self.app)
        self._tokens = {}

    def headers(self, uid, email=None):
        if uid not in self._tokens:
            self._tokens[uid] = self.verifier.issue(uid, email or f"{uid}@nwu.edu.bd")
        return {"Authorization": f"Bearer {self._tokens[uid]}"}

    def make_user(
        self,
        uid,
        *,
        name=None,
        department="CSE",
        status="approved",
        role="user",
        with_profile=True,
        token=None,
        **profile_fields,
    ):
        user = UserRecord(
            firebase_uid=uid,
            email=f"{uid}@nwu.edu.bd",
            status=status,
            role=role,
            name=name or uid.title(),
            department=department,
            notification_token=token,
        )
        self.db.save_user(user)
        if with_profile:
            self.db.save_profile(
                ProfileRecord(
                    user_id=uid,
                    name=name or uid.title(),
                    department=department,
                    **profile_fields,
                )
            )
        return user
