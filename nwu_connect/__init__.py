"""
NWU Connect backend.

FastAPI service for the campus social network: profiles, feed, connect
(discovery and matching), chat, notifications and admin moderation. External
collaborators (Firebase, R2, Redis) sit behind small interfaces with in-memory
implementations for local runs and tests.
"""
