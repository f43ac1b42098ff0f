"""
Populate the configured database with mock users, profiles, posts, swipes,
matches and conversations for local development.

Mock accounts get synthetic uids (``mock-<n>``) and are not registered with the
identity provider.

Example:
  DATABASE_URL=postgresql://... python scripts/seed_mock_data.py -n 100 --seed 7
"""

from __future__ import annotations

import argparse
import logging
import random
import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from nwu_connect.constants import DEPARTMENTS
from nwu_connect.db import DbClient
from nwu_connect.dependencies import get_db_client
from nwu_connect.errors import ConflictError
from nwu_connect.records import (
    CommentRecord,
    MessageRecord,
    PostRecord,
    ProfileRecord,
    UserRecord,
)

logger = logging.getLogger(__name__)

FIRST_NAMES = [
    "Aarav", "Aditi", "Aryan", "Diya", "Kabir", "Kiara", "Rohan", "Saanvi",
    "Mohammed", "Fatima", "Ali", "Zainab", "Omar", "Maryam", "Ibrahim", "Aisha",
    "Yusuf", "Layla", "Hassan", "Noor", "Bilal", "Hana", "Ahmed", "Safiya",
]
LAST_NAMES = [
    "Sharma", "Patel", "Singh", "Kumar", "Khan", "Ahmed", "Ali", "Rahman",
    "Islam", "Hossain", "Das", "Roy", "Ghosh", "Bose", "Sen", "Dutta", "Saha",
]
INTERESTS = [
    "Coding", "Photography", "Travel", "Music", "Reading", "Sports", "Art",
    "Gaming", "Cooking", "Dancing", "Fitness", "Movies", "Writing",
    "Volunteering", "Entrepreneurship", "Technology", "Science", "Astronomy",
]
BIOS = [
    "Tech enthusiast | Coffee lover",
    "Dream big, work hard, stay humble",
    "Engineering student by day, coder by night",
    "Books, code, and everything nice",
    "Always learning, always growing",
]
POSTS = [
    "Just aced my Data Structures exam! All those late nights paid off",
    "Library vibes on point today. 3rd floor is the best study spot",
    "Tech fest is coming up! Who's ready for the hackathon?",
    "Looking for a study partner for Microeconomics. DM me!",
    "Cultural night was absolutely incredible!",
    "New semester, new opportunities! Let's make it count",
]
COMMENTS = ["Great post!", "So true", "Count me in", "Congrats!", "Same here"]
MESSAGES = [
    "Hey! Nice to match with you",
    "Are you going to the tech fest?",
    "Which section are you in?",
    "See you at the library",
]
YEARS = ["1.1", "1.2", "2.1", "2.2", "3.1", "3.2", "4.1", "4.2"]
SECTIONS = ["A", "B", "C", "D"]
WEEK = 7 * 24 * 3600


def _photo(index: int) -> str:
    gender = "men" if index % 2 == 0 else "women"
    return f"https://randomuser.me/api/portraits/{gender}/{index % 99 + 1}.jpg"


def _picsum(rng: random.Random, size: str = "800/600") -> str:
    return f"https://picsum.photos/{size}?random={rng.randint(100, 999)}"


def seed_users(db: DbClient, rng: random.Random, count: int) -> list[ProfileRecord]:
    profiles = []
    for index in range(count):
        name = f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}"
        uid = f"mock-{index}"
        department = rng.choice(DEPARTMENTS)
        email = f"{name.lower().replace(' ', '.')}.{index}@nwu.edu.bd"
        try:
            db.save_user(
                UserRecord(
                    firebase_uid=uid,
                    email=email,
                    status="approved" if rng.random() > 0.1 else "pending",
                    onboarding_completed=True,
                    welcome_seen=True,
                    name=name,
                    department=department,
                    bio=rng.choice(BIOS),
                    profile_image=_photo(index),
                )
            )
        except ConflictError:
            logger.warning("User %s already exists, skipping", email)
            continue
        extra_photos = [_picsum(rng) for _ in range(rng.randint(0, 2))]
        profile = ProfileRecord(
            user_id=uid,
            name=name,
            department=department,
            bio=rng.choice(BIOS),
            interests=rng.sample(INTERESTS, rng.randint(2, 6)),
            photos=[_photo(index), *extra_photos],
            cover_photo=_picsum(rng, "1200/400"),
            student_id=f"{rng.randint(2021, 2024)}{index:06d}",
            year=rng.choice(YEARS),
            section=rng.choice(SECTIONS),
            is_online=rng.random() > 0.5,
        )
        db.save_profile(profile)
        profiles.append(profile)
    logger.info("Created %d users with profiles", len(profiles))
    return profiles


def seed_posts(
    db: DbClient, rng: random.Random, profiles: list[ProfileRecord], count: int
) -> int:
    uids = [p.user_id for p in profiles]
    for _ in range(count):
        author = rng.choice(profiles)
        created = time.time() - rng.random() * WEEK
        post = PostRecord(
            user_id=author.user_id,
            visibility=rng.choice(["public", "friends", "department"]),
            author_department=author.department,
            content=rng.choice(POSTS),
            image_urls=[_picsum(rng) for _ in range(rng.randint(1, 3))]
            if rng.random() > 0.6
            else [],
            likes=sorted(set(rng.sample(uids, min(len(uids), rng.randint(0, 20))))),
            comments=[
                CommentRecord(
                    user_id=rng.choice(uids),
                    text=rng.choice(COMMENTS),
                    created_at=created + rng.random() * 3600,
                )
                for _ in range(rng.randint(0, 8))
            ],
            created_at=created,
        )
        db.save_post(post)
    logger.info("Created %d posts", count)
    return count


def seed_swipes(
    db: DbClient, rng: random.Random, profiles: list[ProfileRecord], count: int
) -> int:
    """Random swipes; mutual likes become matches with a conversation and messages."""
    matches = 0
    for _ in range(count):
        swiper, target = rng.sample(profiles, 2)
        if db.get_swipe(swiper.user_id, target.user_id):
            continue
        action = "like" if rng.random() > 0.3 else "pass"
        db.upsert_swipe(swiper.user_id, target.user_id, action)
        reverse = db.get_swipe(target.user_id, swiper.user_id)
        if action != "like" or not reverse or reverse.action != "like":
            continue

        conversation, _ = db.get_or_create_conversation(swiper.user_id, target.user_id)
        _, created = db.get_or_create_match(
            swiper.user_id, target.user_id, conversation.id
        )
        if not created:
            continue
        db.add_friend(swiper.user_id, target.user_id)
        db.add_friend(target.user_id, swiper.user_id)
        sent_at = time.time() - rng.random() * WEEK
        for i in range(rng.randint(1, 5)):
            sender = swiper if i % 2 == 0 else target
            message = MessageRecord(
                conversation_id=conversation.id,
                sender_id=sender.user_id,
                content=rng.choice(MESSAGES),
                created_at=sent_at + i * 60,
            )
            db.save_message(message)
            conversation.last_message = message.content
            conversation.last_message_at = message.created_at
        db.save_conversation(conversation)
        matches += 1
    logger.info("Created %d matches", matches)
    return matches


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed mock data")
    parser.add_argument("-n", "--users", type=int, default=100, help="Number of users")
    parser.add_argument("--posts", type=int, default=None, help="Defaults to 2x users")
    parser.add_argument("--swipes", type=int, default=None, help="Defaults to 8x users")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    if args.users < 2:
        logger.error("Need at least 2 users")
        return 1

    rng = random.Random(args.seed)
    db = get_db_client()
    profiles = seed_users(db, rng, args.users)
    if len(profiles) < 2:
        logger.error("Not enough new users were created to continue")
        return 1
    seed_posts(db, rng, profiles, args.posts or args.users * 2)
    seed_swipes(db, rng, profiles, args.swipes or args.users * 8)
    return 0


if __name__ == "__main__":
    sys.exit(main())
