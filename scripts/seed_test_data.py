"""
Seed script to populate the database with dogs and breeding requests for development.
Run with: python scripts/seed_test_data.py
"""

import asyncio
import random
import sys
from pathlib import Path
from uuid import uuid4

# Add parent directory to path so we can import pawmatch
sys.path.insert(0, str(Path(__file__).parent.parent))

from faker import Faker

from pawmatch.database import async_session_maker
from pawmatch.models.dog import Dog
from pawmatch.schemas.match_request import MatchStatus
from pawmatch.services.match_lifecycle import MatchLifecycle, completion_status_for
from pawmatch.services.outcome_verification import OutcomeVerifier
from pawmatch.services.sql_store import SqlDogLookup, SqlMatchStore, SqlOutcomeStore

fake = Faker()

# Configuration
NUM_OWNERS = 20
NUM_REQUESTS = 30

BREEDS = [
    "Labrador Retriever",
    "German Shepherd",
    "Golden Retriever",
    "French Bulldog",
    "Beagle",
    "Poodle",
    "Dachshund",
]


async def seed_dogs(db) -> list[Dog]:
    """Create one or two dogs per owner."""
    dogs = []
    print(f"Creating dogs for {NUM_OWNERS} owners...")

    for _ in range(NUM_OWNERS):
        owner_id = uuid4()
        for _ in range(random.randint(1, 2)):
            dog = Dog(
                id=uuid4(),
                user_id=owner_id,
                name=fake.first_name(),
                breed=random.choice(BREEDS),
                gender=random.choice(["male", "female"]),
                image_url=fake.image_url(),
            )
            db.add(dog)
            dogs.append(dog)

    await db.commit()
    print(f"Created {len(dogs)} dogs")
    return dogs


async def seed_requests(db, dogs: list[Dog]) -> None:
    """Create requests between male/female pairs and walk some of them forward."""
    lifecycle = MatchLifecycle(SqlMatchStore(db), SqlDogLookup(db))
    verifier = OutcomeVerifier(SqlDogLookup(db), SqlMatchStore(db), SqlOutcomeStore(db))

    males = [d for d in dogs if d.gender == "male"]
    females = [d for d in dogs if d.gender == "female"]
    if not males or not females:
        print("Need at least one male and one female dog, skipping requests")
        return

    print(f"Creating {NUM_REQUESTS} breeding requests...")
    for _ in range(NUM_REQUESTS):
        male, female = random.choice(males), random.choice(females)
        if male.user_id == female.user_id:
            continue
        requester, requested = random.sample([male, female], 2)

        match = await lifecycle.create_request(
            contact_id=uuid4(),
            requester_dog_id=requester.id,
            requested_dog_id=requested.id,
            requester_user_id=requester.user_id,
            notes=fake.sentence() if random.random() < 0.5 else None,
        )

        step = random.choice(["pending", "declined", "cancelled", "awaiting", "completed"])
        if step == "declined":
            await lifecycle.transition_status(match.id, MatchStatus.declined.value)
        elif step == "cancelled":
            await lifecycle.transition_status(match.id, MatchStatus.cancelled.value)
        elif step in ("awaiting", "completed"):
            await lifecycle.accept(match.id)

        if step == "completed":
            outcome = random.choice(["success", "failed", "no_show"])
            record = await verifier.submit_outcome(
                match.id,
                outcome,
                female.id,
                litter_size=random.randint(1, 9),
                notes=fake.sentence(),
                acting_user_id=female.user_id,
            )
            await lifecycle.transition_status(match.id, completion_status_for(record.outcome))


async def main() -> None:
    async with async_session_maker() as db:
        dogs = await seed_dogs(db)
        await seed_requests(db, dogs)
    print("Done")


if __name__ == "__main__":
    asyncio.run(main())
