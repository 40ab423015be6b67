"""
CleanConnect Seeder Script

- Drops and recreates all tables (development databases only)
- Seeds admins, requesting users with funded balances, cleaners and properties
- Uses realistic data via Faker and South African provinces
"""

import asyncio
import random
import sys
from decimal import Decimal
from pathlib import Path

from faker import Faker

# -------------------------------------------------------
# Adjust path so that we can import app modules
# -------------------------------------------------------
project_root = Path(__file__).resolve().parent
sys.path.insert(0, str(project_root))

from cleanconnect.database.base import Base  # noqa: E402
from cleanconnect.database.enums import UserRole  # noqa: E402
from cleanconnect.database.models import Property, User  # noqa: E402
from cleanconnect.database.session import engine, session_scope  # noqa: E402

# -------------------------------------------------------
# Number of records to seed
# -------------------------------------------------------
NUM_ADMINS = 2
NUM_USERS = 20
NUM_CLEANERS = 10

PROVINCES = [
    "Eastern Cape",
    "Free State",
    "Gauteng",
    "KwaZulu-Natal",
    "Limpopo",
    "Mpumalanga",
    "North West",
    "Northern Cape",
    "Western Cape",
]


class Seeder:
    def __init__(self) -> None:
        self.faker = Faker()

    async def reset_schema(self) -> None:
        print("🧹 Recreating all tables...")
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
        print("✅ Schema ready.\n")

    def _user(self, role: UserRole, prefix: str, balance: Decimal) -> User:
        return User(
            email=f"{prefix}{random.randint(1000, 99999)}@example.com",
            first_name=self.faker.first_name(),
            last_name=self.faker.last_name(),
            role=role,
            balance=balance,
        )

    async def seed(self) -> None:
        async with session_scope() as db:
            print(f"👤 Seeding {NUM_ADMINS} admin(s), {NUM_USERS} user(s), {NUM_CLEANERS} cleaner(s)...")
            admins = [self._user(UserRole.ADMIN, "admin", Decimal("0.00")) for _ in range(NUM_ADMINS)]
            users = [
                self._user(UserRole.USER, "user", Decimal(random.randint(200, 5000)))
                for _ in range(NUM_USERS)
            ]
            cleaners = [
                self._user(UserRole.CLEANER, "cleaner", Decimal("0.00")) for _ in range(NUM_CLEANERS)
            ]
            db.add_all(admins + users + cleaners)
            await db.flush()

            print("🏠 Seeding properties...")
            for user in users:
                for _ in range(random.randint(1, 2)):
                    db.add(
                        Property(
                            owner_id=user.id,
                            street=self.faker.street_address(),
                            city=self.faker.city(),
                            province=random.choice(PROVINCES),
                            postal_code=self.faker.postcode()[:10],
                            number_of_bedrooms=random.randint(1, 5),
                            number_of_bathrooms=random.randint(1, 3),
                        )
                    )
            await db.commit()
        print("✅ Seeding complete.")

    async def run(self) -> None:
        try:
            await self.reset_schema()
            await self.seed()
        finally:
            await engine.dispose()


if __name__ == "__main__":
    confirm = input("⚠️ WARNING: This will DELETE ALL DATA! Type 'yes' to proceed: ")
    if confirm.lower() == "yes":
        asyncio.run(Seeder().run())
    else:
        print("❌ Seeding cancelled.")
