"""Seed script: demo gardeners for local leaderboard development.

Includes ties, hidden profiles and users inactive this month so every
ranking path has something to show.

Usage:
    python -m moodgarden.seed
"""

import asyncio
from datetime import timedelta

from sqlalchemy import delete

from moodgarden.database import close_db, get_db_session, init_db
from moodgarden.logging_config import configure_logging, get_logger
from moodgarden.models import User
from moodgarden.utils.datetime_utils import start_of_month, utcnow

logger = get_logger(__name__)

NOW = utcnow()
THIS_MONTH = start_of_month(NOW) + timedelta(hours=1)
LAST_MONTH = start_of_month(NOW) - timedelta(days=3)

HIDDEN = {"showProfile": False, "shareGarden": False, "shareAchievements": True}

# ---------------------------------------------------------------------------
# Gardeners
# ---------------------------------------------------------------------------

USERS = [
    {"telegram_id": 1001, "first_name": "Iris", "username": "iris", "level": 12, "experience": 840,
     "current_streak": 21, "longest_streak": 40, "total_elements": 64, "rare_elements_found": 9,
     "last_visit_date": THIS_MONTH},
    {"telegram_id": 1002, "first_name": "Basil", "username": "basil", "level": 12, "experience": 840,
     "current_streak": 21, "longest_streak": 21, "total_elements": 52, "rare_elements_found": 4,
     "last_visit_date": THIS_MONTH},
    {"telegram_id": 1003, "first_name": "Fern", "level": 9, "experience": 410,
     "current_streak": 3, "longest_streak": 30, "total_elements": 70, "rare_elements_found": 2,
     "last_visit_date": LAST_MONTH, "privacy_settings": HIDDEN},
    {"telegram_id": 1004, "first_name": "Sage", "last_name": "Moss", "level": 7, "experience": 120,
     "current_streak": 0, "longest_streak": 12, "total_elements": 18, "rare_elements_found": 1,
     "last_visit_date": THIS_MONTH, "garden_theme": "autumn"},
    {"telegram_id": 1005, "first_name": "Rowan", "level": 15, "experience": 50,
     "current_streak": 45, "longest_streak": 45, "total_elements": 90, "rare_elements_found": 14,
     "last_visit_date": THIS_MONTH, "privacy_settings": {"showProfile": True, "shareGarden": False}},
    {"telegram_id": 1006, "username": "quiet_one", "level": 1, "experience": 0,
     "current_streak": 1, "longest_streak": 1, "total_elements": 0, "rare_elements_found": 0,
     "last_visit_date": NOW},
]


async def seed():
    configure_logging(level="INFO", json_format=False)
    await init_db()

    async with get_db_session() as db:
        await db.execute(delete(User).where(User.telegram_id.in_([u["telegram_id"] for u in USERS])))

        for data in USERS:
            data = dict(data)
            # Streaks count as "this month" when checked in on the day of the last visit.
            if data.get("current_streak"):
                data["streak_last_checkin"] = data["last_visit_date"].date()
            db.add(User(**data))

        await db.commit()

    logger.info("seed_complete", user_count=len(USERS))
    print(f"Seeded {len(USERS)} gardeners")
    for data in USERS:
        name = data.get("first_name") or data.get("username")
        print(f"  {data['telegram_id']}: {name} (level {data['level']}, streak {data['current_streak']})")

    await close_db()


if __name__ == "__main__":
    asyncio.run(seed())
