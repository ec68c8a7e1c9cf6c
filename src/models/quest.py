"""Quest models"""
from pydantic import BaseModel, Field

from src.config import DEFAULT_QUEST_XP


class Quest(BaseModel):
    """A completable workout task that awards XP"""
    id: str
    title: str
    description: str
    xp_reward: int = Field(default=DEFAULT_QUEST_XP, ge=0)


DAILY_QUEST = Quest(
    id="morning-workout",
    title="Morning Workout Challenge",
    description="Complete 20 push-ups and 30 squats",
    xp_reward=DEFAULT_QUEST_XP,
)

QUESTS: dict[str, Quest] = {DAILY_QUEST.id: DAILY_QUEST}


def get_quest(quest_id: str) -> Quest | None:
    return QUESTS.get(quest_id)
