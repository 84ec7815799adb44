"""Data classes for the practice domain model."""
import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from challenge_tutor.clock import from_iso

CHALLENGE_TYPES = ("multiple-choice", "true-false", "short-answer", "fill-blank")
DIFFICULTIES = ("easy", "medium", "hard")

DEFAULT_EASINESS = 2.5
MIN_EASINESS = 1.3
DEFAULT_INTERVAL = 1


@dataclass(frozen=True)
class AnswerKey:
    """How a stored correct answer is matched.

    ``kind`` is "letter" for a short option key such as "B" and "text" for a
    full answer string. A letter key must equal the first character of the
    chosen option.
    """
    kind: str
    value: str

    @classmethod
    def parse(cls, correct_answer: str, challenge_type: str) -> "AnswerKey":
        answer = correct_answer.strip()
        if challenge_type == "multiple-choice" and len(answer) <= 2:
            # "B." and "B)" name the same option as "B"
            return cls("letter", answer.rstrip(".)").upper() or answer.upper())
        return cls("text", answer)

    def matches(self, user_answer: str) -> bool:
        given = user_answer.strip()
        if self.kind == "letter":
            return given[:1].upper() == self.value
        return given.lower() == self.value.lower()

    def option_text(self, options: list[str] | None) -> str:
        """The option a letter key points at, or the key itself."""
        if self.kind == "letter" and len(self.value) == 1 and options:
            index = ord(self.value) - ord("A")
            if 0 <= index < len(options):
                return options[index]
        return self.value


@dataclass
class User:
    id: str
    email: str = ""
    display_name: Optional[str] = None
    xp: int = 0
    level: int = 1
    streak: int = 0
    last_activity: Optional[datetime] = None

    @classmethod
    def from_row(cls, row) -> "User":
        return cls(
            id=row["id"],
            email=row["email"] or "",
            display_name=row["display_name"],
            xp=row["xp"],
            level=row["level"],
            streak=row["streak"],
            last_activity=from_iso(row["last_activity"]),
        )


@dataclass
class Note:
    id: int
    user_id: str
    title: str
    content: str = ""
    file_type: str = "text"
    subject: Optional[str] = None
    tags: list[str] = field(default_factory=list)

    @classmethod
    def from_row(cls, row) -> "Note":
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            content=row["content"] or "",
            file_type=row["file_type"],
            subject=row["subject"],
            tags=json.loads(row["tags"] or "[]"),
        )


@dataclass
class ChallengeDraft:
    """A generated question not yet attached to a note."""
    type: str
    question: str
    correct_answer: str
    options: Optional[list[str]] = None
    explanation: str = ""
    difficulty: str = "medium"


@dataclass
class Challenge:
    id: int
    note_id: int
    user_id: str
    type: str
    question: str
    correct_answer: str
    options: Optional[list[str]] = None
    explanation: str = ""
    difficulty: str = "medium"
    created_at: Optional[datetime] = None
    answer_key: AnswerKey = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        self.answer_key = AnswerKey.parse(self.correct_answer, self.type)

    @classmethod
    def from_row(cls, row) -> "Challenge":
        return cls(
            id=row["id"],
            note_id=row["note_id"],
            user_id=row["user_id"],
            type=row["type"],
            question=row["question"],
            correct_answer=row["correct_answer"],
            options=json.loads(row["options"]) if row["options"] else None,
            explanation=row["explanation"] or "",
            difficulty=row["difficulty"],
            created_at=from_iso(row["created_at"]),
        )


@dataclass(frozen=True)
class ChallengeAttempt:
    timestamp: datetime
    user_answer: str
    correct: bool
    time_spent: float = 0.0

    @classmethod
    def from_row(cls, row) -> "ChallengeAttempt":
        return cls(
            timestamp=from_iso(row["timestamp"]),
            user_answer=row["user_answer"],
            correct=bool(row["correct"]),
            time_spent=row["time_spent"],
        )


@dataclass
class ChallengeProgress:
    challenge_id: int
    user_id: str
    next_review_date: datetime
    id: Optional[int] = None
    attempts: list[ChallengeAttempt] = field(default_factory=list)
    mastered: bool = False
    repetition_count: int = 0
    easiness_factor: float = DEFAULT_EASINESS
    interval: int = DEFAULT_INTERVAL

    @property
    def latest_attempt(self) -> Optional[ChallengeAttempt]:
        return self.attempts[-1] if self.attempts else None


@dataclass
class DailyProgress:
    user_id: str
    date: str  # YYYY-MM-DD
    challenges_completed: int = 0
    correct_answers: int = 0
    xp_earned: int = 0
    streak_active: bool = False

    @classmethod
    def from_row(cls, row) -> "DailyProgress":
        return cls(
            user_id=row["user_id"],
            date=row["date"],
            challenges_completed=row["challenges_completed"],
            correct_answers=row["correct_answers"],
            xp_earned=row["xp_earned"],
            streak_active=bool(row["streak_active"]),
        )


@dataclass
class LeaderboardEntry:
    user_id: str
    display_name: str
    xp: int
    level: int
    streak: int
    rank: int


@dataclass
class DueChallenge:
    challenge: Challenge
    progress: Optional[ChallengeProgress] = None


@dataclass
class SubmissionResult:
    correct: bool
    xp_awarded: int
    next_due_date: datetime
    mastered: bool
    quality: int
    streak: int
    level: int
