from pydantic import BaseModel, Field
from typing import List, Dict, Optional
from datetime import datetime

# Raw payloads, as returned by the Codeforces API. Every field but the
# submission time may be missing.

class Problem(BaseModel):
    contestId: Optional[int] = None
    index: str = ""
    name: str = ""
    rating: Optional[int] = None
    tags: List[str] = []

class Submission(BaseModel):
    id: Optional[int] = None
    contestId: Optional[int] = None
    creationTimeSeconds: int
    problem: Problem = Field(default_factory=Problem)
    programmingLanguage: Optional[str] = None
    verdict: Optional[str] = None

class RatingChange(BaseModel):
    contestId: Optional[int] = None
    contestName: str = ""
    rank: int = 0
    oldRating: Optional[int] = None
    newRating: Optional[int] = None
    ratingUpdateTimeSeconds: int = 0

class UserInfo(BaseModel):
    handle: str
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    rating: Optional[int] = None
    maxRating: Optional[int] = None
    rank: Optional[str] = None
    maxRank: Optional[str] = None
    avatar: Optional[str] = None
    titlePhoto: Optional[str] = None
    lastOnlineTimeSeconds: Optional[int] = None
    registrationTimeSeconds: Optional[int] = None

# Derived records

class SolvedProblem(BaseModel):
    contest_id: Optional[int] = None
    index: str
    name: str = ""
    rating: Optional[int] = None
    tags: List[str] = []
    solved_at: datetime

class ContestResult(BaseModel):
    contest_id: Optional[int] = None
    contest_name: str = ""
    rank: int = 0
    old_rating: Optional[int] = None
    new_rating: Optional[int] = None
    when: int = 0

    @property
    def rating_change(self) -> int:
        if self.new_rating is None or self.old_rating is None:
            return 0
        return self.new_rating - self.old_rating

class ActivityStats(BaseModel):
    current_streak: int = 0
    longest_streak: int = 0
    last_activity_at: Optional[datetime] = None

class RatingStats(BaseModel):
    min: int = 0
    max: int = 0
    current: int = 0
    contests: int = 0

class RatingBucket(BaseModel):
    range: str
    count: int = 0

class TagCount(BaseModel):
    tag: str
    count: int

class MonthlySolved(BaseModel):
    month: str
    count: int = 0
    ratings: Dict[str, int]

class ProfileAnalytics(BaseModel):
    handle: str
    first_name: str = ""
    last_name: str = ""
    country: str = ""
    city: str = ""
    rating: int = 0
    max_rating: int = 0
    rank: str = "unrated"
    max_rank: str = "unrated"
    avatar: str = ""
    title_photo: str = ""
    last_online_at: Optional[datetime] = None
    registered_at: Optional[datetime] = None

    solved_problems: List[SolvedProblem] = []
    solved_count: int = 0
    average_rating: int = 0
    rating_history: List[ContestResult] = []
    rating_stats: RatingStats = Field(default_factory=RatingStats)
    rating_distribution: List[RatingBucket] = []
    tag_counts: List[TagCount] = []
    monthly_solved: List[MonthlySolved] = []
    current_streak: int = 0
    longest_streak: int = 0
    last_activity_at: Optional[datetime] = None
    synced_at: datetime

class Student(BaseModel):
    id: str
    handle: str
    name: str = ""
    email: str = ""
    phone: str = ""
    created_at: datetime
    last_synced: Optional[datetime] = None
    reminder_count: int = 0
    email_enabled: bool = True
    analytics: Optional[ProfileAnalytics] = None
