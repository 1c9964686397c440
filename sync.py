import asyncio
import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional, Union

from pydantic import ValidationError

from config import Settings
from errors import ApiError, SyncError
from process import (
    activity_stats,
    average_rating,
    contest_results,
    monthly_solved,
    rating_distribution,
    rating_stats,
    solved_problems,
    tag_counts,
)
from structs import ProfileAnalytics, RatingChange, Student, Submission, UserInfo
from utils import dict_to_model, now, parse_models, to_datetime

logger = logging.getLogger(__name__)


class ProfileSyncService:
    """Fetches one handle's profile, submissions and rating history and
    turns them into a fresh ProfileAnalytics record.

    ``api`` is anything exposing the CodeforcesAPI coroutines
    ``user_info``, ``user_status`` and ``user_rating``.
    """

    def __init__(self, api, settings: Optional[Settings] = None):
        self.api = api
        self.settings = settings or Settings()

    async def sync(self, handle: str) -> ProfileAnalytics:
        try:
            users = await self.api.user_info(handle)
            raw_submissions = await self.api.user_status(handle)
        except ApiError as e:
            raise SyncError(handle, e.message) from e

        if not isinstance(users, list) or not users or not isinstance(users[0], dict):
            raise SyncError(handle, "user.info returned no user")
        try:
            user = dict_to_model(UserInfo, {**users[0], "handle": users[0].get("handle") or handle})
        except ValidationError as e:
            raise SyncError(handle, f"unreadable user.info record: {e}") from e

        try:
            raw_rating = await self.api.user_rating(handle)
        except ApiError as e:
            logger.warning("No rating history for %s, continuing without it: %s", handle, e)
            raw_rating = []

        submissions = parse_models(Submission, raw_submissions)
        history = contest_results(parse_models(RatingChange, raw_rating))
        return self.build_analytics(user, submissions, history)

    def build_analytics(self, user: UserInfo, submissions: List[Submission], history) -> ProfileAnalytics:
        tz = self.settings.timezone
        # the API lists newest first; oldest first makes the first OK the earliest solve
        ordered = sorted(submissions, key=lambda s: s.creationTimeSeconds)
        problems = solved_problems(ordered, tz)
        activity = activity_stats(submissions, timezone=tz, lookback_days=self.settings.streak_lookback_days)

        return ProfileAnalytics(
            handle=user.handle,
            first_name=user.firstName or "",
            last_name=user.lastName or "",
            country=user.country or "",
            city=user.city or "",
            rating=user.rating or 0,
            max_rating=user.maxRating or 0,
            rank=user.rank or "unrated",
            max_rank=user.maxRank or "unrated",
            avatar=user.avatar or "",
            title_photo=user.titlePhoto or "",
            last_online_at=_optional_time(user.lastOnlineTimeSeconds, tz),
            registered_at=_optional_time(user.registrationTimeSeconds, tz),
            solved_problems=problems,
            solved_count=len(problems),
            average_rating=average_rating(problems),
            rating_history=history,
            rating_stats=rating_stats(history),
            rating_distribution=rating_distribution(problems),
            tag_counts=tag_counts(problems, self.settings.top_tags),
            monthly_solved=monthly_solved(problems),
            current_streak=activity.current_streak,
            longest_streak=activity.longest_streak,
            last_activity_at=activity.last_activity_at,
            synced_at=now(tz),
        )

    async def sync_student(self, student: Student) -> Student:
        analytics = await self.sync(student.handle)
        return refresh_student(student, analytics)

    async def sync_many(self, handles: List[str]) -> Dict[str, Union[ProfileAnalytics, SyncError]]:
        """Sync several handles concurrently; a failure is returned in place of its result.

        A handle listed more than once is synced once.
        """
        unique = list(dict.fromkeys(handles))
        outcomes = await asyncio.gather(*(self.sync(h) for h in unique), return_exceptions=True)
        results = {}
        for handle, outcome in zip(unique, outcomes):
            if isinstance(outcome, BaseException) and not isinstance(outcome, SyncError):
                raise outcome
            results[handle] = outcome
        return results


def _optional_time(epoch_seconds: Optional[int], timezone: Optional[str]) -> Optional[datetime]:
    if not epoch_seconds:
        return None
    return to_datetime(epoch_seconds, timezone)


def new_student(handle: str, name: str = "", email: str = "", phone: str = "") -> Student:
    return Student(
        id=uuid.uuid4().hex,
        handle=handle.strip(),
        name=name.strip() or handle.strip(),
        email=email.strip(),
        phone=phone.strip(),
        created_at=datetime.now(),
    )


def refresh_student(student: Student, analytics: ProfileAnalytics) -> Student:
    """Replace a student's analytics wholesale, keeping contact details."""
    if analytics.handle.lower() != student.handle.lower():
        logger.info("Handle for student %s changed from %s to %s", student.id, student.handle, analytics.handle)
    return student.model_copy(update={
        "handle": analytics.handle,
        "analytics": analytics,
        "last_synced": analytics.synced_at,
    })


def change_handle(student: Student, handle: str) -> Student:
    handle = handle.strip()
    if handle == student.handle:
        return student
    return student.model_copy(update={"handle": handle, "analytics": None, "last_synced": None})
