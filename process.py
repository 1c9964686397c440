import math
import time
from collections import Counter
from datetime import date, timedelta
from typing import Dict, List, Optional

from structs import (
    ActivityStats,
    ContestResult,
    MonthlySolved,
    RatingBucket,
    RatingChange,
    RatingStats,
    SolvedProblem,
    Submission,
    TagCount,
)
from utils import to_date, to_datetime, today as local_today

RATING_BUCKETS = [
    ("800-999", 1000),
    ("1000-1199", 1200),
    ("1200-1399", 1400),
    ("1400-1599", 1600),
    ("1600-1799", 1800),
    ("1800-1999", 2000),
    ("2000-2199", 2200),
    ("2200-2399", 2400),
    ("2400+", None),
]

MONTHLY_BUCKETS = [
    ("800-1199", 1200),
    ("1200-1599", 1600),
    ("1600-1999", 2000),
    ("2000-2399", 2400),
    ("2400+", None),
]
UNRATED = "unrated"
OTHER_TAG = "Other"


def solved_problems(submissions: List[Submission], timezone: Optional[str] = None) -> List[SolvedProblem]:
    """One record per accepted (contestId, index), keeping the first one seen.

    Input order decides which record wins; nothing here compares timestamps.
    """
    solved: Dict[tuple, SolvedProblem] = {}
    for submission in submissions:
        if submission.verdict != "OK":
            continue
        problem = submission.problem
        key = (problem.contestId, problem.index)
        if key in solved:
            continue
        solved[key] = SolvedProblem(
            contest_id=problem.contestId,
            index=problem.index,
            name=problem.name,
            rating=problem.rating,
            tags=list(problem.tags),
            solved_at=to_datetime(submission.creationTimeSeconds, timezone),
        )
    return list(solved.values())


def longest_streak(active_days: List[date]) -> int:
    days = sorted(set(active_days))
    if not days:
        return 0
    longest = 0
    run = 1
    for prev, curr in zip(days, days[1:]):
        if (curr - prev).days == 1:
            run += 1
        else:
            longest = max(longest, run)
            run = 1
    return max(longest, run)


def current_streak(active_days: List[date], today: date, lookback_days: int = 365) -> int:
    active = set(active_days)
    if today not in active and today - timedelta(days=1) not in active:
        return 0
    streak = 0
    for offset in range(lookback_days):
        if today - timedelta(days=offset) in active:
            streak += 1
        elif streak > 0:
            break
    return streak


def activity_stats(submissions: List[Submission], today: Optional[date] = None,
                   timezone: Optional[str] = None, lookback_days: int = 365) -> ActivityStats:
    if not submissions:
        return ActivityStats()
    if today is None:
        today = local_today(timezone)

    active_days = {to_date(s.creationTimeSeconds, timezone) for s in submissions}
    latest = max(s.creationTimeSeconds for s in submissions)
    return ActivityStats(
        current_streak=current_streak(active_days, today, lookback_days),
        longest_streak=longest_streak(active_days),
        last_activity_at=to_datetime(latest, timezone),
    )


def contest_results(rating_changes: List[RatingChange]) -> List[ContestResult]:
    return [
        ContestResult(
            contest_id=c.contestId,
            contest_name=c.contestName,
            rank=c.rank,
            old_rating=c.oldRating,
            new_rating=c.newRating,
            when=c.ratingUpdateTimeSeconds,
        )
        for c in rating_changes
    ]


def rating_stats(history: List[ContestResult]) -> RatingStats:
    ratings = [c.new_rating for c in history if c.new_rating is not None]
    if not ratings:
        return RatingStats(contests=len(history))
    return RatingStats(min=min(ratings), max=max(ratings), current=ratings[-1], contests=len(history))


def average_rating(problems: List[SolvedProblem]) -> int:
    rated = [p.rating for p in problems if p.rating is not None]
    if not rated:
        return 0
    # half up, not Python's banker's rounding
    return int(math.floor(sum(rated) / len(rated) + 0.5))


def _bucket_label(rating: int, buckets) -> str:
    for label, upper in buckets:
        if upper is None or rating < upper:
            return label
    return buckets[-1][0]


def rating_distribution(problems: List[SolvedProblem]) -> List[RatingBucket]:
    counts = {label: 0 for label, _ in RATING_BUCKETS}
    for problem in problems:
        if problem.rating is None:
            continue
        counts[_bucket_label(problem.rating, RATING_BUCKETS)] += 1
    return [RatingBucket(range=label, count=count) for label, count in counts.items()]


def tag_counts(problems: List[SolvedProblem], top_n: int = 10) -> List[TagCount]:
    freq_tags = Counter()
    for problem in problems:
        for tag in problem.tags:
            freq_tags[tag] += 1

    # sorted() is stable, so equal counts keep first-seen order
    ranked = sorted(freq_tags.items(), key=lambda item: item[1], reverse=True)
    result = [TagCount(tag=tag, count=count) for tag, count in ranked[:top_n]]
    if len(ranked) > top_n:
        result.append(TagCount(tag=OTHER_TAG, count=sum(count for _, count in ranked[top_n:])))
    return result


def monthly_solved(problems: List[SolvedProblem]) -> List[MonthlySolved]:
    """Solved counts per calendar month with a coarse difficulty breakdown.

    Months come from solved_at, so they are in whatever zone solved_problems
    was given. Unlike rating_distribution, problems without a rating are
    counted here, under their own "unrated" key.
    """
    months: Dict[str, MonthlySolved] = {}
    for problem in problems:
        month = problem.solved_at.strftime("%Y-%m")
        if month not in months:
            ratings = {label: 0 for label, _ in MONTHLY_BUCKETS}
            ratings[UNRATED] = 0
            months[month] = MonthlySolved(month=month, ratings=ratings)
        entry = months[month]
        entry.count += 1
        if problem.rating is None:
            entry.ratings[UNRATED] += 1
        else:
            entry.ratings[_bucket_label(problem.rating, MONTHLY_BUCKETS)] += 1
    return [months[m] for m in sorted(months)]


def problems_in_period(submissions: List[Submission], days: int, now: Optional[float] = None) -> List[Submission]:
    if now is None:
        now = time.time()
    cutoff = now - days * 24 * 60 * 60
    return [s for s in submissions if s.verdict == "OK" and s.creationTimeSeconds >= cutoff]
