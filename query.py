from typing import List, Literal, Optional

import pandas as pd

from structs import ContestResult, SolvedProblem

ProblemSortKey = Literal["date", "rating", "name", "contest"]
ContestSortKey = Literal["date", "rating", "change", "rank"]
SortDirection = Literal["asc", "desc"]

PROBLEM_SORT_COLUMNS = {"date": "solved_at", "rating": "rating", "name": "name", "contest": "contest_id"}
CONTEST_SORT_COLUMNS = {"date": "when", "rating": "new_rating", "change": "rating_change", "rank": "rank"}


def _ascending(direction: str) -> bool:
    if direction not in ("asc", "desc"):
        raise ValueError(f"Unknown sort direction: {direction}")
    return direction == "asc"


def _matches(df: pd.DataFrame, columns: List[str], search: str) -> pd.Series:
    needle = search.lower()
    mask = pd.Series(False, index=df.index)
    for column in columns:
        mask |= df[column].str.lower().str.contains(needle, regex=False)
    return mask.astype(bool)


def _ordered(items, df: pd.DataFrame, column: str, ascending: bool):
    df = df.sort_values(column, ascending=ascending, kind="mergesort")
    return [items[i] for i in df["position"]]


def query_problems(problems: List[SolvedProblem], search: str = "", tag: Optional[str] = None,
                   sort_key: ProblemSortKey = "date", direction: SortDirection = "desc") -> List[SolvedProblem]:
    if sort_key not in PROBLEM_SORT_COLUMNS:
        raise ValueError(f"Unknown problem sort key: {sort_key}")
    ascending = _ascending(direction)
    if not problems:
        return []

    df = pd.DataFrame([
        {
            "position": i,
            "name": p.name or "",
            "index": p.index or "",
            "contest": "" if p.contest_id is None else str(p.contest_id),
            "contest_id": p.contest_id or 0,
            "rating": p.rating or 0,
            "solved_at": p.solved_at.timestamp() if p.solved_at else 0,
            "tags": [t.lower() for t in p.tags],
        }
        for i, p in enumerate(problems)
    ])

    if search:
        df = df.loc[_matches(df, ["name", "index", "contest"], search)]
    if tag:
        wanted = tag.lower()
        df = df.loc[df["tags"].map(lambda tags: wanted in tags).astype(bool)]

    sort_column = PROBLEM_SORT_COLUMNS[sort_key]
    if sort_key == "name":
        df = df.assign(name=df["name"].str.lower())
    return _ordered(problems, df, sort_column, ascending)


def query_contests(contests: List[ContestResult], search: str = "",
                   sort_key: ContestSortKey = "date", direction: SortDirection = "desc") -> List[ContestResult]:
    if sort_key not in CONTEST_SORT_COLUMNS:
        raise ValueError(f"Unknown contest sort key: {sort_key}")
    ascending = _ascending(direction)
    if not contests:
        return []

    df = pd.DataFrame([
        {
            "position": i,
            "contest_name": c.contest_name or "",
            "rank_text": str(c.rank),
            "when": c.when or 0,
            "new_rating": c.new_rating or 0,
            "rating_change": c.rating_change,
            "rank": c.rank or 0,
        }
        for i, c in enumerate(contests)
    ])

    if search:
        df = df.loc[_matches(df, ["contest_name", "rank_text"], search)]

    return _ordered(contests, df, CONTEST_SORT_COLUMNS[sort_key], ascending)
