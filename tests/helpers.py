import threading
import time
from datetime import date, datetime, time as day_time


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def json(self):
        if isinstance(self.payload, str):
            raise ValueError(f"Expecting value: {self.payload!r}")
        return self.payload


class FakeSession:
    """Stands in for requests.Session, answering by API method name.

    A route value may be a JSON payload, a FakeResponse, or an exception to raise.
    """

    def __init__(self, routes=None, delay=0.0):
        self.routes = routes or {}
        self.delay = delay
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def get(self, url, params=None, timeout=None):
        method = url.rsplit("/", 1)[-1]
        with self._lock:
            self.calls.append((time.monotonic(), method, params))
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            route = self.routes.get(method, {"status": "OK", "result": []})
            if isinstance(route, Exception):
                raise route
            if isinstance(route, FakeResponse):
                return route
            return FakeResponse(route)
        finally:
            with self._lock:
                self.in_flight -= 1


def ok(result):
    return {"status": "OK", "result": result}


def failed(comment=None):
    body = {"status": "FAILED"}
    if comment is not None:
        body["comment"] = comment
    return body


def at(day: date, hour: int = 12) -> int:
    return int(datetime.combine(day, day_time(hour)).timestamp())


def submission(contest_id, index, ts, verdict="OK", rating=None, tags=(), name=None):
    problem = {"contestId": contest_id, "index": index, "name": name or f"Problem {contest_id}{index}", "tags": list(tags)}
    if rating is not None:
        problem["rating"] = rating
    return {
        "id": ts,
        "contestId": contest_id,
        "creationTimeSeconds": ts,
        "problem": problem,
        "programmingLanguage": "GNU C++17",
        "verdict": verdict,
    }

