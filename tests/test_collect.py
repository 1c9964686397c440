import asyncio

import pytest
import requests

from collect import CodeforcesAPI, RateLimitedClient
from errors import ApiError
from helpers import FakeResponse, FakeSession, failed, ok


def run_calls(client, *calls):
    async def run():
        results = []
        for endpoint, params in calls:
            results.append(await client.call(endpoint, params))
        return results

    return asyncio.run(run())


def test_returns_result_payload():
    session = FakeSession({"user.info": ok([{"handle": "tourist"}])})
    client = RateLimitedClient(min_interval=0, session=session)
    assert run_calls(client, ("user.info", {"handles": "tourist"})) == [[{"handle": "tourist"}]]
    assert session.calls[0][1:] == ("user.info", {"handles": "tourist"})


def test_back_to_back_calls_are_spaced():
    session = FakeSession({"user.info": ok([]), "user.rating": ok([])})
    client = RateLimitedClient(session=session)
    run_calls(client, ("user.info", None), ("user.rating", None))
    first, second = session.calls[0][0], session.calls[1][0]
    assert second - first >= 0.95


def test_concurrent_callers_never_overlap():
    session = FakeSession(delay=0.02)
    client = RateLimitedClient(min_interval=0.05, session=session)

    async def run():
        await asyncio.gather(*(client.call("user.status", {"handle": f"h{i}"}) for i in range(4)))

    asyncio.run(run())
    assert len(session.calls) == 4
    assert session.max_in_flight == 1


def test_failed_status_carries_comment():
    session = FakeSession({"user.info": FakeResponse(failed("handles: User with handle nobody not found"), 400)})
    client = RateLimitedClient(min_interval=0, session=session)
    with pytest.raises(ApiError) as exc:
        run_calls(client, ("user.info", {"handles": "nobody"}))
    assert exc.value.message == "handles: User with handle nobody not found"
    assert exc.value.endpoint == "user.info"


def test_failed_status_without_comment():
    client = RateLimitedClient(min_interval=0, session=FakeSession({"user.rating": failed()}))
    with pytest.raises(ApiError, match="API request failed"):
        run_calls(client, ("user.rating", None))


def test_network_error_becomes_api_error():
    client = RateLimitedClient(min_interval=0, session=FakeSession({"user.status": requests.ConnectionError("refused")}))
    with pytest.raises(ApiError, match="Network error"):
        run_calls(client, ("user.status", None))


@pytest.mark.parametrize("body", ["<html>Codeforces is temporarily unavailable</html>", ["not", "an", "object"], {"status": "OK"}])
def test_malformed_body_becomes_api_error(body):
    client = RateLimitedClient(min_interval=0, session=FakeSession({"contest.list": FakeResponse(body, 503)}))
    with pytest.raises(ApiError):
        run_calls(client, ("contest.list", None))


def test_no_retry_after_failure():
    session = FakeSession({"user.info": failed("Call limit exceeded")})
    client = RateLimitedClient(min_interval=0, session=session)
    with pytest.raises(ApiError):
        run_calls(client, ("user.info", None))
    assert len(session.calls) == 1


def test_api_methods_send_expected_params():
    session = FakeSession()
    api = CodeforcesAPI(RateLimitedClient(min_interval=0, session=session), submissions_count=500)

    async def run():
        await api.user_info("tourist")
        await api.user_status("tourist")
        await api.user_rating("tourist")
        await api.contest_list()

    asyncio.run(run())
    assert [c[1:] for c in session.calls] == [
        ("user.info", {"handles": "tourist"}),
        ("user.status", {"handle": "tourist", "from": 1, "count": 500}),
        ("user.rating", {"handle": "tourist"}),
        ("contest.list", None),
    ]


def test_client_reused_across_event_loops():
    session = FakeSession()
    client = RateLimitedClient(min_interval=0, session=session)

    async def burst():
        return await asyncio.gather(client.call("user.info"), client.call("user.rating"))

    assert asyncio.run(burst()) == [[], []]
    assert asyncio.run(burst()) == [[], []]
    assert len(session.calls) == 4
    assert session.max_in_flight == 1


def test_spacing_holds_across_event_loops():
    session = FakeSession()
    client = RateLimitedClient(min_interval=0.3, session=session)
    asyncio.run(client.call("user.info"))
    asyncio.run(client.call("user.info"))
    first, second = session.calls[0][0], session.calls[1][0]
    assert second - first >= 0.25
