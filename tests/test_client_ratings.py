import pytest
import requests

from turismo_client.api import APIError, TurismoAPI
from turismo_client.ratings import RatingSubmitter, SubmissionState


class FakeAPI:
    def __init__(self, token="t0ken"):
        self.token = token
        self.rated = []
        self.fail_with = None
        self.during_rate = None
        self.server_rating = 0
        self.calls = []

    def token_getter(self):
        return self.token

    def rate_place(self, place_id, rating):
        self.calls.append("rate")
        if self.during_rate:
            self.during_rate()
        if self.fail_with:
            raise self.fail_with
        self.rated.append((place_id, rating))
        return {"message": "Rating created"}

    def user_rating(self, place_id):
        return self.server_rating

    def places(self):
        self.calls.append("places")
        return {"items": [{"id": "p1", "average_rating": 4.0}], "total": 1}

    def rating_stats(self, place_id):
        self.calls.append("stats")
        return {"average_rating": 4.0, "total_ratings": 1, "rating_distribution": []}


def test_successful_submit_settles_and_refreshes():
    api = FakeAPI()
    submitter = RatingSubmitter(api)

    assert submitter.submit("p1", 4) is True

    state = submitter.state_of("p1")
    assert state.state is SubmissionState.settled
    assert state.settled_rating == 4
    assert submitter.displayed_rating("p1") == 4
    assert api.rated == [("p1", 4)]
    assert api.calls == ["rate", "places", "stats"]
    assert submitter.places[0]["id"] == "p1"
    assert submitter.stats["p1"]["total_ratings"] == 1


def test_value_is_shown_while_submitting():
    api = FakeAPI()
    submitter = RatingSubmitter(api)
    seen = {}

    def check():
        seen["displayed"] = submitter.displayed_rating("p1")
        seen["rating"] = submitter.is_rating("p1")
        seen["second"] = submitter.submit("p1", 1)

    api.during_rate = check
    submitter.submit("p1", 5)

    assert seen == {"displayed": 5, "rating": True, "second": False}
    assert api.rated == [("p1", 5)]
    assert not submitter.is_rating("p1")


def test_failure_restores_previous_value():
    api = FakeAPI()
    errors = []
    submitter = RatingSubmitter(api, on_error=errors.append)
    submitter.submit("p1", 3)

    api.fail_with = APIError(500, "Internal server error")
    assert submitter.submit("p1", 5) is False

    state = submitter.state_of("p1")
    assert state.state is SubmissionState.settled
    assert state.displayed_rating == 3
    assert errors == ["Internal server error"]


def test_first_failure_returns_to_idle():
    api = FakeAPI()
    api.fail_with = APIError(0, "Network error: refused")
    errors = []
    submitter = RatingSubmitter(api, on_error=errors.append)

    assert submitter.submit("p1", 2) is False
    state = submitter.state_of("p1")
    assert state.state is SubmissionState.idle
    assert state.displayed_rating == 0
    assert errors == ["Network error: refused"]
    assert "places" not in api.calls


def test_submit_requires_token():
    api = FakeAPI(token=None)
    errors = []
    submitter = RatingSubmitter(api, on_error=errors.append)

    assert submitter.submit("p1", 4) is False
    assert api.calls == []
    assert errors == ["You must sign in to rate places"]


@pytest.mark.parametrize("value", [0, 6])
def test_submit_rejects_out_of_range(value):
    submitter = RatingSubmitter(FakeAPI())
    with pytest.raises(ValueError):
        submitter.submit("p1", value)


def test_load_user_rating_seeds_state():
    api = FakeAPI()
    api.server_rating = 4
    submitter = RatingSubmitter(api)

    assert submitter.load_user_rating("p1") == 4
    assert submitter.state_of("p1").state is SubmissionState.settled
    assert submitter.displayed_rating("p1") == 4


class _Response:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload
        self.text = str(payload)

    def json(self):
        return self._payload


class _Session:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.last = None

    def request(self, **kwargs):
        self.last = kwargs
        if self.exc:
            raise self.exc
        return self.response


def test_api_sends_token_and_reads_rating():
    session = _Session(_Response(200, {"place_id": "p1", "rating": 3}))
    api = TurismoAPI("http://api.local/", lambda: "abc", session=session)

    assert api.user_rating("p1") == 3
    assert session.last["url"] == "http://api.local/places/p1/user-rating"
    assert session.last["headers"]["Authorization"] == "Bearer abc"


def test_api_errors():
    api = TurismoAPI("http://api.local", session=_Session(_Response(404, {"detail": "Place not found"})))
    with pytest.raises(APIError) as exc:
        api.place("missing")
    assert exc.value.status_code == 404
    assert exc.value.message == "Place not found"

    api = TurismoAPI("http://api.local", session=_Session(exc=requests.ConnectionError("refused")))
    with pytest.raises(APIError) as exc:
        api.places()
    assert exc.value.status_code == 0
