"""Shared fixtures: stub geocoders and routers so no test touches the network."""

from unittest.mock import MagicMock

import pytest
import requests

from api_adapters import AddressResolver, RouteDistanceEstimator
from api_structures import Coordinates

HOME = Coordinates(lon=-8.4706, lat=51.8979)
WORK = Coordinates(lon=-8.46, lat=51.90)


class StubResolver(AddressResolver):
    """Answers from a dict; a value that is an exception gets raised instead."""

    def __init__(self, answers):
        super().__init__(timeout=1)
        self.answers = answers
        self.calls = []

    def resolve(self, query):
        self.calls.append(query)
        answer = self.answers[query]
        if isinstance(answer, Exception):
            raise answer
        return answer


class StubRouter(RouteDistanceEstimator):
    def __init__(self, meters=5000.0, error=None):
        self.meters = meters
        self.error = error
        self.calls = []

    def estimate(self, start_coords, end_coords, profile):
        self.calls.append((start_coords, end_coords, profile))
        if self.error:
            raise self.error
        return self.meters


@pytest.fixture
def resolver():
    return StubResolver({"T12X345": HOME, "T23Y456": WORK})


@pytest.fixture
def router():
    return StubRouter()


def json_response(payload, status=200):
    """A MagicMock shaped like a requests.Response."""
    response = MagicMock()
    response.status_code = status
    response.json.return_value = payload
    if status >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{status} Error", response=response)
    else:
        response.raise_for_status.return_value = None
    return response
