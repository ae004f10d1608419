import pytest

from app.core import config
from tests.support.integration import with_rate_limiting_enabled


pytestmark = pytest.mark.integration

LIMIT = int(config.RATE_LIMIT_DEFAULT.split("/")[0])


async def test_requests_are_not_limited_in_tests(client):
    for _ in range(LIMIT + 1):
        response = await client.get("/health")
    assert response.status_code == 200


async def test_rate_limiting_can_be_switched_on(client):
    with with_rate_limiting_enabled():
        statuses = [(await client.get("/health")).status_code for _ in range(LIMIT + 1)]

    assert statuses[:LIMIT] == [200] * LIMIT
    assert statuses[-1] == 429
    assert (await client.get("/health")).status_code == 200
