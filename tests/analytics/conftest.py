from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def analytics_bed():
    from analytics.domain import analytics

    bed = DomainFixture(analytics)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(analytics_bed):
    with analytics_bed.domain_context():
        yield

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


@pytest.fixture
def now():
    return datetime(2024, 6, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def seconds_ago(now):
    def _at(seconds: float) -> datetime:
        return now - timedelta(seconds=seconds)

    return _at
