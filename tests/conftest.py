"""Shared fixtures: in-memory tiers and a failing remote."""

import pytest

from schemas import Contact, OutreachDraft, TrackedJobStage, TrackFlowState
from storage.cache import MemoryCache
from storage.dual_tier import DualTierStore
from storage.remote import InMemoryRemoteStore, RemoteStore

SETTLE = 0.05


class FailingRemoteStore(RemoteStore):
    """Remote store whose every call fails."""

    def __init__(self) -> None:
        self.calls = 0

    async def get(self, user_id):
        self.calls += 1
        raise ConnectionError("remote unavailable")

    async def put(self, user_id, state):
        self.calls += 1
        raise ConnectionError("remote unavailable")

    async def get_analyses(self, user_id):
        self.calls += 1
        raise ConnectionError("remote unavailable")

    async def put_analyses(self, user_id, analyses):
        self.calls += 1
        raise ConnectionError("remote unavailable")


@pytest.fixture
def cache():
    return MemoryCache()


@pytest.fixture
def remote():
    return InMemoryRemoteStore()


@pytest.fixture
def failing_remote():
    return FailingRemoteStore()


@pytest.fixture
def tiers(cache, remote):
    return DualTierStore(cache, remote, settle_window=SETTLE)


@pytest.fixture
def sample_state():
    return TrackFlowState(
        tracked_jobs={"42": TrackedJobStage.CONNECT, "7": TrackedJobStage.DONE},
        customized_resumes={"42": "Tailored resume for Acme"},
        job_contacts={
            "42": [
                Contact(
                    id="c_1",
                    first_name="Jane",
                    last_name="Doe",
                    company_name_or_url="acme.com",
                    email="jane@acme.com",
                )
            ]
        },
        contact_drafts={"c_1": OutreachDraft(subject="Hello", body="Hi Jane")},
    )
