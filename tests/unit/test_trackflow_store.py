"""Unit tests for TrackFlowStore mutations."""

import pytest

from schemas import ContactUpdate, OutreachDraft, TrackedJobStage, TrackFlowState
from trackflow.store import TrackFlowStore


class RecordingPersister:
    def __init__(self):
        self.saves = []

    def save(self, user_id, state):
        self.saves.append((user_id, state.model_copy(deep=True)))


@pytest.fixture
def persister():
    return RecordingPersister()


@pytest.fixture
def store(persister):
    return TrackFlowStore("u1", persister)


@pytest.mark.unit
def test_track_starts_at_customize(store, persister):
    assert store.track("42") is True

    assert store.stage("42") is TrackedJobStage.CUSTOMIZE
    assert len(persister.saves) == 1


@pytest.mark.unit
def test_track_is_noop_when_already_tracked(store, persister):
    store.track("42")
    store.move_stage("42", TrackedJobStage.APPLY)

    assert store.track("42") is False
    assert store.stage("42") is TrackedJobStage.APPLY
    assert len(persister.saves) == 2


@pytest.mark.unit
def test_move_stage_overwrites_even_untracked(store):
    store.move_stage("9", TrackedJobStage.DONE)

    assert store.stage("9") is TrackedJobStage.DONE
    assert store.jobs_in_stage(TrackedJobStage.DONE) == ["9"]


@pytest.mark.unit
def test_untrack_preserves_history(store):
    store.track("42")
    store.set_resume("42", "X")
    contact = store.add_contact("42", "Jane", "Doe", "acme.com")
    store.set_draft(contact.id, OutreachDraft(subject="Hi", body="Hello"))

    assert store.untrack("42") is True
    assert not store.is_tracked("42")
    store.track("42")

    assert store.state.customized_resumes["42"] == "X"
    assert store.contacts_for("42") == [contact]
    assert store.draft_for(contact.id).body == "Hello"
    assert store.stage("42") is TrackedJobStage.CUSTOMIZE


@pytest.mark.unit
def test_untrack_unknown_job_does_not_persist(store, persister):
    assert store.untrack("nope") is False
    assert persister.saves == []


@pytest.mark.unit
def test_add_contact_scenario(store):
    contact = store.add_contact("42", "Jane", "Doe", "acme.com")

    contacts = store.contacts_for("42")
    assert contacts == [contact]
    assert contact.id
    assert contact.email is None

    updated = store.update_contact(contact.id, {"email": "jane@acme.com"})

    assert updated.email == "jane@acme.com"
    assert updated.first_name == "Jane"
    assert updated.last_name == "Doe"
    assert updated.company_name_or_url == "acme.com"
    assert store.contacts_for("42")[0] == updated


@pytest.mark.unit
def test_add_contact_trims_inputs(store):
    contact = store.add_contact("42", "  Jane ", " Doe", "acme.com  ")

    assert (contact.first_name, contact.last_name, contact.company_name_or_url) == (
        "Jane",
        "Doe",
        "acme.com",
    )


@pytest.mark.unit
@pytest.mark.parametrize(
    "first,last,company",
    [("", "Doe", "acme.com"), ("Jane", "   ", "acme.com"), ("Jane", "Doe", "")],
)
def test_add_contact_rejects_blank_fields(store, persister, first, last, company):
    assert store.add_contact("42", first, last, company) is None

    assert store.state == TrackFlowState()
    assert persister.saves == []


@pytest.mark.unit
def test_contact_ids_are_unique(store):
    ids = {store.add_contact("42", "A", "B", "c.io").id for _ in range(50)}

    assert len(ids) == 50


@pytest.mark.unit
def test_update_contact_merges_only_present_fields(store):
    contact = store.add_contact("42", "Jane", "Doe", "acme.com")
    store.update_contact(contact.id, ContactUpdate(email="jane@acme.com", role="Recruiter"))

    updated = store.update_contact(contact.id, ContactUpdate(avatar="https://img/1.png"))

    assert updated.email == "jane@acme.com"
    assert updated.role == "Recruiter"
    assert updated.avatar == "https://img/1.png"


@pytest.mark.unit
def test_update_contact_finds_contact_in_any_job(store):
    store.add_contact("1", "A", "B", "a.io")
    target = store.add_contact("2", "C", "D", "c.io")

    store.update_contact(target.id, {"role": "CTO"})

    assert store.find_contact(target.id).role == "CTO"
    assert store.contacts_for("1")[0].role is None


@pytest.mark.unit
def test_update_unknown_contact_is_noop(store, persister):
    assert store.update_contact("missing", {"email": "x@y.z"}) is None
    assert persister.saves == []


@pytest.mark.unit
def test_set_draft_replaces_wholesale(store):
    store.set_draft("c_1", OutreachDraft(subject="First", body="One"))
    store.set_draft("c_1", OutreachDraft(body="Two"))

    assert store.draft_for("c_1") == OutreachDraft(subject="", body="Two")


@pytest.mark.unit
def test_every_mutation_persists_current_state(store, persister):
    store.track("42")
    store.set_resume("42", "resume")

    user_id, last = persister.saves[-1]
    assert user_id == "u1"
    assert last == store.state
