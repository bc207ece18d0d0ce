"""In-memory track-flow state container."""

from __future__ import annotations

from typing import Any, Protocol

import structlog

from core.ids import generate_contact_id
from schemas import (
    Contact,
    ContactUpdate,
    OutreachDraft,
    TrackedJobStage,
    TrackFlowState,
)

logger = structlog.get_logger(__name__)


class StatePersister(Protocol):
    """Anything that can take a state snapshot after a mutation."""

    def save(self, user_id: str, state: TrackFlowState) -> None: ...


class TrackFlowStore:
    """Holds one user's TrackFlowState and applies mutations to it.

    Every mutation that changes state hands the full state to the persister.
    Rejected or no-op mutations do not persist.
    """

    def __init__(
        self,
        user_id: str,
        persister: StatePersister,
        state: TrackFlowState | None = None,
        skill_profile: list[str] | None = None,
    ) -> None:
        self.user_id = user_id
        self.state = state or TrackFlowState()
        self.skill_profile: list[str] = list(skill_profile or [])
        self._persister = persister

    def _persist(self) -> None:
        self._persister.save(self.user_id, self.state)

    # --- Queries ---

    def stage(self, job_id: str) -> TrackedJobStage | None:
        return self.state.tracked_jobs.get(job_id)

    def is_tracked(self, job_id: str) -> bool:
        return job_id in self.state.tracked_jobs

    def jobs_in_stage(self, stage: TrackedJobStage) -> list[str]:
        return [j for j, s in self.state.tracked_jobs.items() if s is stage]

    def contacts_for(self, job_id: str) -> list[Contact]:
        return list(self.state.job_contacts.get(job_id, []))

    def find_contact(self, contact_id: str) -> Contact | None:
        for contacts in self.state.job_contacts.values():
            for contact in contacts:
                if contact.id == contact_id:
                    return contact
        return None

    def draft_for(self, contact_id: str) -> OutreachDraft | None:
        return self.state.contact_drafts.get(contact_id)

    # --- Mutations ---

    def track(self, job_id: str) -> bool:
        """Start tracking a job at Customize. No-op if already tracked."""
        if job_id in self.state.tracked_jobs:
            return False
        self.state.tracked_jobs[job_id] = TrackedJobStage.CUSTOMIZE
        logger.debug("job_tracked", job_id=job_id)
        self._persist()
        return True

    def move_stage(self, job_id: str, stage: TrackedJobStage) -> None:
        """Set the job's stage unconditionally."""
        stage = TrackedJobStage(stage)
        self.state.tracked_jobs[job_id] = stage
        logger.debug("job_stage_moved", job_id=job_id, stage=stage.value)
        self._persist()

    def untrack(self, job_id: str) -> bool:
        """Stop tracking a job.

        Resumes, contacts, and drafts stay so re-tracking restores them.
        """
        if self.state.tracked_jobs.pop(job_id, None) is None:
            return False
        logger.debug("job_untracked", job_id=job_id)
        self._persist()
        return True

    def set_resume(self, job_id: str, text: str) -> None:
        self.state.customized_resumes[job_id] = text
        self._persist()

    def add_contact(
        self,
        job_id: str,
        first_name: str,
        last_name: str,
        company_name_or_url: str,
    ) -> Contact | None:
        """Append a new contact to a job. Returns None if any field is blank."""
        first = first_name.strip()
        last = last_name.strip()
        company = company_name_or_url.strip()
        if not (first and last and company):
            logger.debug("contact_rejected", job_id=job_id)
            return None

        contact = Contact(
            id=generate_contact_id(),
            first_name=first,
            last_name=last,
            company_name_or_url=company,
        )
        self.state.job_contacts.setdefault(job_id, []).append(contact)
        self._persist()
        return contact

    def update_contact(
        self,
        contact_id: str,
        fields: ContactUpdate | dict[str, Any],
    ) -> Contact | None:
        """Merge discovered details into a contact, wherever it lives.

        Only fields present in the update overwrite; absent ones are kept.
        Returns the updated contact, or None if no contact has that id.
        """
        update = (
            fields if isinstance(fields, ContactUpdate)
            else ContactUpdate.model_validate(fields)
        )
        changes = update.model_dump(exclude_unset=True)

        for contacts in self.state.job_contacts.values():
            for i, contact in enumerate(contacts):
                if contact.id != contact_id:
                    continue
                updated = contact.model_copy(update=changes)
                contacts[i] = updated
                logger.debug(
                    "contact_updated", contact_id=contact_id, fields=sorted(changes)
                )
                self._persist()
                return updated

        logger.warning("contact_not_found", contact_id=contact_id)
        return None

    def set_draft(self, contact_id: str, draft: OutreachDraft) -> None:
        """Replace the contact's draft wholesale."""
        self.state.contact_drafts[contact_id] = draft.model_copy()
        self._persist()
