"""Track-flow pipeline state schemas."""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from .base import BaseSchema


class TrackedJobStage(str, Enum):
    """Pipeline position of a tracked job."""

    CUSTOMIZE = "Customize"
    CONNECT = "Connect"
    APPLY = "Apply"
    DONE = "Done"

    @classmethod
    def parse(cls, value: object) -> TrackedJobStage | None:
        """Match a persisted stage tag case-insensitively. None if unknown."""
        if isinstance(value, TrackedJobStage):
            return value
        if not isinstance(value, str):
            return None
        wanted = value.strip().lower()
        for stage in cls:
            if stage.value.lower() == wanted:
                return stage
        return None


class Contact(BaseSchema):
    """A person attached to a tracked job for outreach."""

    id: str
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    company_name_or_url: str = Field(..., alias="companyNameOrUrl")
    email: str | None = None
    role: str | None = None
    avatar: str | None = None


class ContactUpdate(BaseSchema):
    """Partial update for discovered contact details.

    Only fields explicitly set are merged into the contact.
    """

    email: str | None = None
    role: str | None = None
    avatar: str | None = None


class OutreachDraft(BaseSchema):
    """Outreach email draft for a single contact."""

    subject: str = ""
    body: str = ""


class TrackFlowState(BaseSchema):
    """Aggregate pipeline state for one user."""

    tracked_jobs: dict[str, TrackedJobStage] = Field(
        default_factory=dict, alias="trackedJobs"
    )
    customized_resumes: dict[str, str] = Field(
        default_factory=dict, alias="customizedResumes"
    )
    job_contacts: dict[str, list[Contact]] = Field(
        default_factory=dict, alias="jobContacts"
    )
    contact_drafts: dict[str, OutreachDraft] = Field(
        default_factory=dict, alias="contactDrafts"
    )

    def contact_ids(self) -> set[str]:
        return {c.id for contacts in self.job_contacts.values() for c in contacts}
