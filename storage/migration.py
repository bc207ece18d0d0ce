"""Legacy shape detection and upconversion for persisted track-flow slices.

Raw JSON from the local cache is first classified into a ShapeKind and then
converted to typed schema objects; nothing downstream touches raw dicts.

Contact entries are classified one at a time, so a batch that mixes legacy
recruiter entries with current contacts migrates only the legacy ones.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

import structlog
from pydantic import BaseModel, Field, ValidationError

from core.ids import legacy_contact_id
from schemas import Contact, OutreachDraft, TrackedJobStage

logger = structlog.get_logger(__name__)


class ShapeKind(StrEnum):
    """Classification of a persisted value."""

    CURRENT = "current"
    LEGACY_ARRAY = "legacy_array"
    LEGACY_STRING = "legacy_string"
    UNRECOGNIZED = "unrecognized"


class ContactsMigration(BaseModel):
    """Outcome of migrating the contacts slice."""

    kind: ShapeKind
    job_contacts: dict[str, list[Contact]] = Field(default_factory=dict)
    # Legacy recruiter id -> every contact id synthesized from it
    id_map: dict[str, list[str]] = Field(default_factory=dict)
    num_migrated: int = 0
    num_dropped: int = 0


class DraftsMigration(BaseModel):
    """Outcome of migrating the drafts slice."""

    kind: ShapeKind
    contact_drafts: dict[str, OutreachDraft] = Field(default_factory=dict)
    num_migrated: int = 0
    num_dropped: int = 0


# --- Contacts ---


def classify_contact_entry(entry: Any) -> ShapeKind:
    """Classify one entry of a job's contact list."""
    if not isinstance(entry, dict):
        return ShapeKind.UNRECOGNIZED
    if isinstance(entry.get("firstName"), str):
        return ShapeKind.CURRENT
    return ShapeKind.LEGACY_ARRAY


def classify_contacts(raw: Any) -> ShapeKind:
    """Classify a whole contacts slice (jobId -> list of entries)."""
    if not isinstance(raw, dict):
        return ShapeKind.UNRECOGNIZED
    for entries in raw.values():
        if not isinstance(entries, list):
            continue
        for entry in entries:
            if classify_contact_entry(entry) is ShapeKind.LEGACY_ARRAY:
                return ShapeKind.LEGACY_ARRAY
    return ShapeKind.CURRENT


def _opt_str(entry: dict[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = entry.get(key)
        if isinstance(value, str):
            return value
    return None


def _contact_from_legacy(entry: dict[str, Any], new_id: str) -> Contact:
    """Build a Contact from an old recruiter entry ({id, name, role, email, ...})."""
    name = (_opt_str(entry, "name") or "").strip()
    first = _opt_str(entry, "first_name") or name
    last = _opt_str(entry, "lastName", "last_name") or name
    return Contact(
        id=new_id,
        first_name=first,
        last_name=last,
        company_name_or_url=_opt_str(entry, "companyNameOrUrl", "company") or "",
        email=_opt_str(entry, "email"),
        role=_opt_str(entry, "role", "title"),
        avatar=_opt_str(entry, "avatar"),
    )


def migrate_contacts(raw: Any) -> ContactsMigration:
    """Convert a raw contacts slice to current-shape contacts.

    Current entries pass through; legacy recruiter entries get a synthesized
    id distinct from every id already in the batch. Entries that are not
    objects, or current entries that fail validation, are dropped.
    """
    kind = classify_contacts(raw)
    if kind is ShapeKind.UNRECOGNIZED:
        logger.warning("contacts_unrecognized", got=type(raw).__name__)
        return ContactsMigration(kind=kind)

    taken: set[str] = set()
    for entries in raw.values():
        if isinstance(entries, list):
            for entry in entries:
                if classify_contact_entry(entry) is ShapeKind.CURRENT:
                    if isinstance(entry.get("id"), str):
                        taken.add(entry["id"])
    current_ids = set(taken)

    result = ContactsMigration(kind=kind)
    for job_id, entries in raw.items():
        if not isinstance(entries, list):
            logger.warning("contacts_job_skipped", job_id=job_id)
            continue

        contacts: list[Contact] = []
        for index, entry in enumerate(entries):
            entry_kind = classify_contact_entry(entry)
            if entry_kind is ShapeKind.CURRENT:
                try:
                    contacts.append(Contact.model_validate(entry))
                except ValidationError as e:
                    result.num_dropped += 1
                    logger.warning(
                        "contact_dropped", job_id=job_id, index=index, error=str(e)
                    )
            elif entry_kind is ShapeKind.LEGACY_ARRAY:
                new_id = legacy_contact_id(job_id, index, taken)
                taken.add(new_id)
                old_id = entry.get("id")
                if isinstance(old_id, (str, int)) and not isinstance(old_id, bool):
                    # Drafts keyed by a live contact id stay with that contact
                    if str(old_id) not in current_ids:
                        result.id_map.setdefault(str(old_id), []).append(new_id)
                contacts.append(_contact_from_legacy(entry, new_id))
                result.num_migrated += 1
            else:
                result.num_dropped += 1
                logger.warning("contact_dropped", job_id=job_id, index=index)

        result.job_contacts[job_id] = contacts

    if result.num_migrated:
        logger.info("contacts_migrated", count=result.num_migrated)
    return result


# --- Drafts ---


def _coerce_body(value: Any) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


def classify_draft(value: Any) -> ShapeKind:
    """Classify one persisted draft value."""
    if isinstance(value, str):
        return ShapeKind.LEGACY_STRING
    if isinstance(value, dict) and _coerce_body(value.get("body")) is not None:
        if isinstance(value.get("body"), str) and isinstance(value.get("subject"), str):
            return ShapeKind.CURRENT
        return ShapeKind.LEGACY_STRING
    return ShapeKind.UNRECOGNIZED


def classify_drafts(raw: Any) -> ShapeKind:
    """Classify a whole drafts slice (contactId -> draft)."""
    if not isinstance(raw, dict):
        return ShapeKind.UNRECOGNIZED
    kinds = {classify_draft(v) for v in raw.values()}
    if ShapeKind.LEGACY_STRING in kinds:
        return ShapeKind.LEGACY_STRING
    return ShapeKind.CURRENT


def migrate_drafts(
    raw: Any, id_map: dict[str, list[str]] | None = None
) -> DraftsMigration:
    """Convert a raw drafts slice to OutreachDraft values.

    A bare string becomes the body with an empty subject. An object whose
    body is string-coercible keeps its subject when it is a string. Anything
    else is dropped for that key. Keys found in ``id_map`` are rewritten to
    the migrated contact ids; a recruiter that appeared under several jobs
    gets a copy of the draft on each migrated contact.
    """
    kind = classify_drafts(raw)
    if kind is ShapeKind.UNRECOGNIZED:
        logger.warning("drafts_unrecognized", got=type(raw).__name__)
        return DraftsMigration(kind=kind)

    id_map = id_map or {}
    result = DraftsMigration(kind=kind)
    for contact_id, value in raw.items():
        draft_kind = classify_draft(value)
        if draft_kind is ShapeKind.CURRENT:
            draft = OutreachDraft(subject=value["subject"], body=value["body"])
        elif draft_kind is ShapeKind.LEGACY_STRING:
            if isinstance(value, str):
                draft = OutreachDraft(subject="", body=value)
            else:
                subject = value.get("subject")
                draft = OutreachDraft(
                    subject=subject if isinstance(subject, str) else "",
                    body=_coerce_body(value.get("body")) or "",
                )
            result.num_migrated += 1
        else:
            result.num_dropped += 1
            logger.warning(
                "draft_dropped", contact_id=contact_id, got=type(value).__name__
            )
            continue
        for target_id in id_map.get(contact_id, [contact_id]):
            result.contact_drafts[target_id] = draft.model_copy()

    return result


# --- Tracked jobs / resumes ---


def parse_tracked(raw: Any) -> dict[str, TrackedJobStage]:
    """Parse the tracked slice. Unknown stage tags are dropped per job."""
    if not isinstance(raw, dict):
        logger.warning("tracked_unrecognized", got=type(raw).__name__)
        return {}
    tracked: dict[str, TrackedJobStage] = {}
    for job_id, value in raw.items():
        stage = TrackedJobStage.parse(value)
        if stage is None:
            logger.warning("tracked_stage_dropped", job_id=job_id, value=repr(value))
            continue
        tracked[job_id] = stage
    return tracked


def parse_resumes(raw: Any) -> dict[str, str]:
    """Parse the resumes slice. Non-string values are dropped."""
    if not isinstance(raw, dict):
        logger.warning("resumes_unrecognized", got=type(raw).__name__)
        return {}
    resumes: dict[str, str] = {}
    for job_id, value in raw.items():
        if isinstance(value, str):
            resumes[job_id] = value
        else:
            logger.warning("resume_dropped", job_id=job_id)
    return resumes
