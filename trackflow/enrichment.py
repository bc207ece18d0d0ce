"""Contact enrichment: attach discovered email/role/avatar to a contact."""

from __future__ import annotations

from abc import ABC, abstractmethod

import structlog
from pydantic import Field

from schemas import Contact, ContactUpdate
from schemas.base import BaseSchema
from trackflow.store import TrackFlowStore

logger = structlog.get_logger(__name__)


class FoundPerson(BaseSchema):
    """What a people-lookup service returned for a contact."""

    email: str | None = None
    title: str | None = None
    photo_url: str | None = Field(default=None, alias="photoUrl")


class ContactFinder(ABC):
    """Looks a person up by name and company."""

    @abstractmethod
    async def find(
        self,
        first_name: str,
        last_name: str,
        company_name_or_url: str,
    ) -> FoundPerson | None:
        """Return what could be discovered, or None."""


async def enrich_contact(
    store: TrackFlowStore,
    contact_id: str,
    finder: ContactFinder,
) -> Contact | None:
    """Look up a contact and merge whatever was found.

    A lookup failure or empty result leaves the contact untouched and
    returns None.
    """
    contact = store.find_contact(contact_id)
    if contact is None:
        return None

    try:
        found = await finder.find(
            contact.first_name, contact.last_name, contact.company_name_or_url
        )
    except Exception as e:
        logger.warning("contact_lookup_failed", contact_id=contact_id, error=str(e))
        return None

    if found is None:
        return None

    update = ContactUpdate()
    if found.email:
        update.email = found.email
    if found.title:
        update.role = found.title
    if found.photo_url:
        update.avatar = found.photo_url
    if not update.model_fields_set:
        return None

    return store.update_contact(contact_id, update)
