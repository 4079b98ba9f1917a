from __future__ import annotations

import logging
import re
from typing import Optional

from ..models import Prospect
from ..models.prospect import DEFAULT_FIRST_NAME, DEFAULT_LAST_NAME, DEFAULT_SOURCE
from .errors import InvalidIdentity
from .prospect_store import ProspectStore


prospect_logger = logging.getLogger("eprofos.prospects")

EMAIL_REGEX = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email) and EMAIL_REGEX.match(email) is not None


class IdentityResolver:
    """Find-or-create of prospects keyed on exact email.

    Two touchpoints for the same new email in separate transactions can both
    miss the lookup and create a prospect each. That race is accepted here:
    the email column is not unique and the duplicate consolidator merges such
    records afterwards.
    """

    def __init__(self, store: ProspectStore | None = None):
        self.store = store or ProspectStore()

    def resolve(
        self,
        email: Optional[str],
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> Prospect:
        """
        Return the prospect owning ``email``, staging a new one if none exists.

        Nothing is committed and an existing prospect is returned untouched;
        merging touchpoint data is the caller's job.

        Raises:
            InvalidIdentity: ``email`` is empty or not a syntactically valid address.
        """
        email = (email or "").strip()
        if not is_valid_email(email):
            prospect_logger.warning("event=prospect.resolve.invalid_email email=%r", email)
            raise InvalidIdentity(f"Invalid email format: {email!r}")

        existing = self.store.find_by_email(email)
        if existing is not None:
            prospect_logger.info(
                "event=prospect.resolve.found prospect_id=%s email=%s status=%s",
                existing.id,
                email,
                existing.status,
            )
            return existing

        prospect = Prospect(
            email=email,
            first_name=first_name or DEFAULT_FIRST_NAME,
            last_name=last_name or DEFAULT_LAST_NAME,
            status="lead",
            priority="medium",
            source=DEFAULT_SOURCE,
        )
        self.store.stage(prospect)

        prospect_logger.info(
            "event=prospect.resolve.created email=%s first_name=%s last_name=%s",
            email,
            prospect.first_name,
            prospect.last_name,
        )
        return prospect
