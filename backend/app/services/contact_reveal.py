"""Decide when a provider's direct contact details may be shown."""

from __future__ import annotations

import logging
from typing import Any, Mapping

logger = logging.getLogger(__name__)


def mask_email(email: str | None) -> str:
    """``john.doe@example.com`` -> ``j***@***.com``."""
    if not email:
        return ""
    username, _, domain = email.partition("@")
    if not domain:
        return "***@***.***"
    tld = domain.split(".")[-1]
    return f"{username[:1]}***@***.{tld}"


def mask_phone(phone: str | None) -> str:
    """Keep only the last four characters: ``+27821234567`` -> ``***-***-4567``."""
    if not phone:
        return ""
    return f"***-***-{phone[-4:]}"


def should_reveal_contact(
    viewer_id: int | None,
    provider_user_id: int,
    has_confirmed_booking: bool,
    auto_reveal_enabled: bool = True,
) -> bool:
    """Return True when ``viewer_id`` may see the provider's contact fields.

    Public profiles stay private even for customers with a confirmed booking;
    those conversations go through messaging, where the privacy filter lifts
    once a qualifying booking exists. Only the provider sees their own details.
    """
    if viewer_id is not None and viewer_id == provider_user_id:
        return True
    if has_confirmed_booking and auto_reveal_enabled:
        logger.debug(
            "Contact kept private despite confirmed booking",
            extra={"viewer_id": viewer_id, "provider_user_id": provider_user_id},
        )
    return False


def mask_contact_info(profile: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``profile`` with ``contact_email``/``contact_phone`` masked."""
    masked = dict(profile)
    email = masked.get("contact_email")
    phone = masked.get("contact_phone")
    masked["contact_email"] = mask_email(email) if email else None
    masked["contact_phone"] = mask_phone(phone) if phone else None
    return masked
