from __future__ import annotations

from fastapi import HTTPException, Request
from pydantic import BaseModel

CONSENT_KEY = "consent"


class ConsentRequest(BaseModel):
    analytics: bool = False
    personalisation: bool = True


def get_consent(request: Request) -> dict | None:
    """Return the consent dict from the session, or ``None``."""
    return request.session.get(CONSENT_KEY)


def require_consent(request: Request) -> dict:
    """Raise 403 unless the user agreed to have their answers processed."""
    consent = get_consent(request)
    if not consent or not consent.get("personalisation"):
        raise HTTPException(status_code=403, detail="Consent required before answers are processed")
    return consent


def analytics_allowed(request: Request) -> bool:
    consent = get_consent(request) or {}
    return bool(consent.get("analytics"))
