"""
API Boilerplate - Authenticated Identity Accessor
==================================================

What:  Reads the current caller's subject claim from the ASGI scope.
Why:   The audit trail records who made each call. Authentication itself
       is handled upstream (Starlette's AuthenticationMiddleware or any
       middleware that sets `scope["user"]`); this module only reads it.

Expected user object:
    is_authenticated: bool
    claims:           Mapping of claim name → value (e.g. decoded JWT payload)

Anonymous callers, users without claims, and users without a subject
all resolve to None.
"""

from typing import Any, Mapping, Optional

from starlette.types import Scope

SUBJECT_CLAIM = "sub"
# Claim name issued by ASP.NET-style identity providers
NAME_IDENTIFIER_CLAIM = "http://schemas.xmlsoap.org/ws/2005/05/identity/claims/nameidentifier"


def get_subject_claim(scope: Scope) -> Optional[str]:
    user: Any = scope.get("user")
    if user is None or not getattr(user, "is_authenticated", False):
        return None

    claims = getattr(user, "claims", None)
    if not isinstance(claims, Mapping):
        return None

    subject = claims.get(SUBJECT_CLAIM) or claims.get(NAME_IDENTIFIER_CLAIM)
    if subject is None or subject == "":
        return None
    return str(subject)
