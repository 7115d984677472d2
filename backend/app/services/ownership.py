"""
StayBook Backend — Resource Ownership Policy
==============================================

What:  Decides whether an authenticated identity may mutate an owned
       resource (a listing).
How:   Exact equality between the identity id and the string form of the
       resource's stored owner id.

Callers must fetch the resource, call ensure_can_mutate(), and only then
touch any attribute. A denied request therefore leaves nothing half-written.
"""

import enum
import logging
from typing import Any, Optional

from app.exceptions import AuthorizationError
from app.services.auth_gate import Identity

logger = logging.getLogger(__name__)


class OwnershipDecision(str, enum.Enum):
    ALLOWED = "allowed"
    DENIED = "denied"


def authorize_mutation(identity: Optional[Identity], resource: Any) -> OwnershipDecision:
    """`resource` is anything with an `owner_id` attribute."""
    if identity is None:
        return OwnershipDecision.DENIED
    owner_id = getattr(resource, "owner_id", None)
    if owner_id is None:
        return OwnershipDecision.DENIED
    if identity.id == str(owner_id):
        return OwnershipDecision.ALLOWED
    return OwnershipDecision.DENIED


def ensure_can_mutate(
    identity: Optional[Identity],
    resource: Any,
    resource_name: str = "listing",
) -> None:
    """Raises AuthorizationError (403) unless `identity` owns `resource`."""
    if authorize_mutation(identity, resource) is OwnershipDecision.ALLOWED:
        return
    resource_id = str(getattr(resource, "id", "") or "") or None
    logger.warning(
        "Ownership check denied: identity=%s %s=%s",
        identity.id if identity else "anonymous",
        resource_name,
        resource_id,
    )
    raise AuthorizationError(resource=resource_name, resource_id=resource_id)
