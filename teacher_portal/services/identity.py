"""
Identity reconciliation.

A student carried into the detail view may lack its stable id or its batch.
The directory lookup fills those in; looked-up values take precedence over
carried ones, carried values fill whatever the lookup left out.
"""

import logging
from typing import Any, Mapping, Union

import httpx

from teacher_portal.core.exceptions import LookupMiss, RemoteError
from teacher_portal.schemas.student import Identity
from teacher_portal.services import gateway


logger = logging.getLogger(__name__)


def to_identity(student: Union[Identity, Mapping[str, Any], Any]) -> Identity:
    """Build an Identity from a row, a lookup match or a raw mapping."""
    if isinstance(student, Identity):
        return student
    if hasattr(student, "model_dump"):
        student = student.model_dump()
    return Identity.model_validate(dict(student))


def merge_identity(carried: Identity, found: Identity) -> Identity:
    """
    Merge a lookup result over a carried identity.
    
    Every field the lookup reports (non-null) wins; the rest come from the
    carried identity.
    """
    return carried.model_copy(update=found.model_dump(exclude_none=True))


async def resolve_identity(carried: Identity, client: httpx.AsyncClient) -> Identity:
    """
    Complete ``carried`` through a lookup when it needs one.
    
    A missing or failed lookup is not an error: the carried identity is
    returned as is.
    """
    if not carried.needs_lookup:
        return carried

    try:
        if not carried.uni_reg_id:
            raise LookupMiss(None)
        try:
            matches = await gateway.lookup_students(carried.uni_reg_id, client)
        except RemoteError as e:
            logger.warning("Identity lookup failed for %s: %s", carried.uni_reg_id, e.message)
            raise LookupMiss(carried.uni_reg_id) from e
        if not matches:
            raise LookupMiss(carried.uni_reg_id)
    except LookupMiss as miss:
        logger.info("%s; continuing with partial identity", miss)
        return carried

    return merge_identity(carried, matches[0])
