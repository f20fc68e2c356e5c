"""
Input validation helpers shared by the order and redemption services.
Serializers reject malformed payloads first; these checks guard the service seam.
"""

import logging
import uuid
from collections.abc import Iterable
from typing import Any

from apps.common.types import DomainError, Err, Ok, Result

logger = logging.getLogger(__name__)


def validate_quantity(quantity: Any, max_quantity: int) -> Result[int, DomainError]:
    """Quantity must be a strictly positive integer within the line limit"""
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        return Err(DomainError.validation("Quantity must be an integer", quantity=quantity))
    if quantity <= 0:
        return Err(DomainError.validation("Quantity must be greater than zero", quantity=quantity))
    if quantity > max_quantity:
        return Err(DomainError.validation(
            f"Quantity cannot exceed {max_quantity}", quantity=quantity, max_quantity=max_quantity
        ))
    return Ok(quantity)


def validate_line_items(
    items: Iterable[dict[str, Any]],
    id_key: str,
    max_items: int,
    max_quantity: int,
) -> Result[list[tuple[uuid.UUID, int]], DomainError]:
    """
    Normalize submitted basket lines to (id, quantity) pairs.
    Rejects empty baskets, malformed ids and bad quantities.
    """
    lines = list(items or [])
    if not lines:
        return Err(DomainError.validation("At least one item is required"))
    if len(lines) > max_items:
        return Err(DomainError.validation(f"Cannot submit more than {max_items} items", max_items=max_items))

    normalized: list[tuple[uuid.UUID, int]] = []
    for index, line in enumerate(lines):
        raw_id = line.get(id_key)
        try:
            line_id = raw_id if isinstance(raw_id, uuid.UUID) else uuid.UUID(str(raw_id))
        except (TypeError, ValueError):
            return Err(DomainError.validation(f"Invalid {id_key}", index=index, value=str(raw_id)))

        quantity_result = validate_quantity(line.get('quantity'), max_quantity)
        if quantity_result.is_err():
            error = quantity_result.unwrap_err()
            return Err(DomainError.validation(error.message, index=index, **error.details))

        normalized.append((line_id, quantity_result.unwrap()))

    return Ok(normalized)


def log_security_event(event_type: str, details: dict[str, Any], request_ip: str | None = None) -> None:
    """
    Log business-significant events (ledger movements, state transitions)
    for monitoring and forensics
    """
    logger.warning(f"🚨 [Audit] {event_type}: {details} from IP: {request_ip}")
