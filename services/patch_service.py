"""
Drill-down corrections.

Field-level writes outside the state machine: urgency labels, floor notes,
identification codes, and moving a Hold lot back into the flow.
"""

from datetime import datetime, timezone
from typing import Optional, Union
import structlog

from exceptions import LotNotFoundError, OrderNotFoundError, RecordNotFoundError, ValidationError
from models.lot import Lot
from models.order import Order
from models.patch import LOT_ONLY_FIELDS, PatchKind, RecordPatch
from repositories import DocumentStore, LOTS, ORDERS, get_document_store
from utils.text_utils import normalize_scan_code

logger = structlog.get_logger(__name__)


class PatchService:
    """Applies manual corrections to orders and lots."""

    def __init__(self, store: Optional[DocumentStore] = None):
        self.store = store if store is not None else get_document_store()

    def patch(
        self,
        kind: PatchKind,
        record_id: str,
        fields: RecordPatch,
        operator: Optional[str] = None
    ) -> Union[Order, Lot]:
        """
        Write the provided fields onto an order or a lot.

        Raises:
            ValidationError: If nothing is provided, or lot-only fields are
                sent for an order
            OrderNotFoundError / LotNotFoundError: If the record is unknown
        """
        kind = PatchKind(kind)
        record_id = normalize_scan_code(record_id)
        changes = fields.provided_fields()

        if not changes:
            raise ValidationError("No fields to update", code="EMPTY_PATCH")

        if kind == PatchKind.ORDER:
            misplaced = sorted(set(changes) & set(LOT_ONLY_FIELDS))
            if misplaced:
                raise ValidationError(
                    "Fields only apply to lots",
                    details={"fields": misplaced}
                )

        changes["updated_at"] = datetime.now(timezone.utc).isoformat()
        if operator:
            changes["last_operator"] = operator

        collection = ORDERS if kind == PatchKind.ORDER else LOTS
        try:
            doc = self.store.update(collection, record_id, changes)
        except RecordNotFoundError:
            if kind == PatchKind.ORDER:
                raise OrderNotFoundError(record_id)
            raise LotNotFoundError(record_id)

        logger.info(
            "record_patched",
            kind=kind.value,
            id=record_id,
            fields=sorted(fields.provided_fields())
        )

        if kind == PatchKind.ORDER:
            return Order.model_validate(doc)
        return Lot.model_validate(doc)


# Singleton instance
_patch_service: Optional[PatchService] = None


def get_patch_service() -> PatchService:
    """Get or create PatchService instance."""
    global _patch_service
    if _patch_service is None:
        _patch_service = PatchService()
    return _patch_service
