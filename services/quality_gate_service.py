"""
Quality gate at unloading.

The operator records measurements and a disposition for a lot coming off
the winding machine. Everything is validated before the single lot write;
a failed validation leaves the lot untouched.
"""

from datetime import datetime, timezone
from typing import Optional
import structlog

from exceptions import InvalidLotTransitionError, MissingMeasurementError, MissingReasonError
from models.lot import (
    Disposition,
    DispositionRequest,
    INSPECTION_REJECT,
    INSPECTION_TEMP_REJECT,
    Lot,
    LotStatus,
    LotStep,
    REJECTION_REASONS,
)
from models.order import ProductClassification
from repositories import DocumentStore, LOTS, get_document_store
from services.lifecycle_service import LifecycleService
from services.routing_service import classify_item, resolve_destination

logger = structlog.get_logger(__name__)


# Steps where a lot can be unloaded
GATE_STEPS = frozenset({LotStep.WIKKELEN, LotStep.LOSSEN})

REQUIRED_MEASUREMENTS = {
    ProductClassification.FLANGE: ("tf",),
    ProductClassification.CB: ("tw", "twcb"),
    ProductClassification.TB: ("tw", "twtb"),
    ProductClassification.GENERIC: ("tw",),
}


def required_measurements(classification: ProductClassification) -> tuple[str, ...]:
    """Measurement fields an operator must fill in for a classification."""
    return REQUIRED_MEASUREMENTS[ProductClassification(classification)]


def validate_reason(disposition: Disposition, reason: Optional[str]) -> Optional[str]:
    """
    Reasons are mandatory for anything but ok.

    Returns:
        The reason to store, None for ok

    Raises:
        MissingReasonError: If a non-ok disposition lacks a listed reason
    """
    if disposition == Disposition.OK:
        return None
    if reason not in REJECTION_REASONS:
        raise MissingReasonError(disposition.value, reason, REJECTION_REASONS)
    return reason


def applicable_measurements(
    classification: ProductClassification,
    measurements: dict[str, str]
) -> dict[str, str]:
    """
    Keep only the fields that apply to the classification.

    Raises:
        MissingMeasurementError: If a required field is absent or blank
    """
    fields = required_measurements(classification)
    missing = [name for name in fields if not measurements.get(name)]
    if missing:
        raise MissingMeasurementError(classification.value, missing)
    return {name: measurements[name] for name in fields}


class QualityGateService:
    """Records dispositions and routes lots onward."""

    def __init__(self, store: Optional[DocumentStore] = None):
        self.store = store if store is not None else get_document_store()
        self.lifecycle = LifecycleService(store=self.store)

    def submit_disposition(
        self,
        code: str,
        request: DispositionRequest,
        operator: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Lot:
        """
        Record the quality gate outcome for a lot.

        reject → REJECTED / SCRAP, temp_reject → Hold / HOLD_AREA,
        ok → resolved destination (or the operator override).

        Args:
            code: Scanned or typed lot number
            request: Disposition, measurements, comments, reason, override
            operator: Operator email for audit
            now: Unload moment; defaults to the current UTC time

        Returns:
            Updated Lot

        Raises:
            LotNotFoundError: If the code doesn't resolve to a lot
            InvalidLotTransitionError: If the lot isn't at unloading
            MissingReasonError: If a non-ok disposition lacks a reason
            MissingMeasurementError: If a required measurement is empty
            InvalidRouteOverrideError: If the override isn't allowed
        """
        now = now or datetime.now(timezone.utc)
        disposition = request.disposition
        reason = validate_reason(disposition, request.reason)

        lot = self.lifecycle.find_lot(code)
        if lot.current_step not in GATE_STEPS:
            raise InvalidLotTransitionError(lot.lot_number, lot.current_step.value, "disposition")

        classification = lot.classification or classify_item(lot.item)
        measurements = applicable_measurements(classification, request.measurements)

        # Override only counts for ok; the resolver ignores it otherwise
        override = request.override if disposition == Disposition.OK else None
        route = resolve_destination(
            lot.item,
            lot.origin_machine,
            disposition,
            override=override,
            classification=classification
        )

        changes = {
            "current_step": route.step.value,
            "current_station": route.station,
            "measurements": measurements,
            "comments": request.comments,
            "rejection_reason": reason,
            "unloaded_at": now.isoformat(),
            "updated_at": now.isoformat(),
        }
        if operator:
            changes["last_operator"] = operator

        if disposition == Disposition.REJECT:
            changes["status"] = LotStatus.REJECTED.value
            changes["inspection"] = {"status": INSPECTION_REJECT, "note": request.comments, "reason": reason}
        elif disposition == Disposition.TEMP_REJECT:
            changes["status"] = LotStatus.HOLD.value
            changes["inspection"] = {"status": INSPECTION_TEMP_REJECT, "note": request.comments, "reason": reason}
        else:
            # A lot released from Hold comes back through here
            changes["status"] = LotStatus.ACTIVE.value
            changes["transported_at"] = now.isoformat()
            if route.step == LotStep.EINDINSPECTIE:
                changes["inspection_arrived_at"] = now.isoformat()

        doc = self.store.update(LOTS, lot.lot_number, changes)
        updated = Lot.model_validate(doc)

        logger.info(
            "disposition_recorded",
            lot_number=lot.lot_number,
            disposition=disposition.value,
            step=route.step.value,
            station=route.station,
            overridden=override is not None
        )
        if disposition != Disposition.OK:
            logger.warning(
                "lot_not_approved",
                lot_number=lot.lot_number,
                order_id=lot.order_id,
                disposition=disposition.value,
                reason=reason,
                operator=operator
            )

        return updated


# Singleton instance
_quality_gate_service: Optional[QualityGateService] = None


def get_quality_gate_service() -> QualityGateService:
    """Get or create QualityGateService instance."""
    global _quality_gate_service
    if _quality_gate_service is None:
        _quality_gate_service = QualityGateService()
    return _quality_gate_service
