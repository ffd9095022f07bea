"""
Routing resolver: decides where a lot goes after the quality gate.

Pure functions only. Winding machine groups physically feed different
post-processing lines: flanges need CNC machining (Mazak), everything
else goes straight to manual finishing (Nabewerken).

Evaluation order:
    1. reject       → REJECTED / SCRAP
    2. temp_reject  → Hold / HOLD_AREA
    3. ok           → classification + origin group, or operator override
"""

from typing import NamedTuple, Optional
import structlog

from models.lot import Disposition, LotStep
from models.order import ProductClassification
from exceptions import InvalidRouteOverrideError
from utils.text_utils import contains_token, station_suffix

logger = structlog.get_logger(__name__)

# Physical station codes
STATION_MAZAK = "MAZAK"
STATION_FINISHING = "NABW"
STATION_INSPECTION = "BM01"
STATION_HOLD = "HOLD_AREA"
STATION_SCRAP = "SCRAP"
STATION_DONE = "GEREED"

STEP_STATIONS = {
    LotStep.MAZAK: STATION_MAZAK,
    LotStep.NABEWERKEN: STATION_FINISHING,
    LotStep.EINDINSPECTIE: STATION_INSPECTION,
    LotStep.HOLD: STATION_HOLD,
    LotStep.REJECTED: STATION_SCRAP,
    LotStep.FINISHED: STATION_DONE,
}

# Winding machine groups by numeric suffix
FINISHING_ONLY_GROUP = frozenset({16, 18, 31})
FLANGE_CAPABLE_GROUP = frozenset({11, 12, 15, 17})

# Destinations an operator may pick instead of the computed one
OVERRIDE_DESTINATIONS = (LotStep.NABEWERKEN, LotStep.MAZAK, LotStep.EINDINSPECTIE)


class RouteDecision(NamedTuple):
    """Destination step and physical station for a lot."""
    step: LotStep
    station: str


def classify_item(item: Optional[str]) -> ProductClassification:
    """
    Classify a product from its free-text description.

    First match wins: FL/FLANGE, then CB, then TB, else generic.
    """
    if contains_token(item, "FL", "FLANGE"):
        return ProductClassification.FLANGE
    if contains_token(item, "CB"):
        return ProductClassification.CB
    if contains_token(item, "TB"):
        return ProductClassification.TB
    return ProductClassification.GENERIC


def route_for(step: LotStep) -> RouteDecision:
    """Pair a step with its physical station."""
    return RouteDecision(step, STEP_STATIONS[step])


def resolve_destination(
    item: Optional[str],
    origin_station: Optional[str],
    disposition: Disposition,
    override: Optional[LotStep] = None,
    classification: Optional[ProductClassification] = None,
) -> RouteDecision:
    """
    Resolve the next destination for a lot leaving the quality gate.

    Args:
        item: Product description
        origin_station: Station the lot was wound on (e.g. "BH17")
        disposition: Quality gate decision
        override: Operator chosen destination, only honoured for ok
        classification: Explicit classification; the item heuristic is
            used when omitted

    Returns:
        RouteDecision with the destination step and station

    Raises:
        InvalidRouteOverrideError: If an ok override is not a
            post-processing destination
    """
    disposition = Disposition(disposition)

    if disposition == Disposition.REJECT:
        return route_for(LotStep.REJECTED)

    if disposition == Disposition.TEMP_REJECT:
        return route_for(LotStep.HOLD)

    if override is not None:
        override = LotStep(override)
        if override not in OVERRIDE_DESTINATIONS:
            raise InvalidRouteOverrideError(
                override.value,
                [step.value for step in OVERRIDE_DESTINATIONS]
            )
        return route_for(override)

    kind = classification or classify_item(item)
    suffix = station_suffix(origin_station)

    if suffix in FINISHING_ONLY_GROUP:
        step = LotStep.NABEWERKEN
    elif suffix in FLANGE_CAPABLE_GROUP:
        step = LotStep.MAZAK if kind == ProductClassification.FLANGE else LotStep.NABEWERKEN
    else:
        step = LotStep.NABEWERKEN

    logger.debug(
        "route_resolved",
        item=item,
        origin=origin_station,
        classification=kind.value,
        step=step.value
    )
    return route_for(step)
