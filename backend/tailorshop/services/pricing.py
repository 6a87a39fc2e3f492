from typing import Any, Dict, Optional

from tailorshop.config import PricingSettings
from tailorshop.errors import ValidationError

HOME_VISIT = "home_visit"


class PriceEngine:
    """Rule-based pricing for a tailored garment.

    total = garment base price + fabric price per meter * meters
            + lining / home-visit / urgent surcharges
    """

    def __init__(self, settings: Optional[PricingSettings] = None):
        self.settings = settings or PricingSettings()

    def _check(self, name: str, value: float) -> float:
        if value is None:
            raise ValidationError(f"{name} is required", [f"missing_{name}"])
        if value < 0:
            raise ValidationError(f"{name} must not be negative", [f"negative_{name}"])
        return value

    def estimate(
        self,
        garment_base_price: float,
        fabric_price_per_meter: float,
        lining: bool = False,
        measurement_method: str = "manual",
        urgent: bool = False,
        fabric_meters: Optional[int] = None,
    ) -> Dict[str, Any]:
        base = self._check("garment_base_price", garment_base_price)
        per_meter = self._check("fabric_price_per_meter", fabric_price_per_meter)
        meters = self.settings.fabric_meters if fabric_meters is None else fabric_meters

        fabric_cost = per_meter * meters
        lining_cost = self.settings.lining_surcharge if lining else 0
        home_visit_cost = self.settings.home_visit_surcharge if measurement_method == HOME_VISIT else 0
        urgent_cost = self.settings.urgent_surcharge if urgent else 0

        total = base + fabric_cost + lining_cost + home_visit_cost + urgent_cost

        return {
            "base_price": base,
            "fabric_price_per_meter": per_meter,
            "fabric_meters": meters,
            "fabric_cost": fabric_cost,
            "lining_charge": lining_cost,
            "home_visit_charge": home_visit_cost,
            "urgent_charge": urgent_cost,
            "customization_cost": lining_cost + home_visit_cost,
            "total": total,
        }

    def compute_total(self, garment, fabric, lining: bool = False, measurement_method: str = "manual", urgent: bool = False) -> float:
        """Total payable for a fully selected order; garment and fabric must be set."""
        missing = []
        if garment is None:
            missing.append("missing_garment")
        if fabric is None:
            missing.append("missing_fabric")
        if missing:
            raise ValidationError("Select a fabric and a garment before placing the order", missing)
        return self.estimate(
            garment.base_price, fabric.price_per_meter, lining=lining, measurement_method=measurement_method, urgent=urgent
        )["total"]

    def quote(self, draft, garment=None, fabric=None) -> Dict[str, Any]:
        """Price a wizard draft that may not have a garment or fabric yet (counted as 0)."""
        return self.estimate(
            garment.base_price if garment is not None else 0,
            fabric.price_per_meter if fabric is not None else 0,
            lining=draft.lining,
            measurement_method=draft.measurement_method,
            urgent=draft.urgent,
        )

    def for_order(self, order) -> Dict[str, Any]:
        """Rebuild the breakdown of a placed order from its stored snapshot."""
        breakdown = self.estimate(
            order.garment_price,
            order.fabric_price_per_meter,
            lining=bool((order.customizations or {}).get("lining")),
            measurement_method=(order.measurements or {}).get("method") or "manual",
            urgent=bool(order.urgent),
            fabric_meters=order.fabric_meters,
        )
        breakdown["charged"] = order.price
        breakdown["matches_charged"] = breakdown["total"] == order.price
        return breakdown
