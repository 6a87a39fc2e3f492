import logging
from typing import Any, Dict, Optional

from tailorshop.models import ContactDetails, OrderDraft
from tailorshop.services.pricing import PriceEngine
from tailorshop.services.validation import FREE_FORM_FIELDS, LAST_STEP, STEP_SELECTION, Validator

logger = logging.getLogger(__name__)

STEP_TITLES = {
    1: "Select Fabric & Garment",
    2: "Customize Design",
    3: "Provide Measurements",
    4: "Contact Details",
    5: "Review & Payment",
}


class OrderWizard:
    """Accumulates an order draft across the five customize steps."""

    def __init__(
        self,
        draft: Optional[OrderDraft] = None,
        garment=None,
        fabric=None,
        validator: Optional[Validator] = None,
        engine: Optional[PriceEngine] = None,
        step: int = STEP_SELECTION,
    ):
        self.draft = draft or OrderDraft()
        self.garment = garment
        self.fabric = fabric
        self.engine = engine or PriceEngine()
        self.validator = validator or Validator(self.engine.settings.fabric_meters)
        self.step = step

    @property
    def title(self) -> str:
        return STEP_TITLES[self.step]

    def select_fabric(self, fabric) -> None:
        self.fabric = fabric
        self.draft.fabric_id = fabric.id if fabric is not None else None

    def select_garment(self, garment) -> None:
        if garment is not None and self.garment is not None and garment.id != self.garment.id:
            # options of the previous garment no longer apply
            self.draft.customizations = {
                k: v for k, v in self.draft.customizations.items() if k in FREE_FORM_FIELDS
            }
        self.garment = garment
        self.draft.garment_id = garment.id if garment is not None else None

    def update_customization(self, key: str, value: Any) -> None:
        self.draft.customizations = {**self.draft.customizations, key: value}

    def update_measurement(self, key: str, value: Any) -> None:
        self.draft.measurements = {**self.draft.measurements, key: value}

    def update_customer(self, key: str, value: Any) -> None:
        data = self.draft.customer.model_dump()
        data[key] = value
        self.draft.customer = ContactDetails(**data)

    def check(self, step: Optional[int] = None) -> Dict[str, Any]:
        return self.validator.validate(self.draft, step or self.step, garment=self.garment, fabric=self.fabric)

    def next(self) -> Dict[str, Any]:
        """Advance one step if the current one validates; returns the check result."""
        result = self.check()
        if result["valid"] and self.step < LAST_STEP:
            self.step += 1
            logger.debug("Wizard advanced to step=%s", self.step)
        return result

    def previous(self) -> int:
        if self.step > STEP_SELECTION:
            self.step -= 1
        return self.step

    def quote(self) -> Dict[str, Any]:
        return self.engine.quote(self.draft, garment=self.garment, fabric=self.fabric)

    def ready_to_submit(self) -> bool:
        return self.check(LAST_STEP)["valid"]
