from typing import Any, Dict, List

from email_validator import EmailNotValidError, validate_email

from tailorshop.errors import ValidationError

FITS = {"regular", "slim", "relaxed"}
MEASUREMENT_METHODS = {"manual", "home_visit", "saved"}
MEASUREMENT_FIELDS = ["chest", "waist", "hips", "shoulder", "sleeve_length", "shirt_length", "trouser_length"]
# customization keys that are not garment options
FREE_FORM_FIELDS = {"fit", "lining", "embroidery", "monogram", "special_instructions"}

STEP_SELECTION = 1
STEP_CUSTOMIZE = 2
STEP_MEASUREMENTS = 3
STEP_CONTACT = 4
STEP_REVIEW = 5
LAST_STEP = STEP_REVIEW


class Validator:
    """Validation of an order draft, one wizard step at a time.

    Rules:
    - step 1: fabric and garment selected
    - step 2: options declared by the garment with allowed values, known fit
    - step 3: known method; manual needs at least one measurement; values > 0
    - step 4: name, phone and a well-formed email; address for home visits
    - step 5: every step above plus enough fabric stock

    Issues are returned sorted so results are reproducible.
    """

    def __init__(self, fabric_meters: int = 2):
        self.fabric_meters = fabric_meters

    def _add_issue(self, issues: List[str], issue: str) -> None:
        if issue not in issues:
            issues.append(issue)

    def _selection(self, draft, garment, fabric, issues: List[str]) -> None:
        if draft.fabric_id is None:
            self._add_issue(issues, "missing_fabric")
        elif fabric is None:
            self._add_issue(issues, "unknown_fabric")
        if draft.garment_id is None:
            self._add_issue(issues, "missing_garment")
        elif garment is None:
            self._add_issue(issues, "unknown_garment")

    def _customizations(self, draft, garment, issues: List[str]) -> None:
        custom = draft.customizations or {}
        fit = custom.get("fit")
        if fit and not isinstance(fit, str):
            self._add_issue(issues, "invalid_fit")
        elif fit and fit not in FITS:
            self._add_issue(issues, f"invalid_fit:{fit}")
        if "lining" in custom and not isinstance(custom["lining"], bool):
            self._add_issue(issues, "invalid_lining")
        options = (garment.customization_options or {}) if garment is not None else {}
        for key, value in custom.items():
            if key in FREE_FORM_FIELDS or value in (None, ""):
                continue
            allowed = options.get(key)
            if allowed is None:
                self._add_issue(issues, f"unsupported_option:{key}")
            elif value not in allowed:
                self._add_issue(issues, f"invalid_option_value:{key}")

    def _measurements(self, draft, issues: List[str]) -> None:
        m = draft.measurements or {}
        method = draft.measurement_method
        if not isinstance(method, str):
            self._add_issue(issues, "invalid_measurement_method")
            return
        if method not in MEASUREMENT_METHODS:
            self._add_issue(issues, f"invalid_measurement_method:{method}")
            return
        provided = 0
        for field in MEASUREMENT_FIELDS:
            value = m.get(field)
            if value in (None, ""):
                continue
            try:
                if float(value) <= 0:
                    self._add_issue(issues, f"invalid_measurement:{field}")
                else:
                    provided += 1
            except (TypeError, ValueError):
                self._add_issue(issues, f"invalid_measurement:{field}")
        if method == "manual" and provided == 0:
            self._add_issue(issues, "missing_measurements")

    def _contact(self, draft, issues: List[str]) -> None:
        c = draft.customer
        if not (c.name or "").strip():
            self._add_issue(issues, "missing_name")
        if not (c.phone or "").strip():
            self._add_issue(issues, "missing_phone")
        if not (c.email or "").strip():
            self._add_issue(issues, "missing_email")
        else:
            try:
                validate_email(c.email.strip(), check_deliverability=False)
            except EmailNotValidError:
                self._add_issue(issues, "invalid_email")
        if draft.measurement_method == "home_visit" and not (c.address or "").strip():
            self._add_issue(issues, "missing_address")

    def _stock(self, fabric, issues: List[str]) -> None:
        if fabric is not None and (fabric.stock or 0) < self.fabric_meters:
            self._add_issue(issues, "insufficient_stock")

    def validate(self, draft, step: int = LAST_STEP, garment=None, fabric=None) -> Dict[str, Any]:
        """Check `draft` up to and including `step` (1..5)."""
        if step < STEP_SELECTION or step > LAST_STEP:
            raise ValueError(f"step must be between {STEP_SELECTION} and {LAST_STEP}")
        issues: List[str] = []
        checks = {
            STEP_SELECTION: lambda: self._selection(draft, garment, fabric, issues),
            STEP_CUSTOMIZE: lambda: self._customizations(draft, garment, issues),
            STEP_MEASUREMENTS: lambda: self._measurements(draft, issues),
            STEP_CONTACT: lambda: self._contact(draft, issues),
            STEP_REVIEW: lambda: self._stock(fabric, issues),
        }
        checks[step]()
        if step == LAST_STEP:
            for earlier in range(STEP_SELECTION, LAST_STEP):
                checks[earlier]()
        return {"step": step, "valid": not issues, "issues": sorted(issues)}

    def require(self, draft, step: int = LAST_STEP, garment=None, fabric=None) -> None:
        result = self.validate(draft, step, garment=garment, fabric=fabric)
        if not result["valid"]:
            raise ValidationError(f"Order details incomplete at step {step}", result["issues"])
