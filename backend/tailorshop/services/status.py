from typing import Any, Dict, List, Optional

from tailorshop.errors import ValidationError

ORDER_STATUSES = [
    "confirmed",
    "fabric_ready",
    "cutting",
    "stitching",
    "embroidery",
    "quality_check",
    "ready",
    "completed",
]

STATUS_LABELS = {
    "confirmed": "Order Confirmed",
    "fabric_ready": "Fabric Ready",
    "cutting": "Cutting in Progress",
    "stitching": "Stitching in Progress",
    "embroidery": "Embroidery & Detailing",
    "quality_check": "Quality Check",
    "ready": "Ready for Pickup",
    "completed": "Completed",
}

INITIAL_STATUS = ORDER_STATUSES[0]
# statuses that no longer count as work in progress
FINISHED_STATUSES = {"ready", "completed"}


def is_valid_status(value: Optional[str]) -> bool:
    return value in ORDER_STATUSES


def status_index(value: Optional[str]) -> int:
    """Position of `value` in the lifecycle; anything unknown is the first step."""
    try:
        return ORDER_STATUSES.index(value)
    except ValueError:
        return 0


def status_label(value: Optional[str]) -> str:
    return STATUS_LABELS.get(value, STATUS_LABELS[INITIAL_STATUS])


def transition(current: Optional[str], target: str, forward_only: bool = False) -> str:
    """Validate an admin status change and return the new status.

    Any listed status may be assigned unless `forward_only` is set, in which
    case an order can only stay where it is or move further along.
    """
    if not is_valid_status(target):
        raise ValidationError(f"Unknown order status: {target}", ["invalid_status"])
    if forward_only and status_index(target) < status_index(current):
        raise ValidationError(
            f"Cannot move order back from {current} to {target}", ["backward_transition"]
        )
    return target


def progress_steps(value: Optional[str]) -> List[Dict[str, Any]]:
    current = status_index(value)
    return [
        {
            "key": key,
            "label": STATUS_LABELS[key],
            "index": i,
            "done": i < current,
            "current": i == current,
        }
        for i, key in enumerate(ORDER_STATUSES)
    ]
