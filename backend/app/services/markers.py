from dataclasses import dataclass

from app.models.job import JobStatus, UrgencyLevel

DEFAULT_FILL = "#4F46E5"
DEFAULT_SCALE = 10
URGENT_SCALE = 12
SELECTED_SCALE = 14

STATUS_COLORS = {
    JobStatus.ACCEPTED: "#3B82F6",  # blue
    JobStatus.IN_PROGRESS: "#F59E0B",  # amber
    JobStatus.COMPLETED: "#10B981",  # green
    JobStatus.CANCELLED: "#EF4444",  # red
}

URGENCY_COLORS = {
    UrgencyLevel.EMERGENCY: "#B91C1C",
    UrgencyLevel.URGENT: "#DC2626",
    UrgencyLevel.HIGH: "#DC2626",
    UrgencyLevel.MEDIUM: "#F97316",
    UrgencyLevel.LOW: "#9333EA",
}

PULSING_URGENCY = frozenset({UrgencyLevel.HIGH, UrgencyLevel.URGENT, UrgencyLevel.EMERGENCY})

# Legend colors for the marketplace categories shown on the map
CATEGORY_COLORS = {
    "handy-man": "#4CAF50",
    "skilled-jobs": "#2196F3",
    "digital-plus": "#9C27B0",
    "healthcare": "#F44336",
    "transport": "#A1887F",
    "other": "#FF9800",
}
FALLBACK_CATEGORY_COLOR = "#9C27B0"


@dataclass(frozen=True)
class MarkerStyle:
    fill_color: str
    scale: int
    stroke_color: str
    stroke_weight: int
    pulse: bool


def marker_style(status: str, urgency_level: str | None, selected: bool = False) -> MarkerStyle:
    """Map a job's status, urgency and selection to its marker style."""
    fill_color = DEFAULT_FILL
    scale = DEFAULT_SCALE
    pulse = False

    if status in STATUS_COLORS:
        fill_color = STATUS_COLORS[status]
    elif urgency_level in URGENCY_COLORS:
        fill_color = URGENCY_COLORS[urgency_level]
        if urgency_level in PULSING_URGENCY:
            scale = URGENT_SCALE
            pulse = True

    if selected:
        return MarkerStyle(fill_color=fill_color, scale=SELECTED_SCALE, stroke_color="#000000", stroke_weight=3, pulse=pulse)
    return MarkerStyle(fill_color=fill_color, scale=scale, stroke_color="#FFFFFF", stroke_weight=2, pulse=pulse)


def category_color(category_id: str) -> str:
    return CATEGORY_COLORS.get(category_id, FALLBACK_CATEGORY_COLOR)
