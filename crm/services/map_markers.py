"""Grouping of prospects into map markers.

Prospects at the same place (same coordinates once rounded to 5 decimals, about one
metre) share one marker. A marker with several prospects is a "stack" labelled "+N"
that opens the list of its members. Clustering of nearby markers by pixel radius is
left to Leaflet.markercluster in the browser.
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP

BUCKET_PRECISION = Decimal("0.00001")


def _round_coordinate(value) -> Decimal:
    # str() gives the shortest repr of the float, so 48.856615 stays 48.856615
    # instead of 48.85661499999999... and rounds the same way every time
    rounded = Decimal(str(value)).quantize(BUCKET_PRECISION, rounding=ROUND_HALF_UP)
    if rounded.is_zero():
        rounded = abs(rounded)
    return rounded


def bucket_key(latitude, longitude) -> str:
    return f"{_round_coordinate(latitude)},{_round_coordinate(longitude)}"


@dataclass
class MarkerGroup:
    key: str
    latitude: float
    longitude: float
    members: list = field(default_factory=list)

    @property
    def is_stack(self) -> bool:
        return len(self.members) > 1

    @property
    def label(self) -> str:
        return f"+{len(self.members)}" if self.is_stack else ""

    def contains(self, prospect_id) -> bool:
        return any(p.pk == prospect_id for p in self.members)


def group_markers(prospects) -> list:
    """Bucket prospects by rounded coordinates, keeping first-seen order."""
    groups = {}
    for prospect in prospects:
        if prospect.latitude is None or prospect.longitude is None:
            continue
        key = bucket_key(prospect.latitude, prospect.longitude)
        group = groups.get(key)
        if group is None:
            group = groups[key] = MarkerGroup(key=key, latitude=prospect.latitude, longitude=prospect.longitude)
        group.members.append(prospect)
    return list(groups.values())


@dataclass
class SelectionState:
    selected_key: str = None
    icons: dict = field(default_factory=dict)


def reconcile_selection(groups, selected_id) -> SelectionState:
    """Find the marker holding the selected prospect and the icon variant of every marker.

    When the selected prospect is no longer on the map (filtered out, deleted,
    coordinates removed) the selection is dropped.
    """
    state = SelectionState()
    for group in groups:
        selected = selected_id is not None and group.contains(selected_id)
        if selected and state.selected_key is None:
            state.selected_key = group.key
        state.icons[group.key] = "selected" if selected else "default"
    return state


def markers_payload(groups, selected_id=None) -> list:
    """JSON-ready markers for the map page."""
    selection = reconcile_selection(groups, selected_id)
    payload = []
    for group in groups:
        first = group.members[0]
        payload.append({
            "key": group.key,
            "lat": group.latitude,
            "lng": group.longitude,
            "stack": group.is_stack,
            "label": group.label,
            "icon": selection.icons[group.key],
            "color": first.status.color if first.status_id else "#6B7280",
            "prospects": [
                {
                    "id": p.pk,
                    "name": p.company_name,
                    "city": p.city,
                    "status": p.status.name if p.status_id else "",
                    "color": p.status.color if p.status_id else "#6B7280",
                }
                for p in group.members
            ],
        })
    return payload
