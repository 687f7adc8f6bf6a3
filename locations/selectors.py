"""Read-side queries for the location registry."""

from common.exceptions import NotFoundError

from .models import Location


def get_location(location_id: int) -> Location:
    try:
        return Location.objects.select_related("parent").get(id=location_id)
    except (Location.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Location {location_id} not found")


def get_location_by_code(code: str) -> Location:
    try:
        return Location.objects.select_related("parent").get(code__iexact=(code or "").strip())
    except Location.DoesNotExist:
        raise NotFoundError(f"Location {code!r} not found")


def get_children(location_id: int):
    get_location(location_id)
    return list(Location.objects.filter(parent_id=location_id).order_by("code"))


def get_descendants(location_id: int) -> list[Location]:
    """Whole subtree below a location, breadth first."""
    get_location(location_id)
    result: list[Location] = []
    frontier = [location_id]
    seen = {location_id}
    while frontier:
        level = list(Location.objects.filter(parent_id__in=frontier).order_by("code"))
        level = [loc for loc in level if loc.id not in seen]
        seen.update(loc.id for loc in level)
        result.extend(level)
        frontier = [loc.id for loc in level]
    return result


def list_by_type(location_type: str, active_only: bool = False):
    qs = Location.objects.filter(type=location_type).order_by("code")
    if active_only:
        qs = qs.filter(is_active=True)
    return list(qs)


# EOF
