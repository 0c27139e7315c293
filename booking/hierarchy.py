# booking/hierarchy.py
"""
Part hierarchy rules for Facility Booking.

Booking a part blocks the part itself, its direct children and its direct
parent. The rule looks exactly one level up and one level down even though
deeper nesting can be stored.

This file is part of Facility Booking.
Copyright (C) 2025 Facility Booking Contributors

This software is dual-licensed:
1. GNU General Public License v3.0 (GPL-3.0) - for open source use
2. Commercial License - for proprietary and commercial use

For GPL-3.0 license terms, see LICENSE file.
For commercial licensing, see COMMERCIAL-LICENSE.txt.
"""

from typing import Dict, Iterable, Mapping, Optional, Set

from .exceptions import BookingValidationError, NotFoundError


def blocking_set(part_id, parents: Mapping[int, Optional[int]]) -> Set[int]:
    """
    Blocking set of one part over an arena of ``{part_id: parent_id}``.

    Returns {part} ∪ {direct children} ∪ {direct parent, if any}.
    """
    blocked = {part_id}
    parent_id = parents.get(part_id)
    if parent_id is not None:
        blocked.add(parent_id)
    blocked.update(pid for pid, parent in parents.items() if parent == part_id)
    return blocked


def blocking_set_for(part_ids: Iterable[int], parents: Mapping[int, Optional[int]]) -> Set[int]:
    """Union of the blocking sets of all requested parts."""
    blocked = set()
    for part_id in part_ids:
        blocked |= blocking_set(part_id, parents)
    return blocked


def load_part_arena(resource) -> Dict[int, Optional[int]]:
    """Map every part id of ``resource`` to its parent id."""
    from .models import ResourcePart

    return dict(
        ResourcePart.objects.filter(resource=resource).values_list('id', 'parent_id')
    )


def resolve_blocking_parts(resource, part_ids) -> Set[int]:
    """
    Resolve the part ids whose bookings conflict with a request for ``part_ids``.

    Args:
        resource: Resource instance the request is for
        part_ids: Requested part ids; empty means the whole resource

    Returns:
        Set of part ids; empty for a whole-resource request

    Raises:
        NotFoundError: if a requested part does not belong to ``resource``
    """
    part_ids = set(part_ids or ())
    if not part_ids:
        return set()

    arena = load_part_arena(resource)
    unknown = part_ids - arena.keys()
    if unknown:
        raise NotFoundError(
            f"Part {', '.join(str(p) for p in sorted(unknown))} not found for resource '{resource.name}'"
        )

    return blocking_set_for(part_ids, arena)


def validate_part_selection(resource, part_ids):
    """Reject one request naming parts that block each other, e.g. a parent and its child."""
    part_ids = set(part_ids or ())
    if len(part_ids) < 2:
        return

    arena = load_part_arena(resource)
    for part_id in part_ids:
        clash = (blocking_set(part_id, arena) - {part_id}) & part_ids
        if clash:
            raise BookingValidationError(
                "Cannot book a part together with its parent or child part in one request."
            )


def would_create_cycle(part, new_parent) -> bool:
    """Check whether making ``new_parent`` the parent of ``part`` forms a loop."""
    if new_parent is None:
        return False
    if part.pk is None:
        return False

    visited = set()
    current = new_parent
    while current is not None:
        if current.pk == part.pk:
            return True
        if current.pk in visited:
            # Stored data already contains a loop
            return True
        visited.add(current.pk)
        current = current.parent
    return False
