"""Proximity grouping of distant territories into archipelagos."""

from __future__ import annotations

import math
from typing import Any, Sequence

from .geo import spherical_centroid

# Planar lon/lat degrees; tuned so Svalbard's islands share one inset.
GROUPING_DISTANCE_DEG = 8.0


def group(polygons: Sequence[Any]) -> list[tuple[Any, ...]]:
    """Cluster polygons whose centroids chain together within the grouping distance.

    Groups are the connected components of the proximity graph, listed in order of their
    first member in `polygons`; members keep discovery order.
    """
    if not polygons:
        return []
    if len(polygons) == 1:
        return [(polygons[0],)]

    centroids = [spherical_centroid([polygon]) for polygon in polygons]
    used: set[int] = set()
    groups: list[tuple[Any, ...]] = []
    for seed in range(len(polygons)):
        if seed in used:
            continue
        members = [seed]
        used.add(seed)
        found_more = True
        while found_more:
            found_more = False
            for candidate in range(len(polygons)):
                if candidate in used:
                    continue
                if any(
                    _degree_distance(centroids[member], centroids[candidate]) < GROUPING_DISTANCE_DEG
                    for member in members
                ):
                    members.append(candidate)
                    used.add(candidate)
                    found_more = True
        groups.append(tuple(polygons[idx] for idx in members))
    return groups


def _degree_distance(left: tuple[float, float], right: tuple[float, float]) -> float:
    return math.hypot(left[0] - right[0], left[1] - right[1])
