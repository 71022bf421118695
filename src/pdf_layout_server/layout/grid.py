"""Ruling classification and tolerance-based clustering into a grid."""

from collections.abc import Iterable

from .models import Ruling, RulingGrid, Segment


def cluster_values(values: Iterable[float], tolerance: float) -> list[float]:
    """Cluster sorted values, folding each close value into a running average.

    A new cluster starts whenever a value exceeds the current centroid by more
    than ``tolerance``. The centroid drifts as close values are folded in.

    Args:
        values: Coordinates to cluster, in any order.
        tolerance: Maximum distance from the current centroid.

    Returns:
        Ascending cluster centroids.
    """
    ordered = sorted(values)
    if not ordered:
        return []

    clusters = [ordered[0]]
    for value in ordered[1:]:
        if value - clusters[-1] > tolerance:
            clusters.append(value)
        else:
            clusters[-1] = (clusters[-1] + value) / 2
    return clusters


def split_segments(
    segments: Iterable[Segment], eps: float
) -> tuple[list[Ruling], list[Ruling]]:
    """Split segments into horizontal and vertical rulings; diagonals are dropped."""
    horizontal: list[Ruling] = []
    vertical: list[Ruling] = []
    for s in segments:
        if s.is_horizontal(eps):
            horizontal.append(
                Ruling(
                    start=min(s.x0, s.x1),
                    end=max(s.x0, s.x1),
                    position=(s.y0 + s.y1) / 2,
                )
            )
        elif s.is_vertical(eps):
            vertical.append(
                Ruling(
                    start=min(s.y0, s.y1),
                    end=max(s.y0, s.y1),
                    position=(s.x0 + s.x1) / 2,
                )
            )
    return horizontal, vertical


def build_grid(
    horizontal: list[Ruling], vertical: list[Ruling], eps: float
) -> RulingGrid | None:
    """Cluster ruling positions per axis.

    Returns None when no table is possible: fewer than two rulings or fewer
    than two clusters on either axis.
    """
    if len(horizontal) < 2 or len(vertical) < 2:
        return None

    xs = cluster_values((r.position for r in vertical), eps)
    ys = cluster_values((r.position for r in horizontal), eps)
    if len(xs) < 2 or len(ys) < 2:
        return None
    return RulingGrid(xs=xs, ys=ys)
