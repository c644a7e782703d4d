from __future__ import annotations

from typing import List, Tuple

import numpy as np


def orbit_positions(
    radius: float,
    height: float,
    count: int,
    start_deg: float = 45.0,
) -> List[Tuple[float, float, float]]:
    """Evenly spaced camera positions on a horizontal ring around the origin.

    The ring lies in the XZ plane at ``y = height``; the first position sits at
    ``start_deg`` measured from +X towards +Z.
    """
    if radius <= 0.0:
        raise ValueError("radius must be positive.")
    if count <= 0:
        raise ValueError("count must be positive.")

    angles = np.deg2rad(start_deg) + np.arange(count, dtype=np.float64) * (2.0 * np.pi / count)
    xs = radius * np.cos(angles)
    zs = radius * np.sin(angles)
    return [(float(x), float(height), float(z)) for x, z in zip(xs, zs)]
