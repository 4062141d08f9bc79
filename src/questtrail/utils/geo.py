"""Geodesic distance on the WGS-84 ellipsoid.

Uses Vincenty's inverse formula, which is accurate to well under a
millimetre for the tens-to-hundreds of metres we compare against. The
iteration fails to converge only for nearly antipodal points.
"""

import math

from questtrail.quests.models import Coordinates

WGS84_A = 6378137.0  # semi-major axis, metres
WGS84_F = 1 / 298.257223563  # flattening
WGS84_B = (1 - WGS84_F) * WGS84_A  # semi-minor axis, metres

MAX_ITERATIONS = 200
CONVERGENCE_THRESHOLD = 1e-12


class VincentyConvergenceError(ArithmeticError):
    """Vincenty's formula did not converge (nearly antipodal points)."""


def distance(a: Coordinates, b: Coordinates) -> float:
    """Distance between two points in metres.

    Args:
        a: First point
        b: Second point

    Returns:
        Ellipsoidal distance in metres

    Raises:
        VincentyConvergenceError: For nearly antipodal points
    """
    if a.lat == b.lat and a.lon == b.lon:
        return 0.0

    lon_diff = math.radians(b.lon - a.lon)
    reduced_lat_1 = math.atan((1 - WGS84_F) * math.tan(math.radians(a.lat)))
    reduced_lat_2 = math.atan((1 - WGS84_F) * math.tan(math.radians(b.lat)))
    sin_u1, cos_u1 = math.sin(reduced_lat_1), math.cos(reduced_lat_1)
    sin_u2, cos_u2 = math.sin(reduced_lat_2), math.cos(reduced_lat_2)

    lam = lon_diff
    for _ in range(MAX_ITERATIONS):
        sin_lam, cos_lam = math.sin(lam), math.cos(lam)
        sin_sigma = math.hypot(cos_u2 * sin_lam, cos_u1 * sin_u2 - sin_u1 * cos_u2 * cos_lam)
        if sin_sigma == 0:
            return 0.0
        cos_sigma = sin_u1 * sin_u2 + cos_u1 * cos_u2 * cos_lam
        sigma = math.atan2(sin_sigma, cos_sigma)
        sin_alpha = cos_u1 * cos_u2 * sin_lam / sin_sigma
        cos_sq_alpha = 1 - sin_alpha**2
        # Both points on the equator
        cos_2sigma_m = cos_sigma - 2 * sin_u1 * sin_u2 / cos_sq_alpha if cos_sq_alpha != 0 else 0.0
        c = WGS84_F / 16 * cos_sq_alpha * (4 + WGS84_F * (4 - 3 * cos_sq_alpha))
        lam_prev = lam
        lam = lon_diff + (1 - c) * WGS84_F * sin_alpha * (
            sigma + c * sin_sigma * (cos_2sigma_m + c * cos_sigma * (-1 + 2 * cos_2sigma_m**2))
        )
        if abs(lam - lam_prev) < CONVERGENCE_THRESHOLD:
            break
    else:
        raise VincentyConvergenceError(f"No convergence between {a} and {b}")

    u_sq = cos_sq_alpha * (WGS84_A**2 - WGS84_B**2) / WGS84_B**2
    big_a = 1 + u_sq / 16384 * (4096 + u_sq * (-768 + u_sq * (320 - 175 * u_sq)))
    big_b = u_sq / 1024 * (256 + u_sq * (-128 + u_sq * (74 - 47 * u_sq)))
    delta_sigma = big_b * sin_sigma * (
        cos_2sigma_m
        + big_b
        / 4
        * (
            cos_sigma * (-1 + 2 * cos_2sigma_m**2)
            - big_b / 6 * cos_2sigma_m * (-3 + 4 * sin_sigma**2) * (-3 + 4 * cos_2sigma_m**2)
        )
    )
    return WGS84_B * big_a * (sigma - delta_sigma)
