"""Great-circle distance and geohash bucketing.

The directory is bucketed by geohash cell, so proximity lookups only need the
cell under a point plus its neighbours, followed by an exact distance filter.
"""
from math import atan2, cos, radians, sin, sqrt

EARTH_RADIUS_KM = 6371.0
EARTH_RADIUS_M = EARTH_RADIUS_KM * 1000

_BASE32 = "0123456789bcdefghjkmnpqrstuvwxyz"
_BASE32_INDEX = {char: index for index, char in enumerate(_BASE32)}


def haversine_distance_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in meters between two points given in decimal degrees."""
    phi1, lam1, phi2, lam2 = map(radians, [lat1, lng1, lat2, lng2])
    dphi = phi2 - phi1
    dlam = lam2 - lam1

    a = sin(dphi / 2) ** 2 + cos(phi1) * cos(phi2) * sin(dlam / 2) ** 2
    # Rounding can push `a` marginally outside [0, 1] near antipodes.
    a = min(max(a, 0.0), 1.0)
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_M * c


def haversine_distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    return haversine_distance_m(lat1, lng1, lat2, lng2) / 1000.0


def encode_geohash(lat: float, lng: float, precision: int) -> str:
    """Encode a coordinate as a base-32 geohash of `precision` characters."""
    if precision < 1:
        raise ValueError("precision must be at least 1")

    lat_range = [-90.0, 90.0]
    lng_range = [-180.0, 180.0]
    chars: list[str] = []
    bits = 0
    bit_count = 0
    even = True  # even bits refine longitude

    while len(chars) < precision:
        if even:
            mid = (lng_range[0] + lng_range[1]) / 2
            if lng >= mid:
                bits = (bits << 1) | 1
                lng_range[0] = mid
            else:
                bits <<= 1
                lng_range[1] = mid
        else:
            mid = (lat_range[0] + lat_range[1]) / 2
            if lat >= mid:
                bits = (bits << 1) | 1
                lat_range[0] = mid
            else:
                bits <<= 1
                lat_range[1] = mid
        even = not even
        bit_count += 1
        if bit_count == 5:
            chars.append(_BASE32[bits])
            bits = 0
            bit_count = 0

    return "".join(chars)


def decode_geohash_bounds(cell: str) -> tuple[float, float, float, float]:
    """Return (min_lat, max_lat, min_lng, max_lng) of a geohash cell."""
    lat_range = [-90.0, 90.0]
    lng_range = [-180.0, 180.0]
    even = True

    for char in cell.lower():
        try:
            value = _BASE32_INDEX[char]
        except KeyError:
            raise ValueError(f"Invalid geohash character: {char!r}") from None
        for shift in range(4, -1, -1):
            bit = (value >> shift) & 1
            target = lng_range if even else lat_range
            mid = (target[0] + target[1]) / 2
            if bit:
                target[0] = mid
            else:
                target[1] = mid
            even = not even

    return lat_range[0], lat_range[1], lng_range[0], lng_range[1]


def decode_geohash(cell: str) -> tuple[float, float]:
    """Centre (lat, lng) of a geohash cell."""
    min_lat, max_lat, min_lng, max_lng = decode_geohash_bounds(cell)
    return (min_lat + max_lat) / 2, (min_lng + max_lng) / 2


def geohash_neighbors(cell: str) -> list[str]:
    """The cells surrounding `cell` at the same precision, in N, NE, E, SE, S, SW, W, NW order.

    Longitude wraps at the antimeridian. Rows beyond a pole do not exist, so
    cells touching a pole have fewer neighbours.
    """
    min_lat, max_lat, min_lng, max_lng = decode_geohash_bounds(cell)
    height = max_lat - min_lat
    width = max_lng - min_lng
    center_lat = (min_lat + max_lat) / 2
    center_lng = (min_lng + max_lng) / 2
    precision = len(cell)

    offsets = [(1, 0), (1, 1), (0, 1), (-1, 1), (-1, 0), (-1, -1), (0, -1), (1, -1)]
    neighbors: list[str] = []
    for dlat, dlng in offsets:
        lat = center_lat + dlat * height
        if lat > 90.0 or lat < -90.0:
            continue
        lng = center_lng + dlng * width
        if lng >= 180.0:
            lng -= 360.0
        elif lng < -180.0:
            lng += 360.0
        neighbor = encode_geohash(lat, lng, precision)
        if neighbor != cell and neighbor not in neighbors:
            neighbors.append(neighbor)
    return neighbors


def cells_around(lat: float, lng: float, precision: int) -> list[str]:
    """The cell containing the point followed by its neighbours."""
    center = encode_geohash(lat, lng, precision)
    return [center, *geohash_neighbors(center)]
