"""Geospatial tools working on latitude/longitude pairs in decimal degrees."""
import math
from typing import List, Literal, Optional

from pydantic import Field

from compute_tools.common.errors import InvalidInputError
from compute_tools.common.models import Coordinate, Latitude, Longitude, ToolInput, ToolOutput
from compute_tools.tools.base import tool

EARTH_RADIUS_KM = 6371.0
EARTH_RADIUS_WGS84_M = 6378137.0
KM_TO_MILES = 0.621371
KM_TO_NAUTICAL_MILES = 0.539957
SQ_M_PER_SQ_MILE = 2_589_988.11
SQ_M_PER_ACRE = 4_046.86
BOUNDARY_EPSILON = 1e-10
# Metres per degree of arc at the equator
METERS_PER_DEGREE = 111_320.0
BUFFER_MIN_POINTS = 8
BUFFER_MAX_POINTS = 360

COMPASS_POINTS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)


class CoordinatePairInput(ToolInput):
    """Two coordinates given as flat fields."""

    lat1: Latitude
    lon1: Longitude
    lat2: Latitude
    lon2: Longitude


class PolygonInput(ToolInput):
    coordinates: List[Coordinate] = Field(..., description="Polygon vertices, in order")


class PointInPolygonInput(ToolInput):
    point: Coordinate = Field(..., description="Point to test")
    polygon: List[Coordinate] = Field(..., description="Polygon vertices, in order")


class DecimalDegreesInput(ToolInput):
    latitude: Latitude
    longitude: Longitude


class NamedCoordinate(Coordinate):
    id: Optional[str] = Field(default=None, description="Caller-supplied identifier, echoed back")


class ProximitySearchInput(ToolInput):
    query_point: NamedCoordinate
    candidate_points: List[NamedCoordinate]
    max_results: Optional[int] = Field(default=None, ge=0, description="Return at most this many points")
    max_distance_meters: Optional[float] = Field(default=None, ge=0, description="Drop points farther than this")


class ProximityZoneInput(ToolInput):
    center: NamedCoordinate
    radius_meters: float = Field(..., gt=0, description="Zone radius in metres")
    candidate_points: List[NamedCoordinate]


class CircularBufferInput(ToolInput):
    center: Coordinate
    radius_meters: float = Field(..., description="Buffer radius in metres, positive")
    num_points: int = Field(default=32, description="Vertex count, clamped to [8, 360]")


class PolygonSimplificationInput(ToolInput):
    polygon: List[Coordinate]
    tolerance_meters: float = Field(..., gt=0)
    algorithm: Literal["douglas_peucker", "visvalingam"] = Field(default="douglas_peucker")


class PointValue(ToolOutput):
    lat: float
    lon: float
    id: Optional[str] = None


class NearbyPoint(ToolOutput):
    point: PointValue
    distance_meters: float
    bearing_degrees: float


class ProximitySearchResult(ToolOutput):
    query_point: PointValue
    nearest_points: List[NearbyPoint]
    total_candidates: int
    results_returned: int


class ProximityZoneSummary(ToolOutput):
    total_points: int
    points_inside: int
    points_outside: int
    average_distance_inside: float
    closest_point_distance: float
    farthest_point_distance: float


class ProximityZoneResult(ToolOutput):
    center: PointValue
    radius_meters: float
    points_in_zone: List[NearbyPoint]
    points_outside_zone: List[NearbyPoint]
    summary: ProximityZoneSummary


class BufferResult(ToolOutput):
    buffer_polygon: List[PointValue]
    area_square_meters: float
    perimeter_meters: float
    algorithm_used: str


class PolygonSimplificationResult(ToolOutput):
    original_polygon: List[PointValue]
    simplified_polygon: List[PointValue]
    original_vertex_count: int
    simplified_vertex_count: int
    reduction_percentage: float
    algorithm_used: str
    tolerance_used_meters: float


class HaversineResult(ToolOutput):
    distance_km: float
    distance_miles: float
    distance_nautical_miles: float


class BearingResult(ToolOutput):
    bearing_degrees: float = Field(..., description="Initial bearing in [0, 360)")
    bearing_radians: float
    compass_direction: str = Field(..., description="16-point compass direction")


class PolygonAreaResult(ToolOutput):
    area_square_meters: float
    area_square_kilometers: float
    area_square_miles: float
    area_hectares: float
    area_acres: float


class PointInPolygonResult(ToolOutput):
    is_inside: bool
    on_boundary: bool
    algorithm_used: str


class DMSCoordinate(ToolOutput):
    degrees: int
    minutes: int
    seconds: float
    direction: str


class DMSResult(ToolOutput):
    latitude: DMSCoordinate
    longitude: DMSCoordinate


def central_angle(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Angle in radians subtended at the Earth's centre (haversine formula)."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # Rounding can push a a hair past 1
    a = min(1.0, a)
    return 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres on a spherical Earth."""
    return EARTH_RADIUS_KM * central_angle(lat1, lon1, lat2, lon2)


def haversine_m(start: Coordinate, end: Coordinate) -> float:
    """Great-circle distance in metres on the WGS84 equatorial sphere."""
    return EARTH_RADIUS_WGS84_M * central_angle(start.lat, start.lon, end.lat, end.lon)


def initial_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Initial great-circle bearing in degrees within [0, 360)."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_lambda = math.radians(lon2 - lon1)
    y = math.sin(d_lambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(d_lambda)
    return (math.degrees(math.atan2(y, x)) + 360.0) % 360.0


def compass_direction(degrees: float) -> str:
    return COMPASS_POINTS[int((degrees + 11.25) / 22.5) % 16]


@tool("haversine_distance", CoordinatePairInput)
def haversine_distance(data: CoordinatePairInput) -> HaversineResult:
    """Great-circle distance between two coordinates in km, miles and nautical miles."""
    km = haversine_km(data.lat1, data.lon1, data.lat2, data.lon2)
    return HaversineResult(
        distance_km=km,
        distance_miles=km * KM_TO_MILES,
        distance_nautical_miles=km * KM_TO_NAUTICAL_MILES,
    )


@tool("calculate_bearing", CoordinatePairInput)
def calculate_bearing(data: CoordinatePairInput) -> BearingResult:
    """
    Initial bearing from the first coordinate towards the second.

    :return: Bearing in degrees within [0, 360), in radians, and as a compass point
    :rtype: BearingResult
    """
    degrees = initial_bearing(data.lat1, data.lon1, data.lat2, data.lon2)
    return BearingResult(
        bearing_degrees=degrees,
        bearing_radians=math.radians(degrees),
        compass_direction=compass_direction(degrees),
    )


@tool("polygon_area", PolygonInput)
def polygon_area(data: PolygonInput) -> PolygonAreaResult:
    """
    Area enclosed by a polygon on the WGS84 sphere (spherical excess approximation).

    :raises InvalidInputError: If fewer than 3 coordinates are given
    """
    points = data.coordinates
    if len(points) < 3:
        raise InvalidInputError("Polygon must have at least 3 coordinates")

    total = 0.0
    for current, following in zip(points, points[1:] + points[:1]):
        total += math.radians(following.lon - current.lon) * (
            2.0 + math.sin(math.radians(current.lat)) + math.sin(math.radians(following.lat))
        )
    area = abs(total) * EARTH_RADIUS_WGS84_M * EARTH_RADIUS_WGS84_M / 2.0

    return PolygonAreaResult(
        area_square_meters=area,
        area_square_kilometers=area / 1_000_000.0,
        area_square_miles=area / SQ_M_PER_SQ_MILE,
        area_hectares=area / 10_000.0,
        area_acres=area / SQ_M_PER_ACRE,
    )


def _on_segment(point: Coordinate, start: Coordinate, end: Coordinate) -> bool:
    cross = (point.lat - start.lat) * (end.lon - start.lon) - (point.lon - start.lon) * (end.lat - start.lat)
    if abs(cross) > BOUNDARY_EPSILON:
        return False
    dot = (point.lon - start.lon) * (end.lon - start.lon) + (point.lat - start.lat) * (end.lat - start.lat)
    squared_length = (end.lon - start.lon) ** 2 + (end.lat - start.lat) ** 2
    return 0.0 <= dot <= squared_length


def _ray_casting(point: Coordinate, polygon: List[Coordinate]) -> bool:
    # Longitude is x, latitude is y
    inside = False
    previous = polygon[-1]
    for current in polygon:
        if (current.lat > point.lat) != (previous.lat > point.lat):
            crossing = (previous.lon - current.lon) * (point.lat - current.lat) / (
                previous.lat - current.lat
            ) + current.lon
            if point.lon < crossing:
                inside = not inside
        previous = current
    return inside


@tool("point_in_polygon", PointInPolygonInput)
def point_in_polygon(data: PointInPolygonInput) -> PointInPolygonResult:
    """
    Whether a point lies inside a polygon, using ray casting.

    :raises InvalidInputError: If the polygon has fewer than 3 vertices
    """
    polygon = data.polygon
    if len(polygon) < 3:
        raise InvalidInputError("Polygon must have at least 3 vertices")

    on_boundary = any(
        _on_segment(data.point, start, end) for start, end in zip(polygon, polygon[1:] + polygon[:1])
    )
    return PointInPolygonResult(
        is_inside=_ray_casting(data.point, polygon),
        on_boundary=on_boundary,
        algorithm_used="ray_casting",
    )


def to_dms(decimal: float, is_latitude: bool) -> DMSCoordinate:
    """Split decimal degrees into whole degrees, whole minutes and seconds."""
    magnitude = abs(decimal)
    degrees = math.floor(magnitude)
    minutes_float = (magnitude - degrees) * 60.0
    minutes = math.floor(minutes_float)
    if is_latitude:
        direction = "N" if decimal >= 0 else "S"
    else:
        direction = "E" if decimal >= 0 else "W"
    return DMSCoordinate(
        degrees=degrees,
        minutes=minutes,
        seconds=(minutes_float - minutes) * 60.0,
        direction=direction,
    )


@tool("coordinate_to_dms", DecimalDegreesInput)
def coordinate_to_dms(data: DecimalDegreesInput) -> DMSResult:
    """Convert a decimal-degree coordinate to degrees, minutes and seconds."""
    return DMSResult(
        latitude=to_dms(data.latitude, is_latitude=True),
        longitude=to_dms(data.longitude, is_latitude=False),
    )


def _point_value(point: Coordinate) -> PointValue:
    return PointValue(lat=point.lat, lon=point.lon, id=getattr(point, "id", None))


def _nearby(origin: Coordinate, point: NamedCoordinate) -> NearbyPoint:
    return NearbyPoint(
        point=_point_value(point),
        distance_meters=haversine_m(origin, point),
        bearing_degrees=initial_bearing(origin.lat, origin.lon, point.lat, point.lon),
    )


@tool("proximity_search", ProximitySearchInput)
def proximity_search(data: ProximitySearchInput) -> ProximitySearchResult:
    """
    Candidates nearest to a query point, closest first.

    Distances use the WGS84 equatorial radius. Equal distances keep the candidates' order.

    :raises InvalidInputError: If no candidate is given
    """
    if not data.candidate_points:
        raise InvalidInputError("At least one candidate point must be provided")

    found = [_nearby(data.query_point, candidate) for candidate in data.candidate_points]
    if data.max_distance_meters is not None:
        found = [n for n in found if n.distance_meters <= data.max_distance_meters]
    found.sort(key=lambda n: n.distance_meters)
    if data.max_results is not None:
        found = found[: data.max_results]

    return ProximitySearchResult(
        query_point=_point_value(data.query_point),
        nearest_points=found,
        total_candidates=len(data.candidate_points),
        results_returned=len(found),
    )


@tool("proximity_zone", ProximityZoneInput)
def proximity_zone(data: ProximityZoneInput) -> ProximityZoneResult:
    """
    Split candidates into those within a radius of a centre and those outside it.

    :raises InvalidInputError: If no candidate is given
    """
    if not data.candidate_points:
        raise InvalidInputError("At least one candidate point must be provided")

    everything = [_nearby(data.center, candidate) for candidate in data.candidate_points]
    inside = [n for n in everything if n.distance_meters <= data.radius_meters]
    outside = [n for n in everything if n.distance_meters > data.radius_meters]
    distances = [n.distance_meters for n in everything]

    return ProximityZoneResult(
        center=_point_value(data.center),
        radius_meters=data.radius_meters,
        points_in_zone=inside,
        points_outside_zone=outside,
        summary=ProximityZoneSummary(
            total_points=len(everything),
            points_inside=len(inside),
            points_outside=len(outside),
            average_distance_inside=(
                sum(n.distance_meters for n in inside) / len(inside) if inside else 0.0
            ),
            closest_point_distance=min(distances),
            farthest_point_distance=max(distances),
        ),
    )


@tool("buffer_polygon", CircularBufferInput)
def buffer_polygon(data: CircularBufferInput) -> BufferResult:
    """
    Polygon approximating a circle of ``radius_meters`` around a centre.

    Vertices are geodesic destinations at evenly spaced bearings, starting due north.
    Area and perimeter are those of the planar circle.

    :raises InvalidInputError: If the radius is not positive
    """
    if data.radius_meters <= 0:
        raise InvalidInputError("Radius must be positive")

    num_points = max(BUFFER_MIN_POINTS, min(BUFFER_MAX_POINTS, data.num_points))
    phi = math.radians(data.center.lat)
    lam = math.radians(data.center.lon)
    delta = data.radius_meters / EARTH_RADIUS_WGS84_M

    vertices = []
    for i in range(num_points):
        bearing = 2.0 * math.pi * i / num_points
        dest_phi = math.asin(
            math.sin(phi) * math.cos(delta) + math.cos(phi) * math.sin(delta) * math.cos(bearing)
        )
        dest_lam = lam + math.atan2(
            math.sin(bearing) * math.sin(delta) * math.cos(phi),
            math.cos(delta) - math.sin(phi) * math.sin(dest_phi),
        )
        # Wrap across the antimeridian
        lon = (math.degrees(dest_lam) + 540.0) % 360.0 - 180.0
        vertices.append(PointValue(lat=math.degrees(dest_phi), lon=lon))

    return BufferResult(
        buffer_polygon=vertices,
        area_square_meters=math.pi * data.radius_meters * data.radius_meters,
        perimeter_meters=2.0 * math.pi * data.radius_meters,
        algorithm_used="circular_geodesic",
    )


def _offset_meters(point: Coordinate, start: Coordinate, end: Coordinate) -> float:
    """Distance from a point to the line through start and end, in degrees scaled to metres."""
    dx, dy = end.lon - start.lon, end.lat - start.lat
    length = math.hypot(dx, dy)
    if length == 0.0:
        return haversine_m(point, start)
    cross = dy * (point.lon - start.lon) - dx * (point.lat - start.lat)
    return abs(cross) / length * METERS_PER_DEGREE


def douglas_peucker(points: List[Coordinate], tolerance_meters: float) -> List[Coordinate]:
    """Keep the endpoints and every vertex farther than the tolerance from its chord."""
    if len(points) <= 2:
        return list(points)
    keep = [False] * len(points)
    keep[0] = keep[-1] = True
    spans = [(0, len(points) - 1)]
    while spans:
        first, last = spans.pop()
        farthest, index = 0.0, None
        for i in range(first + 1, last):
            distance = _offset_meters(points[i], points[first], points[last])
            if distance > farthest:
                farthest, index = distance, i
        if index is not None and farthest > tolerance_meters:
            keep[index] = True
            spans.extend([(first, index), (index, last)])
    return [p for p, kept in zip(points, keep) if kept]


def _triangle_area_m2(a: Coordinate, b: Coordinate, c: Coordinate) -> float:
    doubled = a.lon * (b.lat - c.lat) + b.lon * (c.lat - a.lat) + c.lon * (a.lat - b.lat)
    return abs(doubled) / 2.0 * METERS_PER_DEGREE * METERS_PER_DEGREE


def visvalingam(points: List[Coordinate], tolerance_meters: float) -> List[Coordinate]:
    """Repeatedly drop the vertex with the smallest effective area below tolerance squared."""
    result = list(points)
    threshold = tolerance_meters * tolerance_meters
    while len(result) > 3:
        areas = [_triangle_area_m2(result[i - 1], result[i], result[i + 1]) for i in range(1, len(result) - 1)]
        smallest = min(range(len(areas)), key=areas.__getitem__)
        if areas[smallest] > threshold:
            break
        del result[smallest + 1]
    return result


@tool("polygon_simplification", PolygonSimplificationInput)
def polygon_simplification(data: PolygonSimplificationInput) -> PolygonSimplificationResult:
    """
    Reduce the vertex count of a polygon within a tolerance in metres.

    Vertex offsets are measured in degrees and scaled by metres per equatorial degree.

    :raises InvalidInputError: If the polygon has fewer than 3 vertices
    """
    if len(data.polygon) < 3:
        raise InvalidInputError("Polygon must have at least 3 vertices")

    if data.algorithm == "douglas_peucker":
        simplified = douglas_peucker(data.polygon, data.tolerance_meters)
    else:
        simplified = visvalingam(data.polygon, data.tolerance_meters)

    original_count = len(data.polygon)
    return PolygonSimplificationResult(
        original_polygon=[_point_value(p) for p in data.polygon],
        simplified_polygon=[_point_value(p) for p in simplified],
        original_vertex_count=original_count,
        simplified_vertex_count=len(simplified),
        reduction_percentage=(original_count - len(simplified)) / original_count * 100.0,
        algorithm_used=data.algorithm,
        tolerance_used_meters=data.tolerance_meters,
    )
