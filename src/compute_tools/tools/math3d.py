"""3D geometry and quaternion tools backed by numpy."""
import math
from typing import List, Literal, Optional

import numpy as np
from pydantic import Field

from compute_tools.common.errors import DomainError, InvalidInputError
from compute_tools.common.models import Quaternion, ToolInput, ToolOutput, Vector3D
from compute_tools.tools.base import tool

EPSILON = 1e-10
# Above this |dot| the quaternions are close enough for a normalized lerp
SLERP_LERP_THRESHOLD = 0.9995

ORIGIN = Vector3D(x=0.0, y=0.0, z=0.0)
Z_AXIS = Vector3D(x=0.0, y=0.0, z=1.0)


class TwoVectorInput(ToolInput):
    vector1: Vector3D
    vector2: Vector3D


class SingleVectorInput(ToolInput):
    vector: Vector3D


class SphereInput(ToolInput):
    center: Vector3D = Field(default=ORIGIN, description="Sphere centre (does not affect volume)")
    radius: float = Field(..., description="Sphere radius")


class CylinderInput(ToolInput):
    base_center: Vector3D = Field(default=ORIGIN, description="Centre of the base disc")
    axis: Vector3D = Field(default=Z_AXIS, description="Axis direction")
    radius: float
    height: float


class TetrahedronInput(ToolInput):
    point_a: Vector3D
    point_b: Vector3D
    point_c: Vector3D
    point_d: Vector3D


class AxisAngleInput(ToolInput):
    axis: Vector3D = Field(..., description="Rotation axis, any non-zero length")
    angle: float = Field(..., description="Rotation angle in radians")


class Line3D(ToolInput):
    point: Vector3D = Field(..., description="Any point on the line")
    direction: Vector3D = Field(..., description="Direction vector, non-zero")


class Plane3D(ToolInput):
    point: Vector3D = Field(..., description="Any point on the plane")
    normal: Vector3D = Field(..., description="Normal vector, non-zero")


class PointLineInput(ToolInput):
    point: Vector3D
    line: Line3D


class PointPlaneInput(ToolInput):
    point: Vector3D
    plane: Plane3D


class LinePlaneInput(ToolInput):
    line: Line3D
    plane: Plane3D


class SphericalCoordinates(ToolInput):
    radius: float = Field(..., description="Distance from the origin, non-negative")
    theta: float = Field(..., description="Azimuthal angle around the z axis, in radians")
    phi: float = Field(..., description="Polar angle from the z axis, in radians")


class CartesianInput(ToolInput):
    coordinates: Vector3D


class SphericalInput(ToolInput):
    coordinates: SphericalCoordinates


class PyramidInput(ToolInput):
    base_points: List[Vector3D] = Field(..., description="Planar base polygon, in order")
    apex: Vector3D


class PointCloudInput(ToolInput):
    points: List[Vector3D]


class PlanePairInput(ToolInput):
    plane1: Plane3D
    plane2: Plane3D


class CylindricalCoordinates(ToolInput):
    radius: float = Field(..., description="Distance from the z axis, non-negative")
    theta: float = Field(..., description="Azimuthal angle around the z axis, in radians")
    z: float


class CylindricalInput(ToolInput):
    coordinates: CylindricalCoordinates


class QuaternionPairInput(ToolInput):
    q1: Quaternion
    q2: Quaternion


class QuaternionSlerpInput(ToolInput):
    q1: Quaternion
    q2: Quaternion
    t: float = Field(..., description="Interpolation parameter in [0, 1]")


class VectorValue(ToolOutput):
    x: float
    y: float
    z: float


class QuaternionValue(ToolOutput):
    x: float
    y: float
    z: float
    w: float
    magnitude: float


class DotProductResult(ToolOutput):
    dot_product: float
    angle_radians: float
    angle_degrees: float
    are_perpendicular: bool
    are_parallel: bool


class CrossProductResult(ToolOutput):
    cross_product: VectorValue
    magnitude: float
    area_parallelogram: float
    are_parallel: bool


class VectorMagnitudeResult(ToolOutput):
    magnitude: float
    unit_vector: VectorValue
    is_zero_vector: bool


class VectorAngleResult(ToolOutput):
    angle_radians: float
    angle_degrees: float
    cos_angle: float
    vector1_magnitude: float
    vector2_magnitude: float
    is_perpendicular: bool
    is_parallel: bool


class VolumeResult(ToolOutput):
    volume: float
    calculation_method: str


class TetrahedronResult(VolumeResult):
    points: List[VectorValue]


class PyramidResult(VolumeResult):
    base_area: float
    height: float


class BoundingBoxResult(ToolOutput):
    volume: float
    box_type: str
    min_point: VectorValue
    max_point: VectorValue
    dimensions: VectorValue


class PointLineDistanceResult(ToolOutput):
    distance: float
    closest_point_on_line: VectorValue
    parameter_on_line: float
    perpendicular_vector: VectorValue
    point_is_on_line: bool


class PointPlaneDistanceResult(ToolOutput):
    distance: float
    signed_distance: float = Field(..., description="Positive on the side the normal points to")
    closest_point_on_plane: VectorValue
    is_on_plane: bool
    side_of_plane: Literal["positive", "negative", "on_plane"]


class LinePlaneIntersectionResult(ToolOutput):
    intersection_type: Literal["point", "line_in_plane", "no_intersection"]
    intersects: bool
    intersection_point: Optional[VectorValue] = None
    parameter: Optional[float] = Field(default=None, description="Line parameter of the intersection")
    line_is_parallel: bool
    line_is_in_plane: bool
    distance_to_plane: float


class SphericalValue(ToolOutput):
    radius: float
    theta: float
    phi: float


class CartesianToSphericalResult(ToolOutput):
    original_cartesian: VectorValue
    spherical_coordinates: SphericalValue
    conversion_notes: str


class SphericalToCartesianResult(ToolOutput):
    original_spherical: SphericalValue
    cartesian_coordinates: VectorValue
    conversion_notes: str


class CylindricalValue(ToolOutput):
    radius: float
    theta: float
    z: float


class CartesianToCylindricalResult(ToolOutput):
    original_cartesian: VectorValue
    cylindrical_coordinates: CylindricalValue
    conversion_notes: str


class CylindricalToCartesianResult(ToolOutput):
    original_cylindrical: CylindricalValue
    cartesian_coordinates: VectorValue
    conversion_notes: str


class LineValue(ToolOutput):
    point: VectorValue
    direction: VectorValue


class PlanePlaneIntersectionResult(ToolOutput):
    intersection_type: Literal["line", "coincident", "parallel"]
    intersects: bool
    intersection_line: Optional[LineValue] = None
    are_parallel: bool
    are_coincident: bool
    angle_radians: float
    angle_degrees: float


def _array(v: Vector3D) -> np.ndarray:
    return np.array([v.x, v.y, v.z], dtype=float)


def _quat_array(q: Quaternion) -> np.ndarray:
    return np.array([q.x, q.y, q.z, q.w], dtype=float)


def _vector(values: np.ndarray) -> VectorValue:
    return VectorValue(x=float(values[0]), y=float(values[1]), z=float(values[2]))


def _quaternion(values: np.ndarray) -> QuaternionValue:
    return QuaternionValue(
        x=float(values[0]),
        y=float(values[1]),
        z=float(values[2]),
        w=float(values[3]),
        magnitude=float(np.linalg.norm(values)),
    )


def _angle_between(a: np.ndarray, b: np.ndarray) -> float:
    """Angle in radians; 0 when either vector has no length."""
    denominator = np.linalg.norm(a) * np.linalg.norm(b)
    if denominator == 0:
        return 0.0
    return float(np.arccos(np.clip(np.dot(a, b) / denominator, -1.0, 1.0)))


def _parallel(a: np.ndarray, b: np.ndarray) -> bool:
    return bool(np.linalg.norm(np.cross(a, b)) < EPSILON)


@tool("dot_product", TwoVectorInput)
def dot_product(data: TwoVectorInput) -> DotProductResult:
    """Dot product of two vectors, with the angle between them."""
    a, b = _array(data.vector1), _array(data.vector2)
    dot = float(np.dot(a, b))
    angle = _angle_between(a, b)
    return DotProductResult(
        dot_product=dot,
        angle_radians=angle,
        angle_degrees=math.degrees(angle),
        are_perpendicular=abs(dot) < EPSILON,
        are_parallel=_parallel(a, b),
    )


@tool("cross_product", TwoVectorInput)
def cross_product(data: TwoVectorInput) -> CrossProductResult:
    """Cross product of two vectors; its magnitude is the spanned parallelogram's area."""
    a, b = _array(data.vector1), _array(data.vector2)
    cross = np.cross(a, b)
    magnitude = float(np.linalg.norm(cross))
    return CrossProductResult(
        cross_product=_vector(cross),
        magnitude=magnitude,
        area_parallelogram=magnitude,
        are_parallel=magnitude < EPSILON,
    )


@tool("vector_magnitude", SingleVectorInput)
def vector_magnitude(data: SingleVectorInput) -> VectorMagnitudeResult:
    """
    Length of a vector and its unit vector.

    A zero vector is flagged and its unit vector reported as (0, 0, 0).
    """
    v = _array(data.vector)
    magnitude = float(np.linalg.norm(v))
    is_zero = magnitude < EPSILON
    unit = np.zeros(3) if is_zero else v / magnitude
    return VectorMagnitudeResult(magnitude=magnitude, unit_vector=_vector(unit), is_zero_vector=is_zero)


@tool("vector_angle", TwoVectorInput)
def vector_angle(data: TwoVectorInput) -> VectorAngleResult:
    """
    Angle between two vectors.

    :raises DomainError: If either vector has zero length
    """
    a, b = _array(data.vector1), _array(data.vector2)
    norm_a, norm_b = float(np.linalg.norm(a)), float(np.linalg.norm(b))
    if norm_a < EPSILON or norm_b < EPSILON:
        raise DomainError("Cannot calculate angle with zero vector")

    cos_angle = float(np.clip(np.dot(a, b) / (norm_a * norm_b), -1.0, 1.0))
    angle = math.acos(cos_angle)
    return VectorAngleResult(
        angle_radians=angle,
        angle_degrees=math.degrees(angle),
        cos_angle=cos_angle,
        vector1_magnitude=norm_a,
        vector2_magnitude=norm_b,
        is_perpendicular=abs(cos_angle) < EPSILON,
        is_parallel=abs(abs(cos_angle) - 1.0) < EPSILON,
    )


@tool("sphere_volume", SphereInput)
def sphere_volume(data: SphereInput) -> VolumeResult:
    """
    Volume of a sphere.

    :raises InvalidInputError: If the radius is negative
    """
    if data.radius < 0:
        raise InvalidInputError("Radius cannot be negative")
    return VolumeResult(
        volume=(4.0 / 3.0) * math.pi * data.radius * data.radius * data.radius,
        calculation_method="Sphere formula: (4/3)πr³",
    )


@tool("cylinder_volume", CylinderInput)
def cylinder_volume(data: CylinderInput) -> VolumeResult:
    """
    Volume of a right circular cylinder.

    :raises InvalidInputError: If the radius or height is negative
    """
    if data.radius < 0:
        raise InvalidInputError("Radius cannot be negative")
    if data.height < 0:
        raise InvalidInputError("Height cannot be negative")
    return VolumeResult(
        volume=math.pi * data.radius * data.radius * data.height,
        calculation_method="Cylinder formula: πr²h",
    )


@tool("tetrahedron_volume", TetrahedronInput)
def tetrahedron_volume(data: TetrahedronInput) -> TetrahedronResult:
    """Volume of a tetrahedron as |AB · (AC × AD)| / 6."""
    a = _array(data.point_a)
    ab = _array(data.point_b) - a
    ac = _array(data.point_c) - a
    ad = _array(data.point_d) - a
    triple = float(np.dot(ab, np.cross(ac, ad)))
    return TetrahedronResult(
        volume=abs(triple) / 6.0,
        calculation_method="Scalar triple product",
        points=[_vector(_array(p)) for p in (data.point_a, data.point_b, data.point_c, data.point_d)],
    )


@tool("pyramid_volume", PyramidInput)
def pyramid_volume(data: PyramidInput) -> PyramidResult:
    """
    Volume of a pyramid over a planar polygonal base, (1/3) * base area * height.

    The base normal is the Newell vector of the polygon, whose length is twice the
    enclosed area.

    :raises InvalidInputError: If the base has fewer than 3 points
    :raises DomainError: If the base points are collinear
    """
    if len(data.base_points) < 3:
        raise InvalidInputError("At least 3 points are required for the base")

    base = np.array([_array(p) for p in data.base_points])
    newell = np.sum(np.cross(base, np.roll(base, -1, axis=0)), axis=0)
    doubled_area = float(np.linalg.norm(newell))
    if doubled_area < EPSILON:
        raise DomainError("Points are collinear, cannot form a polygon")

    base_area = doubled_area / 2.0
    height = abs(float(np.dot(_array(data.apex) - base[0], newell / doubled_area)))
    return PyramidResult(
        volume=base_area * height / 3.0,
        calculation_method="Pyramid formula: (1/3) × base_area × height",
        base_area=base_area,
        height=height,
    )


@tool("aabb_volume", PointCloudInput)
def aabb_volume(data: PointCloudInput) -> BoundingBoxResult:
    """
    Volume of the axis-aligned bounding box of a point cloud.

    :raises InvalidInputError: If no point is given
    """
    if not data.points:
        raise InvalidInputError("At least one point is required")

    cloud = np.array([_array(p) for p in data.points])
    low, high = cloud.min(axis=0), cloud.max(axis=0)
    dimensions = high - low
    return BoundingBoxResult(
        volume=float(np.prod(dimensions)),
        box_type="AABB (Axis-Aligned Bounding Box)",
        min_point=_vector(low),
        max_point=_vector(high),
        dimensions=_vector(dimensions),
    )


def _direction(v: Vector3D, label: str) -> np.ndarray:
    values = _array(v)
    if math.hypot(*values) < EPSILON:
        raise DomainError(f"{label} vector cannot be zero")
    return values


@tool("point_line_distance", PointLineInput)
def point_line_distance(data: PointLineInput) -> PointLineDistanceResult:
    """
    Shortest distance from a point to an infinite line.

    :raises DomainError: If the line direction is the zero vector
    """
    direction = _direction(data.line.direction, "Line direction")
    origin = _array(data.line.point)
    point = _array(data.point)

    t = float(np.dot(point - origin, direction) / np.dot(direction, direction))
    closest = origin + t * direction
    perpendicular = point - closest
    distance = float(np.linalg.norm(perpendicular))
    return PointLineDistanceResult(
        distance=distance,
        closest_point_on_line=_vector(closest),
        parameter_on_line=t,
        perpendicular_vector=_vector(perpendicular),
        point_is_on_line=distance < EPSILON,
    )


@tool("point_plane_distance", PointPlaneInput)
def point_plane_distance(data: PointPlaneInput) -> PointPlaneDistanceResult:
    """
    Distance from a point to a plane, signed along the plane normal.

    :raises DomainError: If the plane normal is the zero vector
    """
    normal = _direction(data.plane.normal, "Plane normal")
    unit_normal = normal / math.hypot(*normal)
    point = _array(data.point)

    signed = float(np.dot(point - _array(data.plane.point), unit_normal))
    distance = abs(signed)
    on_plane = distance < EPSILON
    if on_plane:
        side = "on_plane"
    else:
        side = "positive" if signed > 0 else "negative"
    return PointPlaneDistanceResult(
        distance=distance,
        signed_distance=signed,
        closest_point_on_plane=_vector(point - signed * unit_normal),
        is_on_plane=on_plane,
        side_of_plane=side,
    )


@tool("line_plane_intersection", LinePlaneInput)
def line_plane_intersection(data: LinePlaneInput) -> LinePlaneIntersectionResult:
    """
    Where an infinite line meets a plane.

    A line parallel to the plane either lies in it or never meets it; neither case has a
    single intersection point.

    :raises DomainError: If the line direction or the plane normal is the zero vector
    """
    direction = _direction(data.line.direction, "Line direction")
    normal = _direction(data.plane.normal, "Plane normal")
    origin = _array(data.line.point)
    offset = _array(data.plane.point) - origin

    denominator = float(np.dot(direction, normal))
    if abs(denominator) < EPSILON:
        distance = abs(float(np.dot(offset, normal))) / math.hypot(*normal)
        in_plane = distance < EPSILON
        return LinePlaneIntersectionResult(
            intersection_type="line_in_plane" if in_plane else "no_intersection",
            intersects=in_plane,
            line_is_parallel=True,
            line_is_in_plane=in_plane,
            distance_to_plane=0.0 if in_plane else distance,
        )

    t = float(np.dot(offset, normal)) / denominator
    return LinePlaneIntersectionResult(
        intersection_type="point",
        intersects=True,
        intersection_point=_vector(origin + t * direction),
        parameter=t,
        line_is_parallel=False,
        line_is_in_plane=False,
        distance_to_plane=0.0,
    )


@tool("cartesian_to_spherical", CartesianInput)
def cartesian_to_spherical(data: CartesianInput) -> CartesianToSphericalResult:
    """Convert (x, y, z) to (radius, azimuth theta, polar angle phi); the origin maps to phi = 0."""
    c = data.coordinates
    radius = math.hypot(c.x, c.y, c.z)
    theta = math.atan2(c.y, c.x)
    phi = math.acos(max(-1.0, min(1.0, c.z / radius))) if radius > 0 else 0.0
    return CartesianToSphericalResult(
        original_cartesian=_vector(_array(c)),
        spherical_coordinates=SphericalValue(radius=radius, theta=theta, phi=phi),
        conversion_notes=(
            f"Converted from Cartesian ({c.x:.3f}, {c.y:.3f}, {c.z:.3f}) to Spherical "
            f"(r={radius:.3f}, θ={theta:.3f} rad, φ={phi:.3f} rad)"
        ),
    )


@tool("spherical_to_cartesian", SphericalInput)
def spherical_to_cartesian(data: SphericalInput) -> SphericalToCartesianResult:
    """
    Convert (radius, theta, phi) to (x, y, z).

    :raises InvalidInputError: If the radius is negative
    """
    s = data.coordinates
    if s.radius < 0:
        raise InvalidInputError("Radius must be non-negative")
    x = s.radius * math.sin(s.phi) * math.cos(s.theta)
    y = s.radius * math.sin(s.phi) * math.sin(s.theta)
    z = s.radius * math.cos(s.phi)
    return SphericalToCartesianResult(
        original_spherical=SphericalValue(radius=s.radius, theta=s.theta, phi=s.phi),
        cartesian_coordinates=VectorValue(x=x, y=y, z=z),
        conversion_notes=(
            f"Converted from Spherical (r={s.radius:.3f}, θ={s.theta:.3f} rad, φ={s.phi:.3f} rad) "
            f"to Cartesian ({x:.3f}, {y:.3f}, {z:.3f})"
        ),
    )


@tool("cartesian_to_cylindrical", CartesianInput)
def cartesian_to_cylindrical(data: CartesianInput) -> CartesianToCylindricalResult:
    """Convert (x, y, z) to (radius from the z axis, azimuth theta, z)."""
    c = data.coordinates
    radius = math.hypot(c.x, c.y)
    theta = math.atan2(c.y, c.x)
    return CartesianToCylindricalResult(
        original_cartesian=_vector(_array(c)),
        cylindrical_coordinates=CylindricalValue(radius=radius, theta=theta, z=c.z),
        conversion_notes=(
            f"Converted from Cartesian ({c.x:.3f}, {c.y:.3f}, {c.z:.3f}) to Cylindrical "
            f"(ρ={radius:.3f}, θ={theta:.3f} rad, z={c.z:.3f})"
        ),
    )


@tool("cylindrical_to_cartesian", CylindricalInput)
def cylindrical_to_cartesian(data: CylindricalInput) -> CylindricalToCartesianResult:
    """
    Convert (radius, theta, z) to (x, y, z).

    :raises InvalidInputError: If the radius is negative
    """
    c = data.coordinates
    if c.radius < 0:
        raise InvalidInputError("Radius must be non-negative")
    x = c.radius * math.cos(c.theta)
    y = c.radius * math.sin(c.theta)
    return CylindricalToCartesianResult(
        original_cylindrical=CylindricalValue(radius=c.radius, theta=c.theta, z=c.z),
        cartesian_coordinates=VectorValue(x=x, y=y, z=c.z),
        conversion_notes=(
            f"Converted from Cylindrical (ρ={c.radius:.3f}, θ={c.theta:.3f} rad, z={c.z:.3f}) "
            f"to Cartesian ({x:.3f}, {y:.3f}, {c.z:.3f})"
        ),
    )


@tool("plane_plane_intersection", PlanePairInput)
def plane_plane_intersection(data: PlanePairInput) -> PlanePlaneIntersectionResult:
    """
    Line along which two planes meet, and the angle between them.

    Parallel planes either coincide or never meet. The line's point is the one closest
    to the origin.

    :raises DomainError: If either normal is the zero vector
    """
    n1 = _direction(data.plane1.normal, "Plane normal")
    n2 = _direction(data.plane2.normal, "Plane normal")
    n1 = n1 / math.hypot(*n1)
    n2 = n2 / math.hypot(*n2)
    angle = math.acos(max(-1.0, min(1.0, float(np.dot(n1, n2)))))

    p1, p2 = _array(data.plane1.point), _array(data.plane2.point)
    direction = np.cross(n1, n2)
    squared = float(np.dot(direction, direction))
    if math.sqrt(squared) < EPSILON:
        coincident = abs(float(np.dot(p2 - p1, n1))) < EPSILON
        return PlanePlaneIntersectionResult(
            intersection_type="coincident" if coincident else "parallel",
            intersects=coincident,
            are_parallel=True,
            are_coincident=coincident,
            angle_radians=angle,
            angle_degrees=math.degrees(angle),
        )

    # Planes n . x = d; the point solves both and is orthogonal to the line
    d1, d2 = float(np.dot(n1, p1)), float(np.dot(n2, p2))
    point = (d1 * np.cross(n2, direction) + d2 * np.cross(direction, n1)) / squared
    return PlanePlaneIntersectionResult(
        intersection_type="line",
        intersects=True,
        intersection_line=LineValue(point=_vector(point), direction=_vector(direction)),
        are_parallel=False,
        are_coincident=False,
        angle_radians=angle,
        angle_degrees=math.degrees(angle),
    )


@tool("quaternion_from_axis_angle", AxisAngleInput)
def quaternion_from_axis_angle(data: AxisAngleInput) -> QuaternionValue:
    """
    Unit quaternion for a rotation of ``angle`` radians around ``axis``.

    :raises DomainError: If the axis has zero length
    """
    axis = _array(data.axis)
    # hypot scales internally, so very long axes do not overflow to inf
    norm = math.hypot(*axis)
    if norm < EPSILON:
        raise DomainError("Axis vector cannot be zero")
    half = data.angle / 2.0
    xyz = axis / norm * math.sin(half)
    return _quaternion(np.append(xyz, math.cos(half)))


def hamilton_product(q1: np.ndarray, q2: np.ndarray) -> np.ndarray:
    """Hamilton product of two (x, y, z, w) quaternions."""
    x1, y1, z1, w1 = q1
    x2, y2, z2, w2 = q2
    return np.array(
        [
            w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
            w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
            w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
            w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
        ]
    )


@tool("quaternion_multiply", QuaternionPairInput)
def quaternion_multiply(data: QuaternionPairInput) -> QuaternionValue:
    """Compose two rotations (q1 * q2)."""
    return _quaternion(hamilton_product(_quat_array(data.q1), _quat_array(data.q2)))


@tool("quaternion_slerp", QuaternionSlerpInput)
def quaternion_slerp(data: QuaternionSlerpInput) -> QuaternionValue:
    """
    Spherical linear interpolation from q1 (t=0) to q2 (t=1) along the shortest arc.

    :raises InvalidInputError: If t lies outside [0, 1]
    :raises DomainError: If the interpolated quaternion collapses to zero
    """
    t = data.t
    if not 0.0 <= t <= 1.0:
        raise InvalidInputError("Interpolation parameter t must be between 0 and 1")

    q1, q2 = _quat_array(data.q1), _quat_array(data.q2)
    dot = float(np.dot(q1, q2))
    if dot < 0.0:
        q2 = -q2
        dot = -dot

    if dot > SLERP_LERP_THRESHOLD:
        blended = q1 + t * (q2 - q1)
        norm = np.linalg.norm(blended)
        if norm < EPSILON:
            raise DomainError("Quaternion cannot be zero")
        return _quaternion(blended / norm)

    theta_0 = math.acos(min(dot, 1.0))
    sin_theta_0 = math.sin(theta_0)
    theta = theta_0 * t
    s0 = math.cos(theta) - dot * math.sin(theta) / sin_theta_0
    s1 = math.sin(theta) / sin_theta_0
    return _quaternion(s0 * q1 + s1 * q2)
