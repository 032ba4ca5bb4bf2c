"""Test the 3D vector, volume and quaternion tools."""
import math

import pytest

from compute_tools.common.errors import DomainError, InvalidInputError
from compute_tools.common.models import Quaternion, Vector3D
from compute_tools.tools import math3d
from compute_tools.tools.catalog import default_registry

X = Vector3D(x=1, y=0, z=0)
Y = Vector3D(x=0, y=1, z=0)
IDENTITY = Quaternion(x=0, y=0, z=0, w=1)


def _pair(a: Vector3D, b: Vector3D) -> math3d.TwoVectorInput:
    return math3d.TwoVectorInput(vector1=a, vector2=b)


def test_dot_product_perpendicular() -> None:
    """Orthogonal axes have a zero dot product and a right angle."""
    result = math3d.dot_product(_pair(X, Y))
    assert result.dot_product == 0.0
    assert result.angle_degrees == pytest.approx(90.0)
    assert result.are_perpendicular
    assert not result.are_parallel


def test_dot_product_values() -> None:
    """(1, 2, 3) . (4, 5, 6) = 32."""
    result = math3d.dot_product(_pair(Vector3D(x=1, y=2, z=3), Vector3D(x=4, y=5, z=6)))
    assert result.dot_product == 32.0


def test_cross_product_right_handed() -> None:
    """x cross y = z, spanning a unit square."""
    result = math3d.cross_product(_pair(X, Y))
    assert result.cross_product.model_dump() == {"x": 0.0, "y": 0.0, "z": 1.0}
    assert result.magnitude == 1.0
    assert result.area_parallelogram == 1.0
    assert not result.are_parallel


def test_cross_product_parallel() -> None:
    """Parallel vectors have a zero cross product."""
    result = math3d.cross_product(_pair(X, Vector3D(x=-3, y=0, z=0)))
    assert result.are_parallel
    assert result.magnitude == 0.0


def test_vector_magnitude() -> None:
    """|(3, 4, 0)| = 5 with unit vector (0.6, 0.8, 0)."""
    result = math3d.vector_magnitude(math3d.SingleVectorInput(vector=Vector3D(x=3, y=4, z=0)))
    assert result.magnitude == 5.0
    assert result.unit_vector.x == pytest.approx(0.6)
    assert result.unit_vector.y == pytest.approx(0.8)
    assert not result.is_zero_vector


def test_vector_magnitude_zero_vector() -> None:
    """The zero vector is flagged rather than rejected."""
    result = math3d.vector_magnitude(math3d.SingleVectorInput(vector=math3d.ORIGIN))
    assert result.is_zero_vector
    assert result.unit_vector.model_dump() == {"x": 0.0, "y": 0.0, "z": 0.0}


def test_vector_angle() -> None:
    """The angle between (1, 0, 0) and (1, 1, 0) is 45 degrees."""
    result = math3d.vector_angle(_pair(X, Vector3D(x=1, y=1, z=0)))
    assert result.angle_degrees == pytest.approx(45.0)
    assert result.vector2_magnitude == pytest.approx(math.sqrt(2))
    assert not result.is_perpendicular
    assert not result.is_parallel


def test_vector_angle_zero_vector() -> None:
    """An angle with the zero vector is undefined."""
    with pytest.raises(DomainError, match="Cannot calculate angle with zero vector"):
        math3d.vector_angle(_pair(X, math3d.ORIGIN))


def test_sphere_volume() -> None:
    """V = 4/3 pi r^3; the centre does not matter."""
    result = math3d.sphere_volume(
        math3d.SphereInput(center=Vector3D(x=5, y=5, z=5), radius=2)
    )
    assert result.volume == pytest.approx(4.0 / 3.0 * math.pi * 8)
    assert result.calculation_method.startswith("Sphere formula")


def test_sphere_volume_defaults_center() -> None:
    """The centre is optional on the wire."""
    response = default_registry().invoke("sphere_volume", {"radius": 1})
    assert response.payload()["volume"] == pytest.approx(4.0 / 3.0 * math.pi)


def test_sphere_negative_radius() -> None:
    """A negative radius is invalid input."""
    with pytest.raises(InvalidInputError, match="Radius cannot be negative"):
        math3d.sphere_volume(math3d.SphereInput(radius=-1))


def test_cylinder_volume() -> None:
    """V = pi r^2 h."""
    result = math3d.cylinder_volume(math3d.CylinderInput(radius=2, height=3))
    assert result.volume == pytest.approx(math.pi * 12)


@pytest.mark.parametrize("radius,height,message", [(-1, 1, "Radius"), (1, -1, "Height")])
def test_cylinder_negative_dimensions(radius: float, height: float, message: str) -> None:
    """Negative radius or height is invalid input."""
    with pytest.raises(InvalidInputError, match=message):
        math3d.cylinder_volume(math3d.CylinderInput(radius=radius, height=height))


def test_tetrahedron_volume_unit_corner() -> None:
    """The unit corner tetrahedron has volume 1/6."""
    result = math3d.tetrahedron_volume(
        math3d.TetrahedronInput(point_a=math3d.ORIGIN, point_b=X, point_c=Y, point_d=math3d.Z_AXIS)
    )
    assert result.volume == pytest.approx(1.0 / 6.0)
    assert result.calculation_method == "Scalar triple product"
    assert len(result.points) == 4


def test_tetrahedron_volume_degenerate() -> None:
    """Coplanar points enclose no volume."""
    result = math3d.tetrahedron_volume(
        math3d.TetrahedronInput(
            point_a=math3d.ORIGIN, point_b=X, point_c=Y, point_d=Vector3D(x=1, y=1, z=0)
        )
    )
    assert result.volume == 0.0


def test_quaternion_from_axis_angle() -> None:
    """A half turn about z is (0, 0, 1, 0); the axis need not be normalized."""
    result = math3d.quaternion_from_axis_angle(
        math3d.AxisAngleInput(axis=Vector3D(x=0, y=0, z=5), angle=math.pi)
    )
    assert result.z == pytest.approx(1.0)
    assert result.w == pytest.approx(0.0, abs=1e-12)
    assert result.magnitude == pytest.approx(1.0)


def test_quaternion_from_zero_axis() -> None:
    """A rotation needs an axis."""
    with pytest.raises(DomainError, match="Axis vector cannot be zero"):
        math3d.quaternion_from_axis_angle(math3d.AxisAngleInput(axis=math3d.ORIGIN, angle=1))


def test_quaternion_multiply_identity() -> None:
    """The identity leaves a quaternion unchanged."""
    q = Quaternion(x=0.5, y=0.5, z=0.5, w=0.5)
    result = math3d.quaternion_multiply(math3d.QuaternionPairInput(q1=IDENTITY, q2=q))
    assert (result.x, result.y, result.z, result.w) == (0.5, 0.5, 0.5, 0.5)


def test_quaternion_multiply_basis() -> None:
    """i * j = k."""
    i = Quaternion(x=1, y=0, z=0, w=0)
    j = Quaternion(x=0, y=1, z=0, w=0)
    result = math3d.quaternion_multiply(math3d.QuaternionPairInput(q1=i, q2=j))
    assert (result.x, result.y, result.z, result.w) == (0.0, 0.0, 1.0, 0.0)


@pytest.mark.parametrize("t", [0.0, 0.5, 1.0])
def test_quaternion_slerp_quarter_turn(t: float) -> None:
    """Interpolating to a quarter turn about z rotates by t * 90 degrees."""
    half = math.pi / 4
    target = Quaternion(x=0, y=0, z=math.sin(half), w=math.cos(half))
    result = math3d.quaternion_slerp(math3d.QuaternionSlerpInput(q1=IDENTITY, q2=target, t=t))
    assert result.z == pytest.approx(math.sin(half * t))
    assert result.w == pytest.approx(math.cos(half * t))
    assert result.magnitude == pytest.approx(1.0)


def test_quaternion_slerp_nearly_identical() -> None:
    """Very close quaternions fall back to a normalized lerp."""
    close = Quaternion(x=0, y=0, z=0.001, w=1)
    result = math3d.quaternion_slerp(math3d.QuaternionSlerpInput(q1=IDENTITY, q2=close, t=0.5))
    assert result.magnitude == pytest.approx(1.0)
    assert result.z == pytest.approx(0.0005, rel=1e-3)


def test_quaternion_slerp_bad_t() -> None:
    """t must lie in [0, 1]."""
    with pytest.raises(InvalidInputError, match="between 0 and 1"):
        math3d.quaternion_slerp(math3d.QuaternionSlerpInput(q1=IDENTITY, q2=IDENTITY, t=1.5))


@pytest.mark.parametrize(
    "axis", [Vector3D(x=1e200, y=1e200, z=0), Vector3D(x=-1e300, y=2e300, z=3e300), Vector3D(x=1e-9, y=0, z=0)]
)
def test_quaternion_from_extreme_axis_is_unit(axis: Vector3D) -> None:
    """Very long or very short axes still give a unit quaternion."""
    result = math3d.quaternion_from_axis_angle(math3d.AxisAngleInput(axis=axis, angle=1.0))
    assert abs(result.magnitude - 1.0) < 1e-9
    assert result.w == pytest.approx(math.cos(0.5))


def test_pyramid_volume_square_base() -> None:
    """A unit square base under an apex at height 3 has volume 1."""
    base = [Vector3D(x=0, y=0, z=0), X, Vector3D(x=1, y=1, z=0), Y]
    result = math3d.pyramid_volume(math3d.PyramidInput(base_points=base, apex=Vector3D(x=0.5, y=0.5, z=3)))
    assert result.base_area == pytest.approx(1.0)
    assert result.height == pytest.approx(3.0)
    assert result.volume == pytest.approx(1.0)


def test_pyramid_volume_collinear_base() -> None:
    """A base with no area is rejected."""
    base = [math3d.ORIGIN, X, Vector3D(x=2, y=0, z=0)]
    with pytest.raises(DomainError, match="collinear"):
        math3d.pyramid_volume(math3d.PyramidInput(base_points=base, apex=math3d.Z_AXIS))


def test_pyramid_volume_needs_three_base_points() -> None:
    """Two points do not make a base."""
    with pytest.raises(InvalidInputError, match="At least 3 points"):
        math3d.pyramid_volume(math3d.PyramidInput(base_points=[math3d.ORIGIN, X], apex=math3d.Z_AXIS))


def test_aabb_volume() -> None:
    """The bounding box of scattered points spans their extremes."""
    points = [Vector3D(x=1, y=-2, z=0), Vector3D(x=4, y=2, z=1), Vector3D(x=2, y=0, z=3)]
    result = math3d.aabb_volume(math3d.PointCloudInput(points=points))
    assert result.min_point.model_dump() == {"x": 1.0, "y": -2.0, "z": 0.0}
    assert result.max_point.model_dump() == {"x": 4.0, "y": 2.0, "z": 3.0}
    assert result.dimensions.model_dump() == {"x": 3.0, "y": 4.0, "z": 3.0}
    assert result.volume == 36.0


def test_aabb_volume_empty() -> None:
    """At least one point is needed."""
    response = default_registry().invoke("aabb_volume", {"points": []})
    assert response.is_error
    assert response.payload() == {"error": "At least one point is required"}


def test_point_line_distance() -> None:
    """(0, 3, 0) is 3 away from the x axis, closest at the origin."""
    line = math3d.Line3D(point=math3d.ORIGIN, direction=Vector3D(x=2, y=0, z=0))
    result = math3d.point_line_distance(math3d.PointLineInput(point=Vector3D(x=0, y=3, z=0), line=line))
    assert result.distance == 3.0
    assert result.parameter_on_line == 0.0
    assert result.perpendicular_vector.model_dump() == {"x": 0.0, "y": 3.0, "z": 0.0}
    assert not result.point_is_on_line


def test_point_line_distance_zero_direction() -> None:
    """A line needs a direction."""
    line = math3d.Line3D(point=math3d.ORIGIN, direction=math3d.ORIGIN)
    with pytest.raises(DomainError, match="Line direction vector cannot be zero"):
        math3d.point_line_distance(math3d.PointLineInput(point=X, line=line))


@pytest.mark.parametrize("z,signed,side", [(5, 5.0, "positive"), (-2, -2.0, "negative"), (0, 0.0, "on_plane")])
def test_point_plane_distance(z: float, signed: float, side: str) -> None:
    """Distance to the xy plane is |z|, signed along the normal."""
    plane = math3d.Plane3D(point=math3d.ORIGIN, normal=Vector3D(x=0, y=0, z=10))
    result = math3d.point_plane_distance(
        math3d.PointPlaneInput(point=Vector3D(x=1, y=1, z=z), plane=plane)
    )
    assert result.signed_distance == pytest.approx(signed)
    assert result.distance == pytest.approx(abs(signed))
    assert result.side_of_plane == side
    assert result.closest_point_on_plane.z == pytest.approx(0.0)


def test_line_plane_intersection_point() -> None:
    """A vertical line through (1, 2, 5) meets the xy plane at (1, 2, 0)."""
    line = math3d.Line3D(point=Vector3D(x=1, y=2, z=5), direction=Vector3D(x=0, y=0, z=-1))
    plane = math3d.Plane3D(point=math3d.ORIGIN, normal=math3d.Z_AXIS)
    result = math3d.line_plane_intersection(math3d.LinePlaneInput(line=line, plane=plane))
    assert result.intersection_type == "point"
    assert result.intersection_point.model_dump() == {"x": 1.0, "y": 2.0, "z": 0.0}
    assert result.parameter == 5.0


@pytest.mark.parametrize("z,kind,distance", [(0, "line_in_plane", 0.0), (4, "no_intersection", 4.0)])
def test_line_plane_intersection_parallel(z: float, kind: str, distance: float) -> None:
    """A line parallel to the plane lies in it or misses it."""
    line = math3d.Line3D(point=Vector3D(x=0, y=0, z=z), direction=X)
    plane = math3d.Plane3D(point=math3d.ORIGIN, normal=math3d.Z_AXIS)
    result = math3d.line_plane_intersection(math3d.LinePlaneInput(line=line, plane=plane))
    assert result.intersection_type == kind
    assert result.line_is_parallel
    assert result.intersection_point is None
    assert result.distance_to_plane == distance


def test_cartesian_to_spherical() -> None:
    """(0, 1, 0) lies at r = 1, theta = pi/2, phi = pi/2."""
    result = math3d.cartesian_to_spherical(math3d.CartesianInput(coordinates=Y))
    spherical = result.spherical_coordinates
    assert spherical.radius == 1.0
    assert spherical.theta == pytest.approx(math.pi / 2)
    assert spherical.phi == pytest.approx(math.pi / 2)
    assert result.conversion_notes.startswith("Converted from Cartesian")


def test_cartesian_to_spherical_origin() -> None:
    """The origin has zero radius and zero angles."""
    result = math3d.cartesian_to_spherical(math3d.CartesianInput(coordinates=math3d.ORIGIN))
    assert result.spherical_coordinates.model_dump() == {"radius": 0.0, "theta": 0.0, "phi": 0.0}


def test_spherical_to_cartesian() -> None:
    """r = 2 along the pole is (0, 0, 2)."""
    coordinates = math3d.SphericalCoordinates(radius=2, theta=1.0, phi=0)
    result = math3d.spherical_to_cartesian(math3d.SphericalInput(coordinates=coordinates))
    assert result.cartesian_coordinates.x == pytest.approx(0.0)
    assert result.cartesian_coordinates.z == 2.0


def test_spherical_to_cartesian_negative_radius() -> None:
    """A radius cannot be negative."""
    coordinates = math3d.SphericalCoordinates(radius=-1, theta=0, phi=0)
    with pytest.raises(InvalidInputError, match="Radius must be non-negative"):
        math3d.spherical_to_cartesian(math3d.SphericalInput(coordinates=coordinates))


def test_cylindrical_round_trip_values() -> None:
    """(3, 4, 7) sits 5 from the z axis."""
    result = math3d.cartesian_to_cylindrical(math3d.CartesianInput(coordinates=Vector3D(x=3, y=4, z=7)))
    cylindrical = result.cylindrical_coordinates
    assert cylindrical.radius == 5.0
    assert cylindrical.theta == pytest.approx(math.atan2(4, 3))
    assert cylindrical.z == 7.0

    back = math3d.cylindrical_to_cartesian(
        math3d.CylindricalInput(coordinates={"radius": 5, "theta": cylindrical.theta, "z": 7})
    )
    assert back.cartesian_coordinates.x == pytest.approx(3.0)
    assert back.cartesian_coordinates.y == pytest.approx(4.0)


def test_cylindrical_negative_radius() -> None:
    """A cylindrical radius cannot be negative."""
    with pytest.raises(InvalidInputError, match="Radius must be non-negative"):
        math3d.cylindrical_to_cartesian(math3d.CylindricalInput(coordinates={"radius": -1, "theta": 0, "z": 0}))


def test_plane_plane_intersection_line() -> None:
    """The planes x = 1 and y = 2 meet in a vertical line through (1, 2, 0)."""
    plane1 = math3d.Plane3D(point=Vector3D(x=1, y=5, z=5), normal=X)
    plane2 = math3d.Plane3D(point=Vector3D(x=-3, y=2, z=1), normal=Y)
    result = math3d.plane_plane_intersection(math3d.PlanePairInput(plane1=plane1, plane2=plane2))
    assert result.intersection_type == "line"
    assert result.angle_degrees == pytest.approx(90.0)
    line = result.intersection_line
    assert line.point.x == pytest.approx(1.0)
    assert line.point.y == pytest.approx(2.0)
    assert line.point.z == pytest.approx(0.0)
    assert line.direction.model_dump() == {"x": 0.0, "y": 0.0, "z": 1.0}


@pytest.mark.parametrize("z,kind", [(0, "coincident"), (3, "parallel")])
def test_plane_plane_intersection_parallel(z: float, kind: str) -> None:
    """Planes with parallel normals coincide or never meet."""
    plane1 = math3d.Plane3D(point=math3d.ORIGIN, normal=math3d.Z_AXIS)
    plane2 = math3d.Plane3D(point=Vector3D(x=4, y=4, z=z), normal=Vector3D(x=0, y=0, z=-2))
    result = math3d.plane_plane_intersection(math3d.PlanePairInput(plane1=plane1, plane2=plane2))
    assert result.intersection_type == kind
    assert result.are_parallel
    assert result.intersection_line is None
    assert result.angle_degrees == pytest.approx(180.0)
