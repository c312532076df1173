"""Tests for the Delaunay triangulation."""

import math

import numpy as np
import pytest
from py_fortune.core.delaunay import Point, Triangle, triangulate
from py_fortune.core.geometry import Site, Vertex


class TestTriangle:
    """Test triangle predicates."""

    @pytest.fixture
    def right_triangle(self):
        return Triangle(Point(0, 0), Point(4, 0), Point(0, 4))

    def test_circumcircle(self, right_triangle):
        cx, cy, r = right_triangle.circumcircle()
        assert cx == pytest.approx(2)
        assert cy == pytest.approx(2)
        assert r == pytest.approx(math.sqrt(8))

    def test_point_in_circle(self, right_triangle):
        assert right_triangle.point_in_circle(Point(2, 2))
        assert right_triangle.point_in_circle(Point(4, 4))  # on the circle
        assert not right_triangle.point_in_circle(Point(5, 5))

    def test_point_in_triangle(self, right_triangle):
        assert right_triangle.point_in_triangle(Point(1, 1))
        assert not right_triangle.point_in_triangle(Point(3, 3))
        # Vertices and edges are not strictly inside.
        assert not right_triangle.point_in_triangle(Point(0, 0))
        assert not right_triangle.point_in_triangle(Point(2, 0))

    def test_bounding_rect(self, right_triangle):
        low, high = right_triangle.bounding_rect()
        assert (low.x, low.y) == (0, 0)
        assert (high.x, high.y) == (4, 4)

    def test_flat_triangle(self):
        flat = Triangle(Point(0, 1), Point(5, 1), Point(9, 1))
        assert not flat.is_valid()
        assert not flat.point_in_circle(Point(5, 1))
        assert flat.circumcircle()[2] == -1.0

    def test_collinear_triangle_has_no_circle(self):
        collinear = Triangle(Point(0, 0), Point(1, 1), Point(2, 2))
        assert collinear.is_valid()
        assert collinear.circumcircle()[2] == -1.0
        assert not collinear.point_in_circle(Point(1, 1))


class TestTriangulate:
    """Test Bowyer-Watson triangulation."""

    def test_too_few_points(self):
        with pytest.raises(ValueError):
            triangulate([(0, 0), (1, 1)])

    def test_single_triangle(self):
        triangles = triangulate([(0, 0), (10, 0), (5, 8)])
        assert len(triangles) == 1
        assert sorted(p.index for p in triangles[0].points) == [0, 1, 2]

    def test_square_with_center(self):
        points = [(0, 0), (10, 0), (10, 10), (0, 10), (5, 5)]
        triangles = triangulate(points)

        keys = {tuple(sorted(p.index for p in t.points)) for t in triangles}
        assert keys == {(0, 1, 4), (1, 2, 4), (2, 3, 4), (0, 3, 4)}

    def test_accepts_point_objects(self):
        points = [Point(0, 0), Point(10, 0), Point(5, 8)]
        assert len(triangulate(points)) == 1

    def test_accepts_sweep_sites_and_vertices(self):
        sites = [Site(0, 0), Site(10, 0), Site(5, 8), Site(5, 3)]
        from_sites = {tuple(sorted(p.index for p in t.points)) for t in triangulate(sites)}
        vertices = [Vertex(s.x, s.y) for s in sites]
        from_vertices = {tuple(sorted(p.index for p in t.points)) for t in triangulate(vertices)}

        assert from_sites == from_vertices == {(0, 1, 3), (1, 2, 3), (0, 2, 3)}

    def test_empty_circumcircles(self):
        rng = np.random.default_rng(30)
        points = rng.uniform(0, 100, size=(40, 2))
        triangles = triangulate(points)

        assert len(triangles) > 0
        for triangle in triangles:
            cx, cy, r = triangle.circumcircle()
            members = {p.index for p in triangle.points}
            for i, (x, y) in enumerate(points):
                if i in members:
                    continue
                assert math.hypot(x - cx, y - cy) > r - 1e-9

    def test_matches_qhull(self):
        scipy_spatial = pytest.importorskip("scipy.spatial")
        rng = np.random.default_rng(31)
        points = rng.uniform(0, 100, size=(50, 2))

        ours = {tuple(sorted(p.index for p in t.points)) for t in triangulate(points)}
        reference = {tuple(sorted(s)) for s in scipy_spatial.Delaunay(points).simplices.tolist()}

        # Hull triangles may be lost to the super-triangle; interior ones match.
        assert ours <= reference
        assert len(ours) >= len(reference) * 0.9
