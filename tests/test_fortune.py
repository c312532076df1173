"""Tests for the sweep-line Voronoi engine."""

import numpy as np
import pytest
from py_fortune.core.fortune import FortuneSweep, compute_voronoi, to_sites
from py_fortune.core.geometry import BoundingBox, Cell, Site, VoronoiError

BBOX = BoundingBox(0, 400, 0, 400)


def assert_valid_diagram(diagram, bbox, n_cells):
    """Every cell closed, every edge inside the box, areas tiling the box."""
    assert len(diagram.cells) == n_cells
    for i, cell in enumerate(diagram.cells):
        assert cell.site.id == i
        assert cell.is_closed(), f"cell {i} is not closed"

    tol = 1e-6
    for edge in diagram.edges:
        assert edge.is_complete
        for v in (edge.va, edge.vb):
            assert bbox.xl - tol <= v.x <= bbox.xr + tol
            assert bbox.yt - tol <= v.y <= bbox.yb + tol

    assert diagram.cell_areas().sum() == pytest.approx(bbox.area, rel=1e-6)


class TestToSites:
    """Test site input conversion."""

    def test_pairs_and_sites(self):
        existing = Site(1, 2)
        sites = to_sites([(3, 4), existing])
        assert sites[0].as_tuple() == (3.0, 4.0)
        assert sites[1] is existing

    def test_array(self):
        sites = to_sites(np.array([[1.0, 2.0], [3.0, 4.0]]))
        assert [s.as_tuple() for s in sites] == [(1.0, 2.0), (3.0, 4.0)]

    def test_bad_array_shape(self):
        with pytest.raises(ValueError):
            to_sites(np.array([1.0, 2.0, 3.0]))


class TestSmallDiagrams:
    """Hand-checked configurations."""

    def test_no_sites(self):
        diagram = compute_voronoi([], BBOX)
        assert diagram.cells == []
        assert diagram.edges == []

    def test_single_site_is_whole_box(self):
        diagram = compute_voronoi([(100, 100)], BBOX)

        assert len(diagram.cells) == 1
        cell = diagram.cells[0]
        assert set(cell.polygon()) == {(0, 0), (0, 400), (400, 400), (400, 0)}
        assert cell.is_closed()
        assert len(diagram.edges) == 4
        assert all(edge.is_border for edge in diagram.edges)

    def test_two_sites(self):
        diagram = compute_voronoi([(100, 200), (300, 200)], BBOX)

        assert_valid_diagram(diagram, BBOX, 2)
        inner = [edge for edge in diagram.edges if not edge.is_border]
        assert len(inner) == 1
        assert {inner[0].va, inner[0].vb} == {(200, 0), (200, 400)}
        np.testing.assert_allclose(diagram.cell_areas(), [80000, 80000])
        assert diagram.cell_neighbors() == [[1], [0]]

    def test_three_sites_meet_at_circumcenter(self):
        sites = [Site(100, 100), Site(300, 100), Site(200, 300)]
        diagram = compute_voronoi(sites, BBOX)

        assert_valid_diagram(diagram, BBOX, 3)
        assert [s.id for s in sites] == [0, 1, 2]

        inner = [edge for edge in diagram.edges if not edge.is_border]
        assert len(inner) == 3
        for edge in inner:
            assert any(v.x == pytest.approx(200) and v.y == pytest.approx(175)
                       for v in (edge.va, edge.vb))

        np.testing.assert_allclose(diagram.cell_areas(), [45000, 45000, 70000])
        assert diagram.cell_neighbors() == [[1, 2], [0, 2], [0, 1]]

    def test_sites_outside_box(self):
        diagram = compute_voronoi([(100, 200), (300, 200), (900, 200)], BBOX)

        assert len(diagram.cells) == 3
        # The far site's cell lies beyond the box.
        assert diagram.cells[2].halfedges == []
        assert diagram.cell_areas()[:2].sum() == pytest.approx(BBOX.area)

    def test_site_ids_follow_sweep_order(self):
        sites = [Site(200, 300), Site(300, 100), Site(100, 100)]
        diagram = compute_voronoi(sites, BBOX)

        assert [s.id for s in sites] == [2, 1, 0]
        assert diagram.cells[0].site is sites[2]

    def test_payload_kept(self):
        site = Site(10, 10, data={"name": "a"})
        diagram = compute_voronoi([site, Site(300, 300)], BBOX)
        assert diagram.cells[site.id].site.data == {"name": "a"}


class TestDuplicateSites:
    """Test duplicate handling."""

    def test_identical_sites_produce_one_cell(self):
        first, second = Site(50, 50), Site(50, 50)
        diagram = compute_voronoi([first, second], BBOX)

        assert len(diagram.cells) == 1
        ids = sorted(s.id for s in (first, second) if s.id is not None)
        assert ids == [0]
        assert diagram.cells[0].area() == pytest.approx(BBOX.area)

    def test_duplicates_among_others(self):
        points = [(100, 100), (300, 100), (100, 100), (200, 300), (200, 300)]
        diagram = compute_voronoi(points, BBOX)

        assert_valid_diagram(diagram, BBOX, 3)
        assert sum(1 for s in diagram.sites if s.id is None) == 2


class TestRandomDiagrams:
    """Property checks over random site sets."""

    @pytest.mark.parametrize("n_sites, seed", [(5, 0), (20, 1), (100, 2), (500, 3), (2000, 4)])
    def test_random_sites(self, n_sites, seed):
        rng = np.random.default_rng(seed)
        points = rng.uniform(0, 400, size=(n_sites, 2))
        diagram = compute_voronoi(points, BBOX)

        assert_valid_diagram(diagram, BBOX, n_sites)

    def test_site_lies_in_own_cell(self):
        rng = np.random.default_rng(5)
        points = rng.uniform(0, 400, size=(50, 2))
        diagram = compute_voronoi(points, BBOX)

        for cell in diagram.cells:
            polygon = np.asarray(cell.polygon())
            # Every polygon vertex is at least as close to its own site as to any other.
            for vx, vy in polygon:
                own = np.hypot(vx - cell.site.x, vy - cell.site.y)
                others = np.hypot(points[:, 0] - vx, points[:, 1] - vy)
                assert own <= others.min() + 1e-6

    def test_neighbors_are_symmetric(self):
        rng = np.random.default_rng(6)
        diagram = compute_voronoi(rng.uniform(0, 400, size=(200, 2)), BBOX)
        neighbors = diagram.cell_neighbors()

        for i, ids in enumerate(neighbors):
            assert i not in ids
            for j in ids:
                assert i in neighbors[j]

    def test_matches_qhull_vertices(self):
        scipy_spatial = pytest.importorskip("scipy.spatial")
        rng = np.random.default_rng(7)
        points = rng.uniform(0, 400, size=(300, 2))

        diagram = compute_voronoi(points, BBOX)
        ours = diagram.vertices()
        reference = scipy_spatial.Voronoi(points).vertices
        margin = 1e-3
        inside = reference[
            (reference[:, 0] > margin) & (reference[:, 0] < 400 - margin)
            & (reference[:, 1] > margin) & (reference[:, 1] < 400 - margin)
        ]

        assert len(inside) > 0
        for vx, vy in inside:
            distances = np.hypot(ours[:, 0] - vx, ours[:, 1] - vy)
            assert distances.min() < 1e-5

    def test_deterministic(self):
        rng = np.random.default_rng(8)
        points = rng.uniform(0, 400, size=(300, 2))

        first = compute_voronoi(points, BBOX)
        second = compute_voronoi(points, BBOX)

        np.testing.assert_array_equal(first.vertices(), second.vertices())
        assert [c.polygon() for c in first.cells] == [c.polygon() for c in second.cells]

    def test_non_square_box(self):
        bbox = BoundingBox(-50, 150, 10, 60)
        rng = np.random.default_rng(9)
        points = np.column_stack([rng.uniform(-50, 150, 80), rng.uniform(10, 60, 80)])

        assert_valid_diagram(compute_voronoi(points, bbox), bbox, 80)


class TestEngine:
    """Test engine state handling."""

    def test_reuse_gives_same_result(self):
        rng = np.random.default_rng(10)
        a = rng.uniform(0, 400, size=(100, 2))
        b = rng.uniform(0, 400, size=(60, 2))
        engine = FortuneSweep()

        first = engine.compute(a, BBOX)
        engine.compute(b, BBOX)
        again = engine.compute(a, BBOX)

        np.testing.assert_array_equal(first.vertices(), again.vertices())
        assert len(again.cells) == 100

    def test_trees_drained_after_compute(self):
        engine = FortuneSweep()
        engine.compute(np.random.default_rng(11).uniform(0, 400, size=(50, 2)), BBOX)

        assert engine.first_circle_event is None
        assert not engine.circle_events

    def test_invalid_bbox(self):
        with pytest.raises(ValueError):
            compute_voronoi([(1, 1)], BoundingBox(10, 0, 0, 10))

    def test_exec_time_recorded(self):
        diagram = compute_voronoi([(1, 1), (2, 2)], BBOX)
        assert diagram.exec_time >= 0

    def test_right_arc_without_left_arc_is_fatal(self):
        engine = FortuneSweep()
        first = Site(100, 100)
        first.id = 0
        engine.cells = [Cell(first)]
        engine.add_beachsection(first)

        # A second arc at the exact same spot lands on the left edge of the
        # first one, where no left arc exists.
        with pytest.raises(VoronoiError):
            engine.add_beachsection(Site(100, 100))

    def test_break_points(self):
        engine = FortuneSweep()
        for i, point in enumerate([(100, 100), (300, 100)]):
            site = Site(*point)
            site.id = i
            engine.cells.append(Cell(site))
            engine.add_beachsection(site)

        left, right = list(engine.beachline)
        # Two foci at the same height: the breakpoint is midway.
        assert engine.left_break_point(right, 200) == pytest.approx(200)
        assert engine.right_break_point(left, 200) == pytest.approx(200)
        assert engine.left_break_point(left, 200) < -1e29
        assert engine.right_break_point(right, 200) > 1e29
