from __future__ import annotations

import dataclasses

import pytest
from shapely.geometry import LineString, MultiLineString, MultiPolygon, Polygon

from geoprimer.errors import DimensionMismatch, InvalidCrs, InvalidGeometry, MalformedInput
from geoprimer.models import Extent, GeometryKind
from geoprimer.vector import (
    VectorLayer,
    close_ring,
    from_table,
    lines,
    make_vector,
    points,
    polygons,
)

WGS84 = "+proj=longlat +datum=WGS84"


def test_points_with_crs_and_ids() -> None:
    layer = points([-116.8, -114.2], [41.3, 42.9], crs=WGS84)
    layer["ID"] = [1, 2]

    assert len(layer) == 2
    assert layer.kind is GeometryKind.POINT
    assert layer.attribute("ID") == [1, 2]
    assert layer.crs == WGS84
    assert layer.parts(1) == [[(-114.2, 42.9)]]


def test_polygon_ring_is_closed() -> None:
    layer = polygons([-116.8, -114.2, -112.9], [41.3, 42.9, 42.4])

    assert layer.parts(0) == [
        [(-116.8, 41.3), (-114.2, 42.9), (-112.9, 42.4), (-116.8, 41.3)]
    ]
    assert isinstance(layer.geometries[0], Polygon)


@pytest.mark.parametrize(
    "ring",
    [
        [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0)],
        [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)],
        [(5.5, -2.0), (6.0, 3.0), (-4.0, 1.0), (0.0, 0.0), (2.0, 2.0)],
    ],
)
def test_open_rings_get_closed(ring) -> None:
    xs = [x for x, _ in ring]
    ys = [y for _, y in ring]

    stored = polygons(xs, ys).parts(0)[0]

    assert stored[0] == stored[-1]
    assert stored[:-1] == ring


def test_closed_ring_is_not_closed_twice() -> None:
    ring = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 0.0)]

    assert close_ring(ring) == ring
    assert polygons([x for x, _ in ring], [y for _, y in ring]).parts(0)[0] == ring


def test_set_attribute_length_mismatch_leaves_table_unchanged() -> None:
    layer = points([0.0, 1.0, 2.0], [0.0, 1.0, 2.0], attributes={"a": [1, 2, 3]})

    with pytest.raises(DimensionMismatch, match="2 values for 3 features"):
        layer.set_attribute("b", [1, 2])
    with pytest.raises(DimensionMismatch):
        layer["a"] = [9, 9, 9, 9]

    assert layer.attributes == {"a": [1, 2, 3]}


def test_set_attribute_overwrites_and_keeps_order() -> None:
    layer = points([0.0, 1.0], [0.0, 1.0])
    layer["precipval"] = [10.5, 20.5]
    layer["ID"] = [1, 2]
    layer["precipval"] = [0.0, 1.0]

    assert layer.field_names == ("precipval", "ID")
    assert layer["precipval"] == [0.0, 1.0]
    assert layer.records() == [{"precipval": 0.0, "ID": 1}, {"precipval": 1.0, "ID": 2}]


def test_attribute_unknown_name() -> None:
    layer = points([0.0], [0.0])

    with pytest.raises(KeyError):
        layer.attribute("missing")


def test_attribute_rejects_string_values() -> None:
    layer = points([0.0, 1.0], [0.0, 1.0])

    with pytest.raises(MalformedInput):
        layer.set_attribute("name", "ab")


def test_attribute_rejects_scalar_values() -> None:
    layer = points([0.0, 1.0], [0.0, 1.0])

    with pytest.raises(MalformedInput, match="must be a sequence"):
        layer.set_attribute("ID", 5)
    assert layer.field_names == ()


def test_attribute_table_cannot_be_edited_directly() -> None:
    layer = points([0.0, 1.0], [0.0, 1.0], attributes={"ID": [1, 2]})

    layer.attributes["ID"] = [1]
    layer.attributes["extra"] = [3]
    layer.attribute("ID").append(3)

    assert layer.field_names == ("ID",)
    assert layer.records() == [{"ID": 1}, {"ID": 2}]


def test_layer_fields_cannot_be_rebound() -> None:
    layer = points([0.0, 1.0], [0.0, 1.0])

    with pytest.raises(dataclasses.FrozenInstanceError):
        layer.geometries = ()
    with pytest.raises(dataclasses.FrozenInstanceError):
        layer.crs = "EPSG:4326"
    assert len(layer) == 2


def test_line_needs_two_points() -> None:
    with pytest.raises(InvalidGeometry, match="at least 2"):
        lines([0.0], [0.0])


def test_polygon_needs_three_distinct_points() -> None:
    with pytest.raises(InvalidGeometry, match="at least 3"):
        polygons([0.0, 1.0, 0.0], [0.0, 1.0, 0.0])
    with pytest.raises(InvalidGeometry):
        polygons([0.0, 1.0], [0.0, 1.0])


def test_line_part_too_short_in_multipart_feature() -> None:
    with pytest.raises(InvalidGeometry, match="Line feature 1"):
        lines([0.0, 1.0, 2.0], [0.0, 1.0, 2.0], parts=[1, 1, 2])


def test_empty_coordinates_rejected() -> None:
    with pytest.raises(InvalidGeometry, match="zero coordinates"):
        points([], [])


def test_non_finite_coordinates_rejected() -> None:
    with pytest.raises(InvalidGeometry, match="finite"):
        lines([0.0, float("nan")], [0.0, 1.0])


def test_coordinate_length_mismatch() -> None:
    with pytest.raises(MalformedInput, match="x has 3 values but y has 2"):
        lines([0.0, 1.0, 2.0], [0.0, 1.0])


def test_part_length_mismatch() -> None:
    with pytest.raises(MalformedInput, match="ids and parts"):
        polygons([0.0, 1.0, 1.0], [0.0, 0.0, 1.0], ids=[1, 1])
    with pytest.raises(MalformedInput):
        lines([0.0, 1.0], [0.0, 1.0], parts=[1, 1, 1])


def test_two_dimensional_column_rejected() -> None:
    with pytest.raises(MalformedInput, match="one-dimensional"):
        points([[0.0, 1.0]], [[0.0, 1.0]])


def test_from_table_lines_and_polygons(outline) -> None:
    lon, lat = outline
    table = [(1, 1, x, y) for x, y in zip(lon, lat)]

    lns = from_table(table, "lines", crs=WGS84)
    pols = from_table(table, GeometryKind.POLYGON, crs=WGS84)

    assert len(lns) == 1
    assert isinstance(lns.geometries[0], LineString)
    assert len(lns.parts(0)[0]) == 7
    assert len(pols.parts(0)[0]) == 8
    assert lns.crs == pols.crs == WGS84


def test_from_table_groups_features_and_parts() -> None:
    table = [
        (1, 1, 0.0, 0.0),
        (1, 1, 1.0, 0.0),
        (1, 2, 5.0, 5.0),
        (1, 2, 6.0, 5.0),
        (2, 1, 10.0, 10.0),
        (2, 1, 11.0, 10.0),
    ]

    layer = from_table(table, GeometryKind.LINE)

    assert len(layer) == 2
    assert isinstance(layer.geometries[0], MultiLineString)
    assert isinstance(layer.geometries[1], LineString)
    assert layer.parts(0) == [[(0.0, 0.0), (1.0, 0.0)], [(5.0, 5.0), (6.0, 5.0)]]


def test_multipart_polygon() -> None:
    layer = make_vector(
        GeometryKind.POLYGON,
        [0.0, 1.0, 1.0, 5.0, 6.0, 6.0],
        [0.0, 0.0, 1.0, 5.0, 5.0, 6.0],
        parts=[1, 1, 1, 2, 2, 2],
    )

    assert len(layer) == 1
    assert isinstance(layer.geometries[0], MultiPolygon)
    assert all(ring[0] == ring[-1] for ring in layer.parts(0))


def test_from_table_points_xy() -> None:
    layer = from_table([(0.0, 1.0), (2.0, 3.0)], "points")

    assert len(layer) == 2
    assert layer.extent == Extent(0.0, 2.0, 1.0, 3.0)


def test_from_table_bad_columns() -> None:
    with pytest.raises(MalformedInput, match="columns id, part, x, y"):
        from_table([(0.0, 1.0), (2.0, 3.0)], "lines")
    with pytest.raises(MalformedInput, match="two-dimensional"):
        from_table([0.0, 1.0], "points")


def test_from_table_ragged_or_non_numeric() -> None:
    with pytest.raises(MalformedInput, match="numeric grid"):
        from_table([(1, 1, 0.0, 0.0), (1, 1, 1.0)], "lines")
    with pytest.raises(MalformedInput, match="numeric grid"):
        from_table([(1, 1, "east", 0.0), (1, 1, 1.0, 1.0)], "lines")


def test_unknown_kind() -> None:
    with pytest.raises(MalformedInput, match="Unknown geometry kind"):
        make_vector("circles", [0.0], [0.0])


def test_geometry_kind_parse() -> None:
    assert GeometryKind.parse("polygons") is GeometryKind.POLYGON
    assert GeometryKind.parse("Line") is GeometryKind.LINE
    assert GeometryKind.parse(GeometryKind.POINT) is GeometryKind.POINT


def test_geom_table_lists_every_vertex() -> None:
    layer = polygons([0.0, 1.0, 1.0], [0.0, 0.0, 1.0])

    table = layer.geom()

    assert table.shape == (4, 4)
    assert table[:, 0].tolist() == [1, 1, 1, 1]
    assert table[0, 2:].tolist() == table[-1, 2:].tolist()


def test_extent(outline) -> None:
    lon, lat = outline
    layer = points(lon, lat)

    assert layer.extent == Extent(-117.7, -111.9, 37.6, 42.9)


def test_empty_layer_has_no_extent() -> None:
    layer = VectorLayer(kind=GeometryKind.POINT, geometries=())

    assert len(layer) == 0
    assert layer.extent is None
    assert layer.geom().shape == (0, 4)


def test_with_crs_relabels_only() -> None:
    layer = points([2.0, 3.0], [1.0, 1.5], attributes={"ID": [1, 2]})

    labelled = layer.with_crs("EPSG:3857")

    assert layer.crs is None
    assert labelled.crs == "EPSG:3857"
    assert labelled.geometries == layer.geometries
    assert labelled["ID"] == [1, 2]


def test_project_transforms_coordinates() -> None:
    layer = points([0.0, 2.0], [0.0, 0.0], crs="EPSG:4326", attributes={"ID": [1, 2]})

    projected = layer.project("EPSG:3857")

    assert projected.crs == "EPSG:3857"
    assert projected.parts(0)[0][0] == pytest.approx((0.0, 0.0), abs=1e-6)
    assert projected.parts(1)[0][0][0] == pytest.approx(222638.98, rel=1e-6)
    assert projected["ID"] == [1, 2]
    assert layer.parts(1) == [[(2.0, 0.0)]]


@pytest.mark.filterwarnings("error::DeprecationWarning")
def test_project_polygon_without_deprecated_calls() -> None:
    layer = polygons([0.0, 1.0, 1.0], [0.0, 0.0, 1.0], crs="EPSG:4326")

    projected = layer.project("EPSG:3857")

    ring = projected.parts(0)[0]
    assert len(ring) == 4
    assert ring[0] == ring[-1]
    assert ring[1][0] == pytest.approx(111319.49, rel=1e-6)
    assert projected.kind is GeometryKind.POLYGON


def test_project_requires_source_crs() -> None:
    layer = points([0.0], [0.0])

    with pytest.raises(MalformedInput, match="without a source CRS"):
        layer.project("EPSG:3857")


def test_invalid_crs_rejected() -> None:
    with pytest.raises(InvalidCrs):
        points([0.0], [0.0], crs="not a crs")


def test_describe_lists_fields_and_crs() -> None:
    layer = points([-116.8, -114.2], [41.3, 42.9], crs=WGS84, attributes={"ID": [1, 2]})

    text = layer.describe()
    summary = layer.summary()

    assert "points" in text
    assert WGS84 in text
    assert "names       : ID" in text
    assert summary["dimensions"] == (2, 1)
    assert summary["extent"] == (-116.8, -114.2, 41.3, 42.9)
