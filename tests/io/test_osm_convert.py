from entry_scan.domain.entities.geography import Node
from entry_scan.io.osm_convert import IdSequence, convert_existing_osm, prepare_detection_input


def _existing():
    return {
        "ways": [
            {
                "id": 10,
                "tags": {"highway": "residential"},
                "nodes": [{"lon": 0, "lat": 0}, {"lon": 1, "lat": 1}],
            },
            {"nodes": [{"lon": 1, "lat": 1}, {"lon": 2, "lat": 1}]},
        ]
    }


def test_convert_builds_content_ids():
    nodes, ways = convert_existing_osm(_existing(), merge_coincident=False)
    assert [n.id for n in nodes] == ["10-0", "10-1", "way-0-0", "way-0-1"]
    assert ways[0].node_ids == ("10-0", "10-1")
    assert ways[0].tags == {"highway": "residential"}
    assert ways[1].id == "way-0"


def test_unmerged_conversion_keeps_every_vertex():
    data = {
        "ways": [
            {"id": "a", "nodes": [{"lon": 0, "lat": 0}, {"lon": 1, "lat": 0}, {"lon": 2, "lat": 0}]},
            {"id": "b", "nodes": [{"lon": 2, "lat": 0}, {"lon": 3, "lat": 0}, {"lon": 0, "lat": 0}]},
        ]
    }
    assert len(convert_existing_osm(data, merge_coincident=False)[0]) == 6
    assert len(convert_existing_osm(data)[0]) == 4


def test_convert_merges_shared_vertices():
    nodes, ways = convert_existing_osm(_existing())
    assert [n.id for n in nodes] == ["10-0", "10-1", "way-0-1"]
    assert ways[1].node_ids == ("10-1", "way-0-1")


def test_id_sequence_is_per_call_or_explicit():
    a = convert_existing_osm(_existing())[1][1].id
    b = convert_existing_osm(_existing())[1][1].id
    assert a == b == "way-0"

    seq = IdSequence(prefix="anon-")
    convert_existing_osm(_existing(), seq)
    _, ways = convert_existing_osm(_existing(), seq)
    assert ways[1].id == "anon-1"


def test_node_references_truncate_way():
    data = {"ways": [{"id": "w", "nodes": [{"lon": 0, "lat": 0}, {"lon": 1, "lat": 0}, 17, {"lon": 2, "lat": 0}]}]}
    nodes, ways = convert_existing_osm(data)
    assert len(nodes) == 2
    assert ways[0].node_ids == ("w-0", "w-1")
    assert convert_existing_osm({"ways": [{"id": "r", "nodes": [5, 6]}]}) == ([], [])


def test_already_converted_data_passes_through():
    data = {"nodes": [{"id": "1", "lon": 0, "lat": 0}], "ways": [{"id": "w", "node_ids": ["1"]}]}
    nodes, ways = convert_existing_osm(data)
    assert nodes == [Node("1", 0.0, 0.0)]
    assert ways[0].node_ids == ("1",)


def test_prepare_detection_input(small_square):
    data = {"nodes": [{"id": "1", "lon": 0, "lat": 0}], "ways": [{"id": "w", "node_ids": ["1"]}]}
    inp = prepare_detection_input(small_square, data, 50)
    assert inp is not None
    assert inp.outer_buffer_m == 50
    assert inp.search_radius_m == 100
    assert inp.polygon[0] == inp.polygon[-1]

    assert prepare_detection_input(small_square, data).outer_buffer_m == 30


def test_prepare_converts_existing_shape(small_square):
    inp = prepare_detection_input(small_square, _existing())
    assert inp is not None
    assert len(inp.nodes) == 3 and len(inp.ways) == 2


def test_prepare_returns_none_when_data_missing(small_square):
    assert prepare_detection_input(None, {"nodes": [], "ways": []}) is None
    assert prepare_detection_input(small_square, None) is None
    assert prepare_detection_input(small_square, {"nodes": [], "ways": []}) is None
    assert prepare_detection_input(small_square, {"ways": []}) is None
