import pytest

from labwc_client.window_mirror import WindowMirror, WindowRecord, coerce_coordinate, require_window_id


def test_record_from_payload_keeps_known_and_extra_fields():
    record = WindowRecord.from_payload(
        {"event": "mapped", "id": "7f3a", "x": 10, "y": 20.4, "title": "Term", "maximized": 1, "workspace": 2}
    )
    assert record.id == "7f3a"
    assert (record.x, record.y) == (10, 20)
    assert record.maximized is True
    assert record.width is None
    assert record.extra == {"workspace": 2}
    assert "event" not in record.to_dict()


def test_to_dict_omits_unreported_fields():
    record = WindowRecord(id=1, title="A")
    assert record.to_dict() == {"id": 1, "title": "A"}


def test_merge_only_touches_existing_windows():
    mirror = WindowMirror()
    assert mirror.merge("missing", {"x": 1}) is False
    assert len(mirror) == 0
    assert mirror.set_title("missing", "B") is False
    assert "missing" not in mirror


def test_snapshot_and_get_return_copies():
    mirror = WindowMirror()
    mirror.upsert(WindowRecord(id=1, title="A"))
    snapshot = mirror.snapshot()
    snapshot[0].title = "changed"
    fetched = mirror.get(1)
    fetched.extra["x"] = 1
    assert mirror.get(1).title == "A"
    assert mirror.get(1).extra == {}


def test_replace_all_drops_previous_windows():
    mirror = WindowMirror()
    mirror.upsert(WindowRecord(id=1))
    mirror.upsert(WindowRecord(id=2))
    mirror.replace_all([WindowRecord(id=3, title="C")])
    assert [record.id for record in mirror.snapshot()] == [3]


def test_remove_is_safe_twice():
    mirror = WindowMirror()
    mirror.upsert(WindowRecord(id=1))
    assert mirror.remove(1) is not None
    assert mirror.remove(1) is None


def test_cursor_defaults_to_origin():
    mirror = WindowMirror()
    assert mirror.cursor == (0, 0)
    mirror.set_cursor(5, 6)
    assert mirror.cursor == (5, 6)


def test_coerce_coordinate_rejects_out_of_range_values():
    assert coerce_coordinate(20.5) == 20
    with pytest.raises(ValueError):
        coerce_coordinate(float("inf"))
    with pytest.raises(ValueError):
        coerce_coordinate(float("nan"))
    with pytest.raises(TypeError):
        coerce_coordinate(True)


@pytest.mark.parametrize("bad_id", [[1], {"a": 1}, None, True, 1.5])
def test_window_ids_must_be_strings_or_integers(bad_id):
    with pytest.raises(TypeError):
        require_window_id({"id": bad_id})
    with pytest.raises(TypeError):
        WindowRecord.from_payload({"id": bad_id})


def test_window_ids_accept_hex_strings_and_integers():
    assert require_window_id({"id": "7f3a"}) == "7f3a"
    assert require_window_id({"id": 12}) == 12
