from relctl.core.structured import as_obj_list, as_str_dict, get_bool, get_int, get_str, get_tables


def test_as_str_dict_rejects_non_string_keys() -> None:
    assert as_str_dict({"a": 1}) == {"a": 1}
    assert as_str_dict({1: "a"}) is None
    assert as_str_dict([1]) is None


def test_as_obj_list() -> None:
    assert as_obj_list([1, "a"]) == [1, "a"]
    assert as_obj_list({"a": 1}) is None


def test_get_str_strips_and_drops_empty() -> None:
    table: dict[str, object] = {"a": "  x ", "b": "   ", "c": 3}
    assert get_str(table, "a") == "x"
    assert get_str(table, "b") is None
    assert get_str(table, "c") is None
    assert get_str(table, "missing") is None


def test_get_int_rejects_bool() -> None:
    table: dict[str, object] = {"n": 3, "flag": True}
    assert get_int(table, "n") == 3
    assert get_int(table, "flag") is None


def test_get_bool() -> None:
    table: dict[str, object] = {"yes": True, "one": 1}
    assert get_bool(table, "yes") is True
    assert get_bool(table, "one") is None


def test_get_tables() -> None:
    assert get_tables({"p": [{"a": 1}, {"b": 2}]}, "p") == [{"a": 1}, {"b": 2}]
    assert get_tables({"p": [{"a": 1}, "x"]}, "p") is None
    assert get_tables({"p": "x"}, "p") is None
