"""
Unit tests for row materialization.
"""

import pickle

from httpjson.ingest.field_types import ArrayType, JsonType, StructField, StructType
from httpjson.ingest.row_parser import Row, RowParser, convert_value, parse_all
from httpjson.ingest.schema_inference import infer_schema


def nested(depth):
    return '{"a":' * depth + "1" + "}" * depth


def struct(**fields):
    return StructType(StructField(name, t, True) for name, t in fields.items())


class TestRow:
    """Tests for the Row tuple."""

    def test_compares_like_a_tuple(self):
        row = Row([1, "x"], ["a", "b"])
        assert row == (1, "x")
        assert len(row) == 2

    def test_access_by_name(self):
        row = Row([1, None], ["a", "b"])
        assert row.get("a") == 1
        assert row.get("b") is None
        assert row.get("missing", "dflt") == "dflt"
        assert row.names == ["a", "b"]

    def test_as_dict_recursive(self):
        inner = Row([2], ["x"])
        row = Row([inner, [Row([3], ["y"])]], ["n", "items"])

        assert row.as_dict() == {"n": {"x": 2}, "items": [{"y": 3}]}
        assert row.as_dict(recursive=False)["n"] is inner

    def test_repr(self):
        assert repr(Row([1, "x"], ["a", "b"])) == "Row(a=1, b='x')"

    def test_pickle_round_trip(self):
        row = Row([1.5, Row([True], ["f"])], ["a", "s"])
        restored = pickle.loads(pickle.dumps(row))

        assert restored == row
        assert restored.names == ["a", "s"]
        assert restored.as_dict() == {"a": 1.5, "s": {"f": True}}


class TestConvertValue:
    """Tests for value coercion."""

    def test_compatible_values(self):
        assert convert_value(True, JsonType.BOOLEAN) is True
        assert convert_value(7, JsonType.LONG) == 7
        assert convert_value("s", JsonType.STRING) == "s"

    def test_long_into_double_column(self):
        value = convert_value(1, JsonType.DOUBLE)
        assert value == 1.0
        assert isinstance(value, float)

    def test_none_stays_none(self):
        for t in (JsonType.LONG, JsonType.STRING, ArrayType(JsonType.LONG), struct(a=JsonType.LONG)):
            assert convert_value(None, t) is None

    def test_incompatible_values_fall_back_to_string(self):
        assert convert_value("abc", JsonType.LONG) == "abc"
        assert convert_value(2.5, JsonType.LONG) == "2.5"
        assert convert_value(1, JsonType.BOOLEAN) == "1"
        assert convert_value(True, JsonType.LONG) == "true"
        assert convert_value({"k": 1}, JsonType.DOUBLE) == '{"k":1}'
        assert convert_value(5, struct(a=JsonType.LONG)) == "5"
        assert convert_value({"a": 1}, ArrayType(JsonType.LONG)) == '{"a":1}'

    def test_string_column_renders_json_text(self):
        assert convert_value(12, JsonType.STRING) == "12"
        assert convert_value(False, JsonType.STRING) == "false"
        assert convert_value([1, {"a": "é"}], JsonType.STRING) == '[1,{"a":"é"}]'

    def test_nested_struct_and_array(self):
        t = struct(p=struct(x=JsonType.DOUBLE), xs=ArrayType(JsonType.LONG))
        row = convert_value({"p": {"x": 1}, "xs": [1, None, 3]}, t)

        assert row == (Row([1.0], ["x"]), [1, None, 3])
        assert row.get("p").get("x") == 1.0

    def test_value_for_null_column_falls_back_to_string(self):
        assert convert_value(3, JsonType.NULL) == "3"


class TestRowParser:
    """Tests for record parsing."""

    def test_scenario_with_absent_field(self):
        records = ['{"a":1,"b":"x"}', '{"a":2.5}']
        schema = infer_schema(records)

        rows = list(parse_all(records, schema))

        assert rows == [(1.0, "x"), (2.5, None)]

    def test_scenario_with_corrupt_record(self):
        records = ["not json", '{"a":1}']
        schema = infer_schema(records, corrupt_column="_corrupt_record")

        rows = list(parse_all(records, schema, "_corrupt_record"))

        assert rows == [(None, "not json"), (1, None)]

    def test_top_level_non_object_is_corrupt(self):
        schema = struct(a=JsonType.LONG, _corrupt_record=JsonType.STRING)
        parser = RowParser(schema, "_corrupt_record")

        assert parser.parse("[1,2]") == (None, "[1,2]")
        assert parser.parse('"text"') == (None, '"text"')

    def test_corrupt_without_corrupt_column_emits_null_row(self, caplog):
        schema = struct(a=JsonType.LONG)
        parser = RowParser(schema, "_corrupt_record")

        with caplog.at_level("WARNING"):
            row = parser.parse("{broken")

        assert row == (None,)
        assert "Malformed record" in caplog.text

    def test_corrupt_column_position_follows_schema(self):
        schema = StructType([
            StructField("_corrupt_record", JsonType.STRING),
            StructField("a", JsonType.LONG),
        ])
        rows = list(parse_all(["?", '{"a":5}'], schema, "_corrupt_record"))
        assert rows == [("?", None), (None, 5)]

    def test_extra_fields_are_ignored(self):
        rows = list(parse_all(['{"a":1,"zzz":2}'], struct(a=JsonType.LONG)))
        assert rows == [(1,)]

    def test_row_count_matches_record_count(self):
        records = ['{"a":1}', "bad", "[]", '{"a":"s"}', "null"]
        schema = infer_schema(records, corrupt_column="_corrupt_record")

        rows = list(parse_all(records, schema, "_corrupt_record"))

        assert len(rows) == len(records)
        assert [r.get("_corrupt_record") for r in rows] == [None, "bad", "[]", None, "null"]

    def test_parse_all_is_lazy(self):
        def records():
            yield '{"a":1}'
            raise AssertionError("consumed too far")

        rows = parse_all(records(), struct(a=JsonType.LONG))
        assert next(rows) == (1,)

    def test_default_corrupt_column_from_settings(self, test_settings, monkeypatch):
        from httpjson.ingest import row_parser

        monkeypatch.setattr(row_parser, "get_settings", lambda: test_settings)
        parser = RowParser(struct(_bad=JsonType.STRING))

        assert parser.corrupt_column == "_bad"
        assert parser.parse("x") == ("x",)

    def test_deeply_nested_record_lands_in_corrupt_column(self):
        deep = nested(300)
        schema = struct(b=JsonType.LONG, _corrupt_record=JsonType.STRING)

        rows = list(parse_all([deep, '{"b": 1}'], schema))

        assert rows == [(None, deep), (1, None)]

    def test_record_too_deep_for_json_parser_is_corrupt(self):
        deep = nested(100000)

        row = RowParser(struct(_corrupt_record=JsonType.STRING)).parse(deep)

        assert row == (deep,)

    def test_depth_limit_from_settings(self, monkeypatch):
        from httpjson.config.settings import Settings
        from httpjson.ingest import row_parser

        monkeypatch.setattr(row_parser, "get_settings", lambda: Settings(max_nesting_depth=2))
        schema = struct(a=JsonType.STRING, _corrupt_record=JsonType.STRING)
        rows = list(parse_all(['{"a": {"b": 1}}', '{"a": {"b": [1]}}'], schema))

        assert rows == [('{"b":1}', None), (None, '{"a": {"b": [1]}}')]
