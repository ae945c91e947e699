"""Tests for the binary and JSON relation codec."""

import logging

import pytest

from relplan import codec as codec_module
from relplan.codec import RelationCodec, unknown_field_bytes, unrecognized_variant_id
from relplan.codec import schema
from relplan.config import MAX_CODEC_DEPTH, CodecConfig
from relplan.errors import DecodeError, PlanDepthError, StructuralError
from relplan.plan import (
    Alias,
    ExpressionString,
    Filter,
    Join,
    JoinType,
    Limit,
    Literal,
    LocalRelation,
    Project,
    QualifiedAttribute,
    Range,
    Read,
    RelationCommon,
    Sample,
    Sort,
    SortDirection,
    SortField,
    SortNulls,
    UnknownFields,
    UnrecognizedExpression,
    UnrecognizedRelation,
    UnresolvedAttribute,
    UnresolvedFunction,
)

from tests.helpers import (
    alias_chain,
    col,
    length_delimited_field,
    limit_chain,
    sample_relations,
    table,
    under_limits,
    varint_field,
)


class TestRoundTrip:
    """encode/decode and JSON round trips."""

    @pytest.mark.parametrize("relation", sample_relations(), ids=repr)
    def test_binary_round_trip(self, codec, relation):
        assert codec.decode(codec.encode(relation)) == relation

    @pytest.mark.parametrize("relation", sample_relations(), ids=repr)
    def test_json_round_trip(self, codec, relation):
        assert codec.from_json(codec.to_json(relation)) == relation

    def test_limit_over_range(self, codec, scenario_a):
        decoded = codec.decode(codec.encode(scenario_a))
        assert decoded == scenario_a
        assert decoded.limit == 5
        assert decoded.input.end == 10
        assert decoded.input.step == 1

    def test_module_level_functions(self, scenario_a):
        data = codec_module.encode(scenario_a)
        assert codec_module.decode(data) == scenario_a
        assert codec_module.from_json(codec_module.to_json(scenario_a)) == scenario_a

    def test_encoding_is_deterministic(self, codec):
        relation = Read.source("csv", options={"b": "2", "a": "1", "C": "3"})
        assert codec.encode(relation) == codec.encode(relation)

    def test_option_key_casing_preserved(self, codec):
        relation = Read.source("csv", options={"Header": "true"})
        decoded = codec.decode(codec.encode(relation))
        assert list(decoded.data_source.options) == ["Header"]

    def test_json_uses_proto_field_names(self, codec, scenario_a):
        text = codec.to_json(scenario_a)
        assert '"limit"' in text
        assert '"range"' in text


class TestOptionalFields:
    """Absent and zero values stay distinguishable where the schema says so."""

    def test_range_num_partitions_absent(self, codec):
        decoded = codec.decode(codec.encode(Range(end=10, step=1)))
        assert decoded.num_partitions is None

    def test_range_num_partitions_set(self, codec):
        decoded = codec.decode(codec.encode(Range(end=10, step=1, num_partitions=3)))
        assert decoded.num_partitions == 3

    def test_range_end_zero_is_not_absent(self, codec):
        decoded = codec.decode(codec.encode(Range(start=-3, end=0, step=1)))
        assert decoded.end == 0

    def test_range_missing_end_survives(self, codec):
        decoded = codec.decode(codec.encode(Range(step=1)))
        assert decoded.end is None

    def test_schema_none_versus_empty(self, codec):
        inferred = codec.decode(codec.encode(Read.source("csv")))
        empty = codec.decode(codec.encode(Read.source("csv", schema="")))
        assert inferred.data_source.schema is None
        assert empty.data_source.schema == ""

    def test_sample_seed(self, codec):
        unseeded = codec.decode(codec.encode(Sample(table("t"), 0.0, 0.5)))
        seeded = codec.decode(codec.encode(Sample(table("t"), 0.0, 0.5, seed=0)))
        assert unseeded.seed is None
        assert seeded.seed == 0

    def test_common_absent_versus_empty(self, codec):
        bare = codec.decode(codec.encode(table("t")))
        with_common = codec.decode(codec.encode(Read.table("t", common=RelationCommon())))
        assert bare.common is None
        assert with_common.common == RelationCommon()


class TestEnums:
    """Sentinel and unknown enum values."""

    def test_unspecified_values_decode(self, codec):
        relation = Sort(table("t"), [SortField(col("a"))])
        decoded = codec.decode(codec.encode(relation))
        assert decoded.sort_fields[0].direction == SortDirection.UNSPECIFIED
        assert decoded.sort_fields[0].nulls == SortNulls.UNSPECIFIED

    def test_unspecified_join_type_round_trips(self, codec):
        relation = Join(table("a"), table("b"), JoinType.UNSPECIFIED)
        assert codec.decode(codec.encode(relation)).join_type == JoinType.UNSPECIFIED

    def test_unknown_enum_number_is_unspecified(self, codec, caplog):
        body = (
            length_delimited_field(1, codec.encode(table("a")))
            + length_delimited_field(2, codec.encode(table("b")))
            + varint_field(4, 42)
        )
        data = length_delimited_field(5, body)
        with caplog.at_level(logging.WARNING, logger="relplan.codec.codec"):
            decoded = codec.decode(data)
        assert decoded.join_type == JoinType.UNSPECIFIED
        assert "JoinType value 42" in caplog.text


class TestForwardCompatibility:
    """Unrecognized variants and unknown fields survive re-encoding."""

    def test_unrecognized_variant(self, codec):
        data = length_delimited_field(12345, b"")
        decoded = codec.decode(data)
        assert isinstance(decoded, UnrecognizedRelation)
        assert decoded.variant_id == 12345
        assert decoded.wire_id() == 12345
        assert codec.encode(decoded) == data

    def test_unrecognized_variant_with_payload_and_common(self, codec):
        common = length_delimited_field(1, length_delimited_field(1, b"df.foo()"))
        data = common + length_delimited_field(12345, varint_field(1, 7))
        decoded = codec.decode(data)
        assert isinstance(decoded, UnrecognizedRelation)
        assert decoded.common == RelationCommon("df.foo()")
        assert codec.encode(decoded) == data

    def test_unrecognized_child(self, codec):
        child = length_delimited_field(12345, b"")
        data = length_delimited_field(8, length_delimited_field(1, child) + varint_field(2, 3))
        decoded = codec.decode(data)
        assert isinstance(decoded, Limit)
        assert isinstance(decoded.input, UnrecognizedRelation)
        assert codec.encode(decoded) == data

    def test_unknown_field_in_operator_message(self, codec):
        inner = codec.encode(Range(end=10, step=1))
        body = length_delimited_field(1, inner) + varint_field(2, 5) + varint_field(99, 7)
        data = length_delimited_field(8, body)
        decoded = codec.decode(data)
        assert decoded == Limit(
            Range(end=10, step=1), 5, unknown_fields=UnknownFields(message=varint_field(99, 7))
        )
        assert codec.encode(decoded) == data

    def test_unknown_field_in_envelope(self, codec):
        data = codec.encode(table("t")) + varint_field(500, 1)
        decoded = codec.decode(data)
        assert decoded.unknown_fields.envelope == varint_field(500, 1)
        assert codec.encode(decoded) == data

    def test_unrecognized_expression(self, codec):
        condition = length_delimited_field(77, varint_field(1, 1))
        body = (
            length_delimited_field(1, codec.encode(table("t")))
            + length_delimited_field(2, condition)
        )
        data = length_delimited_field(4, body)
        decoded = codec.decode(data)
        assert isinstance(decoded, Filter)
        assert isinstance(decoded.condition, UnrecognizedExpression)
        assert decoded.condition.variant_id == 77
        assert codec.encode(decoded) == data

    def test_unrecognized_without_payload_cannot_encode(self, codec):
        with pytest.raises(StructuralError):
            codec.encode(UnrecognizedRelation(variant_id=12345))

    def test_unknown_field_helpers(self):
        message = schema.Relation()
        message.MergeFromString(length_delimited_field(4242, b"") + varint_field(600, 1))
        assert unrecognized_variant_id(message) == 4242
        assert unknown_field_bytes(message) != b""
        assert unknown_field_bytes(schema.Relation()) == b""
        assert unrecognized_variant_id(schema.Relation()) is None


class TestErrors:
    """Malformed input and unrepresentable values."""

    def test_truncated_bytes(self, codec, scenario_a):
        data = codec.encode(scenario_a)
        with pytest.raises(DecodeError):
            codec.decode(data[:-1])

    def test_empty_envelope(self, codec):
        with pytest.raises(StructuralError) as exc_info:
            codec.decode(b"")
        assert "no active variant" in str(exc_info.value)

    def test_expression_without_variant(self, codec):
        body = (
            length_delimited_field(1, codec.encode(table("t")))
            + length_delimited_field(2, b"")
        )
        with pytest.raises(StructuralError) as exc_info:
            codec.decode(length_delimited_field(4, body))
        assert "expression has no active variant" in str(exc_info.value)

    def test_int32_overflow(self, codec):
        with pytest.raises(StructuralError) as exc_info:
            codec.encode(Limit(table("t"), 2**31))
        assert exc_info.value.variant == "Limit"

    def test_non_relation_child(self, codec):
        with pytest.raises(StructuralError) as exc_info:
            codec.encode(Limit("not a relation", 1))
        assert exc_info.value.path == "root.input"

    def test_malformed_json(self, codec):
        with pytest.raises(DecodeError):
            codec.from_json('{"limit": {"bogus": 1}}')

    def test_json_unknown_fields_can_be_ignored(self, codec):
        relation = codec.from_json(
            '{"limit": {"limit": 2, "bogus": 1}}', ignore_unknown_fields=True
        )
        assert isinstance(relation, Limit)
        assert relation.input is None

    def test_encode_depth_limit(self):
        shallow = RelationCodec(CodecConfig(max_depth=4))
        with pytest.raises(PlanDepthError):
            shallow.encode(limit_chain(5))

    def test_decode_depth_limit(self, codec):
        deep = RelationCodec(CodecConfig(max_depth=40)).encode(limit_chain(33))
        with pytest.raises(PlanDepthError) as exc_info:
            codec.decode(deep)
        assert exc_info.value.limit == 32

    def test_depth_at_limit_decodes(self, codec):
        relation = limit_chain(32)
        assert codec.decode(codec.encode(relation)) == relation


_EXTRA = varint_field(900, 3) + length_delimited_field(901, b"abc")


def _with_extra_fields(codec, relation, locate):
    """Encode ``relation`` with ``_EXTRA`` merged into the message ``locate`` picks."""
    message = codec.to_message(relation)
    locate(message).MergeFromString(_EXTRA)
    return message.SerializeToString(deterministic=True)


_NESTED_MESSAGES = [
    pytest.param(table("t"), lambda m: m.read.named_table, id="named_table"),
    pytest.param(
        Read.source("csv", options={"Header": "true"}),
        lambda m: m.read.data_source,
        id="data_source",
    ),
    pytest.param(
        Sort(table("t"), [SortField(col("a"))]),
        lambda m: m.sort.sort_fields[0],
        id="sort_field",
    ),
    pytest.param(
        Sample(table("t"), 0.0, 0.5, seed=7), lambda m: m.sample.seed, id="seed"
    ),
    pytest.param(
        Range(end=10, step=1, num_partitions=2),
        lambda m: m.range.num_partitions,
        id="num_partitions",
    ),
    pytest.param(
        LocalRelation([QualifiedAttribute("id", "bigint")]),
        lambda m: m.local_relation.attributes[0],
        id="qualified_attribute",
    ),
    pytest.param(
        Filter(table("t"), col("a")),
        lambda m: m.filter.condition,
        id="expression_envelope",
    ),
    pytest.param(
        Filter(table("t"), col("a")),
        lambda m: m.filter.condition.unresolved_attribute,
        id="unresolved_attribute",
    ),
    pytest.param(
        Filter(table("t"), UnresolvedFunction("f", [col("a")])),
        lambda m: m.filter.condition.unresolved_function,
        id="unresolved_function",
    ),
    pytest.param(
        Filter(table("t"), UnresolvedFunction("f", [col("a")])),
        lambda m: m.filter.condition.unresolved_function.arguments[0],
        id="function_argument",
    ),
    pytest.param(
        Filter(table("t"), Literal(True)),
        lambda m: m.filter.condition.literal,
        id="literal",
    ),
    pytest.param(
        Filter(table("t"), ExpressionString("a > 1")),
        lambda m: m.filter.condition.expression_string,
        id="expression_string",
    ),
    pytest.param(
        Project(table("t"), [Alias(col("a"), "b")]),
        lambda m: m.project.expressions[0].alias,
        id="alias",
    ),
    pytest.param(
        Sort(table("t"), [SortField(col("a"))]),
        lambda m: m.sort.sort_fields[0].expression.unresolved_attribute,
        id="sort_expression",
    ),
]


class TestNestedUnknownFields:
    """Fields from a newer schema inside nested messages survive a round trip."""

    @pytest.mark.parametrize("relation, locate", _NESTED_MESSAGES)
    def test_reencode_is_byte_identical(self, codec, relation, locate):
        data = _with_extra_fields(codec, relation, locate)
        decoded = codec.decode(data)
        assert decoded != relation
        assert codec.encode(decoded) == data

    def test_data_source_field(self, codec):
        data = bytes.fromhex("120912070a036373764801")
        decoded = codec.decode(data)
        assert decoded.data_source.format == "csv"
        assert decoded.data_source.unknown_fields == varint_field(9, 1)
        assert codec.encode(decoded) == data

    def test_attribute_field_in_filter_condition(self, codec):
        attribute = length_delimited_field(1, b"a") + varint_field(7, 1)
        body = (
            length_delimited_field(1, codec.encode(table("t")))
            + length_delimited_field(2, length_delimited_field(2, attribute))
        )
        data = length_delimited_field(4, body)
        decoded = codec.decode(data)
        assert decoded.condition == UnresolvedAttribute(
            "a", UnknownFields(message=varint_field(7, 1))
        )
        assert codec.encode(decoded) == data

    def test_fields_land_on_the_owning_node(self, codec):
        relation = Sort(Range(end=10, step=1, num_partitions=2), [SortField(col("a"))])
        message = codec.to_message(relation)
        message.sort.sort_fields[0].MergeFromString(_EXTRA)
        message.sort.input.range.num_partitions.MergeFromString(_EXTRA)
        decoded = codec.decode(message.SerializeToString())
        assert decoded.sort_fields[0].unknown_fields == _EXTRA
        assert decoded.sort_fields[0].expression == col("a")
        assert decoded.input.num_partitions_unknown_fields == _EXTRA
        assert decoded.input.unknown_fields == UnknownFields()

    def test_expression_envelope_and_body_kept_apart(self, codec):
        message = codec.to_message(Filter(table("t"), Literal(5)))
        message.filter.condition.MergeFromString(varint_field(900, 1))
        message.filter.condition.literal.MergeFromString(varint_field(901, 2))
        decoded = codec.decode(message.SerializeToString())
        assert decoded.condition.value == 5
        assert decoded.condition.unknown_fields == UnknownFields(
            envelope=varint_field(900, 1), message=varint_field(901, 2)
        )


class TestCombinedDepth:
    """Relations and the expressions under them share one depth limit."""

    def test_expressions_count_toward_relation_depth(self, codec):
        relation = under_limits(Filter(Range(end=10, step=1), alias_chain(32)), 30)
        with pytest.raises(PlanDepthError) as exc_info:
            codec.encode(relation)
        assert exc_info.value.limit == 32
        assert exc_info.value.depth == 33
        assert ".condition" in exc_info.value.path

    def test_deep_expression_under_deep_relation_rejected_on_encode(self):
        codec = RelationCodec(CodecConfig(max_depth=MAX_CODEC_DEPTH))
        relation = under_limits(Filter(Range(end=10, step=1), alias_chain(32)), 31)
        with pytest.raises(PlanDepthError):
            codec.encode(relation)

    def test_deepest_sort_expression_round_trips(self):
        codec = RelationCodec(CodecConfig(max_depth=MAX_CODEC_DEPTH))
        relation = Sort(
            Range(end=10, step=1), [SortField(alias_chain(MAX_CODEC_DEPTH - 1))]
        )
        assert codec.decode(codec.encode(relation)) == relation

    def test_one_level_past_the_limit_rejected(self):
        codec = RelationCodec(CodecConfig(max_depth=MAX_CODEC_DEPTH))
        relation = Sort(
            Range(end=10, step=1), [SortField(alias_chain(MAX_CODEC_DEPTH))]
        )
        with pytest.raises(PlanDepthError):
            codec.encode(relation)

    def test_deepest_read_options_round_trip(self):
        codec = RelationCodec(CodecConfig(max_depth=MAX_CODEC_DEPTH))
        relation = under_limits(
            Read.source("csv", options={"header": "true"}), MAX_CODEC_DEPTH - 1
        )
        assert codec.decode(codec.encode(relation)) == relation

    def test_decode_counts_expressions_toward_depth(self, codec):
        relation = under_limits(Filter(Range(end=10, step=1), alias_chain(10)), 25)
        data = RelationCodec(CodecConfig(max_depth=40)).encode(relation)
        with pytest.raises(PlanDepthError) as exc_info:
            codec.decode(data)
        assert exc_info.value.limit == 32
        assert exc_info.value.depth == 33
        assert ".filter.condition" in exc_info.value.path

    def test_codec_rejects_depth_protobuf_cannot_parse(self):
        with pytest.raises(ValueError):
            RelationCodec(CodecConfig(max_depth=MAX_CODEC_DEPTH + 1))
