"""Binary and JSON codec for relation plans."""

import logging
from typing import List, Optional, Type

from google.protobuf import json_format
from google.protobuf import message as protobuf_message
from google.protobuf import unknown_fields as protobuf_unknown_fields

from ..config import MAX_CODEC_DEPTH, CodecConfig
from ..errors import DecodeError, PlanDepthError, StructuralError
from ..plan.expressions import (
    Alias,
    Expression,
    ExpressionString,
    ExpressionVisitor,
    Literal,
    QualifiedAttribute,
    UnrecognizedExpression,
    UnresolvedAttribute,
    UnresolvedFunction,
)
from ..plan.relations import (
    SQL,
    Aggregate,
    DataSource,
    Deduplicate,
    Filter,
    Join,
    JoinType,
    Limit,
    LocalRelation,
    NamedTable,
    Offset,
    Project,
    Range,
    Read,
    Relation,
    RelationCommon,
    RelationVisitor,
    Repartition,
    Sample,
    SetOperation,
    SetOpType,
    Sort,
    SortDirection,
    SortField,
    SortNulls,
    SubqueryAlias,
    Unknown,
    UnrecognizedRelation,
)
from ..plan.unknown import UnknownFields
from . import schema as pb

logger = logging.getLogger(__name__)

_WIRETYPE_LENGTH_DELIMITED = 2


def unknown_field_bytes(message) -> bytes:
    """Return the serialized fields of ``message`` that its schema does not declare."""
    if len(protobuf_unknown_fields.UnknownFieldSet(message)) == 0:
        return b""
    stripped = type(message)()
    stripped.CopyFrom(message)
    for field in message.DESCRIPTOR.fields:
        stripped.ClearField(field.name)
    return stripped.SerializeToString()


def unrecognized_variant_id(message) -> Optional[int]:
    """Return the field number of the first unknown message-typed field, if any.

    A oneof member added by a newer schema shows up this way when the active
    variant is not known to this version.
    """
    for unknown in protobuf_unknown_fields.UnknownFieldSet(message):
        if unknown.wire_type == _WIRETYPE_LENGTH_DELIMITED:
            return unknown.field_number
    return None


class RelationCodec:
    """Encodes relation trees to protobuf bytes or JSON and back."""

    def __init__(self, config: Optional[CodecConfig] = None):
        if config is None:
            config = CodecConfig()
        if config.max_depth > MAX_CODEC_DEPTH:
            raise ValueError(
                f"max_depth {config.max_depth} exceeds {MAX_CODEC_DEPTH}, "
                f"the deepest plan protobuf can parse back"
            )
        self.config = config

    def encode(self, relation: Relation) -> bytes:
        """Serialize a relation tree to bytes.

        Raises:
            StructuralError: If a value cannot be represented on the wire
            PlanDepthError: If the tree is nested deeper than allowed
        """
        message = self.to_message(relation)
        try:
            return message.SerializeToString(deterministic=self.config.deterministic)
        except protobuf_message.EncodeError as exc:
            raise StructuralError(f"cannot serialize relation: {exc}") from exc

    def decode(self, data: bytes) -> Relation:
        """Deserialize bytes into a relation tree.

        Raises:
            DecodeError: If the bytes are not a well-formed relation message
            StructuralError: If the envelope carries no variant at all
            PlanDepthError: If the tree is nested deeper than allowed
        """
        message = pb.Relation()
        try:
            message.ParseFromString(data)
        except protobuf_message.DecodeError as exc:
            raise DecodeError(f"malformed relation bytes: {exc}") from exc
        logger.debug(f"Decoded {len(data)} bytes into relation message")
        return self.from_message(message)

    def to_message(self, relation: Relation):
        """Convert a relation tree into a ``relplan.v1.Relation`` message."""
        encoder = _RelationEncoder(self.config.max_depth)
        return encoder.encode(relation)

    def from_message(self, message) -> Relation:
        """Convert a ``relplan.v1.Relation`` message into a relation tree."""
        decoder = _RelationDecoder(self.config.max_depth)
        return decoder.decode(message)

    def to_json(self, relation: Relation, indent: int = 2) -> str:
        """Render a relation tree as protobuf JSON. Unknown fields are not kept."""
        message = self.to_message(relation)
        return json_format.MessageToJson(
            message, indent=indent, preserving_proto_field_name=True
        )

    def from_json(self, text: str, ignore_unknown_fields: bool = False) -> Relation:
        """Parse protobuf JSON into a relation tree."""
        message = pb.Relation()
        try:
            json_format.Parse(
                text, message, ignore_unknown_fields=ignore_unknown_fields
            )
        except json_format.ParseError as exc:
            raise DecodeError(f"malformed relation JSON: {exc}") from exc
        return self.from_message(message)


class _RelationEncoder(RelationVisitor):
    """Builds protobuf messages from relation nodes."""

    def __init__(self, max_depth: int):
        self.max_depth = max_depth
        self._path: List[str] = []
        self._expressions = _ExpressionEncoder(max_depth)

    def encode(self, relation: Relation):
        return self._encode_node(relation, "root")

    def _encode_node(self, node: Relation, slot: str):
        self._path.append(slot)
        try:
            path = ".".join(self._path)
            if len(self._path) > self.max_depth:
                raise PlanDepthError(len(self._path), self.max_depth, path=path)
            if not isinstance(node, Relation):
                raise StructuralError(
                    f"expected a Relation, got {type(node).__name__}", path=path
                )
            try:
                return node.accept(self)
            except (TypeError, ValueError) as exc:
                raise StructuralError(
                    f"invalid field value: {exc}", path=path, variant=node.variant_name()
                ) from exc
        finally:
            self._path.pop()

    def _envelope(self, node: Relation):
        envelope = self._bare_envelope(node)
        body = getattr(envelope, node.FIELD_NAME)
        body.SetInParent()
        return envelope, body

    def _bare_envelope(self, node: Relation):
        envelope = pb.Relation()
        if node.common is not None:
            envelope.common.SetInParent()
            envelope.common.source_info = node.common.source_info
            if node.common.unknown_fields:
                envelope.common.MergeFromString(node.common.unknown_fields)
        return envelope

    def _finish(self, node: Relation, envelope, body):
        if node.unknown_fields.message:
            body.MergeFromString(node.unknown_fields.message)
        if node.unknown_fields.envelope:
            envelope.MergeFromString(node.unknown_fields.envelope)
        return envelope

    def _child(self, body, slot: str, child: Optional[Relation]) -> None:
        if child is None:
            return
        getattr(body, slot).CopyFrom(self._encode_node(child, slot))

    def _expression(self, target, expr: Optional[Expression], slot: str) -> None:
        if expr is None:
            return
        target.CopyFrom(self._encode_expression(expr, slot))

    def _expression_list(self, target, exprs, slot: str) -> None:
        for index, expr in enumerate(exprs):
            target.add().CopyFrom(self._encode_expression(expr, f"{slot}[{index}]"))

    def _encode_expression(self, expr: Expression, slot: str):
        # Expressions share the depth budget of the relation that holds them.
        path = ".".join(self._path + [slot])
        return self._expressions.encode_at(expr, len(self._path), path)

    def visit_read(self, node: Read):
        envelope, body = self._envelope(node)
        if node.named_table is not None:
            table = node.named_table
            body.named_table.SetInParent()
            body.named_table.unparsed_identifier = table.unparsed_identifier
            if table.unknown_fields:
                body.named_table.MergeFromString(table.unknown_fields)
        if node.data_source is not None:
            source = node.data_source
            body.data_source.SetInParent()
            body.data_source.format = source.format
            if source.schema is not None:
                body.data_source.schema = source.schema
            for key, value in source.options.items():
                body.data_source.options[key] = value
            if source.unknown_fields:
                body.data_source.MergeFromString(source.unknown_fields)
        return self._finish(node, envelope, body)

    def visit_project(self, node: Project):
        envelope, body = self._envelope(node)
        self._child(body, "input", node.input)
        self._expression_list(body.expressions, node.expressions, "expressions")
        return self._finish(node, envelope, body)

    def visit_filter(self, node: Filter):
        envelope, body = self._envelope(node)
        self._child(body, "input", node.input)
        self._expression(body.condition, node.condition, "condition")
        return self._finish(node, envelope, body)

    def visit_join(self, node: Join):
        envelope, body = self._envelope(node)
        self._child(body, "left", node.left)
        self._child(body, "right", node.right)
        self._expression(body.join_condition, node.join_condition, "join_condition")
        body.join_type = int(node.join_type)
        body.using_columns.extend(node.using_columns)
        return self._finish(node, envelope, body)

    def visit_set_operation(self, node: SetOperation):
        envelope, body = self._envelope(node)
        self._child(body, "left_input", node.left)
        self._child(body, "right_input", node.right)
        body.set_op_type = int(node.set_op_type)
        body.is_all = node.is_all
        body.by_name = node.by_name
        return self._finish(node, envelope, body)

    def visit_sort(self, node: Sort):
        envelope, body = self._envelope(node)
        self._child(body, "input", node.input)
        for index, sort_field in enumerate(node.sort_fields):
            target = body.sort_fields.add()
            self._expression(
                target.expression, sort_field.expression, f"sort_fields[{index}]"
            )
            target.direction = int(sort_field.direction)
            target.nulls = int(sort_field.nulls)
            if sort_field.unknown_fields:
                target.MergeFromString(sort_field.unknown_fields)
        body.is_global = node.is_global
        return self._finish(node, envelope, body)

    def visit_limit(self, node: Limit):
        envelope, body = self._envelope(node)
        self._child(body, "input", node.input)
        body.limit = node.limit
        return self._finish(node, envelope, body)

    def visit_aggregate(self, node: Aggregate):
        envelope, body = self._envelope(node)
        self._child(body, "input", node.input)
        self._expression_list(
            body.grouping_expressions, node.grouping_expressions, "grouping_expressions"
        )
        self._expression_list(
            body.result_expressions, node.result_expressions, "result_expressions"
        )
        return self._finish(node, envelope, body)

    def visit_sql(self, node: SQL):
        envelope, body = self._envelope(node)
        body.query = node.query
        return self._finish(node, envelope, body)

    def visit_local_relation(self, node: LocalRelation):
        envelope, body = self._envelope(node)
        for attribute in node.attributes:
            target = body.attributes.add()
            target.name = attribute.name
            target.type = attribute.type
            if attribute.unknown_fields:
                target.MergeFromString(attribute.unknown_fields)
        return self._finish(node, envelope, body)

    def visit_sample(self, node: Sample):
        envelope, body = self._envelope(node)
        self._child(body, "input", node.input)
        body.lower_bound = node.lower_bound
        body.upper_bound = node.upper_bound
        body.with_replacement = node.with_replacement
        if node.seed is not None:
            body.seed.SetInParent()
            body.seed.seed = node.seed
            if node.seed_unknown_fields:
                body.seed.MergeFromString(node.seed_unknown_fields)
        return self._finish(node, envelope, body)

    def visit_offset(self, node: Offset):
        envelope, body = self._envelope(node)
        self._child(body, "input", node.input)
        body.offset = node.offset
        return self._finish(node, envelope, body)

    def visit_deduplicate(self, node: Deduplicate):
        envelope, body = self._envelope(node)
        self._child(body, "input", node.input)
        body.column_names.extend(node.column_names)
        body.all_columns_as_keys = node.all_columns_as_keys
        return self._finish(node, envelope, body)

    def visit_range(self, node: Range):
        envelope, body = self._envelope(node)
        body.start = node.start
        if node.end is not None:
            body.end = node.end
        if node.step is not None:
            body.step = node.step
        if node.num_partitions is not None:
            body.num_partitions.SetInParent()
            body.num_partitions.num_partitions = node.num_partitions
            if node.num_partitions_unknown_fields:
                body.num_partitions.MergeFromString(node.num_partitions_unknown_fields)
        return self._finish(node, envelope, body)

    def visit_subquery_alias(self, node: SubqueryAlias):
        envelope, body = self._envelope(node)
        self._child(body, "input", node.input)
        body.alias = node.alias
        body.qualifier.extend(node.qualifier)
        return self._finish(node, envelope, body)

    def visit_repartition(self, node: Repartition):
        envelope, body = self._envelope(node)
        self._child(body, "input", node.input)
        body.num_partitions = node.num_partitions
        body.shuffle = node.shuffle
        return self._finish(node, envelope, body)

    def visit_unknown(self, node: Relation):
        if isinstance(node, UnrecognizedRelation):
            return self._encode_unrecognized(node)
        envelope, body = self._envelope(node)
        return self._finish(node, envelope, body)

    def _encode_unrecognized(self, node: UnrecognizedRelation):
        envelope = self._bare_envelope(node)
        if not node.unknown_fields.envelope:
            raise StructuralError(
                f"unrecognized variant {node.variant_id} has no preserved payload",
                path=".".join(self._path),
                variant=node.variant_name(),
            )
        envelope.MergeFromString(node.unknown_fields.envelope)
        return envelope


class _ExpressionEncoder(ExpressionVisitor):
    """Builds ``relplan.v1.Expression`` messages."""

    def __init__(self, max_depth: int):
        self.max_depth = max_depth
        self._depth = 0
        self._path = "expression"

    def encode_at(self, expr: Expression, depth: int, path: str):
        """Encode ``expr`` as if it sat ``depth`` levels below the plan root."""
        self._depth = depth
        self._path = path
        return self.encode(expr)

    def encode(self, expr: Expression):
        self._depth += 1
        try:
            if self._depth > self.max_depth:
                raise PlanDepthError(self._depth, self.max_depth, path=self._path)
            if not isinstance(expr, Expression):
                raise StructuralError(
                    f"expected an Expression, got {type(expr).__name__}",
                    path=self._path,
                )
            return expr.accept(self)
        finally:
            self._depth -= 1

    def _finish(self, expr: Expression, message):
        unknown = expr.unknown_fields
        if unknown.message:
            getattr(message, expr.FIELD_NAME).MergeFromString(unknown.message)
        if unknown.envelope:
            message.MergeFromString(unknown.envelope)
        return message

    def visit_literal(self, expr: Literal):
        message = pb.Expression()
        value = expr.value
        if value is None:
            message.literal.null = True
        elif isinstance(value, bool):
            message.literal.boolean = value
        elif isinstance(value, int):
            message.literal.long = value
        elif isinstance(value, float):
            message.literal.double = value
        elif isinstance(value, str):
            message.literal.string = value
        else:
            raise TypeError(f"unsupported literal type {type(value).__name__}")
        return self._finish(expr, message)

    def visit_unresolved_attribute(self, expr: UnresolvedAttribute):
        message = pb.Expression()
        message.unresolved_attribute.SetInParent()
        message.unresolved_attribute.unparsed_identifier = expr.unparsed_identifier
        return self._finish(expr, message)

    def visit_unresolved_function(self, expr: UnresolvedFunction):
        message = pb.Expression()
        message.unresolved_function.SetInParent()
        message.unresolved_function.function_name = expr.function_name
        for argument in expr.arguments:
            message.unresolved_function.arguments.add().CopyFrom(self.encode(argument))
        return self._finish(expr, message)

    def visit_expression_string(self, expr: ExpressionString):
        message = pb.Expression()
        message.expression_string.SetInParent()
        message.expression_string.expression = expr.expression
        return self._finish(expr, message)

    def visit_alias(self, expr: Alias):
        message = pb.Expression()
        message.alias.expr.CopyFrom(self.encode(expr.expr))
        message.alias.name = expr.name
        return self._finish(expr, message)

    def visit_unrecognized(self, expr: UnrecognizedExpression):
        message = pb.Expression()
        message.MergeFromString(expr.payload)
        return message


class _RelationDecoder:
    """Builds relation nodes from protobuf messages."""

    def __init__(self, max_depth: int):
        self.max_depth = max_depth

    def decode(self, message) -> Relation:
        return self._decode_node(message, "root", 1)

    def _decode_node(self, message, path: str, depth: int) -> Relation:
        if depth > self.max_depth:
            raise PlanDepthError(depth, self.max_depth, path=path)
        common = None
        if message.HasField("common"):
            common = RelationCommon(
                message.common.source_info, unknown_field_bytes(message.common)
            )
        relation_unknown = unknown_field_bytes(message)
        variant = message.WhichOneof("rel_type")
        if variant is None:
            return self._decode_unrecognized(message, path, common, relation_unknown)
        body = getattr(message, variant)
        unknown = UnknownFields(relation_unknown, unknown_field_bytes(body))
        if unknown:
            logger.debug(f"Preserving unknown fields on {variant} at {path}")
        decoder = getattr(self, f"_decode_{variant}")
        return decoder(body, path, depth, common, unknown)

    def _decode_unrecognized(
        self, message, path: str, common, relation_unknown: bytes
    ) -> Relation:
        variant_id = unrecognized_variant_id(message)
        if variant_id is None:
            raise StructuralError("relation has no active variant", path=path)
        logger.debug(f"Unrecognized relation variant id={variant_id} at {path}")
        return UnrecognizedRelation(
            variant_id=variant_id,
            common=common,
            unknown_fields=UnknownFields(envelope=relation_unknown),
        )

    def _child(self, body, slot: str, path: str, depth: int) -> Optional[Relation]:
        if not body.HasField(slot):
            return None
        return self._decode_node(getattr(body, slot), f"{path}.{slot}", depth + 1)

    def _expression(self, body, slot: str, path: str, depth: int) -> Optional[Expression]:
        if not body.HasField(slot):
            return None
        return self._decode_expression(getattr(body, slot), f"{path}.{slot}", depth + 1)

    def _expression_list(self, messages, path: str, depth: int) -> List[Expression]:
        exprs: List[Expression] = []
        index = 0
        while index < len(messages):
            exprs.append(
                self._decode_expression(messages[index], f"{path}[{index}]", depth + 1)
            )
            index += 1
        return exprs

    def _decode_expression(self, message, path: str, depth: int) -> Expression:
        if depth > self.max_depth:
            raise PlanDepthError(depth, self.max_depth, path=path)
        variant = message.WhichOneof("expr_type")
        if variant is None:
            variant_id = unrecognized_variant_id(message)
            if variant_id is None:
                raise StructuralError("expression has no active variant", path=path)
            logger.debug(f"Unrecognized expression variant id={variant_id} at {path}")
            return UnrecognizedExpression(variant_id, message.SerializeToString())
        body = getattr(message, variant)
        unknown = UnknownFields(unknown_field_bytes(message), unknown_field_bytes(body))
        if variant == "literal":
            return self._decode_literal(body, unknown)
        if variant == "unresolved_attribute":
            return UnresolvedAttribute(body.unparsed_identifier, unknown)
        if variant == "unresolved_function":
            arguments: List[Expression] = []
            index = 0
            while index < len(body.arguments):
                arguments.append(
                    self._decode_expression(
                        body.arguments[index], f"{path}.arguments[{index}]", depth + 1
                    )
                )
                index += 1
            return UnresolvedFunction(body.function_name, arguments, unknown)
        if variant == "expression_string":
            return ExpressionString(body.expression, unknown)
        inner = self._decode_expression(body.expr, f"{path}.alias", depth + 1)
        return Alias(inner, body.name, unknown)

    def _decode_literal(self, literal, unknown: UnknownFields) -> Literal:
        kind = literal.WhichOneof("literal_type")
        if kind is None or kind == "null":
            return Literal(None, unknown)
        return Literal(getattr(literal, kind), unknown)

    def _enum(self, enum_cls: Type, value: int, path: str):
        try:
            return enum_cls(value)
        except ValueError:
            logger.warning(
                f"Unrecognized {enum_cls.__name__} value {value} at {path}; "
                f"treating as UNSPECIFIED"
            )
            return enum_cls.UNSPECIFIED

    def _decode_read(self, body, path, depth, common, unknown) -> Read:
        named_table = None
        data_source = None
        read_type = body.WhichOneof("read_type")
        if read_type == "named_table":
            table = body.named_table
            named_table = NamedTable(
                table.unparsed_identifier, unknown_field_bytes(table)
            )
        elif read_type == "data_source":
            source = body.data_source
            schema = None
            if source.HasField("schema"):
                schema = source.schema
            data_source = DataSource(
                source.format,
                schema,
                dict(source.options),
                unknown_field_bytes(source),
            )
        return Read(named_table, data_source, common, unknown)

    def _decode_project(self, body, path, depth, common, unknown) -> Project:
        path = f"{path}.project"
        return Project(
            self._child(body, "input", path, depth),
            self._expression_list(body.expressions, f"{path}.expressions", depth),
            common,
            unknown,
        )

    def _decode_filter(self, body, path, depth, common, unknown) -> Filter:
        path = f"{path}.filter"
        return Filter(
            self._child(body, "input", path, depth),
            self._expression(body, "condition", path, depth),
            common,
            unknown,
        )

    def _decode_join(self, body, path, depth, common, unknown) -> Join:
        path = f"{path}.join"
        return Join(
            self._child(body, "left", path, depth),
            self._child(body, "right", path, depth),
            self._enum(JoinType, body.join_type, f"{path}.join_type"),
            self._expression(body, "join_condition", path, depth),
            list(body.using_columns),
            common,
            unknown,
        )

    def _decode_set_op(self, body, path, depth, common, unknown) -> SetOperation:
        path = f"{path}.set_op"
        return SetOperation(
            self._child(body, "left_input", path, depth),
            self._child(body, "right_input", path, depth),
            self._enum(SetOpType, body.set_op_type, f"{path}.set_op_type"),
            body.is_all,
            body.by_name,
            common,
            unknown,
        )

    def _decode_sort(self, body, path, depth, common, unknown) -> Sort:
        path = f"{path}.sort"
        sort_fields: List[SortField] = []
        index = 0
        while index < len(body.sort_fields):
            field_path = f"{path}.sort_fields[{index}]"
            message = body.sort_fields[index]
            sort_fields.append(
                SortField(
                    self._expression(message, "expression", field_path, depth),
                    self._enum(SortDirection, message.direction, field_path),
                    self._enum(SortNulls, message.nulls, field_path),
                    unknown_field_bytes(message),
                )
            )
            index += 1
        return Sort(
            self._child(body, "input", path, depth),
            sort_fields,
            body.is_global,
            common,
            unknown,
        )

    def _decode_limit(self, body, path, depth, common, unknown) -> Limit:
        path = f"{path}.limit"
        return Limit(self._child(body, "input", path, depth), body.limit, common, unknown)

    def _decode_aggregate(self, body, path, depth, common, unknown) -> Aggregate:
        path = f"{path}.aggregate"
        return Aggregate(
            self._child(body, "input", path, depth),
            self._expression_list(
                body.grouping_expressions, f"{path}.grouping_expressions", depth
            ),
            self._expression_list(
                body.result_expressions, f"{path}.result_expressions", depth
            ),
            common,
            unknown,
        )

    def _decode_sql(self, body, path, depth, common, unknown) -> SQL:
        return SQL(body.query, common, unknown)

    def _decode_local_relation(self, body, path, depth, common, unknown) -> LocalRelation:
        attributes = [
            QualifiedAttribute(
                attribute.name, attribute.type, unknown_field_bytes(attribute)
            )
            for attribute in body.attributes
        ]
        return LocalRelation(attributes, common, unknown)

    def _decode_sample(self, body, path, depth, common, unknown) -> Sample:
        path = f"{path}.sample"
        seed = None
        seed_unknown = b""
        if body.HasField("seed"):
            seed = body.seed.seed
            seed_unknown = unknown_field_bytes(body.seed)
        return Sample(
            self._child(body, "input", path, depth),
            body.lower_bound,
            body.upper_bound,
            body.with_replacement,
            seed,
            common,
            unknown,
            seed_unknown_fields=seed_unknown,
        )

    def _decode_offset(self, body, path, depth, common, unknown) -> Offset:
        path = f"{path}.offset"
        return Offset(
            self._child(body, "input", path, depth), body.offset, common, unknown
        )

    def _decode_deduplicate(self, body, path, depth, common, unknown) -> Deduplicate:
        path = f"{path}.deduplicate"
        return Deduplicate(
            self._child(body, "input", path, depth),
            list(body.column_names),
            body.all_columns_as_keys,
            common,
            unknown,
        )

    def _decode_range(self, body, path, depth, common, unknown) -> Range:
        end = None
        if body.HasField("end"):
            end = body.end
        step = None
        if body.HasField("step"):
            step = body.step
        num_partitions = None
        num_partitions_unknown = b""
        if body.HasField("num_partitions"):
            num_partitions = body.num_partitions.num_partitions
            num_partitions_unknown = unknown_field_bytes(body.num_partitions)
        return Range(
            body.start,
            end,
            step,
            num_partitions,
            common,
            unknown,
            num_partitions_unknown_fields=num_partitions_unknown,
        )

    def _decode_subquery_alias(self, body, path, depth, common, unknown) -> SubqueryAlias:
        path = f"{path}.subquery_alias"
        return SubqueryAlias(
            self._child(body, "input", path, depth),
            body.alias,
            list(body.qualifier),
            common,
            unknown,
        )

    def _decode_repartition(self, body, path, depth, common, unknown) -> Repartition:
        path = f"{path}.repartition"
        return Repartition(
            self._child(body, "input", path, depth),
            body.num_partitions,
            body.shuffle,
            common,
            unknown,
        )

    def _decode_unknown(self, body, path, depth, common, unknown) -> Unknown:
        return Unknown(common, unknown)


_default_codec = RelationCodec()


def encode(relation: Relation) -> bytes:
    """Serialize a relation tree with the default codec."""
    return _default_codec.encode(relation)


def decode(data: bytes) -> Relation:
    """Deserialize a relation tree with the default codec."""
    return _default_codec.decode(data)


def to_json(relation: Relation) -> str:
    """Render a relation tree as JSON with the default codec."""
    return _default_codec.to_json(relation)


def from_json(text: str) -> Relation:
    """Parse a relation tree from JSON with the default codec."""
    return _default_codec.from_json(text)
