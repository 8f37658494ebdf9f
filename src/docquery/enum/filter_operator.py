from enum import StrEnum


class FieldOperator(StrEnum):
    """
    Internal enumeration of the binary comparison operators of the wire filter.

    Important: Internal Use Only
        End-users express operators with their short symbols (`"<"`, `"in"`,
        `"array-contains"`, ...) when calling [`Query.where()`][docquery.models.query.Query.where].
    """

    LESS_THAN = "LESS_THAN"
    LESS_THAN_OR_EQUAL = "LESS_THAN_OR_EQUAL"
    GREATER_THAN = "GREATER_THAN"
    GREATER_THAN_OR_EQUAL = "GREATER_THAN_OR_EQUAL"
    EQUAL = "EQUAL"
    NOT_EQUAL = "NOT_EQUAL"
    IN = "IN"
    NOT_IN = "NOT_IN"
    ARRAY_CONTAINS = "ARRAY_CONTAINS"
    ARRAY_CONTAINS_ANY = "ARRAY_CONTAINS_ANY"


class UnaryOperator(StrEnum):
    """Internal enumeration of the unary (operand-less) wire filters."""

    IS_NULL = "IS_NULL"
    IS_NAN = "IS_NAN"


class CompositeOperator(StrEnum):
    """Internal enumeration of the composite wire filters."""

    AND = "AND"
    OR = "OR"


# Short symbol -> wire operator
OPERATOR_SYMBOLS = {
    "<": FieldOperator.LESS_THAN,
    "<=": FieldOperator.LESS_THAN_OR_EQUAL,
    ">": FieldOperator.GREATER_THAN,
    ">=": FieldOperator.GREATER_THAN_OR_EQUAL,
    "==": FieldOperator.EQUAL,
    "!=": FieldOperator.NOT_EQUAL,
    "in": FieldOperator.IN,
    "not-in": FieldOperator.NOT_IN,
    "array-contains": FieldOperator.ARRAY_CONTAINS,
    "array-contains-any": FieldOperator.ARRAY_CONTAINS_ANY,
}

SYMBOLS_BY_OPERATOR = {op: sym for sym, op in OPERATOR_SYMBOLS.items()}

INEQUALITY_SYMBOLS = frozenset({"<", "<=", ">", ">=", "!=", "not-in"})
