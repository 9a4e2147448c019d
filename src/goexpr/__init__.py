"""Evaluate a single Go expression against caller-supplied bindings."""

from .parser_rd import ParseError, parse_expr
from .lexer_rd import LexError
from .evaluator import evaluate
from .expression import Expression, args_from_python, make_package
from .values import box, from_python, make_func, new_var, py_func, to_python, value_of
from .gotypes import (
    BUILTIN_TYPES,
    ChanDir,
    GoType,
    Kind,
    StructField,
    add_method,
    any_t,
    array_of,
    bool_t,
    byte_t,
    chan_of,
    complex64_t,
    complex128_t,
    error_t,
    float32_t,
    float64_t,
    func_of,
    int_t,
    int8_t,
    int16_t,
    int32_t,
    int64_t,
    interface_of,
    map_of,
    named_type,
    ptr_to,
    rune_t,
    slice_of,
    string_t,
    struct_of,
    uint_t,
    uint8_t,
    uint16_t,
    uint32_t,
    uint64_t,
    uintptr_t,
)
from .types import (
    Value,
    Data,
    Datas,
    TypeValue,
    Package,
    BuiltinFunc,
    Regular,
    TypedConst,
    UntypedConst,
    UntypedBool,
    NilData,
    GoEvalError,
    UndefinedIdentError,
    InvalidSelectorError,
    UnsupportedError,
    UnsupportedSyntaxError,
    InvalidLiteralError,
    NotCallableError,
    ConversionEllipsisError,
    IndirectionError,
    ArrayBoundError,
    NegativeArrayBoundError,
    IndexOpError,
    IndexOutOfRangeError,
    SliceTypeError,
    SliceBoundsError,
    CompositeLitError,
    TypeAssertOperandError,
    ImpossibleAssertionError,
    AssertionFailedError,
    StructTagError,
    NotExprError,
    NotTypeError,
    ConversionError,
    OperatorError,
    CallError,
    TypeConstructionError,
    RuntimePanic,
    InternalError,
)
from .utils import format_result, format_value

__all__ = [
    "ParseError",
    "LexError",
    "parse_expr",
    "evaluate",
    "Expression",
    "args_from_python",
    "make_package",
    "box",
    "from_python",
    "make_func",
    "new_var",
    "py_func",
    "to_python",
    "value_of",
    "BUILTIN_TYPES",
    "ChanDir",
    "GoType",
    "Kind",
    "StructField",
    "add_method",
    "any_t",
    "array_of",
    "bool_t",
    "byte_t",
    "chan_of",
    "complex64_t",
    "complex128_t",
    "error_t",
    "float32_t",
    "float64_t",
    "func_of",
    "int_t",
    "int8_t",
    "int16_t",
    "int32_t",
    "int64_t",
    "interface_of",
    "map_of",
    "named_type",
    "ptr_to",
    "rune_t",
    "slice_of",
    "string_t",
    "struct_of",
    "uint_t",
    "uint8_t",
    "uint16_t",
    "uint32_t",
    "uint64_t",
    "uintptr_t",
    "Value",
    "Data",
    "Datas",
    "TypeValue",
    "Package",
    "BuiltinFunc",
    "Regular",
    "TypedConst",
    "UntypedConst",
    "UntypedBool",
    "NilData",
    "GoEvalError",
    "UndefinedIdentError",
    "InvalidSelectorError",
    "UnsupportedError",
    "UnsupportedSyntaxError",
    "InvalidLiteralError",
    "NotCallableError",
    "ConversionEllipsisError",
    "IndirectionError",
    "ArrayBoundError",
    "NegativeArrayBoundError",
    "IndexOpError",
    "IndexOutOfRangeError",
    "SliceTypeError",
    "SliceBoundsError",
    "CompositeLitError",
    "TypeAssertOperandError",
    "ImpossibleAssertionError",
    "AssertionFailedError",
    "StructTagError",
    "NotExprError",
    "NotTypeError",
    "ConversionError",
    "OperatorError",
    "CallError",
    "TypeConstructionError",
    "RuntimePanic",
    "InternalError",
    "format_result",
    "format_value",
]
