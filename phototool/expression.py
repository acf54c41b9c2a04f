"""
Classification expressions: a small template language compiled once per run
and evaluated against each file's fields.

Syntax is literal text with ``{field}`` substitutions. A substitution may pipe
its value through filters, e.g. ``{name|lower}`` or ``{dsc|default:nodsc}``.
Filter arguments follow the filter name separated by ``:``. ``{{`` and ``}}``
produce literal braces.
"""

from dataclasses import dataclass
from pathlib import PurePath
from typing import Any, Callable, Collection, Dict, List, Mapping, Optional, Tuple

from .errors import ExpressionCompileError, ExpressionEvaluationError
from .records import FIELDS, FileRecord


@dataclass(frozen=True)
class FilterSpec:
    """A named string transformation with its argument converters."""
    func: Callable[..., Optional[str]]
    arg_types: Tuple[Callable[[str], Any], ...] = ()
    required_args: int = 0
    handles_missing: bool = False


def _slice(value: str, start: int, end: Optional[int] = None) -> str:
    return value[start:end]


def _pad(value: str, width: int, char: str = "0") -> str:
    return value.rjust(width, char)


def _single_char(arg: str) -> str:
    if len(arg) != 1:
        raise ValueError(f"expected a single character, got {arg!r}")
    return arg


FILTERS: Dict[str, FilterSpec] = {
    "upper": FilterSpec(str.upper),
    "lower": FilterSpec(str.lower),
    "title": FilterSpec(str.title),
    "strip": FilterSpec(str.strip),
    "default": FilterSpec(lambda value, fallback: fallback if value is None else value,
                          (str,), required_args=1, handles_missing=True),
    "slice": FilterSpec(_slice, (int, int), required_args=1),
    "replace": FilterSpec(str.replace, (str, str), required_args=2),
    "pad": FilterSpec(_pad, (int, _single_char), required_args=1),
}


@dataclass(frozen=True)
class Literal:
    text: str

    def render(self, context: Mapping[str, Optional[str]]) -> str:
        return self.text


@dataclass(frozen=True)
class FieldRef:
    name: str
    filters: Tuple[Tuple[str, Tuple[Any, ...]], ...] = ()

    def render(self, context: Mapping[str, Optional[str]]) -> str:
        value = context[self.name]
        for filter_name, args in self.filters:
            filter_spec = FILTERS[filter_name]
            if value is None and not filter_spec.handles_missing:
                continue
            value = filter_spec.func(value, *args)

        if value is None:
            raise ExpressionEvaluationError(f"field '{self.name}' has no value")
        return value


@dataclass(frozen=True)
class CompiledExpression:
    """Immutable compiled form of an expression; safe to share between files."""
    source: str
    segments: Tuple[Any, ...]

    @property
    def fields(self) -> Tuple[str, ...]:
        return tuple(seg.name for seg in self.segments if isinstance(seg, FieldRef))

    def render(self, context: Mapping[str, Optional[str]]) -> str:
        return "".join(segment.render(context) for segment in self.segments)


def compile_expression(text: str, fields: Collection[str] = FIELDS) -> CompiledExpression:
    """Parse ``text`` into a CompiledExpression, validating fields and filters."""
    if not isinstance(text, str) or not text:
        raise ExpressionCompileError("Expression is empty")

    segments: List[Any] = []
    literal: List[str] = []
    i = 0
    while i < len(text):
        char = text[i]
        if char == "{" and text.startswith("{{", i):
            literal.append("{")
            i += 2
        elif char == "}" and text.startswith("}}", i):
            literal.append("}")
            i += 2
        elif char == "{":
            end = text.find("}", i + 1)
            if end < 0:
                raise ExpressionCompileError(f"Unterminated '{{' at position {i} in {text!r}")
            if literal:
                segments.append(Literal("".join(literal)))
                literal = []
            segments.append(_parse_field(text[i + 1:end], i, fields))
            i = end + 1
        elif char == "}":
            raise ExpressionCompileError(f"Unmatched '}}' at position {i} in {text!r}")
        else:
            literal.append(char)
            i += 1

    if literal:
        segments.append(Literal("".join(literal)))
    return CompiledExpression(source=text, segments=tuple(segments))


def _parse_field(body: str, position: int, fields: Collection[str]) -> FieldRef:
    if "{" in body:
        raise ExpressionCompileError(f"Nested '{{' in substitution at position {position}")

    name, *filter_texts = [part.strip() for part in body.split("|")]
    if not name:
        raise ExpressionCompileError(f"Empty substitution at position {position}")
    if name not in fields:
        known = ", ".join(sorted(fields))
        raise ExpressionCompileError(f"Unknown field '{name}' at position {position} (known: {known})")

    return FieldRef(name=name, filters=tuple(_parse_filter(t, position) for t in filter_texts))


def _parse_filter(text: str, position: int) -> Tuple[str, Tuple[Any, ...]]:
    filter_name, *raw_args = text.split(":")
    filter_spec = FILTERS.get(filter_name.strip())
    if filter_spec is None:
        raise ExpressionCompileError(f"Unknown filter '{filter_name}' at position {position}")

    if not filter_spec.required_args <= len(raw_args) <= len(filter_spec.arg_types):
        raise ExpressionCompileError(
            f"Filter '{filter_name}' takes {filter_spec.required_args}-{len(filter_spec.arg_types)} "
            f"arguments, got {len(raw_args)} at position {position}"
        )

    try:
        args = tuple(convert(arg) for convert, arg in zip(filter_spec.arg_types, raw_args))
    except ValueError as e:
        raise ExpressionCompileError(f"Bad argument for filter '{filter_name}': {e}") from e
    return filter_name.strip(), args


def evaluate(compiled: CompiledExpression, record: FileRecord) -> str:
    """Evaluate the expression for one file, producing a destination-relative path."""
    try:
        result = compiled.render(record)
    except ExpressionEvaluationError as e:
        raise ExpressionEvaluationError(
            f"Failed to evaluate expression for {record.path}: {e}", path=record.path
        ) from e
    except Exception as e:
        raise ExpressionEvaluationError(
            f"Failed to evaluate expression for {record.path}: {type(e).__name__}: {e}",
            path=record.path
        ) from e

    if not isinstance(result, str):
        raise ExpressionEvaluationError(
            f"Expression result for {record.path} is not a string: {result!r}", path=record.path
        )
    if not result.strip():
        raise ExpressionEvaluationError(f"Expression result for {record.path} is empty",
                                        path=record.path)
    if PurePath(result).is_absolute():
        raise ExpressionEvaluationError(
            f"Expression result for {record.path} is an absolute path: {result}", path=record.path
        )
    return result
