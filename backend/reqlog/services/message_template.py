"""Message template parser — named holes rendered from event properties."""

import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple, Union

TOKEN_PATTERN = re.compile(r"\{\{|\}\}|\{[^{}]*\}")

HOLE_PATTERN = re.compile(
    r"^\{(?P<operator>[@$]?)(?P<name>[A-Za-z0-9_]+)"
    r"(?:,(?P<alignment>-?\d+))?"
    r"(?::(?P<format>[^{}]+))?\}$"
)

# Fixed-point patterns such as "0.0000" written the .NET way
FIXED_POINT_PATTERN = re.compile(r"^0(?:\.(0+))?$")


@dataclass(frozen=True)
class TextToken:
    text: str

    def render(self, properties: Mapping[str, Any]) -> str:
        return self.text


@dataclass(frozen=True)
class PropertyToken:
    name: str
    raw: str
    format: Optional[str] = None
    alignment: Optional[int] = None
    operator: str = ""

    def render(self, properties: Mapping[str, Any]) -> str:
        if self.name not in properties:
            return self.raw

        rendered = format_value(properties[self.name], self.format)
        if self.alignment is None:
            return rendered
        width = abs(self.alignment)
        if self.alignment < 0:
            return rendered.ljust(width)
        return rendered.rjust(width)


Token = Union[TextToken, PropertyToken]


def python_format_spec(spec: str) -> str:
    """Translate a .NET-style fixed-point pattern into a Python format spec."""
    match = FIXED_POINT_PATTERN.match(spec)
    if match:
        decimals = match.group(1) or ""
        return f".{len(decimals)}f"
    return spec


def format_value(value: Any, spec: Optional[str] = None) -> str:
    if value is None:
        return "null"
    if spec:
        try:
            return format(value, python_format_spec(spec))
        except (TypeError, ValueError):
            return str(value)
    return str(value)


class MessageTemplate:
    """
    A parsed message template.

    Supports ``{Name}``, ``{Name:format}``, ``{Name,alignment}`` and the
    ``@``/``$`` capturing operators. ``{{`` and ``}}`` escape braces.
    Holes that do not parse are kept as literal text.
    """

    def __init__(self, text: str, tokens: List[Token]):
        self.text = text
        self.tokens = tokens

    @classmethod
    def parse(cls, text: str) -> "MessageTemplate":
        tokens: List[Token] = []
        literal: List[str] = []
        position = 0

        for match in TOKEN_PATTERN.finditer(text):
            literal.append(text[position:match.start()])
            position = match.end()
            raw = match.group(0)

            if raw == "{{":
                literal.append("{")
                continue
            if raw == "}}":
                literal.append("}")
                continue

            hole = HOLE_PATTERN.match(raw)
            if hole is None:
                literal.append(raw)
                continue

            if literal:
                tokens.append(TextToken("".join(literal)))
                literal = []
            alignment = hole.group("alignment")
            tokens.append(PropertyToken(
                name=hole.group("name"),
                raw=raw,
                format=hole.group("format"),
                alignment=int(alignment) if alignment is not None else None,
                operator=hole.group("operator"),
            ))

        literal.append(text[position:])
        remainder = "".join(literal)
        if remainder:
            tokens.append(TextToken(remainder))
        return cls(text, tokens)

    @property
    def property_names(self) -> Tuple[str, ...]:
        return tuple(t.name for t in self.tokens if isinstance(t, PropertyToken))

    def render(self, properties: Mapping[str, Any]) -> str:
        return "".join(token.render(properties) for token in self.tokens)

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"MessageTemplate({self.text!r})"
