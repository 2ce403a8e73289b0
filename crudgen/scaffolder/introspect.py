"""Read a generated Mongoose model back into view fields.

The ``views`` command renders its form and table from the model file already
on disk rather than from a fresh ``EntitySpec``, so hand edits to the schema
(extra fields, arrays, nested objects) show up in the view.

Only the object literal passed to ``new mongoose.Schema(...)`` is examined.
It is tokenised and parsed into a small value tree; anything the parser does
not understand (default-value functions, validators, regexes) is skipped as
an opaque value rather than failing the whole read.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

from .models import ScaffoldError
from .type_map import html_input_type


# Identity and audit paths never shown in forms or tables.
INTERNAL_FIELDS: frozenset[str] = frozenset({"id", "_id", "createdAt", "updatedAt", "__v"})


class MissingArtifactError(ScaffoldError):
    """A dependency artifact (model, controller, bootstrap file) is absent."""

    def __init__(self, path: Path, what: str = "artifact") -> None:
        self.path = Path(path)
        self.what = what
        super().__init__(f"{what} not found: {self.path}")


class ModelParseError(ScaffoldError):
    """The model file exists but contains no recognisable schema."""


class ViewField(BaseModel):
    """One form input / table column derived from a model path."""
    name: str
    input_type: str = Field(default="text", description="HTML input type or 'array'")
    required: bool = False
    multiple: bool = False
    children: list["ViewField"] = Field(default_factory=list)


ViewField.model_rebuild()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def read_model_fields(path: Path) -> list[ViewField]:
    """Load the model file at *path* and return its view fields.

    Raises:
        MissingArtifactError: If the model file does not exist.
        ModelParseError: If no schema object literal can be found.
    """
    model_path = Path(path)
    if not model_path.is_file():
        raise MissingArtifactError(model_path, "Model")
    source = await asyncio.to_thread(model_path.read_text, encoding="utf-8")
    return parse_model_source(source, origin=str(model_path))


def parse_model_source(source: str, origin: str = "<model>") -> list[ViewField]:
    """Parse Mongoose model source text into view fields."""
    match = re.search(r"new\s+(?:mongoose\s*\.\s*)?Schema\s*\(", source)
    if match is None:
        raise ModelParseError(f"No mongoose.Schema(...) found in {origin}")

    tokens = _tokenize(source[match.end():])
    parser = _Parser(tokens)
    schema = parser.parse_value()
    if schema[0] != "object":
        raise ModelParseError(f"Schema definition in {origin} is not an object literal")
    return _fields_from_object(schema[1])


# ---------------------------------------------------------------------------
# Schema interpretation
# ---------------------------------------------------------------------------

def _fields_from_object(entries: list[tuple[str, Any]]) -> list[ViewField]:
    fields: list[ViewField] = []
    for key, value in entries:
        if key in INTERNAL_FIELDS:
            continue
        field = _field_from_value(key, value)
        if field is not None:
            fields.append(field)
    return fields


def _field_from_value(name: str, value: tuple) -> Optional[ViewField]:
    kind = value[0]

    if kind == "array":
        return ViewField(name=name, input_type="array", multiple=True)

    if kind == "schema":
        return ViewField(name=name, children=_fields_from_object(value[1]))

    if kind == "object":
        options = dict(value[1])
        if "type" not in options:
            # Plain nested object: every key is a sub-path.
            return ViewField(name=name, children=_fields_from_object(value[1]))
        type_value = options["type"]
        required = _is_required(options.get("required"))
        if type_value[0] == "array":
            return ViewField(name=name, input_type="array", multiple=True, required=required)
        if type_value[0] in ("object", "schema"):
            return ViewField(
                name=name,
                required=required,
                children=_fields_from_object(type_value[1]),
            )
        return ViewField(
            name=name,
            input_type=html_input_type(_type_token(type_value)),
            required=required,
        )

    return ViewField(name=name, input_type=html_input_type(_type_token(value)))


def _type_token(value: tuple) -> str:
    """Reduce an identifier such as ``mongoose.Schema.Types.Number`` to ``Number``."""
    if value[0] == "ident":
        return value[1].split(".")[-1]
    if value[0] == "string":
        text = value[1]
        return text[:1].upper() + text[1:]
    return ""


def _is_required(value: Optional[tuple]) -> bool:
    if value is None:
        return False
    if value[0] == "ident":
        return value[1] == "true"
    if value[0] == "array" and value[1]:
        return _is_required(value[1][0])
    # Validator functions and other expressions: treat as required.
    return value[0] == "raw"


# ---------------------------------------------------------------------------
# Tokeniser
# ---------------------------------------------------------------------------

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<line_comment>//[^\n]*)
  | (?P<block_comment>/\*.*?\*/)
  | (?P<string>'(?:\\.|[^'\\])*'|"(?:\\.|[^"\\])*"|`(?:\\.|[^`\\])*`)
  | (?P<ident>[A-Za-z_$][A-Za-z0-9_$]*(?:\s*\.\s*[A-Za-z_$][A-Za-z0-9_$]*)*)
  | (?P<number>\d+(?:\.\d+)?)
  | (?P<punct>[{}\[\](),:])
  | (?P<other>.)
    """,
    re.VERBOSE | re.DOTALL,
)


def _tokenize(source: str) -> list[tuple[str, str]]:
    tokens: list[tuple[str, str]] = []
    for match in _TOKEN_RE.finditer(source):
        kind = match.lastgroup
        if kind in ("ws", "line_comment", "block_comment"):
            continue
        text = match.group()
        if kind == "ident":
            text = re.sub(r"\s+", "", text)
        tokens.append((kind, text))
    return tokens


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

_CLOSERS = {"}", "]", ")"}
_OPENERS = {"{": "}", "[": "]", "(": ")"}


class _Parser:
    """Recursive-descent parser for the object-literal subset used by schemas.

    Values are tuples: ``("object", [(key, value), ...])``,
    ``("array", [value, ...])``, ``("schema", entries)`` for
    ``new Schema({...})``, ``("ident", name)``, ``("string", text)``,
    ``("number", text)`` or ``("raw", text)`` for anything else.
    """

    def __init__(self, tokens: list[tuple[str, str]]) -> None:
        self.tokens = tokens
        self.pos = 0

    def peek(self) -> tuple[str, str]:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return ("eof", "")

    def advance(self) -> tuple[str, str]:
        token = self.peek()
        self.pos += 1
        return token

    def expect(self, text: str) -> None:
        token = self.advance()
        if token[1] != text:
            raise ModelParseError(f"Expected {text!r} but found {token[1]!r}")

    def parse_value(self) -> tuple:
        kind, text = self.peek()
        if text == "{":
            return ("object", self.parse_object())
        if text == "[":
            return ("array", self.parse_array())
        if kind == "ident" and text == "new":
            return self.parse_new()
        if kind in ("ident", "string", "number"):
            start = self.pos
            self.advance()
            if self.peek()[1] in (",", "}", "]", ")") or self.peek()[0] == "eof":
                if kind == "string":
                    return ("string", text[1:-1])
                return (kind, text)
            self.pos = start
        return ("raw", self.skip_expression())

    def parse_object(self) -> list[tuple[str, Any]]:
        self.expect("{")
        entries: list[tuple[str, Any]] = []
        while True:
            kind, text = self.peek()
            if text == "}":
                self.advance()
                return entries
            if kind == "eof":
                raise ModelParseError("Unterminated object literal")
            if text == ",":
                self.advance()
                continue
            if kind in ("ident", "string", "number") and self._next_is_colon():
                self.advance()
                self.expect(":")
                key = text[1:-1] if kind == "string" else text
                entries.append((key, self.parse_value()))
            else:
                # Spread, shorthand or method: not a schema path.
                self.skip_expression()

    def parse_array(self) -> list[tuple]:
        self.expect("[")
        items: list[tuple] = []
        while True:
            kind, text = self.peek()
            if text == "]":
                self.advance()
                return items
            if kind == "eof":
                raise ModelParseError("Unterminated array literal")
            if text == ",":
                self.advance()
                continue
            items.append(self.parse_value())

    def parse_new(self) -> tuple:
        start = self.pos
        self.advance()
        kind, text = self.advance()
        if kind == "ident" and text.split(".")[-1] == "Schema" and self.peek()[1] == "(":
            self.advance()
            if self.peek()[1] == "{":
                entries = self.parse_object()
                self.skip_until_close(")")
                return ("schema", entries)
        self.pos = start
        return ("raw", self.skip_expression())

    def skip_expression(self) -> str:
        """Consume tokens up to the next top-level ``,`` or closing bracket."""
        parts: list[str] = []
        depth = 0
        while True:
            kind, text = self.peek()
            if kind == "eof":
                break
            if depth == 0 and (text == "," or text in _CLOSERS):
                break
            if text in _OPENERS:
                depth += 1
            elif text in _CLOSERS:
                depth -= 1
            parts.append(text)
            self.advance()
        return " ".join(parts)

    def skip_until_close(self, closer: str) -> None:
        depth = 0
        while True:
            kind, text = self.advance()
            if kind == "eof":
                return
            if text in _OPENERS:
                depth += 1
            elif text in _CLOSERS:
                if depth == 0 and text == closer:
                    return
                depth -= 1

    def _next_is_colon(self) -> bool:
        if self.pos + 1 < len(self.tokens):
            return self.tokens[self.pos + 1][1] == ":"
        return False
