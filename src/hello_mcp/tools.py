"""Tool definitions and argument validation for the MCP dispatch core."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, ValidationError

_PYDANTIC_EXPECTED = {
    "string_type": "string",
    "int_type": "integer",
    "int_from_float": "integer",
    "float_type": "number",
    "bool_type": "boolean",
    "dict_type": "object",
    "model_type": "object",
    "list_type": "array",
    "tuple_type": "array",
    "literal_error": "literal",
    "enum": "enum",
}


class ToolParameters(BaseModel):
    """Base parameters schema for MCP tools.

    Unknown fields are ignored so that older servers accept arguments sent by
    newer clients. Strict mode keeps JSON types from being coerced.
    """

    model_config = ConfigDict(extra="ignore", strict=True)


@dataclass(frozen=True)
class TextContent:
    """A single text content block."""

    text: str
    type: str = "text"

    def to_dict(self) -> dict[str, str]:
        """Serialize the block to its wire form."""
        return {"type": self.type, "text": self.text}


@dataclass(frozen=True)
class ToolOutcome:
    """Uniform result of a tool invocation.

    Attributes:
        content: Ordered content blocks produced by the tool.
        is_error: ``True`` when the tool reports a business-level failure.

    """

    content: tuple[TextContent, ...] = ()
    is_error: bool = False

    @classmethod
    def success(cls, *texts: str) -> ToolOutcome:
        """Build a successful outcome from text fragments."""
        return cls(content=tuple(TextContent(text) for text in texts))

    @classmethod
    def error(cls, *texts: str) -> ToolOutcome:
        """Build a tool-level error outcome from text fragments."""
        return cls(content=tuple(TextContent(text) for text in texts), is_error=True)

    @property
    def text(self) -> str:
        """Concatenated text of all content blocks."""
        return "\n".join(block.text for block in self.content)

    def to_payload(self) -> dict[str, Any]:
        """Serialize the outcome as an MCP ``tools/call`` result."""
        payload: dict[str, Any] = {
            "content": [block.to_dict() for block in self.content]
        }
        if self.is_error:
            payload["isError"] = True
        return payload


ToolHandler = Callable[
    [dict[str, Any]], Union[ToolOutcome, Awaitable[ToolOutcome]]
]


@dataclass(frozen=True)
class ValidationIssue:
    """A single argument validation failure."""

    path: str
    expected: str
    actual: str
    message: str

    def to_dict(self) -> dict[str, str]:
        """Serialize the issue for a JSON-RPC error ``data`` member."""
        return {
            "path": self.path,
            "expected": self.expected,
            "actual": self.actual,
            "message": self.message,
        }


class ToolError(Exception):
    """Raised by a tool handler to report a declared, business-level failure.

    The invoker turns it into an error outcome carrying the exception message.
    ``details`` is logged but not sent to the caller.
    """

    def __init__(self, message: str, details: object | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def log_context(self) -> dict[str, object]:
        """Extra fields logged alongside the failure."""
        return {"details": self.details}


class InvalidParamsError(ValueError):
    """Raised when tool arguments do not match the declared schema."""

    def __init__(self, tool_name: str, issues: list[ValidationIssue]) -> None:
        """Store the failing tool name and its validation issues."""
        super().__init__(f"Invalid params for tool '{tool_name}'")
        self.tool_name = tool_name
        self.issues = issues


def json_type_name(value: Any) -> str:
    """Return the JSON type name of a decoded JSON value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _schema_type(schema: dict[str, Any], name: str) -> str | None:
    """Look up the declared JSON type of a top-level property."""
    prop = schema.get("properties", {}).get(name)
    if not prop:
        return None
    if "type" in prop:
        return str(prop["type"])
    variants = [item["type"] for item in prop.get("anyOf", []) if "type" in item]
    return " | ".join(variants) or None


@dataclass(frozen=True)
class ToolDefinition:
    """Description of a tool that can be registered with the server.

    Attributes:
        name: Unique name of the tool.
        description: Human-readable description of the tool purpose.
        parameters_model: Pydantic model used to validate input arguments.
        handler: Callable that executes the tool logic.
        title: Optional display title.
    """

    name: str
    description: str
    parameters_model: type[ToolParameters]
    handler: ToolHandler
    title: str | None = None
    input_schema: dict[str, Any] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "input_schema", self.parameters_model.model_json_schema()
        )

    def validate(self, arguments: Any) -> dict[str, Any]:
        """Validate incoming tool arguments.

        Args:
            arguments: Decoded ``arguments`` member of a ``tools/call`` request.

        Raises:
            InvalidParamsError: If the arguments do not match the schema.

        Returns:
            Validated argument dictionary, absent optional fields defaulted.
        """

        if not isinstance(arguments, dict):
            raise InvalidParamsError(
                self.name,
                [
                    ValidationIssue(
                        path="",
                        expected="object",
                        actual=json_type_name(arguments),
                        message="Arguments must be an object",
                    )
                ],
            )
        try:
            model = self.parameters_model.model_validate(arguments)
        except ValidationError as error:
            raise InvalidParamsError(self.name, self._issues_from(error)) from error
        return model.model_dump()

    def _issues_from(self, error: ValidationError) -> list[ValidationIssue]:
        issues = []
        for detail in error.errors():
            loc = [str(part) for part in detail["loc"]]
            path = ".".join(loc)
            expected = _PYDANTIC_EXPECTED.get(detail["type"])
            if expected is None and loc:
                expected = _schema_type(self.input_schema, loc[0])
            if detail["type"] == "missing":
                actual = "missing"
            else:
                actual = json_type_name(detail.get("input"))
            issues.append(
                ValidationIssue(
                    path=path,
                    expected=expected or detail["type"],
                    actual=actual,
                    message=detail["msg"],
                )
            )
        return issues

    def metadata(self) -> dict[str, Any]:
        """Return a discovery-friendly description of the tool."""

        entry: dict[str, Any] = {"name": self.name}
        if self.title is not None:
            entry["title"] = self.title
        entry["description"] = self.description
        entry["inputSchema"] = self.input_schema
        return entry
