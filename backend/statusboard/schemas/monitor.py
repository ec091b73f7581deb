"""Monitor and condition schemas consumed by the execution engine."""
import json
import re
from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Value a checker may publish in its context
ContextValue = Union[bool, int, float, str, list]

OPERATOR_ALIASES = {
    "eq": "==",
    "ne": "!=",
    "lt": "<",
    "lte": "<=",
    "gt": ">",
    "gte": ">=",
}

OPERATORS = ("==", "!=", "<=", ">=", "<", ">", "contains", "not_contains", "matches")

# "[STATUS_CODE] == 200", "BODY contains ok", "RESPONSE_TIME lt 500"
_CONDITION_PATTERN = re.compile(
    r"^\s*\[?(?P<key>[A-Za-z_][A-Za-z0-9_]*)\]?\s*"
    r"(?P<op>==|!=|<=|>=|<|>|not_contains|contains|matches|eq|ne|lte|lt|gte|gt)\s*"
    r"(?P<value>.*?)\s*$"
)


class MonitorType(str, Enum):
    """Protocols with a registered checker."""
    HTTP = "http"
    TCP = "tcp"
    DNS = "dns"
    PING = "ping"
    WEBSOCKET = "websocket"


class Condition(BaseModel):
    """A rule evaluated against a checker's context."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    key: str = Field(..., min_length=1)
    operator: str
    expected_value: Any = Field(None, alias="expectedValue")

    @field_validator("operator")
    @classmethod
    def normalize_operator(cls, value: str) -> str:
        op = OPERATOR_ALIASES.get(value.strip().lower(), value.strip().lower())
        if op not in OPERATORS:
            raise ValueError(f"Unsupported operator: {value}")
        return op

    @classmethod
    def parse(cls, expression: str) -> "Condition":
        """Build a condition from its string form, e.g. ``[STATUS_CODE] == 200``."""
        match = _CONDITION_PATTERN.match(expression)
        if not match:
            raise ValueError(f"Invalid condition: {expression!r}")
        return cls(
            key=match.group("key"),
            operator=match.group("op"),
            expected_value=_parse_literal(match.group("value")),
        )

    def describe(self) -> str:
        return f"{self.key} {self.operator} {self.expected_value}"


def _parse_literal(raw: str) -> Any:
    """Interpret a condition's right-hand side as JSON where possible."""
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in "\"'":
        return raw[1:-1]
    try:
        return json.loads(raw)
    except ValueError:
        return raw


class MonitorDefinition(BaseModel):
    """Monitor configuration as handed to the runner. Immutable during a check."""
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    name: str = Field(..., min_length=1)
    type: str
    url: str
    interval: int = Field(default=60, gt=0)
    conditions: List[Condition] = Field(default_factory=list)
    public: bool = True
    group: Optional[str] = None

    @field_validator("type")
    @classmethod
    def lowercase_type(cls, value: str) -> str:
        # Unknown types are kept so the runner can report them
        return value.strip().lower()

    @field_validator("conditions", mode="before")
    @classmethod
    def coerce_conditions(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            value = json.loads(value) if value.strip() else []
        return [Condition.parse(item) if isinstance(item, str) else item for item in value]

    @classmethod
    def from_model(cls, monitor) -> "MonitorDefinition":
        """Build a definition from a ``models.Monitor`` row."""
        return cls(
            id=monitor.id,
            name=monitor.name,
            type=monitor.type,
            url=monitor.url,
            interval=monitor.interval or 60,
            conditions=monitor.conditions,
            public=bool(monitor.public),
            group=monitor.group_name,
        )
