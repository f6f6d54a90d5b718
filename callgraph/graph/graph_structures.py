# callgraph/graph/graph_structures.py
from typing import Any, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .exceptions import InvalidArgumentError


class QualifiedName(BaseModel):
    """Compound key identifying a callable: the namespace (module/class path) plus its simple name."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    namespace: str = Field(default="", description="Dotted module/class path. Empty for top-level names.")
    name: str = Field(min_length=1, description="Simple name of the callable.")

    @classmethod
    def from_dotted(cls, dotted_name: str) -> "QualifiedName":
        """
        Builds a QualifiedName from a dotted string, splitting on the last dot.

        Args:
            dotted_name: e.g. "pkg.mod.Class.method".

        Returns:
            QualifiedName(namespace="pkg.mod.Class", name="method").
        """
        if not dotted_name:
            raise InvalidArgumentError("dotted_name")
        namespace, _, name = dotted_name.rpartition(".")
        if not name:
            raise InvalidArgumentError("dotted_name", f"'{dotted_name}' has no simple name after the last dot")
        return cls(namespace=namespace, name=name)

    def __str__(self) -> str:
        return f"{self.namespace}.{self.name}" if self.namespace else self.name


class Position(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    line: int = Field(ge=1, description="1-based line number.")
    column: int = Field(ge=0, description="0-based column offset.")

    def as_tuple(self) -> Tuple[int, int]:
        return (self.line, self.column)

    def __lt__(self, other: "Position") -> bool:
        return self.as_tuple() < other.as_tuple()

    def __le__(self, other: "Position") -> bool:
        return self.as_tuple() <= other.as_tuple()


class Range(BaseModel):
    """Source-location span of a reference, start inclusive, end exclusive."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    start: Position
    end: Position

    @model_validator(mode="after")
    def check_end_not_before_start(self) -> "Range":
        if self.end < self.start:
            raise ValueError(f"Range end {self.end.as_tuple()} precedes start {self.start.as_tuple()}")
        return self

    @classmethod
    def from_coordinates(cls, start_line: int, start_column: int, end_line: int, end_column: int) -> "Range":
        return cls(
            start=Position(line=start_line, column=start_column),
            end=Position(line=end_line, column=end_column),
        )

    @classmethod
    def from_code_range(cls, code_range: Any) -> "Range":
        # Accepts libcst.metadata.CodeRange (start/end CodePosition with line/column)
        if code_range is None:
            raise InvalidArgumentError("code_range")
        return cls.from_coordinates(
            code_range.start.line, code_range.start.column,
            code_range.end.line, code_range.end.column,
        )

    def __str__(self) -> str:
        return f"{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
