"""
BatchItem dataclass for batch runner outcomes.
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class BatchItem(Generic[T, R]):
    """Outcome of one input passed through the batch runner.

    Exactly one of result or error is meaningful once the item is settled.
    """

    input: T
    result: R | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self, input_key: str = "input") -> dict[str, Any]:
        out: dict[str, Any] = {input_key: self.input, "result": self.result}
        if self.error is not None:
            out["error"] = self.error
        return out
