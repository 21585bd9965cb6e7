from dataclasses import dataclass, field
from typing import Any, Dict

from .operations import Operation


@dataclass(frozen=True)
class OutputRecord:
    """One output item of a run, paired with the input item it came from."""
    json: Dict[str, Any] = field(default_factory=dict)
    paired_item: int = 0

    @property
    def is_error(self) -> bool:
        return "error" in self.json

    def to_dict(self) -> Dict[str, Any]:
        return {"json": dict(self.json), "pairedItem": {"item": self.paired_item}}


def success_record(operation: Operation, item_index: int, **fields: Any) -> OutputRecord:
    payload = {"success": True}
    payload.update(fields)
    payload["operation"] = operation.value
    return OutputRecord(json=payload, paired_item=item_index)


def error_record(message: str, item_index: int) -> OutputRecord:
    return OutputRecord(json={"error": message}, paired_item=item_index)
