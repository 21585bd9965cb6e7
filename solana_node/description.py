import os
import logging
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

DESCRIPTION_FILE = os.path.join(os.path.dirname(os.path.abspath(__file__)), "node_description.yaml")


class NodeDescription:
    """
    The node's operation menu and parameter definitions, loaded from YAML.
    """

    def __init__(self, path: str = DESCRIPTION_FILE):
        self.path = path
        self.data: Dict[str, Any] = {}
        self.properties: Dict[str, Dict[str, Any]] = {}
        self.loaded = False

    def load(self) -> "NodeDescription":
        with open(self.path, "r") as f:
            data = yaml.safe_load(f)
        self._validate_format(data)
        self.data = data
        self.properties = {prop["name"]: prop for prop in data["properties"]}
        self.loaded = True
        logger.debug(f"Loaded node description with {len(self.properties)} parameters")
        return self

    def _validate_format(self, data: Dict) -> None:
        """Basic format validation for the description document."""
        required_fields = ["name", "operations", "properties"]
        for field in required_fields:
            if field not in data:
                raise ValueError(f"Node description missing required field: {field}")
        for prop in data["properties"]:
            for field in ("name", "type", "default"):
                if field not in prop:
                    raise ValueError(f"Parameter {prop.get('name', '?')} missing required field: {field}")

    def _ensure_loaded(self):
        if not self.loaded:
            self.load()

    @property
    def default_operation(self) -> str:
        self._ensure_loaded()
        return self.data["operations"]["default"]

    def get_operations(self) -> List[Dict[str, str]]:
        self._ensure_loaded()
        return list(self.data["operations"]["options"])

    def get_operation_values(self) -> List[str]:
        return [op["value"] for op in self.get_operations()]

    def get_parameter(self, name: str) -> Optional[Dict[str, Any]]:
        self._ensure_loaded()
        return self.properties.get(name)

    def get_default(self, name: str) -> Any:
        prop = self.get_parameter(name)
        if prop is None:
            raise KeyError(f"Unknown parameter: {name}")
        return prop["default"]

    def parameters_for(self, operation: str) -> List[Dict[str, Any]]:
        """Parameters shown for the given operation, in declaration order."""
        self._ensure_loaded()
        return [prop for prop in self.data["properties"] if operation in prop.get("show", [])]


_description: Optional[NodeDescription] = None


def get_node_description() -> NodeDescription:
    """Get or create the shared NodeDescription."""
    global _description
    if _description is None:
        _description = NodeDescription().load()
    return _description
