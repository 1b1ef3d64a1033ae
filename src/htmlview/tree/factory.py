"""Node factories turning block tags into physical nodes."""

from abc import ABC, abstractmethod
from typing import Dict

from .nodes import (
    ButtonNode,
    CheckBoxNode,
    ChoiceNode,
    ContainerNode,
    PhysicalNode,
    TextInputNode,
)

BUTTON_INPUT_TYPES = frozenset({"button", "submit", "reset"})


class NodeFactory(ABC):
    """Creates the physical node for a block-level tag."""

    @abstractmethod
    def create_node(self, tag_name: str, attributes: Dict[str, str]) -> PhysicalNode:
        """Create a detached node for ``tag_name``.

        Implementations must be deterministic given their inputs.
        """


class DefaultNodeFactory(NodeFactory):
    """Maps form controls to widgets and everything else to containers.

    Only the node is created here; child content is parsed by the tree builder,
    which dispatches on the kind of the returned node.
    """

    def create_node(self, tag_name: str, attributes: Dict[str, str]) -> PhysicalNode:
        snapshot = dict(attributes)
        if tag_name == "input":
            input_type = snapshot.get("type", "text").lower()
            value = snapshot.get("value", "")
            if input_type in BUTTON_INPUT_TYPES:
                return ButtonNode(tag_name, snapshot, text=value)
            if input_type == "checkbox":
                return CheckBoxNode(tag_name, snapshot, text=value,
                                    checked="checked" in snapshot)
            return TextInputNode(tag_name, snapshot, text=value)
        if tag_name == "textarea":
            return TextInputNode(tag_name, snapshot, multiline=True)
        if tag_name == "select":
            return ChoiceNode(tag_name, snapshot)
        return ContainerNode(tag_name, snapshot)
