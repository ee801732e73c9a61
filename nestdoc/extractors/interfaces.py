"""Interface discovery and naming-convention relationship mining."""

from __future__ import annotations

import re
from typing import List, Optional

from ..logging import get_logger
from ..models import EntityRelationship, InterfaceEntity, InterfaceProperty, InterfaceReport
from ..typescript.project import ProjectIndex

_LOGGER = get_logger("extractors.interfaces")

# ``IUser``-style names: capital I, an uppercase letter, then word characters.
_INTERFACE_NAME = r"I[A-Z]\w+"
_REF = re.compile(rf"^({_INTERFACE_NAME})")
_REF_ARRAY = (
    re.compile(rf"^\[\s*({_INTERFACE_NAME})\s*\]"),
    re.compile(rf"^({_INTERFACE_NAME})\s*\[\s*\]$"),
    re.compile(rf"^(?:Readonly)?Array<\s*({_INTERFACE_NAME})\s*>$"),
)


def classify_reference(type_text: str) -> Optional[tuple[str, str]]:
    """Return ``(target, kind)`` for a property type that names an interface."""
    text = type_text.strip()
    for pattern in _REF_ARRAY:
        match = pattern.match(text)
        if match:
            return match.group(1), "RefArray"
    match = _REF.match(text)
    if match:
        return match.group(1), "Ref"
    return None


class InterfaceMiner:
    """Collects interface declarations and the references between them."""

    def __init__(self, index: ProjectIndex) -> None:
        self.index = index

    def mine(self) -> InterfaceReport:
        entities: List[InterfaceEntity] = []
        relationships: List[EntityRelationship] = []
        for module in self.index.modules():
            file_path = self.index.relative_path(module)
            for declaration in module.iter_declarations("interface"):
                properties: List[InterfaceProperty] = []
                for prop in declaration.properties():
                    properties.append(InterfaceProperty(name=prop.name, type=prop.type_text))
                    reference = classify_reference(prop.type_text)
                    if reference is not None:
                        target, kind = reference
                        relationships.append(
                            EntityRelationship(from_=declaration.name, to=target, type=kind)
                        )
                entities.append(
                    InterfaceEntity(name=declaration.name, file_path=file_path, properties=properties)
                )
        _LOGGER.debug(
            "Mined %d interfaces and %d references", len(entities), len(relationships)
        )
        return InterfaceReport(entities=entities, relationships=relationships)


__all__ = ["InterfaceMiner", "classify_reference"]
