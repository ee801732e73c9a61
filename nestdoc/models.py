"""Core data models shared across nestdoc components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from .schema import CircularRef, EnumField, SchemaNode


@dataclass
class PropertyInfo:
    """A class property as described by the structural parser."""

    name: str
    type: str
    decorators: List[str] = field(default_factory=list)


@dataclass
class MethodInfo:
    """A class method with free-text documentation."""

    name: str
    docs: str = ""
    return_type: str = ""


@dataclass
class ClassInfo:
    """A class or entity emitted by the structural parser."""

    name: str
    file_path: str = ""
    docs: str = ""
    methods: List[MethodInfo] = field(default_factory=list)
    properties: List[PropertyInfo] = field(default_factory=list)


@dataclass
class FunctionInfo:
    """A routed function emitted by the structural parser."""

    name: str
    method: str = ""
    route: str = ""
    docs: str = ""
    return_type: str = ""


@dataclass(frozen=True)
class EntityRelationship:
    """Directed relationship between two entities or interfaces."""

    from_: str
    to: str
    type: str

    def to_dict(self) -> Dict[str, str]:
        return {"from": self.from_, "to": self.to, "type": self.type}


@dataclass
class ParsedProjectData:
    """Complete description produced by the structural parser."""

    entities: List[ClassInfo]
    classes: List[ClassInfo]
    functions: List[FunctionInfo]
    relationships: List[EntityRelationship] = field(default_factory=list)

    REQUIRED_KEYS = ("entities", "classes", "functions")

    @classmethod
    def from_payload(cls, payload: Any) -> "ParsedProjectData":
        """Build the model from decoded parser JSON, rejecting missing keys."""
        if not isinstance(payload, dict):
            raise ValueError("parser output must be a JSON object")
        missing = [key for key in cls.REQUIRED_KEYS if key not in payload]
        if missing:
            raise ValueError(f"parser output is missing required keys: {', '.join(missing)}")
        return cls(
            entities=[_class_from_dict(item) for item in _as_list(payload["entities"])],
            classes=[_class_from_dict(item) for item in _as_list(payload["classes"])],
            functions=[_function_from_dict(item) for item in _as_list(payload["functions"])],
            relationships=[
                _relationship_from_dict(item) for item in _as_list(payload.get("relationships"))
            ],
        )


@dataclass(frozen=True)
class ParamFallback:
    """Request binding whose type could not be resolved to a schema."""

    name: str
    type: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "type": self.type}


RequestParam = Union[SchemaNode, EnumField, CircularRef, ParamFallback]


@dataclass
class EndpointRecord:
    """One routed controller method with its resolved request/response shapes."""

    controller: str
    route: str
    method_name: str
    request_params: Dict[str, RequestParam] = field(default_factory=dict)
    response_dto: Optional[Union[SchemaNode, EnumField, CircularRef]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "controller": self.controller,
            "route": self.route,
            "methodName": self.method_name,
            "requestParams": {key: value.to_dict() for key, value in self.request_params.items()},
            "responseDto": self.response_dto.to_dict() if self.response_dto is not None else None,
        }


@dataclass(frozen=True)
class InterfaceProperty:
    """A property signature of an interface, as written."""

    name: str
    type: str


@dataclass
class InterfaceEntity:
    """An interface declaration discovered in the project sources."""

    name: str
    file_path: str
    properties: List[InterfaceProperty] = field(default_factory=list)


@dataclass
class InterfaceReport:
    """Interfaces and the references mined between them."""

    entities: List[InterfaceEntity] = field(default_factory=list)
    relationships: List[EntityRelationship] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "entities": [
                {
                    "name": entity.name,
                    "filePath": entity.file_path,
                    "docs": "Parsed from TypeScript interface",
                    "methods": [],
                    "properties": [
                        {"name": prop.name, "type": prop.type} for prop in entity.properties
                    ],
                }
                for entity in self.entities
            ],
            "relationships": [rel.to_dict() for rel in self.relationships],
        }


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    raise ValueError(f"expected a JSON array, got {type(value).__name__}")


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _mapping(item: Any) -> Mapping[str, Any]:
    if not isinstance(item, dict):
        raise ValueError(f"expected a JSON object, got {type(item).__name__}")
    return item


def _class_from_dict(item: Any) -> ClassInfo:
    data = _mapping(item)
    methods = [
        MethodInfo(
            name=_as_text(_mapping(method).get("name")),
            docs=_as_text(method.get("docs")),
            return_type=_as_text(method.get("returnType")),
        )
        for method in _as_list(data.get("methods"))
    ]
    properties = [
        PropertyInfo(
            name=_as_text(_mapping(prop).get("name")),
            type=_as_text(prop.get("type")),
            decorators=[str(deco) for deco in _as_list(prop.get("decorators")) if deco is not None],
        )
        for prop in _as_list(data.get("properties"))
    ]
    return ClassInfo(
        name=_as_text(data.get("name")),
        file_path=_as_text(data.get("filePath")),
        docs=_as_text(data.get("docs")),
        methods=methods,
        properties=properties,
    )


def _function_from_dict(item: Any) -> FunctionInfo:
    data = _mapping(item)
    return FunctionInfo(
        name=_as_text(data.get("name")),
        method=_as_text(data.get("method")),
        route=_as_text(data.get("route")),
        docs=_as_text(data.get("docs")),
        return_type=_as_text(data.get("returnType")),
    )


def _relationship_from_dict(item: Any) -> EntityRelationship:
    data = _mapping(item)
    return EntityRelationship(
        from_=_as_text(data.get("from")),
        to=_as_text(data.get("to")),
        type=_as_text(data.get("type")),
    )
