"""Controller route extraction for decorator-driven TypeScript backends."""

from __future__ import annotations

from typing import Dict, List, Optional

from tree_sitter import Node

from ..logging import get_logger
from ..models import EndpointRecord, ParamFallback, RequestParam
from ..schema import Resolved
from ..typescript.project import ProjectIndex, SourceModule
from ..typescript.resolver import ARRAY_WRAPPERS, TypeRef, TypeResolver
from ..typescript.syntax import Declaration, Decorator, MethodDecl, node_text

_LOGGER = get_logger("extractors.routes")

CONTROLLER_DECORATOR = "Controller"
HTTP_METHODS = ("Get", "Post", "Put", "Delete", "Patch")


def join_route(base: str, path: str) -> str:
    """Combine controller and method paths with exactly one separating slash."""
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


def method_upper(value: str) -> str:
    """Normalize HTTP verbs to uppercase."""
    return (value or "").strip().upper()


class RouteExtractor:
    """Walks controller classes and resolves every routed method's shapes."""

    def __init__(self, index: ProjectIndex, resolver: TypeResolver | None = None) -> None:
        self.index = index
        self.resolver = resolver or TypeResolver(index)

    def extract(self) -> List[EndpointRecord]:
        endpoints: List[EndpointRecord] = []
        for module in self.index.modules():
            for declaration in module.iter_declarations("class"):
                controller = declaration.decorator(CONTROLLER_DECORATOR)
                if controller is None:
                    continue
                base = controller.first_literal(module.source)
                endpoints.extend(self._extract_controller(module, declaration, base))
        _LOGGER.debug("Extracted %d endpoints", len(endpoints))
        return endpoints

    def _extract_controller(
        self, module: SourceModule, declaration: Declaration, base: str
    ) -> List[EndpointRecord]:
        records: List[EndpointRecord] = []
        for method in declaration.methods():
            verb = _route_decorator(method)
            if verb is None:
                continue
            try:
                records.append(self._endpoint(module, declaration.name, base, method, verb))
            except Exception as exc:
                _LOGGER.warning(
                    "Skipping %s.%s: %s", declaration.name, method.name, exc, exc_info=True
                )
        return records

    def _endpoint(
        self,
        module: SourceModule,
        controller: str,
        base: str,
        method: MethodDecl,
        verb: Decorator,
    ) -> EndpointRecord:
        path = verb.first_literal(module.source)
        route = f"{method_upper(verb.name)} {join_route(base, path)}"

        request_params: Dict[str, RequestParam] = {}
        for param in method.parameters:
            if not param.decorators:
                continue
            binding = param.decorators[0].name.lower()
            resolved = self.resolver.resolve(TypeRef.of(param.type_node, module, fallback=param.type_text))
            if resolved is not None:
                request_params[binding] = resolved
            else:
                request_params[binding] = ParamFallback(name=param.name, type=param.type_text)

        return EndpointRecord(
            controller=controller,
            route=route,
            method_name=method.name,
            request_params=request_params,
            response_dto=self._response(module, method),
        )

    def _response(self, module: SourceModule, method: MethodDecl) -> Optional[Resolved]:
        return_type = method.return_type
        if return_type is None:
            return None
        wrapper = node_text(return_type.child_by_field_name("name"), module.source)
        if return_type.type == "generic_type" and wrapper not in ARRAY_WRAPPERS:
            arguments = return_type.child_by_field_name("type_arguments")
            unwrapped = _first_type_argument(arguments)
            if unwrapped is not None:
                _LOGGER.debug(
                    "Unwrapping %s for %s", node_text(return_type, module.source), method.name
                )
                return_type = unwrapped
        return self.resolver.resolve(TypeRef.of(return_type, module))


def _route_decorator(method: MethodDecl) -> Optional[Decorator]:
    for decorator in method.decorators:
        if decorator.name in HTTP_METHODS:
            return decorator
    return None


def _first_type_argument(arguments: Optional[Node]) -> Optional[Node]:
    if arguments is None:
        return None
    for child in arguments.named_children:
        if child.type != "comment":
            return child
    return None


__all__ = ["HTTP_METHODS", "RouteExtractor", "join_route", "method_upper"]
