"""Tests for nestdoc.models."""

from __future__ import annotations

import pytest

from nestdoc.models import EndpointRecord, ParamFallback, ParsedProjectData
from nestdoc.schema import CircularRef, EnumField, PrimitiveField, SchemaNode


def test_from_payload_requires_core_keys() -> None:
    with pytest.raises(ValueError, match="entities"):
        ParsedProjectData.from_payload({"classes": [], "functions": []})


def test_from_payload_tolerates_null_collections() -> None:
    parsed = ParsedProjectData.from_payload(
        {
            "entities": [{"name": "User", "properties": [{"name": "id", "type": None, "decorators": None}]}],
            "classes": None,
            "functions": None,
            "relationships": None,
        }
    )

    prop = parsed.entities[0].properties[0]
    assert (prop.name, prop.type, prop.decorators) == ("id", "", [])
    assert parsed.classes == parsed.functions == parsed.relationships == []


def test_schema_variants_serialise() -> None:
    node = SchemaNode(
        name="Order",
        fields={
            "id": PrimitiveField("number"),
            "status": EnumField("Status", ("Open", "Closed")),
            "parent": CircularRef("Order", is_array=True),
        },
        is_array=True,
    )

    assert node.to_dict() == {
        "name": "Order",
        "fields": {
            "id": "number",
            "status": {"name": "Status", "values": ["Open", "Closed"]},
            "parent": {"name": "Order", "fields": "[Circular Reference]", "isArray": True},
        },
        "isArray": True,
    }


def test_endpoint_record_without_response() -> None:
    record = EndpointRecord(
        controller="HealthController",
        route="GET health/",
        method_name="check",
        request_params={"query": ParamFallback(name="q", type="string")},
    )

    assert record.to_dict() == {
        "controller": "HealthController",
        "route": "GET health/",
        "methodName": "check",
        "requestParams": {"query": {"name": "q", "type": "string"}},
        "responseDto": None,
    }
