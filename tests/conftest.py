"""Shared fixtures: a small, fully-populated set of lookup tables."""

from pathlib import Path

import pytest

from policycraft.models import (
    Action,
    Attribute,
    AttributeCategory,
    AttributeConstraints,
    DataType,
    Lookups,
    Resource,
    Subject,
)

ROOT = Path(__file__).resolve().parent.parent
LOOKUPS_PATH = str(ROOT / "lookups.yaml")
SAMPLE_POLICIES_PATH = str(ROOT / "policies" / "sample.yaml")


@pytest.fixture
def department() -> Attribute:
    return Attribute(
        id="department",
        name="department",
        display_name="Department",
        categories=(AttributeCategory.SUBJECT,),
        constraints=AttributeConstraints(enum_values=["IT", "HR", "Finance"]),
    )


@pytest.fixture
def clearance() -> Attribute:
    return Attribute(
        id="clearance",
        name="clearance",
        display_name="Clearance",
        data_type=DataType.NUMBER,
        categories=(AttributeCategory.SUBJECT,),
        constraints=AttributeConstraints(min_value=1, max_value=5),
    )


@pytest.fixture
def classification() -> Attribute:
    return Attribute(
        id="classification",
        name="classification",
        display_name="Classification",
        category=AttributeCategory.RESOURCE,
        constraints=AttributeConstraints(
            enum_values=["public", "internal", "confidential"]
        ),
    )


@pytest.fixture
def expires_on() -> Attribute:
    return Attribute(
        id="expires_on",
        name="expires_on",
        display_name="Expires_On",
        data_type=DataType.DATE,
        categories=(AttributeCategory.RESOURCE,),
    )


@pytest.fixture
def connected() -> Attribute:
    return Attribute(
        id="connected",
        name="connected",
        display_name="Connected",
        data_type=DataType.BOOLEAN,
        categories=(AttributeCategory.ADDITIONAL_RESOURCE,),
    )


@pytest.fixture
def lookups(department, clearance, classification, expires_on, connected) -> Lookups:
    """Lookup tables as fetched at the start of an authoring session."""
    return Lookups(
        subjects=[
            Subject("alice", "Alice", "alice", "user"),
            Subject("engineering", "Engineering Team", "engineering", "group"),
        ],
        actions=[
            Action("read", "Read", "read"),
            Action("write", "Write", "write"),
            Action("delete", "Delete", "delete"),
        ],
        resources=[
            Resource("documents", "Documents", "documents", "document"),
            Resource("database", "Database", "database", "database"),
            Resource("reports", "Reports", "reports", "folder"),
        ],
        additional_resources=[Resource("vpn", "Corporate VPN", "vpn")],
        attributes=[department, clearance, classification, expires_on, connected],
    )
