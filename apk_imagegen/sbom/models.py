"""Pydantic models for CycloneDX SBOM documents.

Field order matches the serialized document. Optional lists are ``None``
when empty so they are omitted from the output.
"""

from pydantic import BaseModel, ConfigDict, Field

BOM_FORMAT = "CycloneDX"
SPEC_VERSION = "1.4"


class License(BaseModel):
    """A license declaration carried as a raw expression."""

    model_config = ConfigDict(frozen=True)

    expression: str


class Component(BaseModel):
    """A CycloneDX component."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    bom_ref: str = Field(alias="bom-ref")
    type: str = "operating-system"
    name: str
    version: str
    description: str = ""
    purl: str = ""
    licenses: list[License] | None = None
    components: list["Component"] | None = None


class Dependency(BaseModel):
    """Direct dependencies of a component."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    ref: str
    depends_on: list[str] = Field(default_factory=list, alias="dependsOn")


class Document(BaseModel):
    """A CycloneDX BOM document."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    bom_format: str = Field(default=BOM_FORMAT, alias="bomFormat")
    spec_version: str = Field(default=SPEC_VERSION, alias="specVersion")
    version: int = 1
    components: list[Component] | None = None
    dependencies: list[Dependency] | None = None


__all__ = [
    "BOM_FORMAT",
    "SPEC_VERSION",
    "Component",
    "Dependency",
    "Document",
    "License",
]
