"""Read-only model shape consumed by the analysis engine.

The engine never edits a model. Elements and relationships are kept in
insertion order so that every graph built from the same model iterates its
edges in the same order.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Element:
    """A modelled element (ArchiMate/UML/BPMN node).

    Attributes:
        id: Stable element identifier
        type: Notation-specific element type (e.g. "BusinessActor", "uml.class")
        layer: Optional layer name (e.g. "Business", "Application")
        name: Optional display name
        properties: Arbitrary key-value metadata

    Raises:
        TypeError: If id or type is not a string
    """

    id: str
    type: str
    layer: str | None = None
    name: str | None = None
    properties: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.id, str):
            raise TypeError(f"Element id must be a string, got: {type(self.id).__name__}")
        if not isinstance(self.type, str):
            raise TypeError(f"Element type must be a string, got: {type(self.type).__name__}")


@dataclass
class Relationship:
    """A typed relationship between two elements.

    Endpoints may be missing or point at elements that no longer exist; such
    relationships are legal here and simply never become graph edges.

    Attributes:
        id: Stable relationship identifier
        type: Notation-specific relationship type (e.g. "Serving", "uml.association")
        source_element_id: Source endpoint id (may be None)
        target_element_id: Target endpoint id (may be None)
        attrs: Notation-specific attributes (e.g. {"isDirected": False})
        name: Optional display name

    Raises:
        TypeError: If id or type is not a string
    """

    id: str
    type: str
    source_element_id: str | None = None
    target_element_id: str | None = None
    attrs: Any = field(default_factory=dict)
    name: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.id, str):
            raise TypeError(f"Relationship id must be a string, got: {type(self.id).__name__}")
        if not isinstance(self.type, str):
            raise TypeError(
                f"Relationship type must be a string, got: {type(self.type).__name__}"
            )


@dataclass
class Model:
    """Elements and relationships keyed by id."""

    elements: dict[str, Element] = field(default_factory=dict)
    relationships: dict[str, Relationship] = field(default_factory=dict)

    def add_element(self, element: Element) -> Element:
        """Add or replace an element."""
        self.elements[element.id] = element
        return element

    def add_relationship(self, relationship: Relationship) -> Relationship:
        """Add or replace a relationship."""
        self.relationships[relationship.id] = relationship
        return relationship

    def get_element(self, element_id: str) -> Element | None:
        return self.elements.get(element_id)

    def has_element(self, element_id: str | None) -> bool:
        return element_id is not None and element_id in self.elements

    def label_for(self, element_id: str) -> str:
        """Display name of an element, falling back to its id."""
        el = self.elements.get(element_id)
        if el is None or not el.name:
            return element_id
        return el.name

    # ========== Statistics & Validation ==========

    def stats(self) -> dict[str, Any]:
        """Get model statistics.

        Returns:
            Dict with num_elements, num_relationships, elements_by_type,
            relationships_by_type and elements_by_layer
        """
        elements_by_type: dict[str, int] = {}
        elements_by_layer: dict[str, int] = {}
        for el in self.elements.values():
            elements_by_type[el.type] = elements_by_type.get(el.type, 0) + 1
            if el.layer:
                elements_by_layer[el.layer] = elements_by_layer.get(el.layer, 0) + 1
        relationships_by_type: dict[str, int] = {}
        for r in self.relationships.values():
            relationships_by_type[r.type] = relationships_by_type.get(r.type, 0) + 1
        return {
            "num_elements": len(self.elements),
            "num_relationships": len(self.relationships),
            "elements_by_type": elements_by_type,
            "relationships_by_type": relationships_by_type,
            "elements_by_layer": elements_by_layer,
        }

    def validate(self) -> dict[str, Any]:
        """Check for relationships the analysis graph will leave out.

        Dangling relationships are expected while a model is being edited, so
        they are reported as warnings. Errors are reserved for key mismatches
        (an entry stored under an id different from its own).

        Returns:
            Dict with 'valid' (bool), 'errors', 'warnings' and
            'dangling_relationships' (list of relationship IDs)
        """
        errors: list[str] = []
        warnings: list[str] = []
        dangling: list[str] = []

        for key, el in self.elements.items():
            if key != el.id:
                errors.append(f"Element stored under '{key}' has id '{el.id}'")

        for key, r in self.relationships.items():
            if key != r.id:
                errors.append(f"Relationship stored under '{key}' has id '{r.id}'")
            missing = [
                end
                for end in (r.source_element_id, r.target_element_id)
                if not self.has_element(end)
            ]
            if missing:
                dangling.append(r.id)
                warnings.append(
                    f"Relationship '{r.id}' references missing elements: {missing}"
                )

        return {
            "valid": len(errors) == 0,
            "errors": errors,
            "warnings": warnings,
            "dangling_relationships": dangling,
        }

    # ========== Serialization ==========

    def to_dict(self) -> dict[str, Any]:
        """Export to a plain dict (the JSON model file format)."""
        return {
            "elements": [
                {
                    "id": el.id,
                    "type": el.type,
                    **({"layer": el.layer} if el.layer is not None else {}),
                    **({"name": el.name} if el.name is not None else {}),
                    "properties": el.properties,
                }
                for el in self.elements.values()
            ],
            "relationships": [
                {
                    "id": r.id,
                    "type": r.type,
                    "sourceElementId": r.source_element_id,
                    "targetElementId": r.target_element_id,
                    "attrs": r.attrs,
                    **({"name": r.name} if r.name is not None else {}),
                }
                for r in self.relationships.values()
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Model":
        """Import from a plain dict.

        Accepts elements/relationships either as lists or as id-keyed maps,
        and endpoint keys in camelCase or snake_case.
        """
        model = cls()
        for el_data in _entries(data.get("elements")):
            model.add_element(
                Element(
                    id=el_data["id"],
                    type=el_data["type"],
                    layer=el_data.get("layer"),
                    name=el_data.get("name"),
                    properties=el_data.get("properties", {}),
                )
            )
        for r_data in _entries(data.get("relationships")):
            model.add_relationship(
                Relationship(
                    id=r_data["id"],
                    type=r_data["type"],
                    source_element_id=r_data.get(
                        "sourceElementId", r_data.get("source_element_id")
                    ),
                    target_element_id=r_data.get(
                        "targetElementId", r_data.get("target_element_id")
                    ),
                    attrs=r_data.get("attrs", {}),
                    name=r_data.get("name"),
                )
            )
        return model


def _entries(raw: Any) -> list[dict[str, Any]]:
    if raw is None:
        return []
    if isinstance(raw, dict):
        return [{"id": key, **value} for key, value in raw.items()]
    return list(raw)
