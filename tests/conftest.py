"""Shared fixtures for ArchTrace tests."""

import pytest

from archtrace import ArchTrace
from archtrace.engine import Element, Model, Relationship


def make_model(elements, relationships):
    """Build a Model from compact tuples.

    elements: (id, type, layer) tuples
    relationships: (id, type, source, target) or (id, type, source, target, attrs)
    """
    model = Model()
    for el_id, el_type, layer in elements:
        model.add_element(Element(id=el_id, type=el_type, layer=layer))
    for rel in relationships:
        rel_id, rel_type, source, target = rel[:4]
        attrs = rel[4] if len(rel) > 4 else {}
        model.add_relationship(
            Relationship(
                id=rel_id,
                type=rel_type,
                source_element_id=source,
                target_element_id=target,
                attrs=attrs,
            )
        )
    return model


@pytest.fixture()
def small_model():
    """Four-element ArchiMate-style model.

    Elements:
        A (BusinessActor, Business), B (ApplicationComponent, Application),
        C (Node, Technology), D (BusinessRole, Business)

    Relationships (in this order):
        R1 Serving     A -> B
        R2 Flow        B -> C
        R3 Association A -- D  (isDirected: False)
        R4 Flow        D -> C
    """
    return make_model(
        [
            ("A", "BusinessActor", "Business"),
            ("B", "ApplicationComponent", "Application"),
            ("C", "Node", "Technology"),
            ("D", "BusinessRole", "Business"),
        ],
        [
            ("R1", "Serving", "A", "B"),
            ("R2", "Flow", "B", "C"),
            ("R3", "Association", "A", "D", {"isDirected": False}),
            ("R4", "Flow", "D", "C"),
        ],
    )


@pytest.fixture()
def diamond_model():
    """s->a->t, s->b->t, s->c->t plus the back-edge a->s (all type X)."""
    return make_model(
        [(n, "Thing", None) for n in ("s", "a", "b", "c", "t")],
        [
            ("r1", "X", "s", "a"),
            ("r2", "X", "a", "t"),
            ("r3", "X", "s", "b"),
            ("r4", "X", "b", "t"),
            ("r5", "X", "s", "c"),
            ("r6", "X", "c", "t"),
            ("r7", "X", "a", "s"),
        ],
    )


@pytest.fixture()
def at(small_model):
    """ArchTrace client over the small model."""
    return ArchTrace(small_model)


@pytest.fixture()
def build_model():
    """Factory fixture wrapping make_model."""
    return make_model
