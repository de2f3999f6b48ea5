"""Benchmark fixtures for analysis performance tests."""

import random

import pytest

from archtrace.engine import Element, Model, Relationship


def generate_random_model(
    num_elements: int,
    num_relationships: int,
    undirected_ratio: float = 0.2,
    seed: int = 42,
) -> Model:
    """Generate a random architecture model for benchmarking.

    Args:
        num_elements: Number of elements to create
        num_relationships: Number of relationships to create
        undirected_ratio: Fraction of relationships flagged isDirected: False
        seed: Random seed for reproducibility

    Returns:
        Model with random data
    """
    rng = random.Random(seed)
    model = Model()

    layers = {
        "Business": ["BusinessActor", "BusinessRole", "BusinessProcess"],
        "Application": ["ApplicationComponent", "ApplicationService", "DataObject"],
        "Technology": ["Node", "Device", "SystemSoftware"],
    }
    element_ids = [f"el_{i}" for i in range(num_elements)]

    for el_id in element_ids:
        layer = rng.choice(list(layers))
        model.add_element(Element(id=el_id, type=rng.choice(layers[layer]), layer=layer))

    rel_types = ["Serving", "Flow", "Realization", "Assignment", "Association"]

    for i in range(num_relationships):
        source, target = rng.sample(element_ids, 2)
        attrs = {"isDirected": False} if rng.random() < undirected_ratio else {}
        model.add_relationship(
            Relationship(
                id=f"rel_{i}",
                type=rng.choice(rel_types),
                source_element_id=source,
                target_element_id=target,
                attrs=attrs,
            )
        )

    return model


@pytest.fixture
def model_1k() -> Model:
    """1K elements, 3K relationships - small benchmark model."""
    return generate_random_model(num_elements=1000, num_relationships=3000)


@pytest.fixture
def model_10k() -> Model:
    """10K elements, 30K relationships - medium benchmark model."""
    return generate_random_model(num_elements=10000, num_relationships=30000)


@pytest.fixture
def dense_model_1k() -> Model:
    """Dense 1K model - 10 relationships per element on average."""
    return generate_random_model(num_elements=1000, num_relationships=10000, undirected_ratio=0.5)
