# File: tests/conftest.py
# Shared pytest fixtures: sample specifications and a resolved model.

from pathlib import Path

import pytest
import yaml

from domain_scaffold.resolver import resolve_domain

from spec_samples import order_document


@pytest.fixture
def order_spec():
    """Raw specification of the ``shop`` module with the ``Order`` aggregate."""
    return order_document()


@pytest.fixture
def order_resolution(order_spec):
    return resolve_domain(order_spec, base_package="shop")


@pytest.fixture
def order_model(order_resolution):
    return order_resolution.get_aggregate("Order")


@pytest.fixture
def spec_file(tmp_path: Path, order_spec) -> Path:
    """The sample specification written to a YAML file."""
    path = tmp_path / "domain.yaml"
    path.write_text(yaml.safe_dump(order_spec, sort_keys=False), encoding="utf-8")
    return path
