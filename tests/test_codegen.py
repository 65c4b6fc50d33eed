"""
Tests for rendering and writing generated sources.
"""

import ast
import importlib
import sys
from decimal import Decimal
from pathlib import Path

import pytest

from domain_scaffold.codegen import (
    dto_imports,
    generate_sources,
    import_module_filter,
    import_name_filter,
    package_path,
    plan_aggregate_outputs,
    render_template,
    setup_jinja_env,
)
from domain_scaffold.config_validation import ToolConfigSchema
from domain_scaffold.exceptions import GenerationError, ModuleResolutionError, TemplateRenderingError
from domain_scaffold.resolver import resolve_domain

from spec_samples import (
    address_value_object,
    cycle_aggregate,
    money_value_object,
    order_aggregate,
    order_document,
    simple_entity,
)


def test_import_filters():
    assert import_module_filter("shop.domain.models.order_item.OrderItem") == "shop.domain.models.order_item"
    assert import_name_filter("shop.domain.models.order_item.OrderItem") == "OrderItem"


def test_package_path():
    assert package_path("shop", "domain.models") == Path("shop/domain/models")
    assert package_path("", "domain.enums") == Path("domain/enums")


def test_planned_outputs(order_model):
    config = ToolConfigSchema(package_name="shop")

    paths = [str(f.path) for f in plan_aggregate_outputs(order_model, config)]

    assert paths == [
        "shop/domain/models/order.py",
        "shop/domain/models/order_item.py",
        "shop/domain/value_objects/address.py",
        "shop/domain/enums/order_status.py",
        "shop/application/dtos/order_dtos.py",
    ]


def test_planned_outputs_follow_selected_templates(order_model):
    config = ToolConfigSchema(templates=["enum"])

    assert [str(f.path) for f in plan_aggregate_outputs(order_model, config)] == ["domain/enums/order_status.py"]


def test_render_entity(order_model):
    source = render_template("entity", order_model, entity=order_model.root_entity, nested=[])

    ast.parse(source)
    assert "class Order:" in source
    assert "__tablename__: ClassVar[str] = 'orders'" in source
    assert "status: OrderStatus = OrderStatus.PENDING" in source
    assert "order_items: List[OrderItem] = field(default_factory=list, repr=False)" in source
    assert "def add_order_item(self, product_name: str, quantity: int, unit_price: Decimal) -> OrderItem:" in source
    assert "def add_order_item_entity(self, order_item: OrderItem) -> None:" in source
    assert "def remove_order_item(self, id: int) -> None:" in source
    assert "def get_order_items(self) -> List[OrderItem]:" in source
    assert "from shop.domain.models.order_item import OrderItem" in source


def test_render_child_entity(order_model):
    item = order_model.aggregate.get_entity("OrderItem")

    source = render_template("entity", order_model, entity=item, nested=[])

    ast.parse(source)
    assert "order: Optional[Order] = field(default=None, repr=False)" in source
    assert "def add_" not in source
    assert "import Order\n" not in source


def test_render_value_object(order_model):
    source = render_template("value_object", order_model, value_object=order_model.value_objects[0])

    ast.parse(source)
    assert "@dataclass(frozen=True)" in source
    assert "street: Optional[str] = None" in source


def test_render_value_object_methods():
    resolution = resolve_domain(order_document(
        order_aggregate(valueObjects=[address_value_object(), money_value_object()])
    ))
    model = resolution.get_aggregate("Order")
    money = model.value_objects[1]

    source = render_template("value_object", model, value_object=money)

    tree = ast.parse(source)
    cls = next(node for node in tree.body if isinstance(node, ast.ClassDef))
    methods = [node.name for node in cls.body if isinstance(node, ast.FunctionDef)]
    assert methods == ["add", "is_due_by", "audit"]
    assert "def add(self, other: Money) -> Money:" in source
    assert "def is_due_by(self, due_date: date) -> bool:" in source
    assert "def audit(self) -> None:" in source
    assert "# return new Money(amount.add(other.amount), currency);" in source
    assert "from datetime import date" in source


def test_render_enum(order_model):
    source = render_template("enum", order_model, enum=order_model.aggregate.enums[0])

    ast.parse(source)
    assert "class OrderStatus(str, Enum):" in source
    assert "def confirm(self)" in source
    assert "INITIAL_VALUE = OrderStatus.PENDING" in source


def test_render_dtos(order_model):
    root = order_model.root_entity

    source = render_template(
        "dtos", order_model, entity=root, nested=order_model.nested_for(root.name), imports=dto_imports(order_model)
    )

    tree = ast.parse(source)
    classes = [node.name for node in tree.body if isinstance(node, ast.ClassDef)]
    assert classes == ["CreateOrderOrderItemRequest", "CreateOrderRequest", "OrderOrderItemResponse", "OrderResponse"]
    assert "order_items: List[CreateOrderOrderItemRequest]" in source


def test_unknown_template(order_model):
    with pytest.raises(TemplateRenderingError):
        render_template("serializers", order_model)


def test_missing_context_is_an_error(order_model):
    with pytest.raises(TemplateRenderingError):
        render_template("entity", order_model, env=setup_jinja_env())


def test_dry_run_writes_nothing(order_resolution, tmp_path):
    config = ToolConfigSchema(output_dir=str(tmp_path / "out"), package_name="shop")

    files = generate_sources(order_resolution, config, dry_run=True)

    assert len(files) == 5
    assert all(f.content for f in files)
    assert not (tmp_path / "out").exists()


def test_generate_sources_writes_packages(order_resolution, tmp_path):
    config = ToolConfigSchema(output_dir=str(tmp_path), package_name="shop", format_code=False)

    generate_sources(order_resolution, config)

    assert (tmp_path / "shop" / "domain" / "models" / "order.py").is_file()
    for package in ["shop", "shop/domain", "shop/domain/models", "shop/application/dtos"]:
        assert (tmp_path / package / "__init__.py").is_file()


def test_generated_sources_run(tmp_path, monkeypatch):
    package = "scaffold_generated_shop"
    resolution = resolve_domain(order_document(), base_package=package)
    config = ToolConfigSchema(output_dir=str(tmp_path), package_name=package)
    generate_sources(resolution, config)
    monkeypatch.syspath_prepend(str(tmp_path))

    try:
        models = importlib.import_module(f"{package}.domain.models.order")
        enums = importlib.import_module(f"{package}.domain.enums.order_status")

        order = models.Order(id="o-1")
        item = order.add_order_item("pen", 2, Decimal("1.50"))

        assert item.order is order
        assert order.get_order_items() == [item]
        assert order.status is enums.OrderStatus.PENDING
        assert enums.OrderStatus.PENDING.confirm() is enums.OrderStatus.CONFIRMED
        with pytest.raises(ValueError):
            enums.OrderStatus.PENDING.ship()

        order.remove_order_item(item.id)
        assert order.get_order_items() == []
    finally:
        for name in [m for m in sys.modules if m.startswith(package)]:
            del sys.modules[name]


def test_failed_aggregates_block_generation(tmp_path):
    broken = {"name": "Broken", "entities": [simple_entity("Broken")]}
    resolution = resolve_domain(order_document(order_aggregate(), broken))

    with pytest.raises(ModuleResolutionError):
        generate_sources(resolution, ToolConfigSchema(output_dir=str(tmp_path)))

    assert list(tmp_path.iterdir()) == []


def test_warnings_as_errors(tmp_path):
    resolution = resolve_domain(order_document(cycle_aggregate()))
    config = ToolConfigSchema(output_dir=str(tmp_path), warnings_as_errors=True)

    with pytest.raises(GenerationError) as exc_info:
        generate_sources(resolution, config)

    assert exc_info.value.diagnostics == resolution.warnings


def test_warnings_do_not_block_by_default(tmp_path):
    resolution = resolve_domain(order_document(cycle_aggregate()))
    config = ToolConfigSchema(output_dir=str(tmp_path), format_code=False)

    files = generate_sources(resolution, config, dry_run=True)

    dtos = next(f for f in files if f.template_id == "dtos")
    assert "class CreateAlphaBetaGammaRequest:" in dtos.content
    ast.parse(dtos.content)
