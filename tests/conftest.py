"""
tests/conftest.py
Shared fixtures for the fescaffold test suite.

Sample C# projects are written into pytest's ``tmp_path``; real file I/O is
performed there. The SDK is never invoked: tests pass ``FakeRunner`` (or
monkeypatch ``subprocess.run``) wherever a command would run.
"""

from __future__ import annotations

import logging
import pathlib
import textwrap
from typing import List, Optional, Sequence, Tuple

import pytest

from fescaffold.models import EntityMetadata, EntityProperty


# ---------------------------------------------------------------------------
# Source file helpers
# ---------------------------------------------------------------------------


def write_source(root: pathlib.Path, relative: str, text: str) -> pathlib.Path:
    """Write dedented C# *text* to ``root / relative`` and return the path."""
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(text).lstrip(), encoding="utf-8")
    return path


ORDER_MODEL: str = """
    using System.ComponentModel.DataAnnotations;

    namespace Shop.Models;

    public class Order
    {
        public int Id { get; set; }

        // Navigation
        public Customer Customer { get; set; } = null!;

        [Required]
        [MaxLength(200)]
        public string Reference { get; set; } = string.Empty;

        public decimal Total { get; set; }

        public ICollection<OrderLine> Lines { get; set; } = new List<OrderLine>();
    }
"""

CUSTOMER_MODEL: str = """
    namespace Shop.Models
    {
        public class Customer : BaseEntity
        {
            public string Name { get; set; }
        }
    }
"""

BASE_ENTITY_MODEL: str = """
    namespace Shop.Models;

    public abstract class BaseEntity
    {
        public Guid Id { get; set; }
        public DateTime CreatedAt { get; set; }
    }
"""

PRODUCT_MODEL: str = """
    namespace Shop.Models.Catalog;

    public class Product
    {
        public Guid Id { get; set; }

        [StringLength(80, MinimumLength = 2)]
        public string Name { get; set; } = "";

        public decimal? Price { get; set; }
        public DateTime? DiscontinuedAt { get; set; }
        public List<string> Tags { get; set; } = new();
        public byte[] Image { get; set; }
        internal int Secret { get; set; }
    }
"""

ORDER_CONFIGURATION: str = """
    using Microsoft.EntityFrameworkCore;
    using Microsoft.EntityFrameworkCore.Metadata.Builders;

    namespace Shop.Data.Configurations;

    public class OrderConfiguration : IEntityTypeConfiguration<Order>
    {
        public void Configure(EntityTypeBuilder<Order> builder)
        {
            builder.HasKey(x => x.Id);

            builder.Property(x => x.Total)
                .HasPrecision(18, 2)
                .HasMaxLength(10);

            builder.Property(o => o.Reference).IsRequired();

            // builder.Property(x => x.Ignored).IsRequired();
            builder.HasOne(x => x.Customer).WithMany();
        }
    }
"""


# ---------------------------------------------------------------------------
# Project fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def models_only_project(tmp_path: pathlib.Path) -> pathlib.Path:
    """Project with Models/ and no Data/Configurations/."""
    root = tmp_path / "Shop"
    write_source(root, "Models/Order.cs", ORDER_MODEL)
    write_source(root, "Models/Customer.cs", CUSTOMER_MODEL)
    write_source(root, "Models/BaseEntity.cs", BASE_ENTITY_MODEL)
    write_source(root, "Models/Catalog/Product.cs", PRODUCT_MODEL)
    return root


@pytest.fixture()
def sample_project(models_only_project: pathlib.Path) -> pathlib.Path:
    """Full project: models plus one fluent configuration for Order."""
    write_source(
        models_only_project,
        "Data/Configurations/OrderConfiguration.cs",
        ORDER_CONFIGURATION,
    )
    return models_only_project


# ---------------------------------------------------------------------------
# In-memory entities
# ---------------------------------------------------------------------------


@pytest.fixture()
def order_entity() -> EntityMetadata:
    """Merged Order entity as produced from ``sample_project``."""
    return EntityMetadata(
        entity_name="Order",
        namespace="Shop.Models",
        properties=[
            EntityProperty(
                name="Id", type="int", attributes=["HasKey"],
                is_primary_key=True, is_nullable=True,
            ),
            EntityProperty(
                name="Reference", type="string",
                attributes=["Required", "MaxLength(200)", "IsRequired()"],
                is_nullable=True,
            ),
            EntityProperty(
                name="Total", type="decimal",
                attributes=["HasPrecision(18, 2)", "HasMaxLength(10)"],
                is_nullable=True,
            ),
        ],
    )


# ---------------------------------------------------------------------------
# Command runner double
# ---------------------------------------------------------------------------


class FakeRunner:
    """
    Stands in for ``toolchain.run_command``.

    Records every call as ``(args, cwd)``; answers ``--version`` and the
    template package listing, and echoes a success line for anything else.
    """

    def __init__(
        self,
        *,
        missing: bool = False,
        listing: str = "FastEndpoints.TemplatePack\n   Version: 6.0.0\n",
        version: str = "8.0.100\n",
    ) -> None:
        self.missing = missing
        self.listing = listing
        self.version = version
        self.calls: List[Tuple[List[str], Optional[pathlib.Path]]] = []

    def __call__(
        self,
        args: Sequence[str],
        cwd: Optional[pathlib.Path] = None,
        timeout: Optional[float] = None,
    ) -> str:
        self.calls.append((list(args), cwd))
        if self.missing:
            raise FileNotFoundError(2, "No such file or directory", args[0])
        if list(args[1:]) == ["--version"]:
            return self.version
        if list(args[1:3]) == ["new", "uninstall"]:
            return self.listing
        return 'The template "FastEndpoints Feature" was created successfully.\n'

    @property
    def feature_calls(self) -> List[List[str]]:
        return [args for args, _ in self.calls if args[1:3] == ["new", "feat"]]


@pytest.fixture()
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture()
def runner_factory() -> type:
    """The ``FakeRunner`` class, for tests that need a non-default runner."""
    return FakeRunner


@pytest.fixture()
def write_cs():
    """``write_source`` helper for tests that lay out their own projects."""
    return write_source


@pytest.fixture(autouse=True)
def _reset_fescaffold_logger():
    """Undo the handler and propagation changes made by ``cli.main``."""
    yield
    package_logger = logging.getLogger("fescaffold")
    package_logger.handlers.clear()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)
