"""crudgen scaffolder -- renders and wires CRUD artifacts for one entity.

The pieces compose bottom-up: ``FieldCollector`` builds an ``EntitySpec``
from operator answers, ``ArtifactRenderer`` turns it into file contents via
``TemplateRenderer``, ``ArtifactWriter`` persists them and
``BootstrapPatcher`` registers the generated routers in ``src/index.js``.
``ScaffoldOrchestrator`` sequences all of it per CLI command.

Quick usage::

    from crudgen.config import ScaffoldConfig
    from crudgen.scaffolder import RichPrompter, ScaffoldOrchestrator

    orchestrator = ScaffoldOrchestrator(ScaffoldConfig(root=Path(".")), RichPrompter())
    await orchestrator.run("model")
"""

from crudgen.scaffolder.bootstrap import AnchorNotFoundError, BootstrapPatcher, PatchStatus
from crudgen.scaffolder.collector import FieldCollector, RichPrompter, collect_entity
from crudgen.scaffolder.introspect import MissingArtifactError, ModelParseError, read_model_fields
from crudgen.scaffolder.models import (
    ArtifactKind,
    EntityNames,
    EntitySpec,
    FieldSpec,
    LogicalType,
    RenderedArtifact,
    RouteRegistration,
    ScaffoldError,
)
from crudgen.scaffolder.orchestrator import COMMANDS, ScaffoldOrchestrator
from crudgen.scaffolder.renderer import ArtifactRenderer
from crudgen.scaffolder.templates import TemplateRenderer
from crudgen.scaffolder.type_map import map_type
from crudgen.scaffolder.writer import ArtifactWriter, WriteStatus

__all__ = [
    "AnchorNotFoundError",
    "ArtifactKind",
    "ArtifactRenderer",
    "ArtifactWriter",
    "BootstrapPatcher",
    "COMMANDS",
    "EntityNames",
    "EntitySpec",
    "FieldCollector",
    "FieldSpec",
    "LogicalType",
    "MissingArtifactError",
    "ModelParseError",
    "PatchStatus",
    "RenderedArtifact",
    "RichPrompter",
    "RouteRegistration",
    "ScaffoldError",
    "ScaffoldOrchestrator",
    "TemplateRenderer",
    "WriteStatus",
    "collect_entity",
    "map_type",
    "read_model_fields",
]
