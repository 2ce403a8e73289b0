"""Command orchestration for crudgen.

Each public coroutine implements one CLI command.  Commands run strictly in
sequence: collect the entity, render, write, patch the bootstrap file, and
ask before every cascade step (controller after model, routes after
controller, view routes after view).  Declining a cascade prompt ends that
branch without error.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Awaitable, Callable

from crudgen.utils import (
    display_path,
    print_banner,
    print_error,
    print_info,
    print_success,
    print_summary_table,
    print_warning,
)

from .bootstrap import BootstrapPatcher
from .collector import Prompter, ask_entity_name, collect_entity, confirm
from .introspect import MissingArtifactError, read_model_fields
from .models import ArtifactKind, EntitySpec, RenderedArtifact, RouteRegistration
from .renderer import ArtifactRenderer
from .writer import ArtifactWriter, WriteStatus

if TYPE_CHECKING:
    from crudgen.config import ScaffoldConfig


COMMANDS: tuple[str, ...] = (
    "init",
    "model",
    "crud",
    "entity",
    "controller",
    "routes",
    "views",
    "views-routers",
    "migration",
)


class ScaffoldOrchestrator:
    """Sequences collection, rendering, writing and patching per command."""

    def __init__(
        self,
        config: "ScaffoldConfig",
        prompter: Prompter,
        *,
        renderer: ArtifactRenderer | None = None,
        writer: ArtifactWriter | None = None,
        patcher: BootstrapPatcher | None = None,
    ) -> None:
        self.config = config
        self.prompter = prompter
        self.renderer = renderer or ArtifactRenderer(config)
        self.writer = writer or ArtifactWriter()
        self.patcher = patcher or BootstrapPatcher(config)
        # Artifact path -> write status, for the end-of-command summary.
        self.written: dict[str, str] = {}

    # -- Dispatch ----------------------------------------------------------

    async def run(self, command: str) -> None:
        """Run the named CLI command."""
        handlers: dict[str, Callable[[], Awaitable[object]]] = {
            "init": self.init_project,
            "model": self.model,
            "crud": self.model,
            "entity": self.entity,
            "controller": self.controller,
            "routes": self.routes,
            "views": self.views,
            "views-routers": self.views_routers,
            "migration": self.migration,
        }
        handler = handlers.get(command)
        if handler is None:
            raise ValueError(f"Unknown command: {command}")
        print_banner(f"crudgen {command}", str(self.config.root))
        await handler()
        if self.written:
            print_summary_table(self.written, title="Artifacts")

    # -- Commands ----------------------------------------------------------

    async def init_project(self) -> None:
        """Write the bootstrap file, shared CRUD controller and DB config if missing."""
        for path, content in self.renderer.project_files():
            status = await self.writer.write_if_missing(path, content)
            shown = display_path(path, self.config.root)
            self.written[shown] = status.value
            if status is WriteStatus.SKIPPED:
                print_info(f"{shown} already exists, left unchanged.")
            else:
                print_success(f"Created {shown}")

    async def model(self) -> EntitySpec:
        """``model`` / ``crud``: collect fields, write the model, then cascade."""
        spec = collect_entity(self.prompter)
        await self.generate_model(spec)
        await self.cascade_controller(spec.name)
        return spec

    async def entity(self) -> EntitySpec:
        """``entity``: plain class + model, then controller/routes unless present."""
        spec = collect_entity(self.prompter)
        await self._write(self.renderer.entity(spec))
        await self.generate_model(spec)

        controller_path = self.config.artifact_path(ArtifactKind.CONTROLLER, spec.name)
        if controller_path.exists():
            print_info(f"Controller {display_path(controller_path, self.config.root)} already exists, skipping.")
        else:
            await self.generate_controller(spec.name)

        routes_path = self.config.artifact_path(ArtifactKind.ROUTES, spec.name)
        if routes_path.exists():
            print_info(f"Routes {display_path(routes_path, self.config.root)} already exists, skipping.")
            # Existing router still has to be mounted.
            await self.patcher.patch_file(RouteRegistration.for_routes(self.renderer.names_for(spec.name)))
        else:
            await self.generate_routes(spec.name)
        return spec

    async def controller(self) -> None:
        """``controller``: requires the model, offering to create it first."""
        name = ask_entity_name(self.prompter, "Enter model name:")
        model_path = self.config.artifact_path(ArtifactKind.MODEL, name)
        if not model_path.exists():
            print_error(f"Model {display_path(model_path, self.config.root)} not found.")
            if not confirm(self.prompter, f"Do you want to create the {name} model now?", key="create_model"):
                return
            spec = collect_entity(self.prompter, entity_name=name)
            await self.generate_model(spec)
        await self.generate_controller(name)
        await self.cascade_routes(name)

    async def routes(self) -> None:
        """``routes``: requires the controller, offering to create it first."""
        name = ask_entity_name(self.prompter, "Enter model name:")
        controller_path = self.config.artifact_path(ArtifactKind.CONTROLLER, name)
        if not controller_path.exists():
            print_error(f"Controller {display_path(controller_path, self.config.root)} not found.")
            if not confirm(
                self.prompter,
                f"Do you want to create the controller for {name} now?",
                key="create_controller",
            ):
                return
            await self.generate_controller(name)
        await self.generate_routes(name)

    async def views(self) -> None:
        """``views``: render the CRUD page from the model file on disk.

        Raises:
            MissingArtifactError: If the model has not been generated yet.
                Nothing is written in that case.
        """
        name = ask_entity_name(self.prompter, "Enter model name for CRUD view:")
        model_path = self.config.artifact_path(ArtifactKind.MODEL, name)
        fields = await read_model_fields(model_path)
        await self._write(self.renderer.view(name, fields))
        if confirm(self.prompter, f"Do you want to create view routes for {name}?", key="create_view_routes"):
            await self.generate_view_routes(name)

    async def views_routers(self) -> None:
        """``views-routers``: write the view-serving router and register it."""
        name = ask_entity_name(self.prompter, "Enter model name for CRUD view route:")
        await self.generate_view_routes(name)

    async def migration(self) -> None:
        """Placeholder; migrations are not generated."""
        print_warning("Migration generation is not implemented yet; nothing was generated.")

    # -- Generation steps --------------------------------------------------

    async def generate_model(self, spec: EntitySpec) -> WriteStatus:
        status = await self._write(self.renderer.model(spec))
        if status is not WriteStatus.SKIPPED:
            field_names = ", ".join(f.name for f in spec.fields) or "(none)"
            print_success(f"Model {spec.name} created with fields: {field_names}")
        return status

    async def generate_controller(self, name: str) -> WriteStatus:
        status = await self._write(self.renderer.controller(name))
        if status is not WriteStatus.SKIPPED:
            print_success(f"{name}Controller created, composed from the shared CRUD controller.")
        return status

    async def generate_routes(self, name: str) -> WriteStatus:
        """Write the router and register it; a missing controller is generated first."""
        controller_path = self.config.artifact_path(ArtifactKind.CONTROLLER, name)
        if not controller_path.exists():
            print_warning(f"Controller for {name} is missing, generating it first.")
            await self.generate_controller(name)
        status = await self._write(self.renderer.routes(name))
        names = self.renderer.names_for(name)
        await self.patcher.patch_file(RouteRegistration.for_routes(names))
        return status

    async def generate_view_routes(self, name: str) -> WriteStatus:
        status = await self._write(self.renderer.view_routes(name))
        names = self.renderer.names_for(name)
        await self.patcher.patch_file(RouteRegistration.for_view_routes(names))
        return status

    async def cascade_controller(self, name: str) -> None:
        if confirm(self.prompter, f"Do you want to create a controller for {name}?", key="create_controller"):
            await self.generate_controller(name)
            await self.cascade_routes(name)

    async def cascade_routes(self, name: str) -> None:
        if confirm(self.prompter, f"Do you want to create routes for {name}Controller?", key="create_routes"):
            await self.generate_routes(name)

    # -- Internals ---------------------------------------------------------

    async def _write(self, artifact: RenderedArtifact) -> WriteStatus:
        shown = display_path(artifact.path, self.config.root)
        overwrite = True
        if self.config.confirm_overwrite and self.writer.exists(artifact.path):
            overwrite = confirm(
                self.prompter,
                f"{shown} already exists. Overwrite it?",
                default=False,
                key="overwrite",
            )
        status = await self.writer.write(artifact, overwrite=overwrite)
        self.written[shown] = status.value
        if status is WriteStatus.SKIPPED:
            print_warning(f"Kept existing {shown}")
        else:
            print_info(f"{status.value.capitalize()} {shown}")
        return status


__all__ = ["COMMANDS", "MissingArtifactError", "ScaffoldOrchestrator"]
