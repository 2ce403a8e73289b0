"""Integration tests for complete scaffolding sessions.

These tests drive the real orchestrator, renderer, writer and patcher
through several commands against a temporary project directory, with a
scripted prompter standing in for the operator at the terminal.

No external services (Node, MongoDB) are required.
"""

from __future__ import annotations

import json
import re
from pathlib import Path

import pytest

from crudgen.config import ScaffoldConfig
from crudgen.scaffolder import ArtifactKind, ScaffoldOrchestrator


pytestmark = pytest.mark.integration


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _run(config: ScaffoldConfig, prompter, *commands: str) -> None:
    for command in commands:
        await ScaffoldOrchestrator(config, prompter).run(command)


def _tree(root: Path) -> dict[str, str]:
    return {
        path.relative_to(root).as_posix(): path.read_text(encoding="utf-8")
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestFullSession:
    async def test_init_model_views(self, config, prompter_factory, task_answers):
        prompter = prompter_factory(
            [*task_answers, "Task"],
            create_controller=True,
            create_routes=True,
            create_view_routes=True,
        )
        await _run(config, prompter, "init", "model", "views")

        assert sorted(_tree(config.root)) == [
            "src/configs/database.js",
            "src/controllers/CrudController.js",
            "src/controllers/TaskController.js",
            "src/index.js",
            "src/models/Task.js",
            "src/routes/TaskRoutes.js",
            "src/routes/TaskViewRoutes.js",
            "src/views/Task.html",
        ]

        index = config.bootstrap_path.read_text(encoding="utf-8")
        imports = index.split(config.anchors.imports, 1)[1].split("\n\n", 1)[0]
        assert imports.strip().splitlines() == [
            "const TaskRoutes = require('./routes/TaskRoutes');",
            "const TaskViewRoutes = require('./routes/TaskViewRoutes');",
        ]
        uses = index.split(config.anchors.registrations, 1)[1].split("\n\n", 1)[0]
        assert uses.strip().splitlines() == [
            "app.use('/api/task', TaskRoutes);",
            "app.use('/task', TaskViewRoutes);",
        ]

    async def test_view_urls_agree_with_registered_mount(self, config, prompter_factory, task_answers):
        prompter = prompter_factory(
            [*task_answers, "Task"],
            create_controller=True,
            create_routes=True,
            create_view_routes=False,
        )
        await _run(config, prompter, "init", "model", "views")

        index = config.bootstrap_path.read_text(encoding="utf-8")
        mount = re.search(r"app\.use\('([^']+)', TaskRoutes\);", index).group(1)
        html = config.artifact_path(ArtifactKind.VIEW, "Task").read_text(encoding="utf-8")
        urls = json.loads(re.search(r"const ENDPOINTS = (.+);\n", html).group(1))
        routes = config.artifact_path(ArtifactKind.ROUTES, "Task").read_text(encoding="utf-8")

        for operation, method in (("create", "post"), ("read", "get"), ("update", "put"), ("delete", "delete")):
            suffix = re.search(rf"router\.{method}\('([^']+)', TaskController\.{operation}\)", routes).group(1)
            assert urls[operation] == mount + suffix.replace(":id", "")

    async def test_second_entity_appends_after_first(self, config, prompter_factory, task_answers):
        note_answers = ["Note", "body", "text", True, False, False]
        prompter = prompter_factory(
            [*task_answers, *note_answers],
            create_controller=True,
            create_routes=True,
        )
        await _run(config, prompter, "init", "model", "model")

        index = config.bootstrap_path.read_text(encoding="utf-8")
        assert index.index("app.use('/api/task', TaskRoutes);") < index.index("app.use('/api/note', NoteRoutes);")
        note = config.artifact_path(ArtifactKind.MODEL, "Note").read_text(encoding="utf-8")
        assert "body: { type: String, required: true }" in note
        assert "timestamps" not in note

    async def test_repeating_a_session_is_stable(self, force_config, prompter_factory, task_answers):
        def prompter():
            return prompter_factory(
                [*task_answers, "Task"],
                create_controller=True,
                create_routes=True,
                create_view_routes=True,
            )

        await _run(force_config, prompter(), "init", "model", "views")
        first = _tree(force_config.root)
        await _run(force_config, prompter(), "init", "model", "views")
        assert _tree(force_config.root) == first

    async def test_entity_command_session(self, config, prompter_factory, task_answers):
        prompter = prompter_factory(task_answers)
        await _run(config, prompter, "init", "entity")

        entity = config.artifact_path(ArtifactKind.ENTITY, "Task").read_text(encoding="utf-8")
        assert "this.title = data.title;" in entity
        assert "app.use('/api/task', TaskRoutes);" in config.bootstrap_path.read_text(encoding="utf-8")
