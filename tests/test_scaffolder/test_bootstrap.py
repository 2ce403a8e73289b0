"""Tests for bootstrap registration (crudgen.scaffolder.bootstrap).

Covers:
- Parsing the bootstrap file into anchor blocks
- Appending imports / registrations below the markers
- Idempotence and duplicate-key detection
- Missing markers (partial patch + AnchorNotFoundError)
- Byte-for-byte preservation of the rest of the file
"""

from __future__ import annotations

import pytest

from crudgen.config import DEFAULT_IMPORT_ANCHOR, DEFAULT_REGISTRATION_ANCHOR, ScaffoldConfig
from crudgen.scaffolder.bootstrap import (
    AnchorNotFoundError,
    BootstrapDocument,
    BootstrapPatcher,
    PatchStatus,
)
from crudgen.scaffolder.introspect import MissingArtifactError
from crudgen.scaffolder.models import EntityNames, RouteRegistration


pytestmark = pytest.mark.unit


INDEX = (
    "const express = require('express');\n"
    "\n"
    f"{DEFAULT_IMPORT_ANCHOR}\n"
    "\n"
    "const app = express();\n"
    "\n"
    f"{DEFAULT_REGISTRATION_ANCHOR}\n"
    "\n"
    "app.listen(3000);\n"
)


@pytest.fixture
def patcher(config) -> BootstrapPatcher:
    return BootstrapPatcher(config)


@pytest.fixture
def task_routes() -> RouteRegistration:
    return RouteRegistration.for_routes(EntityNames.derive("Task"))


@pytest.fixture
def note_routes() -> RouteRegistration:
    return RouteRegistration.for_routes(EntityNames.derive("Note"))


# ---------------------------------------------------------------------------
# BootstrapDocument
# ---------------------------------------------------------------------------


class TestBootstrapDocument:
    def _parse(self, text: str) -> BootstrapDocument:
        return BootstrapDocument.parse(text, DEFAULT_IMPORT_ANCHOR, DEFAULT_REGISTRATION_ANCHOR)

    def test_serialize_round_trips(self):
        for text in (INDEX, INDEX.rstrip("\n"), INDEX.replace("\n", "\r\n")):
            assert self._parse(text).serialize() == text

    def test_block_keys(self):
        text = INDEX.replace(
            f"{DEFAULT_IMPORT_ANCHOR}\n",
            f"{DEFAULT_IMPORT_ANCHOR}\nconst A = require('./routes/A');\nlet B = require('./routes/B')\n",
        )
        document = self._parse(text)
        assert document.keys(document.imports) == ["A", "B"]
        assert document.keys(document.registrations) == []

    def test_missing_anchor(self):
        document = self._parse("const app = express();\n")
        assert document.anchor_index(document.imports) is None
        assert document.add_import("const A = require('./routes/A');", "A") is PatchStatus.ANCHOR_MISSING

    def test_inserted_line_keeps_anchor_indent(self):
        document = self._parse(f"function boot() {{\n    {DEFAULT_REGISTRATION_ANCHOR}\n}}\n")
        document.add_registration("app.use('/api/a', A);", "A")
        assert document.lines[2] == "    app.use('/api/a', A);"

    def test_existing_key_with_different_path_is_not_duplicated(self):
        text = INDEX.replace(
            f"{DEFAULT_REGISTRATION_ANCHOR}\n",
            f"{DEFAULT_REGISTRATION_ANCHOR}\napp.use('/legacy/task', TaskRoutes);\n",
        )
        document = self._parse(text)
        status = document.add_registration("app.use('/api/task', TaskRoutes);", "TaskRoutes")
        assert status is PatchStatus.EXISTS


# ---------------------------------------------------------------------------
# BootstrapPatcher.apply
# ---------------------------------------------------------------------------


class TestApply:
    def test_adds_both_lines(self, patcher, task_routes):
        result = patcher.apply(INDEX, task_routes)
        assert result.import_status is PatchStatus.ADDED
        assert result.use_status is PatchStatus.ADDED
        assert result.changed and result.ok
        assert (
            f"{DEFAULT_IMPORT_ANCHOR}\nconst TaskRoutes = require('./routes/TaskRoutes');\n"
            in result.content
        )
        assert f"{DEFAULT_REGISTRATION_ANCHOR}\napp.use('/api/task', TaskRoutes);\n" in result.content

    def test_idempotent(self, patcher, task_routes):
        once = patcher.apply(INDEX, task_routes).content
        again = patcher.apply(once, task_routes)
        assert again.content == once
        assert not again.changed
        assert again.import_status is PatchStatus.EXISTS
        assert again.use_status is PatchStatus.EXISTS

    def test_appends_in_registration_order(self, patcher, task_routes, note_routes):
        content = patcher.apply(INDEX, task_routes).content
        content = patcher.apply(content, note_routes).content
        lines = content.splitlines()
        start = lines.index(DEFAULT_REGISTRATION_ANCHOR)
        assert lines[start + 1 : start + 3] == [
            "app.use('/api/task', TaskRoutes);",
            "app.use('/api/note', NoteRoutes);",
        ]

    def test_existing_line_elsewhere_counts(self, patcher, task_routes):
        text = "const TaskRoutes = require('./routes/TaskRoutes');\n" + INDEX
        result = patcher.apply(text, task_routes)
        assert result.import_status is PatchStatus.EXISTS
        assert result.use_status is PatchStatus.ADDED
        assert result.content.count("require('./routes/TaskRoutes')") == 1

    def test_preserves_surrounding_text(self, patcher, task_routes):
        result = patcher.apply(INDEX, task_routes)
        removed = (
            result.content
            .replace("const TaskRoutes = require('./routes/TaskRoutes');\n", "")
            .replace("app.use('/api/task', TaskRoutes);\n", "")
        )
        assert removed == INDEX

    def test_crlf_is_preserved(self, patcher, task_routes):
        text = INDEX.replace("\n", "\r\n")
        content = patcher.apply(text, task_routes).content
        assert "\r\nconst TaskRoutes = require('./routes/TaskRoutes');\r\n" in content
        assert "\n" not in content.replace("\r\n", "")

    def test_missing_import_anchor_still_registers(self, patcher, task_routes):
        text = INDEX.replace(f"{DEFAULT_IMPORT_ANCHOR}\n", "")
        result = patcher.apply(text, task_routes)
        assert result.import_status is PatchStatus.ANCHOR_MISSING
        assert result.use_status is PatchStatus.ADDED
        assert not result.ok
        assert "require('./routes/TaskRoutes')" not in result.content

    def test_custom_anchors(self, project_root, task_routes):
        config = ScaffoldConfig(
            root=project_root,
            anchors={"imports": "/* routes: imports */", "registrations": "/* routes: use */"},
        )
        text = "/* routes: imports */\nconst app = express();\n/* routes: use */\n"
        result = BootstrapPatcher(config).apply(text, task_routes)
        assert result.content == (
            "/* routes: imports */\n"
            "const TaskRoutes = require('./routes/TaskRoutes');\n"
            "const app = express();\n"
            "/* routes: use */\n"
            "app.use('/api/task', TaskRoutes);\n"
        )


# ---------------------------------------------------------------------------
# BootstrapPatcher.patch_file
# ---------------------------------------------------------------------------


class TestPatchFile:
    @pytest.fixture
    def index_path(self, config):
        path = config.bootstrap_path
        path.parent.mkdir(parents=True)
        path.write_text(INDEX, encoding="utf-8")
        return path

    async def test_writes_patch(self, patcher, task_routes, index_path):
        result = await patcher.patch_file(task_routes)
        assert result.changed
        assert index_path.read_text(encoding="utf-8") == result.content

    async def test_second_patch_leaves_file_untouched(self, patcher, task_routes, index_path):
        await patcher.patch_file(task_routes)
        first = index_path.read_text(encoding="utf-8")
        result = await patcher.patch_file(task_routes)
        assert not result.changed
        assert index_path.read_text(encoding="utf-8") == first

    async def test_missing_bootstrap_file(self, patcher, task_routes):
        with pytest.raises(MissingArtifactError, match="Bootstrap file not found"):
            await patcher.patch_file(task_routes)

    async def test_missing_anchor_writes_other_half_then_raises(self, patcher, task_routes, index_path):
        index_path.write_text(INDEX.replace(f"{DEFAULT_REGISTRATION_ANCHOR}\n", ""), encoding="utf-8")
        with pytest.raises(AnchorNotFoundError) as excinfo:
            await patcher.patch_file(task_routes)
        assert excinfo.value.anchors == [DEFAULT_REGISTRATION_ANCHOR]
        assert excinfo.value.path == index_path
        assert "const TaskRoutes = require('./routes/TaskRoutes');" in index_path.read_text(encoding="utf-8")

    async def test_both_anchors_missing(self, patcher, task_routes, index_path):
        index_path.write_text("const app = express();\n", encoding="utf-8")
        with pytest.raises(AnchorNotFoundError) as excinfo:
            await patcher.patch_file(task_routes)
        assert excinfo.value.anchors == [DEFAULT_IMPORT_ANCHOR, DEFAULT_REGISTRATION_ANCHOR]
        assert index_path.read_text(encoding="utf-8") == "const app = express();\n"

    async def test_crlf_file_keeps_crlf_on_disk(self, patcher, index_path):
        index_path.write_bytes(INDEX.replace("\n", "\r\n").encode("utf-8"))
        await patcher.patch_file(RouteRegistration.for_routes(EntityNames.derive("Foo")))
        raw = index_path.read_bytes()
        assert b"\n" not in raw.replace(b"\r\n", b"")
        assert b"const FooRoutes = require('./routes/FooRoutes');\r\n" in raw
        assert b"app.use('/api/foo', FooRoutes);\r\n" in raw

    async def test_missing_anchor_message_points_at_config(self, patcher, task_routes, index_path):
        index_path.write_text("//routes importes\n// Use the  routes\n", encoding="utf-8")
        with pytest.raises(AnchorNotFoundError, match=r"\.crudgen\.json"):
            await patcher.patch_file(task_routes)
