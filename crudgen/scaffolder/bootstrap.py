"""Idempotent registration of route modules in the bootstrap file.

The bootstrap file (``src/index.js``) carries two marker lines: one above
the route ``require`` statements and one above the ``app.use`` calls.  The
file is parsed into a small intermediate representation: the lines, plus
for each marker the block of entries directly below it, keyed by the bound
identifier.  New entries are appended to the end of their block unless
the key is already registered or the identical line already appears
anywhere in the file, so patching the same registration twice is a no-op.

Everything outside the two blocks is preserved byte-for-byte.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Pattern

from crudgen.utils import display_path, print_error, print_info, print_success

from .introspect import MissingArtifactError
from .models import RouteRegistration, ScaffoldError

if TYPE_CHECKING:
    from crudgen.config import ScaffoldConfig


_IMPORT_ENTRY_RE = re.compile(
    r"^\s*(?:const|let|var)\s+([A-Za-z_$][A-Za-z0-9_$]*)\s*=\s*require\(.*\)\s*;?\s*$"
)
_USE_ENTRY_RE = re.compile(
    r"^\s*app\.use\(\s*(['\"`])[^'\"`]*\1\s*,\s*([A-Za-z_$][A-Za-z0-9_$]*)\s*\)\s*;?\s*$"
)


class AnchorNotFoundError(ScaffoldError):
    """One or both marker lines are missing from the bootstrap file."""

    def __init__(self, path: Path, anchors: list[str]) -> None:
        self.path = Path(path)
        self.anchors = list(anchors)
        joined = ", ".join(repr(a) for a in self.anchors)
        super().__init__(
            f"Anchor marker(s) {joined} not found in {self.path}; "
            "add the marker line(s) so crudgen knows where to insert routes, "
            "or point the \"anchors\" setting in .crudgen.json at the markers "
            "the file already uses (e.g. '//routes importes' and '// Use the  routes')"
        )


class PatchStatus(str, Enum):
    ADDED = "added"
    EXISTS = "exists"
    ANCHOR_MISSING = "anchor_missing"


# ---------------------------------------------------------------------------
# Intermediate representation
# ---------------------------------------------------------------------------


@dataclass
class BootstrapSection:
    """One marker and the pattern its entries follow."""
    anchor: str
    pattern: Pattern[str]
    key_group: int

    def key_of(self, line: str) -> Optional[str]:
        match = self.pattern.match(line)
        return match.group(self.key_group) if match else None


@dataclass
class BootstrapDocument:
    """Line-level view of the bootstrap file with its two entry blocks."""
    lines: list[str]
    newline: str = "\n"
    trailing_newline: bool = True
    imports: BootstrapSection = field(
        default_factory=lambda: BootstrapSection("", _IMPORT_ENTRY_RE, 1)
    )
    registrations: BootstrapSection = field(
        default_factory=lambda: BootstrapSection("", _USE_ENTRY_RE, 2)
    )

    @classmethod
    def parse(cls, text: str, import_anchor: str, registration_anchor: str) -> "BootstrapDocument":
        newline = "\r\n" if "\r\n" in text else "\n"
        lines = text.split(newline)
        trailing_newline = False
        if lines and lines[-1] == "":
            lines.pop()
            trailing_newline = True
        return cls(
            lines=lines,
            newline=newline,
            trailing_newline=trailing_newline,
            imports=BootstrapSection(import_anchor, _IMPORT_ENTRY_RE, 1),
            registrations=BootstrapSection(registration_anchor, _USE_ENTRY_RE, 2),
        )

    def serialize(self) -> str:
        text = self.newline.join(self.lines)
        if self.trailing_newline and self.lines:
            text += self.newline
        return text

    # -- Queries -----------------------------------------------------------

    def anchor_index(self, section: BootstrapSection) -> Optional[int]:
        for index, line in enumerate(self.lines):
            if section.anchor in line:
                return index
        return None

    def block_range(self, section: BootstrapSection) -> Optional[tuple[int, int]]:
        """Half-open line range of the entries directly below the marker."""
        start = self.anchor_index(section)
        if start is None:
            return None
        end = start + 1
        while end < len(self.lines) and section.key_of(self.lines[end]) is not None:
            end += 1
        return start + 1, end

    def keys(self, section: BootstrapSection) -> list[str]:
        span = self.block_range(section)
        if span is None:
            return []
        return [section.key_of(line) for line in self.lines[span[0]:span[1]]]

    def contains_line(self, line: str) -> bool:
        wanted = line.strip()
        return any(existing.strip() == wanted for existing in self.lines)

    # -- Mutations ---------------------------------------------------------

    def add(self, section: BootstrapSection, line: str, key: str) -> PatchStatus:
        if self.contains_line(line):
            return PatchStatus.EXISTS
        span = self.block_range(section)
        if span is None:
            return PatchStatus.ANCHOR_MISSING
        if key in self.keys(section):
            return PatchStatus.EXISTS
        anchor_line = self.lines[span[0] - 1]
        indent = anchor_line[: len(anchor_line) - len(anchor_line.lstrip())]
        self.lines.insert(span[1], f"{indent}{line}")
        return PatchStatus.ADDED

    def add_import(self, line: str, key: str) -> PatchStatus:
        return self.add(self.imports, line, key)

    def add_registration(self, line: str, key: str) -> PatchStatus:
        return self.add(self.registrations, line, key)


@dataclass(frozen=True)
class PatchResult:
    content: str
    import_status: PatchStatus
    use_status: PatchStatus
    changed: bool

    @property
    def ok(self) -> bool:
        return PatchStatus.ANCHOR_MISSING not in (self.import_status, self.use_status)


# ---------------------------------------------------------------------------
# Patcher
# ---------------------------------------------------------------------------


class BootstrapPatcher:
    """Registers route modules in the configured bootstrap file."""

    def __init__(self, config: "ScaffoldConfig") -> None:
        self.config = config

    @property
    def path(self) -> Path:
        return self.config.bootstrap_path

    def apply(self, text: str, registration: RouteRegistration) -> PatchResult:
        """Return *text* with *registration* added.  Pure."""
        document = BootstrapDocument.parse(
            text,
            self.config.anchors.imports,
            self.config.anchors.registrations,
        )
        import_status = document.add_import(registration.import_line, registration.binding)
        use_status = document.add_registration(registration.use_line, registration.binding)
        content = document.serialize() if PatchStatus.ADDED in (import_status, use_status) else text
        return PatchResult(
            content=content,
            import_status=import_status,
            use_status=use_status,
            changed=content != text,
        )

    async def patch_file(self, registration: RouteRegistration) -> PatchResult:
        """Patch the bootstrap file on disk and report each step.

        The successful half of a patch is written even when the other
        marker is missing; the missing marker is then raised as
        ``AnchorNotFoundError``.

        Raises:
            MissingArtifactError: If the bootstrap file does not exist.
            AnchorNotFoundError: If either marker line is absent.
        """
        path = self.path
        if not path.is_file():
            raise MissingArtifactError(path, "Bootstrap file")
        text = await asyncio.to_thread(_read_verbatim, path)
        result = self.apply(text, registration)

        if result.changed:
            await asyncio.to_thread(_write_verbatim, path, result.content)

        shown = display_path(path, self.config.root)
        self._report("import", registration.binding, result.import_status)
        self._report("app.use", registration.mount_path, result.use_status)
        if result.changed:
            print_success(f"Updated {shown} for {registration.binding}")

        if not result.ok:
            missing = []
            if result.import_status is PatchStatus.ANCHOR_MISSING:
                missing.append(self.config.anchors.imports)
            if result.use_status is PatchStatus.ANCHOR_MISSING:
                missing.append(self.config.anchors.registrations)
            raise AnchorNotFoundError(path, missing)
        return result

    @staticmethod
    def _report(what: str, subject: str, status: PatchStatus) -> None:
        if status is PatchStatus.ADDED:
            print_success(f"Added {what} for {subject}")
        elif status is PatchStatus.EXISTS:
            print_info(f"{what} for {subject} already exists.")
        else:
            print_error(f"Could not add {what} for {subject}: anchor marker missing")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _read_verbatim(path: Path) -> str:
    """Read *path* without newline translation so CRLF survives the patch."""
    with open(path, encoding="utf-8", newline="") as handle:
        return handle.read()


def _write_verbatim(path: Path, content: str) -> None:
    with open(path, "w", encoding="utf-8", newline="") as handle:
        handle.write(content)
