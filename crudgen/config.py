"""crudgen configuration.

Typed settings for a scaffolding session: where the target project lives,
which file extension generated modules use, the API mount prefix, and the two
anchor markers the bootstrap patcher looks for.  Settings are Pydantic v2
models so they validate at construction time and round-trip through JSON.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from crudgen.scaffolder.models import ArtifactKind

CONFIG_FILENAME = ".crudgen.json"

DEFAULT_IMPORT_ANCHOR = "// crudgen: route imports"
DEFAULT_REGISTRATION_ANCHOR = "// crudgen: route registrations"


class AnchorConfig(BaseModel):
    """Literal marker lines inside the bootstrap file."""

    imports: str = Field(default=DEFAULT_IMPORT_ANCHOR, min_length=1)
    registrations: str = Field(default=DEFAULT_REGISTRATION_ANCHOR, min_length=1)


class ScaffoldConfig(BaseModel):
    """Global crudgen configuration.

    One instance is built by the CLI entry point and handed to the
    orchestrator, renderer, writer and patcher.
    """

    root: Path = Field(default=Path("."))
    src_dir: str = Field(default="src")
    ext: str = Field(default="js", description="Extension for generated JavaScript modules")
    api_prefix: str = Field(default="api", description="Mount prefix for CRUD routes")
    confirm_overwrite: bool = Field(
        default=True, description="Ask before replacing an existing artifact"
    )
    anchors: AnchorConfig = Field(default_factory=AnchorConfig)

    @field_validator("ext")
    @classmethod
    def normalise_ext(cls, value: str) -> str:
        value = value.strip().lstrip(".")
        if not value:
            raise ValueError("ext must not be empty")
        return value

    @field_validator("api_prefix")
    @classmethod
    def normalise_api_prefix(cls, value: str) -> str:
        return value.strip().strip("/")

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def src_path(self) -> Path:
        return self.root / self.src_dir

    @property
    def bootstrap_path(self) -> Path:
        """The application bootstrap file, ``src/index.<ext>``."""
        return self.src_path / f"index.{self.ext}"

    @property
    def entities_dir(self) -> Path:
        return self.src_path / "entities"

    @property
    def models_dir(self) -> Path:
        return self.src_path / "models"

    @property
    def controllers_dir(self) -> Path:
        return self.src_path / "controllers"

    @property
    def routes_dir(self) -> Path:
        return self.src_path / "routes"

    @property
    def views_dir(self) -> Path:
        return self.src_path / "views"

    @property
    def configs_dir(self) -> Path:
        return self.src_path / "configs"

    def artifact_path(self, kind: ArtifactKind, name: str) -> Path:
        """Return the fixed output path for an artifact of *kind* named *name*."""
        ext = self.ext
        if kind is ArtifactKind.ENTITY:
            return self.entities_dir / f"{name}.{ext}"
        if kind is ArtifactKind.MODEL:
            return self.models_dir / f"{name}.{ext}"
        if kind is ArtifactKind.CONTROLLER:
            return self.controllers_dir / f"{name}Controller.{ext}"
        if kind is ArtifactKind.ROUTES:
            return self.routes_dir / f"{name}Routes.{ext}"
        if kind is ArtifactKind.VIEW_ROUTES:
            return self.routes_dir / f"{name}ViewRoutes.{ext}"
        if kind is ArtifactKind.VIEW:
            return self.views_dir / f"{name}.html"
        raise ValueError(f"Unknown artifact kind: {kind!r}")

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path | None = None) -> Path:
        """Persist the configuration to a JSON file.

        Args:
            path: Destination file. Defaults to ``<root>/.crudgen.json``.

        Returns:
            The path where the file was written.
        """
        target = path or (self.root / CONFIG_FILENAME)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "ScaffoldConfig":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "ScaffoldConfig":
        """Build a ``ScaffoldConfig`` from environment variables.

        Recognised variables (all optional):
            CRUDGEN_ROOT, CRUDGEN_SRC_DIR, CRUDGEN_EXT, CRUDGEN_API_PREFIX,
            CRUDGEN_CONFIRM_OVERWRITE, CRUDGEN_IMPORT_ANCHOR,
            CRUDGEN_REGISTRATION_ANCHOR.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("CRUDGEN_ROOT"):
            kwargs["root"] = Path(os.environ["CRUDGEN_ROOT"])
        if os.environ.get("CRUDGEN_SRC_DIR"):
            kwargs["src_dir"] = os.environ["CRUDGEN_SRC_DIR"]
        if os.environ.get("CRUDGEN_EXT"):
            kwargs["ext"] = os.environ["CRUDGEN_EXT"]
        if os.environ.get("CRUDGEN_API_PREFIX"):
            kwargs["api_prefix"] = os.environ["CRUDGEN_API_PREFIX"]
        if os.environ.get("CRUDGEN_CONFIRM_OVERWRITE"):
            kwargs["confirm_overwrite"] = _parse_bool(os.environ["CRUDGEN_CONFIRM_OVERWRITE"])

        anchor_kwargs: dict[str, Any] = {}
        if os.environ.get("CRUDGEN_IMPORT_ANCHOR"):
            anchor_kwargs["imports"] = os.environ["CRUDGEN_IMPORT_ANCHOR"]
        if os.environ.get("CRUDGEN_REGISTRATION_ANCHOR"):
            anchor_kwargs["registrations"] = os.environ["CRUDGEN_REGISTRATION_ANCHOR"]

        return cls(anchors=AnchorConfig(**anchor_kwargs), **kwargs)

    @classmethod
    def discover(cls, root: Path | None = None) -> "ScaffoldConfig":
        """Load ``<root>/.crudgen.json`` if present, otherwise use the environment.

        An explicit *root* always wins over the ``root`` stored in the file
        or the environment.
        """
        base = Path(root) if root is not None else Path(os.environ.get("CRUDGEN_ROOT", "."))
        config_file = base / CONFIG_FILENAME
        if config_file.is_file():
            config = cls.load(config_file)
        else:
            config = cls.from_env()
        return config.model_copy(update={"root": base})


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")
