"""crudgen -- interactive CRUD scaffolding for Express + Mongoose projects.

Collects an entity definition at the terminal, renders model, controller,
route and view artifacts from Jinja2 templates, and wires the generated route
modules into the application's bootstrap file.

Quick usage::

    from crudgen.config import ScaffoldConfig
    from crudgen.scaffolder import ArtifactRenderer, EntitySpec, FieldSpec

    spec = EntitySpec(name="Task", fields=[FieldSpec(name="title")])
    artifact = ArtifactRenderer(ScaffoldConfig()).model(spec)
"""

__version__ = "0.3.0"
