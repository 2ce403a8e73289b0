"""Allow ``python -m crudgen``."""

from crudgen.cli import main

main()
