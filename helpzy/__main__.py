"""Allow running as ``python -m helpzy``."""

from . import main

main()
