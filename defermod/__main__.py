"""Entry point for ``python -m defermod``."""

from defermod.main import main

if __name__ == "__main__":
    raise SystemExit(main())
