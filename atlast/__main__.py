"""Entry point for ``python -m atlast``."""

from .cli import main

if __name__ == "__main__":
    main()
