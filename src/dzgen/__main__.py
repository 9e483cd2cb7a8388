"""Entry point for ``python -m dzgen``."""

from dzgen.export.__main__ import main

if __name__ == "__main__":
    main()
