"""Allow running satbuild with ``python -m satbuild``."""

from satbuild.cli import main

if __name__ == "__main__":
    main()
