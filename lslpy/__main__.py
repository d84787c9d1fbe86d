"""Allow ``python -m lslpy``."""

from lslpy.main import main

if __name__ == "__main__":
    raise SystemExit(main())
