"""Allow ``python -m pkgpush``."""

from pkgpush.cli.main import main

if __name__ == "__main__":
    main()
