"""Allow running the hook with `python -m commitgate`."""

from commitgate.cli import main

if __name__ == "__main__":
    main()
