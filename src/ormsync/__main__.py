"""Entry point for 'python -m ormsync' command."""

from ormsync.cli import main

if __name__ == "__main__":
    main()
