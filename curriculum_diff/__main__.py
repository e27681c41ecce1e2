"""
Package entry point.

Allows running the application via:

    python -m curriculum_diff

This simply forwards execution to curriculum_diff.cli.main().
"""

from curriculum_diff.cli import main

if __name__ == "__main__":
    main()
