"""
Package entry point.

Allows running the application via:

    python -m campusweek

This simply forwards execution to campusweek.cli.main().
"""

from campusweek.cli import main

if __name__ == "__main__":
    main()
