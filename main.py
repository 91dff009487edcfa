#!/usr/bin/env python
"""
Orrery - Keplerian propagation engine for real-time solar system scenes

This is the main entry point for the Orrery command-line tools.
Use "simulate", "path" or "solve"; see --help for the options of each.

Version: 1.0.0
"""

import sys

# Version information for reproducibility
__version__ = "1.0.0"


def main():
    """Main entry point for Orrery."""
    if '--version' in sys.argv[1:]:
        print(f"Orrery {__version__}")
        return

    try:
        from orrery.cli.main import main as cli_main
    except ImportError as e:
        print(f"ERROR: Failed to import required module: {e}", file=sys.stderr)
        print("Ensure all dependencies are installed: pip install -e .", file=sys.stderr)
        sys.exit(1)

    cli_main(sys.argv[1:])


if __name__ == "__main__":
    main()
