#!/usr/bin/env python3
"""Analyze class files and print extract-class recommendations."""

import sys

from src.cohesion_graph.cli import main


if __name__ == "__main__":
    sys.exit(main())
