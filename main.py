#!/usr/bin/env python3
"""
keifu - terminal commit graph viewer

This is a convenience wrapper for running from the repo root.
The actual entry point is keifu.main:main (for pip install).
"""

from keifu.main import main

if __name__ == "__main__":
    main()
