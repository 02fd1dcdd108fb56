#!/usr/bin/env python3
"""
glooctl launcher — runs the CLI from a source checkout.

Usage:
    python gloo-ctl.py route get --domain example.com
    python gloo-ctl.py route create --path-prefix /api --upstream my-upstream
    python gloo-ctl.py virtualhost get
"""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "src"))

from glooctl.cli import main  # noqa: E402

if __name__ == "__main__":
    main()
