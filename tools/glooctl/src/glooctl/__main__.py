"""
Top-level entry point: python -m glooctl <command> <action>
"""

from .cli import main


if __name__ == "__main__":
    main()
