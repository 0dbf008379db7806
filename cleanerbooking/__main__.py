"""
Entry point for ``python -m cleanerbooking``.
"""

from .cli.app import app

if __name__ == "__main__":
    app()
