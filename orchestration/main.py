"""
Luna — Rising Revenant game advisor — Entry Point

This file is a thin wrapper that delegates to server/app.py.

To run: python orchestration/main.py
   or:  python -m server.app
"""

from server.app import run

if __name__ == "__main__":
    run()
