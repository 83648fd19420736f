"""
Design (main.py)
- Purpose: Script entry point; same commands as the installed `repair-desk` executable.
"""

from repair_desk.cli import app

if __name__ == "__main__":
    app()
