"""
Entry point for running the engine as a module.

Usage:
    python -m lessonengine validate snapshot.json
    python -m lessonengine slots snapshot.json --teacher T001
    python -m lessonengine check snapshot.json --teacher T001 --student S001 --day 1 --start 15:00 --duration 45
    python -m lessonengine analyze snapshot.json --teacher T001
"""

from lessonengine.cli import main

if __name__ == "__main__":
    main()
