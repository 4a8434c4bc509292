"""
Personal task-list engine.

The task state engine (store, ordering, view projection, result cache) lives in
`tasklist.tasks`; persistence adapters in `tasklist.storage`; the console
front-end in `tasklist.cli`.
"""

__version__ = "0.1.0"
