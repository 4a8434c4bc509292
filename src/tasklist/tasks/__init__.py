"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskDraft, TaskPatch, ViewFilters, ...)
- task_store.py: canonical collection + gateway writes + cache coherence
- ordering.py: dense reorder / renumbering
- view.py: filtered, sorted projections and progress stats
- result_cache.py: write-invalidated memo of read results
"""
