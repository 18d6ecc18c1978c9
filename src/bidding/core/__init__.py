"""Core business logic module.

Modules:
- outline_model: Outline node/file/document dataclasses
- outline_tree: Path-addressed read and copy-on-write edits
- template_resolver: Boilerplate lookup for recognized chapter titles
- normalizer: Migration of raw project data into canonical outlines
- editing_session: Viewing/Editing state machine over a working copy
- outline_yaml: YAML export/import for manual review
- review: Load, edit and save orchestration against a store
"""

__all__ = [
    "outline_model",
    "outline_tree",
    "template_resolver",
    "normalizer",
    "editing_session",
    "outline_yaml",
    "review",
]
