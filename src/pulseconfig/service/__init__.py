"""Service layer: marker assembly, the editing workflow, version history, sessions."""
