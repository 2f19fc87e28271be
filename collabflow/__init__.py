"""CollabFlow task-tracking backend."""
