"""Notification fan-out and realtime broadcast service for kanban boards."""
