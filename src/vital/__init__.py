"""Vital - habit recurrence and progress tracking."""
