"""Shared helpers: errors, logging, spans and timing."""
