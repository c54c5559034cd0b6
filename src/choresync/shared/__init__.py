"""Shared utilities for ChoreSync: errors, logging, constants and protocols."""
