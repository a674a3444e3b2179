"""Structured git working-tree state for shell prompts."""
