"""Workflow server: HTTP host for a workflow engine runtime."""
