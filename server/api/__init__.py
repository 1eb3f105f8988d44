"""
API routes aggregation module.

This module imports the API endpoints from the individual modules and
aggregates them into a single api_routes list for use by the application.
"""

from starlette.routing import Route

from .designer import api_designer
from .workflow import api_workflow

# Aggregate all routes into a single list
api_routes = [
    Route("/workflowapi", endpoint=api_workflow, methods=["GET", "POST"]),
    Route("/designerapi", endpoint=api_designer, methods=["GET", "POST"]),
]

__all__ = ["api_routes", "api_designer", "api_workflow"]
