"""Storage of booking-creation sessions."""

from .store import InMemoryWorkflowStore, RedisWorkflowStore, WorkflowStore, get_workflow_store

__all__ = ["WorkflowStore", "InMemoryWorkflowStore", "RedisWorkflowStore", "get_workflow_store"]
