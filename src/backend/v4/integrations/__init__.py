"""Integration adapters for external systems (order service, evidence stores).

Keep these modules small and testable:
- No FastAPI request/response objects
- No orchestration concerns
- Pure IO + parsing helpers
"""
