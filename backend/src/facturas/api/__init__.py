"""HTTP layer - FastAPI routers and request/response schemas."""
