"""Chat completion relay: one-shot GraphQL chat plus an SSE streaming relay."""

__version__ = "0.1.0"
