"""Video provider implementations.

Each provider implements the async task pattern:
  POST create task → GET task status (client-driven) → hand video URL to the store
"""
