"""Integration tests for the tally API.

This package exercises the FastAPI application end to end over an in-process
ASGI transport:

- Session creation and vote flow
- API endpoint validation and error mapping
- Duplicate nullifier detection
- Concurrent request handling
"""
