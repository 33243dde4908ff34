"""
Core package for the backend service.

This package contains the main application logic and components including:
- Service lifecycle primitives (handles, orchestrator, listener, signals)
- Backing services for configuration, storage and cache
- API routes and middleware
"""
