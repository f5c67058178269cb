"""
Agent Chat Gateway Application
==============================

FastAPI service between the browser chat client and the agent-execution
server.

Packages:
    - proxy:   Authenticated forwarding proxy (/api/{path})
    - auth:    Bearer token extraction and identity diagnostics
    - share:   Thread snapshot sharing with expiry
    - reports: Bug report delivery

Modules:
    - main:         Application factory and lifespan
    - config:       Pydantic settings
    - clients:      Agent-server client with injected token provider
    - dependencies: Application state and shared dependencies
    - errors:       Error envelope and exception handlers
    - models:       Request/response models
"""
