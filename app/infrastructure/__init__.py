"""
Infrastructure layer for the work time tracker.

This layer contains the implementation details for external systems integration:
- Database (SQLAlchemy, one transaction per repository call)
- Caching of derived aggregates (Redis or in-process)
- Authentication (bearer JWT)
- Real-time delivery over WebSocket and server-sent events

The infrastructure layer implements interfaces defined in the domain layer,
following the Dependency Inversion Principle of Clean Architecture.
"""
