"""
Core package — cross-cutting concerns.

Modules:
    config      — environment variables & settings
    logging     — structured JSON / pretty console logging
    errors      — exception hierarchy & handlers
    middleware  — request logging and correlation IDs
    health      — health check aggregation
"""
