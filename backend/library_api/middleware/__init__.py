# Middleware package init
"""
Library Lending API — Middleware Package
=========================================

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [CORS] → Route Handler

    1. Request ID: assign the correlation ID used by every later log line
    2. Logging: log method, path, status and duration with that ID
    3. CORS: applied by FastAPI's CORSMiddleware (handles preflight)
"""
