# Routes package init
"""
Library Lending API — Routes Package
=====================================

Route Inventory:
    - books.py:     POST/GET /book, GET/PATCH/DELETE /book/{isbn}
    - readers.py:   POST/GET /reader, GET/PATCH/DELETE /reader/{id}
    - lendings.py:  POST/GET /lending, PATCH /lending/{id} (return)
    - health.py:    GET /health

Design Principle:
    Routes are THIN. They parse the request into a DTO, call one service
    method and return its result. Typed exceptions raised by services are
    turned into status codes by the handlers in main.py.
"""
