# Services package init
"""
Library Lending API — Services Layer
=====================================

What:  Business logic layer sitting between routes (HTTP) and database (persistence).
Why:   Routes handle HTTP; services handle business rules.
How:   Services receive an AsyncSession per call, apply the rules, commit
       their own writes, and return response schemas.

Service Inventory:
    - BookService:    Book registry (CRUD, ISBN uniqueness, on-loan delete guard)
    - ReaderService:  Reader registry (CRUD, open-lending delete guard, default seeding)
    - LendingService: Lending coordinator (lend/return transitions, lending listing)
"""
