"""
LegalTendr Backend — Services Layer
=====================================

What:  Business rules between the routes (HTTP) and the database.
How:   Each service is a stateless class with a module-level singleton.
       Methods receive the request's AsyncSession and raise the
       exceptions in legaltendr.exceptions; routes never touch SQL.

Service Inventory:
    - AuthService:          register, login, logout, session lookup
    - ProfileService:       profile read/update, profile picture upload
    - FileService:          upload validation, storage, cleanup
    - CatalogService:       specialties, provinces, cities
    - LawyerService:        lawyer discovery and case matching
    - SwipeService:         deck, swipes, undo, reset, history
    - MatchService:         matches from either side
    - ConversationService:  inbox, threads, messages, read receipts
    - CaseService:          cases, hiring, sharing into a conversation
"""
