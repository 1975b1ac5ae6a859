"""
LegalTendr Backend — API Routes Package
=========================================

Route Inventory:
    - auth.py:           /api/auth/register, /login, /logout, /me
    - profile.py:        PATCH /api/profile, POST /api/profile/picture,
                         GET /api/files/{path}
    - catalog.py:        /api/specialties, /api/geo/provinces[/{id}/cities], /api/geo/codes
    - lawyers.py:        /api/lawyers[/{id}]
    - swipes.py:         /api/swipes (deck, record, history, undo, reset),
                         /api/matches
    - conversations.py:  /api/conversations[/{id}[/messages]], /api/messages/read
    - cases.py:          /api/cases[/{id}[/lawyers|/share]]
    - health.py:         GET /health

Routes stay thin: read the request, call a service, shape the response.
"""
