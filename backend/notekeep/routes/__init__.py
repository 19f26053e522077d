"""
Notekeep Backend: API Routes Package
====================================

Route Inventory:
    - auth.py:    POST /signup, /login, /logout, /resetpassword
    - notes.py:   everything under /notes (CRUD, tags, flags, reminders,
                  versions, export)
    - health.py:  GET  /health

Routes stay thin: parse the request, call a service with the caller's id,
shape the envelope. Ownership and business rules live in the services.
"""
