"""
Notekeep Backend: Services Layer
================================

Business logic between the routes (HTTP) and the database (persistence).
Services take a session and plain values and return response schemas.

Service Inventory:
    - TokenService: signs and verifies session tokens (JWT)
    - AuthService: signup, login, password change (argon2 hashes)
    - NoteService: note CRUD, tags, flags, reminders, versions, export
    - DocumentRenderer (abstract): export format interface
    - MarkdownRenderer / PdfRenderer: concrete export formats
"""
