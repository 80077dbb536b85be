# Routes package init
"""
Readlog Backend — API Routes Package
======================================

Route Inventory (books and notes are mounted under API_PREFIX, default /api/v1):
    - books.py:   GET/POST/DELETE /book, GET/POST /book/{book_id}
    - notes.py:   GET/POST/DELETE /note, GET/POST /note/{note_id}
    - health.py:  GET /health

Routes stay thin: bind the request, call a service, wrap the result in
Envelope. Business rules live in readlog.services.
"""
