# Services package init
"""
Readlog Backend — Services Layer
==================================

What:  Business logic between routes (HTTP) and the DocumentStore.

Service Inventory:
    - BookService: book CRUD and the book → notes deletion cascade
    - NoteService: note CRUD and book.notes maintenance (append / detach)
    - Saga: ordered steps with compensations, used by NoteService
    - patch: partial-update translator shared by both services

Services receive their DocumentStore at construction time (see
readlog.context.AppContext); they hold no other state.
"""
