"""
NoteTrack Backend — API Routes Package
========================================

Route Inventory:
    - notes.py:       /api/notes/*        (CRUD, lists, stats, /order/*)
    - note_order.py:  /api/note-order/*   (rank entries and revision order)
    - health.py:      /health

Routes stay thin: extract request data, call a service, shape the response.
"""
