"""
NoteTrack Backend — Services Layer
====================================

Service Inventory:
    - ordering.py:       pure resolver merging notes with their ranks
    - order_service.py:  rank entry reads/writes, initializer
    - note_service.py:   note CRUD, search, lookup lists, statistics
    - common.py:         id parsing and store-error translation
"""
