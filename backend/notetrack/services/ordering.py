"""
NoteTrack Backend — Revision Order Resolver
=============================================

What:  Pure functions merging notes with their rank entries into a single
       deterministic display order. No I/O; OrderService feeds it rows.

Ordering rule, evaluated in order:
    1. ranked notes come before unranked notes
    2. ranked notes sort by rank ascending
    3. unranked notes sort by creation time ascending
    4. remaining ties keep their input order (sorted() is stable)
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple


def build_rank_map(orders: Iterable[Any]) -> Dict[str, int]:
    """Map str(note_id) → rank for every rank entry."""
    return {str(entry.note_id): entry.order for entry in orders}


def _sort_key(note: Any, ranks: Dict[str, int]) -> Tuple:
    rank = ranks.get(str(note.id))
    if rank is None:
        return (1, note.created_at)
    return (0, rank)


def resolve_order(
    notes: Iterable[Any],
    orders: Iterable[Any],
) -> List[Tuple[Any, Optional[int]]]:
    """
    Sort `notes` by their rank entries.

    Args:
        notes:  Objects with `id` and `created_at` (Note rows)
        orders: Objects with `note_id` and `order` (NoteOrder rows); entries
                pointing at notes not in `notes` are ignored

    Returns:
        (note, rank) pairs in display order; rank is None for unranked notes.
    """
    ranks = build_rank_map(orders)
    ordered = sorted(notes, key=lambda note: _sort_key(note, ranks))
    return [(note, ranks.get(str(note.id))) for note in ordered]
