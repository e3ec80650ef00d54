"""
Audit log replay

Rebuilds an item's stock level from its audit entries. The log is the record of
how ``stock_level`` got its value, so a replay that disagrees with the stored
level means the two have drifted.
"""

from typing import Any, Dict, Iterable, List


def _field(entry, name):
    if isinstance(entry, dict):
        return entry[name]
    return getattr(entry, name)


def replay_audit_entries(entries: Iterable[Any]) -> Dict[str, Any]:
    """
    Replay audit entries in (timestamp, id) order
    
    Args:
        entries: audit entries of a single item, as models or dicts
        
    Returns:
        Dict with the starting quantity, the replayed quantity (None when there
        are no entries), the entry count and any chain breaks, i.e. entries
        whose previous_quantity does not match the prior entry's new_quantity
        or whose new_quantity is not previous_quantity + quantity_change.
    """
    ordered = sorted(entries, key=lambda e: (_field(e, 'timestamp'), _field(e, 'id')))
    if not ordered:
        return {
            'entry_count': 0,
            'starting_quantity': None,
            'replayed_quantity': None,
            'chain_breaks': []
        }
    
    starting_quantity = _field(ordered[0], 'previous_quantity')
    quantity = starting_quantity
    chain_breaks: List[Dict[str, Any]] = []
    
    for entry in ordered:
        previous = _field(entry, 'previous_quantity')
        change = _field(entry, 'quantity_change')
        new = _field(entry, 'new_quantity')
        
        if previous != quantity:
            chain_breaks.append({
                'entry_id': _field(entry, 'id'),
                'expected_previous_quantity': quantity,
                'previous_quantity': previous
            })
        if new != previous + change:
            chain_breaks.append({
                'entry_id': _field(entry, 'id'),
                'expected_new_quantity': previous + change,
                'new_quantity': new
            })
        quantity += change
    
    return {
        'entry_count': len(ordered),
        'starting_quantity': starting_quantity,
        'replayed_quantity': quantity,
        'chain_breaks': chain_breaks
    }
