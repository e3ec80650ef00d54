from datetime import datetime, timedelta

from repair_inventory.utils.audit_replay import replay_audit_entries

T0 = datetime(2024, 3, 1, 9, 0, 0)


def entry(entry_id, change, previous, new, minutes=0):
    return {
        'id': entry_id,
        'quantity_change': change,
        'previous_quantity': previous,
        'new_quantity': new,
        'timestamp': T0 + timedelta(minutes=minutes)
    }


class TestReplayAuditEntries:
    """Test rebuilding stock levels from audit entries."""
    
    def test_empty_log(self):
        result = replay_audit_entries([])
        
        assert result['entry_count'] == 0
        assert result['replayed_quantity'] is None
        assert result['chain_breaks'] == []
    
    def test_consistent_chain(self):
        """Test a clean chain replays to the last new_quantity."""
        entries = [
            entry(1, 10, 0, 10, minutes=0),
            entry(2, -3, 10, 7, minutes=5),
            entry(3, 5, 7, 12, minutes=10)
        ]
        
        result = replay_audit_entries(entries)
        
        assert result['entry_count'] == 3
        assert result['starting_quantity'] == 0
        assert result['replayed_quantity'] == 12
        assert result['chain_breaks'] == []
    
    def test_orders_by_timestamp_then_id(self):
        """Test input order does not matter."""
        entries = [
            entry(3, 5, 7, 12, minutes=10),
            entry(2, -3, 10, 7, minutes=0),
            entry(1, 10, 0, 10, minutes=0)
        ]
        
        result = replay_audit_entries(entries)
        
        assert result['replayed_quantity'] == 12
        assert result['chain_breaks'] == []
    
    def test_detects_missing_entry(self):
        """Test a gap between entries is reported as a chain break."""
        entries = [
            entry(1, 10, 0, 10, minutes=0),
            entry(2, -2, 6, 4, minutes=5)
        ]
        
        result = replay_audit_entries(entries)
        
        assert result['replayed_quantity'] == 8
        assert result['chain_breaks'] == [{
            'entry_id': 2,
            'expected_previous_quantity': 10,
            'previous_quantity': 6
        }]
    
    def test_detects_inconsistent_entry(self):
        """Test an entry whose arithmetic does not add up."""
        result = replay_audit_entries([entry(1, 10, 0, 11)])
        
        assert result['chain_breaks'][0]['expected_new_quantity'] == 10
        assert result['chain_breaks'][0]['new_quantity'] == 11
    
    def test_starts_from_first_previous_quantity(self):
        """Test a log that begins mid-history."""
        result = replay_audit_entries([entry(7, -1, 4, 3)])
        
        assert result['starting_quantity'] == 4
        assert result['replayed_quantity'] == 3
