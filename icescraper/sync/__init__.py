from icescraper.sync.change_tracker import ChangeTracker, PendingChange
from icescraper.sync.engine import IceSyncEngine, PassResult
from icescraper.sync.reconciler import CalendarReconciler

__all__ = ['CalendarReconciler', 'ChangeTracker', 'IceSyncEngine', 'PassResult', 'PendingChange']
