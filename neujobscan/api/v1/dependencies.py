from fastapi import Depends

from neujobscan.services.history_store import ScanHistoryStore, get_default_history_store
from neujobscan.services.payments import CheckoutProvider, MockCheckoutProvider
from neujobscan.services.scan_service import ScanService


def get_history_store() -> ScanHistoryStore:
    return get_default_history_store()


def get_scan_service(store: ScanHistoryStore = Depends(get_history_store)) -> ScanService:
    return ScanService(store)


def get_checkout_provider() -> CheckoutProvider:
    return MockCheckoutProvider()
