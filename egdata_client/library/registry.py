"""
Library - Package Registry

Shared map of app key -> PackageRecord, replaced wholesale by each scan.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from egdata_client.core.locking import GuardedLock
from egdata_client.library.models import PackageRecord


@dataclass(frozen=True)
class RegistryUpdate:
    old_count: int
    new_count: int

    @property
    def changed(self) -> bool:
        # Size comparison only; same-size replacements are not reported.
        return self.old_count != self.new_count


class PackageRegistry:
    """
    Registry of installed packages keyed by app key.

    Readers always observe the result of exactly one completed scan:
    `replace()` clears and refills the map under a single lock acquisition.
    """

    def __init__(self):
        self._lock = GuardedLock("registry")
        self._records: Dict[str, PackageRecord] = {}

    def __len__(self) -> int:
        with self._lock.hold():
            return len(self._records)

    def replace(self, records: Iterable[PackageRecord]) -> RegistryUpdate:
        """Swap in a freshly scanned set of records."""
        records = list(records)
        with self._lock.hold():
            old_count = len(self._records)
            self._records.clear()
            for record in records:
                self._records[record.app_key] = record
            new_count = len(self._records)
        return RegistryUpdate(old_count, new_count)

    def snapshot(self) -> List[PackageRecord]:
        with self._lock.hold():
            return list(self._records.values())

    def get(self, app_key: str) -> Optional[PackageRecord]:
        with self._lock.hold():
            return self._records.get(app_key)

    def find(self, catalog_item_id: str, installation_guid: str) -> Optional[PackageRecord]:
        """Look up a record by catalog item id and installation GUID."""
        with self._lock.hold():
            for record in self._records.values():
                if (record.catalog_item_id == catalog_item_id
                        and record.installation_guid == installation_guid):
                    return record
        return None
