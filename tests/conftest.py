import os
import sys

import httpx
import pytest

# Ensure project root is importable (so `import itemsvc` and `import cli` work without installing)
_project_root = os.path.dirname(os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from itemsvc.api_models import Item
from itemsvc.errors import ResolutionError, StoreError
from itemsvc.registry import ServiceRegistry
from itemsvc.store import ItemStore


class MemoryStore(ItemStore):
    """Dict-backed store that records calls and can be told to fail."""

    def __init__(self):
        self.items = {}
        self.calls = []
        self.fail_with = None

    def _check(self, op):
        self.calls.append(op)
        if self.fail_with:
            raise StoreError(f"{self.fail_with}")

    def put(self, item):
        self._check("put")
        self.items[item.id] = item.model_copy()

    def get(self, item_id):
        self._check("get")
        return self.items.get(item_id)

    def describe(self):
        self._check("describe")
        return {"TableName": "Items", "ItemCount": len(self.items)}


class FakeRegistry(ServiceRegistry):
    def __init__(self, instances=None, error=None):
        self.instances = instances if instances is not None else []
        self.error = error
        self.calls = []

    def discover_instances(self, service_name, namespace, limit):
        self.calls.append((service_name, namespace, limit))
        if self.error:
            raise ResolutionError(f"failed to discover service instances: {self.error}")
        return self.instances[:limit]


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every outbound request for assertions."""

    def __init__(self, handler):
        self.requests = []

        def _record(request):
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def sample_item():
    return Item(id="42", name="widget")

