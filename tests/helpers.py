"""Test doubles for the registry client and the clock."""

from typing import Iterable, Optional

from icr_registry_actions.core.types import ResolvedRegion, ScanOutcome, ScanStatus

DIGEST = "sha256:" + "ab" * 32


class FakeClock:
    """Manual clock whose sleep advances time instantly."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeRegistryClient:
    """Records every remote call and answers from canned data.

    ``errors`` maps a method name to the exception it should raise.
    ``scan_statuses`` are returned by query_scan in order; the last one
    repeats once the sequence is exhausted.
    """

    def __init__(
        self,
        digest: Optional[str] = DIGEST,
        namespaces: Iterable[str] = (),
        scan_statuses: Iterable[ScanStatus] = (ScanStatus.OK,),
        errors: Optional[dict[str, Exception]] = None,
    ):
        self.digest = digest
        self.namespaces = list(namespaces)
        self.scan_statuses = list(scan_statuses)
        self.errors = dict(errors or {})
        self.calls: list[tuple] = []
        self.region: Optional[ResolvedRegion] = None
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.closed = True

    def calls_to(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        error = self.errors.get(name)
        if error is not None:
            raise error

    def use_region(self, region: ResolvedRegion) -> None:
        self.region = region

    async def push(self, ref):
        self._record("push", ref)
        return self.digest

    async def pull(self, ref):
        self._record("pull", ref)
        return self.digest

    async def tag_local(self, local, ref):
        self._record("tag_local", local, ref)

    async def tag(self, ref, new_tag):
        self._record("tag", ref, new_tag)

    async def retag(self, ref, src_tag, dst_tag):
        self._record("retag", ref, src_tag, dst_tag)

    async def delete(self, ref):
        self._record("delete", ref)

    async def create_namespace(self, name):
        self._record("create_namespace", name)

    async def delete_namespace(self, name):
        self._record("delete_namespace", name)

    async def list_namespaces(self):
        self._record("list_namespaces")
        return list(self.namespaces)

    async def initiate_scan(self, ref):
        self._record("initiate_scan", ref)

    async def query_scan(self, ref):
        self._record("query_scan", ref)
        if len(self.scan_statuses) > 1:
            status = self.scan_statuses.pop(0)
        else:
            status = self.scan_statuses[0]
        return ScanOutcome(status=status, detail={"status": status.value})
