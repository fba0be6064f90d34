import asyncio


class RuleLocks:
    """One asyncio.Lock per rule id, shared by every in-process driver."""

    def __init__(self):
        self._locks: dict[int, asyncio.Lock] = {}

    def for_rule(self, rule_id: int) -> asyncio.Lock:
        lock = self._locks.get(rule_id)
        if lock is None:
            lock = self._locks[rule_id] = asyncio.Lock()
        return lock

    def discard(self, rule_id: int) -> None:
        self._locks.pop(rule_id, None)


rule_locks = RuleLocks()
