"""Response builders shared by the test modules."""

from typing import Any


def bucket_response(*buckets: dict[str, Any], total: int = 0) -> dict[str, Any]:
    return {
        "hits": {"total": {"value": total, "relation": "eq"}, "hits": []},
        "aggregations": {"0": {"buckets": list(buckets)}},
    }


def count_response(total: int) -> dict[str, Any]:
    return {"hits": {"total": {"value": total, "relation": "eq"}, "hits": []}}


class FakeSearchClient:
    """Returns (or raises) canned responses in order; the last one repeats."""

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    async def execute(self, body: dict[str, Any]) -> Any:
        self.calls.append(body)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, BaseException):
            raise item
        return item
