from __future__ import annotations

import json
from datetime import datetime
from typing import Any


class _Encoder(json.JSONEncoder):
    def default(self, o: object) -> Any:
        if isinstance(o, datetime):
            return o.isoformat()
        return super().default(o)


def serialize_op(op: str, data: dict[str, Any]) -> str:
    envelope = {"op": op, "data": data}
    return json.dumps(envelope, cls=_Encoder)


def deserialize_op(raw: str | bytes) -> tuple[str, dict[str, Any]]:
    envelope = json.loads(raw)
    return envelope["op"], envelope["data"]
