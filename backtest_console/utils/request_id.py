from __future__ import annotations

import uuid


def generate_request_id(prefix: str = "ui") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:16]}"
