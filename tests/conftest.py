from __future__ import annotations

import pytest


class SequentialIds:
    def __init__(self, prefix: str = "call") -> None:
        self.prefix = prefix
        self.issued: list[str] = []

    def __call__(self) -> str:
        value = f"{self.prefix}_{len(self.issued) + 1}"
        self.issued.append(value)
        return value


@pytest.fixture
def sequential_ids() -> SequentialIds:
    return SequentialIds()
