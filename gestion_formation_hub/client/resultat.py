from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Ok:
    valeur: Any

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    kind: str
    message: str

    @property
    def ok(self) -> bool:
        return False
