from dataclasses import dataclass
from typing import Any, Optional

MAX_HINT_LEVEL = 3


def _clean(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    text = text.strip()
    return text or None


@dataclass(frozen=True)
class Hints:
    level1: Optional[str] = None
    level2: Optional[str] = None
    level3: Optional[str] = None

    @classmethod
    def from_question(cls, question: Any) -> "Hints":
        """Build from any object or mapping carrying hint1..hint3 and the legacy ``hint``."""
        def read(name):
            if isinstance(question, dict):
                return question.get(name)
            return getattr(question, name, None)

        return cls(
            level1=_clean(read("hint1")) or _clean(read("hint")),
            level2=_clean(read("hint2")),
            level3=_clean(read("hint3")),
        )

    def at(self, level: int) -> Optional[str]:
        if level == 1:
            return self.level1
        if level == 2:
            return self.level2
        if level == 3:
            return self.level3
        return None

    @property
    def available(self) -> int:
        """Number of levels that can be revealed in order without a gap."""
        count = 0
        for level in range(1, MAX_HINT_LEVEL + 1):
            if self.at(level) is None:
                break
            count = level
        return count


def hint_at(question: Any, level: int) -> Optional[str]:
    return Hints.from_question(question).at(level)
