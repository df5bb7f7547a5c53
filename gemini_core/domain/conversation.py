from typing import Iterator, List, Tuple

from .models import ConversationRecord


class ConversationLog:
    """客户端独占的本地会话日志，只追加、可整体清空。"""

    def __init__(self) -> None:
        self._records: List[ConversationRecord] = []

    def append(self, record: ConversationRecord) -> None:
        self._records.append(record)

    def extend(self, records: List[ConversationRecord]) -> None:
        self._records.extend(records)

    def clear(self) -> None:
        self._records = []

    def snapshot(self) -> Tuple[ConversationRecord, ...]:
        """返回当前时刻的不可变副本。"""

        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ConversationRecord]:
        return iter(self.snapshot())
