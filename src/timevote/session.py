"""オンライン参加者の管理（人数の問い合わせ先）。"""

from __future__ import annotations

from dataclasses import dataclass, field

PERM_VOTE = "timevoting.vote"
PERM_STATUS = "timevoting.status"
PERM_TOGGLE = "timevoting.toggle"
PERM_RELOAD = "timevoting.reload"
PERM_DEBUG = "timevoting.debug"
PERM_FORECAST = "timevoting.forecast"
PERM_UPDATE = "timevoting.update"

DEFAULT_PLAYER_PERMISSIONS = frozenset({PERM_VOTE, PERM_FORECAST})
ADMIN_PERMISSIONS = frozenset({"*"})


@dataclass
class Participant:
    participant_id: str
    name: str
    permissions: frozenset[str] = DEFAULT_PLAYER_PERMISSIONS
    world: str = "world"
    inbox: list[str] = field(default_factory=list)

    def has_permission(self, node: str) -> bool:
        return "*" in self.permissions or node in self.permissions

    def send(self, line: str) -> None:
        self.inbox.append(line)


class Session:
    def __init__(self) -> None:
        self._online: dict[str, Participant] = {}

    def join(self, p: Participant) -> Participant:
        self._online[p.participant_id] = p
        return p

    def leave(self, participant_id: str) -> Participant | None:
        return self._online.pop(participant_id, None)

    def get(self, participant_id: str) -> Participant | None:
        return self._online.get(participant_id)

    def find_by_name(self, name: str) -> Participant | None:
        n = name.lower()
        for p in self._online.values():
            if p.name.lower() == n:
                return p
        return None

    def online(self) -> list[Participant]:
        return list(self._online.values())

    def online_count(self) -> int:
        return len(self._online)
