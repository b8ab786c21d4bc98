"""通知（全体ブロードキャスト / 個別メッセージ）。"""

from __future__ import annotations

import logging
from typing import Callable

from timevote.messages import MessageCatalog, strip_colors
from timevote.session import Participant, Session

log = logging.getLogger(__name__)


class Broadcaster:
    def __init__(
        self,
        session: Session,
        catalog: MessageCatalog,
        *,
        listener: Callable[[str, str], None] | None = None,
    ) -> None:
        self.session = session
        self.catalog = catalog
        # listener(target, line): target は "*"（全体）か参加者名
        self.listener = listener

    def broadcast(self, key: str, **subs: object) -> str:
        line = self.catalog.render(key, **subs)
        for p in self.session.online():
            p.send(line)
        log.info("[broadcast] %s", strip_colors(line))
        if self.listener is not None:
            self.listener("*", line)
        return line

    def tell(self, target: Participant | None, key: str, *, prefix: bool = True, **subs: object) -> str:
        line = self.catalog.render(key, prefix=prefix, **subs)
        self.send_raw(target, line)
        return line

    def send_raw(self, target: Participant | None, line: str) -> None:
        if target is not None:
            target.send(line)
        if self.listener is not None:
            self.listener(target.name if target is not None else "console", line)
