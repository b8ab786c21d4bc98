"""メッセージテンプレート。

- `&` カラーコードを `§` に変換（colorize）
- `%name%` 形式のプレースホルダ置換
- コンソール表示用に `§x` を rich のマークアップへ変換
"""

from __future__ import annotations

import re

DEFAULT_MESSAGES: dict[str, str] = {
    "prefix": "&8[&bTimeVoting&8] ",
    # voting
    "vote-cast": "&aYou voted for &e%time%&a.",
    "vote-changed": "&aYou changed your vote to &e%time%&a.",
    "vote-already-cast": "&cYou have already voted for &e%time%&c.",
    "vote-announcement": "&e%player% &7voted for &e%time% &7(&a%votes%&7/&a%required%&7)",
    "time-changed": "&aThe vote passed! Time has been set to &e%time%&a.",
    "time-reset": "&7The time will now continue its normal cycle.",
    "not-enough-players": "&cAt least &e%required% &cplayers must be online to vote.",
    "vote-cooldown": "&cYou must wait &e%seconds% &cseconds before voting again.",
    "change-cooldown": "&cThe time was changed recently. Wait &e%seconds% &cseconds.",
    "invalid-time": "&cInvalid time. Use &eday&c, &enight&c, &esunrise &cor &esunset&c.",
    "no-permission": "&cYou don't have permission to do that.",
    "player-only": "&cOnly players can use this command.",
    "plugin-disabled": "&cTime voting is currently disabled.",
    # /votetime (no args)
    "vote-status-header": "&6Current time votes:",
    "vote-status-entry": "&7- &e%time%&7: &a%votes%&7/&a%required%",
    "vote-status-your-vote": "&7Your vote: &e%time%",
    "vote-status-no-vote": "&7You have not voted yet.",
    # /timevoting
    "status-header": "&6TimeVoting status:",
    "status-enabled": "&7Plugin: &e%enabled%",
    "status-debug": "&7Debug: &e%debug%",
    "status-votes-header": "&6Votes:",
    "status-votes-entry": "&7- &e%time%&7: &a%votes%&7/&a%required%",
    "status-cooldown": "&7Change cooldown: &e%seconds%s",
    "help-header": "&6TimeVoting commands:",
    "help-status": "&e/timevoting status &7- Show plugin status",
    "help-toggle": "&e/timevoting toggle &7- Enable or disable time voting",
    "help-reload": "&e/timevoting reload &7- Reload the configuration",
    "help-debug": "&e/timevoting debug &7- Toggle debug logging",
    "toggle-success": "&aTime voting is now &e%state%&a.",
    "reload-success": "&aConfiguration reloaded.",
    "reload-failed": "&cConfiguration could not be reloaded: &e%error%",
    "debug-success": "&aDebug mode is now &e%state%&a.",
    # /timeforecast
    "forecast": "&7Current time: &e%time% &7(daylight cycle &e%enabled%&7)",
    # update checker
    "update-available": "&7A new update is available: &bv%latest%",
    "update-current": "&7You are currently running: &bv%current%",
    "update-download": "&7Download the latest version from: &b%url%",
}

_COLOR_CODE = re.compile(r"§([0-9a-fk-or])", re.IGNORECASE)

_RICH_STYLES = {
    "0": "black",
    "1": "dark_blue",
    "2": "green4",
    "3": "dark_cyan",
    "4": "dark_red",
    "5": "purple4",
    "6": "gold3",
    "7": "grey70",
    "8": "grey35",
    "9": "blue",
    "a": "bright_green",
    "b": "bright_cyan",
    "c": "bright_red",
    "d": "magenta",
    "e": "bright_yellow",
    "f": "white",
    "l": "bold",
    "m": "strike",
    "n": "underline",
    "o": "italic",
}


def colorize(text: str) -> str:
    return text.replace("&", "§")


def substitute(text: str, subs: dict[str, object]) -> str:
    for k, v in subs.items():
        text = text.replace(f"%{k}%", str(v))
    return text


def strip_colors(text: str) -> str:
    return _COLOR_CODE.sub("", text)


def to_rich_markup(text: str) -> str:
    """`§x` コード列を rich マークアップに変換する。"""
    from rich.markup import escape

    out: list[str] = []
    open_tags: list[str] = []
    pos = 0
    for m in _COLOR_CODE.finditer(text):
        out.append(escape(text[pos : m.start()]))
        pos = m.end()
        code = m.group(1).lower()
        if code == "r" or code in "0123456789abcdef":
            # 色コードは書式をリセットする
            out.extend("[/]" for _ in open_tags)
            open_tags.clear()
        style = _RICH_STYLES.get(code)
        if style:
            out.append(f"[{style}]")
            open_tags.append(style)
    out.append(escape(text[pos:]))
    out.extend("[/]" for _ in open_tags)
    return "".join(out)


class MessageCatalog:
    def __init__(self, overrides: dict[str, str] | None = None) -> None:
        self._messages = dict(DEFAULT_MESSAGES)
        self._messages.update(overrides or {})

    def raw(self, key: str) -> str:
        return self._messages.get(key, "")

    def render(self, key: str, *, prefix: bool = True, **subs: object) -> str:
        text = self.raw(key)
        if prefix:
            text = self.raw("prefix") + text
        return substitute(colorize(text), subs)

    def prefix(self) -> str:
        return colorize(self.raw("prefix"))
