"""設定: `timevote.toml` を読み込む。

ファイルが無ければ全てデフォルト。各セクションは dataclass。
ファイルの雛形は DEFAULT_CONFIG_TOML（`timevote init-config` で書き出す）。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

try:
    import tomllib
except ModuleNotFoundError:  # Python < 3.11
    import tomli as tomllib  # type: ignore[no-redef]

from timevote.choices import TimeChoice

DEFAULT_CONFIG_PATH = Path("timevote.toml")

DEFAULT_CONFIG_TOML = """\
[plugin]
enabled = true
debug = false

[voting]
minimum_players = 2
threshold_percentage = 50

[cooldowns]
between_votes = 60      # 秒
between_changes = 300   # 秒

[time]
day = 1000
night = 13000
sunrise = 23000
sunset = 12000
duration = 300          # 変更後に time-reset 通知を出すまでの秒数（0で無効）

[update_checker]
enabled = true
resource_id = 0
notify_admins = true

[messages]
prefix = "&8[&bTimeVoting&8] "
"""


class ConfigError(ValueError):
    """設定値が解釈できない。"""


@dataclass
class VotingPolicy:
    minimum_players: int = 2
    threshold_percentage: int = 50


@dataclass
class Cooldowns:
    between_votes: int = 60
    between_changes: int = 300


@dataclass
class TimeTicks:
    day: int = 1000
    night: int = 13000
    sunrise: int = 23000
    sunset: int = 12000
    duration: int = 300

    def ticks_for(self, choice: TimeChoice) -> int:
        return int(getattr(self, choice.value))


@dataclass
class UpdateCheckerConfig:
    enabled: bool = True
    resource_id: int = 0
    notify_admins: bool = True


@dataclass
class TimeVoteConfig:
    enabled: bool = True
    debug: bool = False
    voting: VotingPolicy = field(default_factory=VotingPolicy)
    cooldowns: Cooldowns = field(default_factory=Cooldowns)
    time: TimeTicks = field(default_factory=TimeTicks)
    update_checker: UpdateCheckerConfig = field(default_factory=UpdateCheckerConfig)
    messages: dict[str, str] = field(default_factory=dict)


def _int(section: dict, key: str, default: int, *, where: str) -> int:
    v = section.get(key, default)
    if isinstance(v, bool):
        raise ConfigError(f"{where}.{key}: expected integer, got bool")
    try:
        return int(v)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{where}.{key}: expected integer, got {v!r}") from e


def _bool(section: dict, key: str, default: bool, *, where: str) -> bool:
    v = section.get(key, default)
    if not isinstance(v, bool):
        raise ConfigError(f"{where}.{key}: expected true/false, got {v!r}")
    return v


def _table(raw: dict, key: str) -> dict:
    v = raw.get(key, {}) or {}
    if not isinstance(v, dict):
        raise ConfigError(f"[{key}] must be a table")
    return v


def parse_config(raw: dict) -> TimeVoteConfig:
    plugin = _table(raw, "plugin")
    voting = _table(raw, "voting")
    cooldowns = _table(raw, "cooldowns")
    time_ = _table(raw, "time")
    upd = _table(raw, "update_checker")
    messages = _table(raw, "messages")

    pct = _int(voting, "threshold_percentage", 50, where="voting")
    if not 0 <= pct <= 100:
        raise ConfigError(f"voting.threshold_percentage: must be within 0..100, got {pct}")

    return TimeVoteConfig(
        enabled=_bool(plugin, "enabled", True, where="plugin"),
        debug=_bool(plugin, "debug", False, where="plugin"),
        voting=VotingPolicy(
            minimum_players=_int(voting, "minimum_players", 2, where="voting"),
            threshold_percentage=pct,
        ),
        cooldowns=Cooldowns(
            between_votes=_int(cooldowns, "between_votes", 60, where="cooldowns"),
            between_changes=_int(cooldowns, "between_changes", 300, where="cooldowns"),
        ),
        time=TimeTicks(
            day=_int(time_, "day", 1000, where="time"),
            night=_int(time_, "night", 13000, where="time"),
            sunrise=_int(time_, "sunrise", 23000, where="time"),
            sunset=_int(time_, "sunset", 12000, where="time"),
            duration=_int(time_, "duration", 300, where="time"),
        ),
        update_checker=UpdateCheckerConfig(
            enabled=_bool(upd, "enabled", True, where="update_checker"),
            resource_id=_int(upd, "resource_id", 0, where="update_checker"),
            notify_admins=_bool(upd, "notify_admins", True, where="update_checker"),
        ),
        messages={str(k): str(v) for k, v in messages.items()},
    )


def load_config(path: Path | None = None) -> TimeVoteConfig:
    if path is None:
        path = DEFAULT_CONFIG_PATH
    if not path.exists():
        return TimeVoteConfig()

    try:
        raw = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{path}: {e}") from e
    return parse_config(raw)


def write_default_config(path: Path) -> Path:
    """コメント付きのデフォルト設定を書き出す。"""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_CONFIG_TOML, encoding="utf-8")
    return path
