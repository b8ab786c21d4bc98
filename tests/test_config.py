"""config モジュールのテスト。"""

from pathlib import Path

import pytest

from timevote.choices import TimeChoice
from timevote.config import ConfigError, TimeVoteConfig, load_config, write_default_config


def test_load_missing_file(tmp_path: Path) -> None:
    cfg = load_config(tmp_path / "missing.toml")
    assert cfg == TimeVoteConfig()
    assert cfg.voting.minimum_players == 2
    assert cfg.voting.threshold_percentage == 50
    assert cfg.cooldowns.between_votes == 60
    assert cfg.cooldowns.between_changes == 300
    assert cfg.time.ticks_for(TimeChoice.SUNRISE) == 23000
    assert cfg.time.duration == 300


def test_load_from_file(tmp_path: Path) -> None:
    p = tmp_path / "timevote.toml"
    p.write_text(
        """
[plugin]
enabled = false
debug = true

[voting]
minimum_players = 4
threshold_percentage = 66

[time]
night = 18000

[update_checker]
resource_id = 1234

[messages]
prefix = "&7[TV] "
""",
        encoding="utf-8",
    )
    cfg = load_config(p)
    assert cfg.enabled is False
    assert cfg.debug is True
    assert cfg.voting.minimum_players == 4
    assert cfg.voting.threshold_percentage == 66
    assert cfg.time.ticks_for(TimeChoice.NIGHT) == 18000
    assert cfg.time.day == 1000
    assert cfg.update_checker.resource_id == 1234
    assert cfg.messages == {"prefix": "&7[TV] "}


def test_invalid_values_raise(tmp_path: Path) -> None:
    p = tmp_path / "timevote.toml"
    p.write_text("[voting]\nthreshold_percentage = 150\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="threshold_percentage"):
        load_config(p)

    p.write_text('[cooldowns]\nbetween_votes = "soon"\n', encoding="utf-8")
    with pytest.raises(ConfigError, match="cooldowns.between_votes"):
        load_config(p)

    p.write_text('[plugin]\nenabled = "false"\n', encoding="utf-8")
    with pytest.raises(ConfigError, match="plugin.enabled"):
        load_config(p)

    p.write_text("[update_checker]\nnotify_admins = 1\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="update_checker.notify_admins"):
        load_config(p)

    p.write_text("[voting\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(p)


def test_default_config_file_roundtrip(tmp_path: Path) -> None:
    p = write_default_config(tmp_path / "sub" / "timevote.toml")
    cfg = load_config(p)
    assert cfg.voting == TimeVoteConfig().voting
    assert cfg.time == TimeVoteConfig().time
    assert cfg.messages["prefix"] == "&8[&bTimeVoting&8] "
