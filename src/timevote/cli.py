"""timevote CLI エントリポイント。"""

from __future__ import annotations

import shlex
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from timevote import __version__
from timevote.app import TimeVotePlugin
from timevote.config import DEFAULT_CONFIG_PATH, ConfigError, load_config, write_default_config
from timevote.logging_setup import setup_logging, teardown_logging
from timevote.messages import to_rich_markup
from timevote.scheduler import MainThreadScheduler
from timevote.session import ADMIN_PERMISSIONS, DEFAULT_PLAYER_PERMISSIONS, Participant
from timevote.update_check import check_version
from timevote.world import World, describe_time

APP_HELP = "⏰ timevote: 参加者の投票でワールドの時間帯を切り替える"

app = typer.Typer(add_completion=False, help=APP_HELP)
console = Console()


class SimClock:
    """shell 用の仮想時計（`tick` コマンドでだけ進む）。"""

    def __init__(self) -> None:
        self.t = 0.0

    def __call__(self) -> float:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += max(0.0, seconds)


SHELL_HELP = """\
join <name> [--admin]     参加者をオンラインにする
leave <name>              参加者をオフラインにする
as <name> <command...>    参加者としてコマンド実行 (例: as alice /votetime night)
console <command...>      コンソールとしてコマンド実行
complete <name> <cmd> <prefix>  タブ補完候補を表示
tick <seconds>            時間を進める
who / worlds              オンライン一覧 / ワールド時刻
quit                      終了
"""


def _echo(target: str, line: str) -> None:
    console.print(f"[dim]{target}>[/] " + to_rich_markup(line))


def _load_plugin(
    root: Path, config: Path | None, clock: SimClock, *, check_updates: bool, watch: bool
) -> TimeVotePlugin:
    try:
        plugin = TimeVotePlugin(
            root=root,
            config_path=config,
            scheduler=MainThreadScheduler(clock=clock),
            worlds=[World("world"), World("world_nether", daylight_cycle=False)],
            watch_config=watch,
            check_updates=check_updates,
        )
    except ConfigError as e:
        console.print(f"❌ 設定エラー: {e}", style="red")
        raise typer.Exit(code=1) from e
    plugin.notifier.listener = _echo
    return plugin


def _shell_line(plugin: TimeVotePlugin, clock: SimClock, line: str) -> bool:
    """1行処理する。False なら終了。"""
    try:
        parts = shlex.split(line)
    except ValueError as e:
        console.print(f"parse error: {e}", style="red")
        return True
    if not parts:
        return True

    cmd, rest = parts[0].lower(), parts[1:]
    if cmd in {"quit", "exit"}:
        return False
    if cmd == "help":
        console.print(SHELL_HELP)
    elif cmd == "join" and rest:
        perms = ADMIN_PERMISSIONS if "--admin" in rest else DEFAULT_PLAYER_PERMISSIONS
        name = rest[0]
        plugin.join(Participant(participant_id=name.lower(), name=name, permissions=perms))
        console.print(f"{name} joined ({plugin.session.online_count()} online)", style="green")
    elif cmd == "leave" and rest:
        gone = plugin.leave(rest[0].lower())
        console.print(f"{rest[0]} left" if gone else f"{rest[0]} is not online", style="yellow")
    elif cmd == "as" and len(rest) >= 2:
        p = plugin.session.find_by_name(rest[0])
        if p is None:
            console.print(f"{rest[0]} is not online", style="red")
        else:
            _run(plugin, p, " ".join(rest[1:]))
    elif cmd == "console" and rest:
        _run(plugin, None, " ".join(rest))
    elif cmd == "complete" and len(rest) >= 2:
        p = plugin.session.find_by_name(rest[0])
        prefix = rest[2] if len(rest) >= 3 else ""
        console.print(", ".join(plugin.commands.complete(p, rest[1], [prefix])) or "(none)")
    elif cmd == "tick" and rest:
        try:
            clock.advance(float(rest[0]))
        except ValueError:
            console.print("tick <seconds>", style="red")
    elif cmd == "who":
        for p in plugin.session.online():
            console.print(f"- {p.name} ({p.participant_id})")
    elif cmd == "worlds":
        for w in plugin.worlds.worlds():
            console.print(f"- {w.name}: {w.time} {describe_time(w.time)}")
    else:
        console.print("unknown command (help で一覧)", style="red")
    return True


def _run(plugin: TimeVotePlugin, sender: Participant | None, line: str) -> None:
    try:
        plugin.run_command(sender, line)
    except KeyError as e:
        console.print(str(e.args[0]), style="red")


@app.command()
def shell(
    root: Path = typer.Option(Path("."), "--root", help="作業ルート（.timevote が置かれる場所）"),
    config: Path | None = typer.Option(None, "--config", help="設定ファイル（既定: <root>/timevote.toml）"),
    check_updates: bool = typer.Option(False, "--check-updates/--no-check-updates", help="起動時に更新確認"),
    watch: bool = typer.Option(True, "--watch/--no-watch", help="設定ファイルを監視して自動リロード"),
    log_level: str = typer.Option("INFO", "--log-level", help="ログレベル"),
) -> None:
    """対話セッションで投票をシミュレートする。"""
    clock = SimClock()
    plugin = _load_plugin(root, config, clock, check_updates=check_updates, watch=watch)
    log_path = setup_logging(root=root, level=log_level, debug=plugin.debug)
    plugin.enable()
    console.print(f"timevote {__version__} shell (help で一覧)", style="bold cyan")
    console.print(f"log: {log_path}", style="dim")

    try:
        while True:
            plugin.tick()
            try:
                line = console.input("[bold]timevote> [/]")
            except EOFError:
                break
            if not _shell_line(plugin, clock, line):
                break
            plugin.tick()
    except KeyboardInterrupt:
        pass
    finally:
        plugin.disable()
        teardown_logging()


@app.command("check-update")
def check_update(
    resource_id: int = typer.Option(..., "--resource-id", help="SpigotMC resource id"),
    current: str = typer.Option(__version__, "--current", help="比較する現在バージョン"),
) -> None:
    """更新があるか確認する。"""
    result = check_version(resource_id, current)
    if not result.ok:
        console.print(f"❌ 更新確認に失敗しました: {result.error}", style="red")
        raise typer.Exit(code=1)
    if result.newer:
        console.print(f"new version available: v{result.latest} (current v{result.current})", style="yellow")
    else:
        console.print(f"up to date: v{result.current}", style="green")


@app.command()
def forecast(ticks: int = typer.Argument(..., help="ワールド時刻 (tick)")) -> None:
    """tick を時刻表記に変換する。"""
    console.print(describe_time(ticks))


@app.command("init-config")
def init_config(
    path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--path", help="書き出し先"),
    force: bool = typer.Option(False, "--force", help="既存ファイルを上書き"),
) -> None:
    """デフォルト設定ファイルを書き出す。"""
    if path.exists() and not force:
        console.print(f"❌ 既に存在します: {path}", style="red")
        raise typer.Exit(code=1)
    write_default_config(path)
    console.print(f"saved: {path}", style="green")


@app.command("config")
def show_config(
    path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--path", help="設定ファイル"),
) -> None:
    """有効な設定値を表示する。"""
    try:
        cfg = load_config(path)
    except ConfigError as e:
        console.print(f"❌ 設定エラー: {e}", style="red")
        raise typer.Exit(code=1) from e

    table = Table(title=str(path))
    table.add_column("key")
    table.add_column("value")
    rows = [
        ("plugin.enabled", cfg.enabled),
        ("plugin.debug", cfg.debug),
        ("voting.minimum_players", cfg.voting.minimum_players),
        ("voting.threshold_percentage", cfg.voting.threshold_percentage),
        ("cooldowns.between_votes", cfg.cooldowns.between_votes),
        ("cooldowns.between_changes", cfg.cooldowns.between_changes),
        ("time.day", cfg.time.day),
        ("time.night", cfg.time.night),
        ("time.sunrise", cfg.time.sunrise),
        ("time.sunset", cfg.time.sunset),
        ("time.duration", cfg.time.duration),
        ("update_checker.enabled", cfg.update_checker.enabled),
        ("update_checker.resource_id", cfg.update_checker.resource_id),
    ]
    for k, v in rows:
        table.add_row(k, str(v))
    console.print(table)
