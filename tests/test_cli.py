import sys
import types

import pytest

from groupbot import cli
from groupbot.errors import ConfigError


def test_first_run_creates_files_and_exits(tmp_path) -> None:
    config_path = tmp_path / "home" / "groupbot.toml"
    secrets_path = tmp_path / "home" / "secrets.toml"

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(config_path), "--secrets", str(secrets_path)])

    assert excinfo.value.code == 0
    assert "session_factory" in config_path.read_text(encoding="utf-8")
    assert "administrators = []" in secrets_path.read_text(encoding="utf-8")


def test_missing_session_factory_fails(tmp_path) -> None:
    config_path = tmp_path / "groupbot.toml"
    secrets_path = tmp_path / "secrets.toml"
    config_path.write_text(cli.DEFAULT_CONFIG, encoding="utf-8")
    secrets_path.write_text(cli.DEFAULT_SECRETS, encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(config_path), "--secrets", str(secrets_path)])
    assert excinfo.value.code == 1


def test_load_session_factory(monkeypatch) -> None:
    def connect(config, credentials):
        return None

    mod = types.ModuleType("fake_game_client")
    mod.connect = connect
    monkeypatch.setitem(sys.modules, "fake_game_client", mod)

    assert cli.load_session_factory("fake_game_client:connect") is connect


@pytest.mark.parametrize(
    "target",
    ["no_colon", "fake_game_client:", ":connect", "no_such_module_xyz:connect", "fake_game_client:missing"],
)
def test_bad_session_factory_targets(monkeypatch, target) -> None:
    monkeypatch.setitem(sys.modules, "fake_game_client", types.ModuleType("fake_game_client"))
    with pytest.raises(ConfigError):
        cli.load_session_factory(target)


def test_load_credentials_excludes_roster(tmp_path) -> None:
    p = tmp_path / "secrets.toml"
    p.write_text(
        'username = "bot"\npassword = "pw"\nadministrators = ["a"]\nbanned = ["b"]\n',
        encoding="utf-8",
    )
    assert cli.load_credentials(str(p)) == {"username": "bot", "password": "pw"}


def test_main_runs_bot_until_session_ends(tmp_path, monkeypatch, session) -> None:
    from groupbot.constants import CH_DIRECT
    from groupbot.errors import SessionEnded
    from groupbot.session import ChatMessage

    session.batches = [[ChatMessage(CH_DIRECT, 2, "invite")], SessionEnded("bye")]
    received = {}

    def connect(config, credentials):
        received["credentials"] = credentials
        received["options"] = config.session_options
        return session

    mod = types.ModuleType("fake_game_client")
    mod.connect = connect
    monkeypatch.setitem(sys.modules, "fake_game_client", mod)

    config_path = tmp_path / "groupbot.toml"
    secrets_path = tmp_path / "secrets.toml"
    config_path.write_text(
        '[bot]\nsession_factory = "fake_game_client:connect"\n'
        '[bot.session_options]\nserver = "example"\n'
        "[logging]\nconsole = false\n",
        encoding="utf-8",
    )
    secrets_path.write_text(
        'username = "bot"\nadministrators = ["id-ada"]\nbanned = []\n', encoding="utf-8"
    )

    with pytest.raises(SystemExit) as excinfo:
        cli.main(
            [
                "--config",
                str(config_path),
                "--secrets",
                str(secrets_path),
                "--no-throttle",
                "--tick-interval",
                "0.01",
            ]
        )

    assert excinfo.value.code == 1
    assert received == {"credentials": {"username": "bot"}, "options": {"server": "example"}}
    assert session.sent == [("invite", 2)]
    assert session.polls == [0.01, 0.01]
