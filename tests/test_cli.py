import os
from pathlib import Path

import pytest
import yaml

import routeplate.cli
from routeplate.app import App
from routeplate.cli import create_parser, main


def write_config(tmp_path: Path) -> Path:
    config_file = tmp_path / "routeplate.yaml"
    config_file.write_text(
        yaml.safe_dump(
            {
                "routes": [
                    {"template": "/photos/<id>", "handler": "tests.helpers:PhotoHandler"},
                    {
                        "template": "/albums/<album>/photos/<photo>",
                        "handler": "tests.helpers:AlbumPhotoHandler",
                    },
                ]
            }
        )
    )
    return config_file


def test_routes_command_lists_routes(tmp_path, capsys):
    exit_code = main(["--config", str(write_config(tmp_path)), "routes"])

    lines = capsys.readouterr().out.strip().splitlines()
    assert exit_code == 0
    assert len(lines) == 2
    template, pattern, handler, verbs = lines[0].split("\t")
    assert template == "/photos/<id>"
    assert pattern.startswith(r"\A/photos/")
    assert handler.endswith("PhotoHandler")
    assert verbs == "DELETE,GET"
    assert lines[1].split("\t")[3] == "GET,SHOW"


def test_routes_command_with_empty_config(tmp_path, capsys):
    config_file = tmp_path / "routeplate.yaml"
    config_file.write_text("")

    assert main(["--config", str(config_file), "routes"]) == 0
    assert "No routes configured." in capsys.readouterr().out


def test_missing_config_fails(tmp_path):
    assert main(["--config", str(tmp_path / "missing.yaml"), "routes"]) == 1


def test_launch_command_runs_uvicorn(tmp_path, monkeypatch):
    calls = []
    monkeypatch.setattr(
        routeplate.cli.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs))
    )

    exit_code = main(["--config", str(write_config(tmp_path)), "launch", "--port", "9000"])

    ((app, kwargs),) = calls
    assert exit_code == 0
    assert isinstance(app, App)
    assert len(app.registry) == 2
    assert kwargs["host"] == "127.0.0.1"
    assert kwargs["port"] == 9000
    assert kwargs["reload"] is False


def test_launch_with_reload_passes_a_factory(tmp_path, monkeypatch):
    calls = []
    monkeypatch.delenv(routeplate.cli.CONFIG_ENV_VAR, raising=False)
    monkeypatch.setattr(
        routeplate.cli.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs))
    )
    config_file = write_config(tmp_path)

    exit_code = main(["--config", str(config_file), "launch", "--reload"])

    ((app, kwargs),) = calls
    assert exit_code == 0
    assert app == "routeplate.cli:create_app"
    assert kwargs["factory"] is True
    assert kwargs["reload"] is True
    assert os.environ[routeplate.cli.CONFIG_ENV_VAR] == str(config_file.resolve())
    assert len(routeplate.cli.create_app().registry) == 2


def test_command_is_required():
    with pytest.raises(SystemExit):
        create_parser().parse_args([])
