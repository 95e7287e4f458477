from pathlib import Path

import pytest

import run_sanity_check as cli


def parse(*argv):
    return cli.build_parser().parse_args(list(argv))


def test_defaults_come_from_shipped_config():
    config = cli.load_config(parse())

    assert config.app.url == "http://localhost:8123/"
    assert config.driver.backend == "webdriver"
    assert config.driver.endpoint == "http://127.0.0.1:9515/"
    assert config.readiness.timeout == 300.0
    assert config.screenshot_path == Path("screenshot.png")


def test_flags_override_configuration(monkeypatch):
    monkeypatch.setenv("SANITY_APP_PORT", "8200")

    config = cli.load_config(
        parse(
            "--backend", "cdp",
            "--app-port", "8300",
            "--readiness-timeout", "0",
            "--screenshot", "gallery.png",
        )
    )

    assert config.app.port == 8300
    assert config.driver.backend == "cdp"
    assert config.driver.endpoint == "http://127.0.0.1:9222"
    assert config.driver.resolved_command("profile")[0] == "google-chrome"
    assert config.readiness.timeout is None
    assert config.screenshot_path == Path("gallery.png")


def test_config_file_flag(tmp_path):
    config_file = tmp_path / "sanity.yaml"
    config_file.write_text(
        "app:\n"
        "  command: [webdev, serve, 'web:{port}']\n"
        "  port: 8080\n"
        "driver:\n"
        "  endpoint: http://127.0.0.1:4444/\n",
        encoding="utf-8",
    )

    config = cli.load_config(parse("--config", str(config_file)))

    assert config.app.resolved_command() == ["webdev", "serve", "web:8080"]
    assert config.driver.resolved_command() == ["chromedriver", "--port=4444"]


def test_unknown_backend_is_rejected_by_parser():
    with pytest.raises(SystemExit):
        parse("--backend", "firefox")


def test_main_exits_with_run_result(monkeypatch):
    seen = []

    def fake_run(config):
        seen.append(config)
        return 2

    monkeypatch.setattr(cli, "run_sanity_check", fake_run)

    with pytest.raises(SystemExit) as exc_info:
        cli.main(["--app-port", "8124"])

    assert exc_info.value.code == 2
    assert seen[0].app.port == 8124
