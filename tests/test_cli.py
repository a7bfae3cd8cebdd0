# tests/test_cli.py

from __future__ import annotations

import logging

import pytest

from commlink.cli import main as cli_main
from commlink.cli.bootstrap import create_initial_state
from commlink.helprequests.request_models import Role


@pytest.fixture()
def restore_root_logging():
    """main() reconfigures the root logger; put pytest's handlers back afterwards."""
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    yield
    for h in list(root.handlers):
        if h not in saved_handlers:
            root.removeHandler(h)
            h.close()
    for h in saved_handlers:
        if h not in root.handlers:
            root.addHandler(h)
    root.setLevel(saved_level)
    logging.captureWarnings(False)


def test_once_runs_a_single_pass_and_prints_counters(
    monkeypatch, settings, capsys, restore_root_logging
) -> None:
    seeded = create_initial_state(settings=settings)
    seeded.users.add_user(username="bob", email="bob@example.com", role=Role.RESPONDER, user_id="b1")
    req = seeded.lifecycle.create_request("r1")
    seeded.lifecycle.accept_request(req.id, "b1")

    monkeypatch.setattr(cli_main, "get_settings", lambda: settings)

    assert cli_main.main(["--once"]) == 0

    out = capsys.readouterr().out
    assert "considered=1" in out
    assert "sent=1" in out
    assert (settings.data_dir / "commlink.log").exists()


def test_disabled_scheduler_exits_cleanly(monkeypatch, settings, restore_root_logging) -> None:
    settings.scheduler_enabled = False
    monkeypatch.setattr(cli_main, "get_settings", lambda: settings)

    assert cli_main.main([]) == 0
