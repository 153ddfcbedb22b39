import json

import pytest

from infinistairs import cli


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda default_level=None: None)


def test_seeded_run_without_saving(capsys):
    assert cli.main(["--seed", "7", "--no-save"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("GAME_WON")
    assert "lives=" in out


def test_high_score_file_written(tmp_path, capsys):
    path = tmp_path / "hs.json"
    assert cli.main(["--seed", "3", "--high-score-file", str(path)]) == 0
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["infinityStairHighScore_v4"] >= 1000


def test_bad_config_returns_error_code(tmp_path):
    bad = tmp_path / "bad.yaml"
    bad.write_text("lives:\n  initial: 0\n", encoding="utf-8")
    assert cli.main(["--config", str(bad), "--no-save"]) == 2


def test_mistake_rate_out_of_range():
    with pytest.raises(SystemExit):
        cli.main(["--mistake-rate", "1.5"])


def test_no_lives_variant_dies_on_first_mistake(tmp_path, capsys):
    cfg = tmp_path / "nolives.yaml"
    cfg.write_text("lives:\n  enabled: false\n", encoding="utf-8")
    assert cli.main(["--config", str(cfg), "--seed", "1", "--mistake-rate", "1", "--no-save"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("GAME_OVER floor=0")
    assert "lives=-" in out
