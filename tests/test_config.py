from __future__ import annotations

import pytest

from infinistairs.config import GameConfig, validate_config_dict
from infinistairs.errors import ConfigError
from infinistairs.items import ItemKind


def test_packaged_defaults_match_dataclass_defaults():
    assert GameConfig.load().to_dict() == GameConfig().to_dict()


def test_user_overlay_is_deep_merged(tmp_path):
    user = tmp_path / "settings.yaml"
    user.write_text(
        "lives:\n  initial: 5\n"
        "difficulty:\n  time_limit_ms: {HARD: 4000}\n"
        "controls:\n  move: [UP]\n",
        encoding="utf-8",
    )
    cfg = GameConfig.load(user)
    assert cfg.lives.initial == 5
    assert cfg.lives.bonus_interval == 100
    assert cfg.difficulty.time_limit_ms == {"EASY": 10000, "MEDIUM": 7000, "HARD": 4000}
    assert cfg.controls.move == ["UP"]
    assert cfg.controls.turn == ["SHIFT", "LSHIFT", "RSHIFT"]


def test_missing_user_file_uses_defaults(tmp_path, caplog):
    cfg = GameConfig.load(tmp_path / "nope.yaml")
    assert cfg.to_dict() == GameConfig().to_dict()
    assert "User config file not found" in caplog.text


def test_schema_error_reports_path():
    with pytest.raises(ConfigError) as exc:
        validate_config_dict({"lives": {"initial": "three"}})
    assert any(p.startswith("at lives/initial") for p in exc.value.problems)
    assert "lives/initial" in exc.value.to_human()


def test_unknown_keys_rejected():
    with pytest.raises(ConfigError):
        GameConfig.from_dict({"staircase": {"floors": 10}})


def test_tier_thresholds_must_increase():
    with pytest.raises(ConfigError) as exc:
        GameConfig.from_dict({"difficulty": {"medium_at": 700, "hard_at": 700}})
    assert "medium_at" in exc.value.problems[0]


def test_guaranteed_window_must_fit_catalog():
    with pytest.raises(ConfigError):
        GameConfig.from_dict({"staircase": {"guaranteed_start": 20, "guaranteed_end": 24}})


def test_items_replace_catalog():
    cfg = GameConfig.from_dict({"items": [{"identity": "coin", "kind": "score", "magnitude": 1}]})
    assert [i.identity for i in cfg.items] == ["coin"]
    assert cfg.items[0].kind is ItemKind.SCORE
    assert cfg.items[0].rarity == 1


def test_save_then_load(tmp_path):
    cfg = GameConfig()
    cfg.lives.enabled = False
    cfg.disappearing.countdown_ms = 3000
    path = tmp_path / "out" / "config.yaml"
    cfg.save(path)
    loaded = GameConfig.load(path)
    assert loaded.lives.enabled is False
    assert loaded.disappearing.countdown_ms == 3000


def test_non_mapping_yaml_rejected(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        GameConfig.load(path)
