from infinistairs.config import ControlsConfig
from infinistairs.controls import InputRouter, Intent
from infinistairs.state import Phase


def test_start_key_begins_run(machine):
    router = InputRouter(machine)
    assert router.on_key_press("space") is Intent.START
    assert machine.phase is Phase.PLAYING


def test_same_key_steps_while_playing(playing):
    router = InputRouter(playing)
    playing.state.facing_direction = playing.expected_direction()
    assert router.on_key_press("SPACE") is Intent.MOVE
    assert playing.state.current_floor == 1


def test_turn_key_flips_and_steps(playing):
    router = InputRouter(playing)
    playing.state.facing_direction = playing.expected_direction().flipped()
    assert router.on_key_press("LSHIFT") is Intent.TURN_AND_MOVE
    assert playing.state.current_floor == 1


def test_repeats_and_unbound_keys_ignored(playing):
    router = InputRouter(playing)
    assert router.on_key_press("SPACE", repeat=True) is None
    assert router.on_key_press("Q") is None
    assert router.on_key_press("") is None
    assert router.on_key_press("ESCAPE") is None
    assert playing.state.current_floor == 0


def test_keys_ignored_while_jumping(playing):
    router = InputRouter(playing)
    playing.jump(10)
    assert router.on_key_press("SPACE") is None
    assert playing.state.current_floor == 10


def test_select_key_returns_to_menu(playing):
    router = InputRouter(playing)
    playing.game_over()
    assert router.on_key_press("escape") is Intent.SELECT
    assert playing.phase is Phase.IDLE


def test_rebinding(machine):
    router = InputRouter(machine, ControlsConfig(start=["ENTER"], move=["up"], turn=["down", ""], select=["BACK"]))
    assert router.translate("SPACE") is None
    assert router.translate("enter") is Intent.START
    machine.start()
    assert router.translate("UP") is Intent.MOVE
    assert router.translate("DOWN") is Intent.TURN_AND_MOVE
