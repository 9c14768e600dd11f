# tests/test_cli.py
import json

from city_apps.cli.city_cli import build_parser, main, parse_grid


def run_cli(capsys, *argv):
    code = main(build_parser().parse_args(list(argv)))
    return code, capsys.readouterr()


def test_parse_grid():
    assert parse_grid("1,2;2,1") == [[1, 2], [2, 1]]


def test_encode_and_decode(capsys):
    code, out = run_cli(capsys, "encode", "--top", "0,2", "--right", "0,0")
    assert code == 0
    assert json.loads(out.out) == {"city_id": "AAG", "uri": "http://localhost:8000/#AAG"}

    code, out = run_cli(capsys, "decode", "AAG")
    assert code == 0
    assert json.loads(out.out)["border_hints"] == [[0, 2], [0, 0], [0, 0], [0, 0]]


def test_solve_hint_difficulty(capsys):
    code, out = run_cli(capsys, "solve", "AAG")
    assert code == 0
    assert json.loads(out.out)["solved"] is True

    code, out = run_cli(capsys, "hint", "AAG", "--grid", "0,1;0,0")
    assert json.loads(out.out) == {"move": {"row": 0, "column": 0, "height": 2, "cost": 1}}

    code, out = run_cli(capsys, "difficulty", "AAG")
    assert json.loads(out.out) == {"difficulty": -1.0}


def test_check(capsys):
    code, out = run_cli(capsys, "check", "AAG", "--grid", "1,1;2,2")
    assert code == 0
    assert json.loads(out.out)["ok"] is False

    code, out = run_cli(capsys, "check", "AAG")
    assert code == 1


def test_errors_exit_codes(capsys):
    code, out = run_cli(capsys, "decode", "!!!")
    assert code == 2
    assert "Invalid city" in out.err

    code, out = run_cli(capsys, "encode", "--top", "0,x", "--right", "0,0")
    assert code == 1


def test_config_file_sets_share_url(capsys, tmp_path):
    cfg = tmp_path / "city.yaml"
    cfg.write_text("share_base_url: https://example.org/play/\n", encoding="utf-8")
    code, out = run_cli(capsys, "--config", str(cfg), "encode", "--top", "0,2", "--right", "0,0")
    assert json.loads(out.out)["uri"] == "https://example.org/play/#AAG"


def test_difficulty_timeout_exit_code(capsys, monkeypatch):
    import city_apps.cli.city_cli as city_cli

    monkeypatch.setattr(city_cli, "time_limit", lambda seconds: (lambda: True))
    # all-zero 3x3 city: nothing is forced, so the search has to guess
    code, out = run_cli(capsys, "difficulty", "JAAAA")
    assert code == 3
    assert "Gave up" in out.err
