"""Tests for the headless simulation runner."""

import json

from treegraph.simulate import SAMPLE_SESSION, main, run_simulation


def test_sample_session_builds_valid_tree() -> None:
    report = run_simulation(SAMPLE_SESSION, ticks=120)

    assert report['status'] == "ready"
    assert report['nodes'] == 4
    assert report['links'] == 3
    assert report['max_depth'] == 2
    assert report['ticks'] == 120
    assert report['validation']['valid'] is True
    descriptions = {n['description'] for n in report['snapshot']['nodes']}
    assert "Glazed steatite scarab" in descriptions


def test_zero_ticks() -> None:
    report = run_simulation(SAMPLE_SESSION, ticks=0)

    assert report['ticks'] == 0
    assert report['first_rest_tick'] is None


def test_bad_history_is_reported_as_error() -> None:
    report = run_simulation({'history': "oops"}, ticks=5)

    assert report['status'] == "error"
    assert report['nodes'] == 0
    assert report['ticks'] == 0


def test_main_json_output(tmp_path, capsys) -> None:
    path = tmp_path / "session.json"
    path.write_text(json.dumps(SAMPLE_SESSION), encoding='utf-8')

    assert main([str(path), '--ticks', '10', '--json']) == 0

    report = json.loads(capsys.readouterr().out)
    assert report['nodes'] == 4


def test_main_text_report_and_missing_file(tmp_path, capsys) -> None:
    assert main(['--ticks', '5']) == 0
    assert "Validation: PASSED" in capsys.readouterr().out

    assert main([str(tmp_path / "missing.json")]) == 2
