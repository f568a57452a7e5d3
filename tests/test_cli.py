"""
Tests for the command line interface.
"""

import json

from typer.testing import CliRunner

from commontime.cli.app import app

runner = CliRunner()


def _setup(tmp_path):
    events = [
        {"calendarId": "cal-max", "start": "2024-11-25T09:00:00", "end": "2024-11-25T12:00:00"},
    ]
    (tmp_path / "busy.json").write_text(json.dumps(events), encoding="utf-8")
    config = tmp_path / "config.yaml"
    config.write_text(
        "busy_data_file: busy.json\n"
        "participants:\n"
        "  - name: ich\n"
        "    email: ich@example.com\n"
        "  - name: max\n"
        "    email: max@example.com\n"
        "    calendar_id: cal-max\n",
        encoding="utf-8",
    )
    return config


def test_find_reports_best_interval(tmp_path):
    config = _setup(tmp_path)

    result = runner.invoke(app, ["find", "ich", "max", "-D", "2024-11-25", "-c", str(config), "-d", "60"])

    assert result.exit_code == 0, result.output
    assert "Beste Verfügbarkeit: 2 von 2" in result.output
    assert "12:00 – 18:00 Uhr" in result.output


def test_find_with_day_outside_candidates_fails(tmp_path):
    config = _setup(tmp_path)

    result = runner.invoke(app, ["find", "ich=2024-11-26", "-D", "2024-11-25", "-c", str(config)])

    assert result.exit_code == 1
    assert "Fehler" in result.output


def test_find_without_source_fails(tmp_path):
    config = tmp_path / "config.yaml"
    config.write_text("participants: []\n", encoding="utf-8")

    result = runner.invoke(app, ["find", "a@example.com", "-D", "2024-11-25", "-c", str(config)])

    assert result.exit_code == 1
    assert "Kalenderquelle" in result.output


def test_list_participants(tmp_path):
    config = _setup(tmp_path)

    result = runner.invoke(app, ["list-participants", "-c", str(config)])

    assert result.exit_code == 0
    assert "max@example.com" in result.output
