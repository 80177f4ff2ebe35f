from __future__ import annotations

import json

from feud.cli import main


def test_cli_prints_and_writes_a_summary(tmp_path, capsys) -> None:
    output = tmp_path / "out" / "summary.json"

    exit_code = main(["--num-games", "2", "--seed", "7", "--rounds", "3", "--output", str(output), "--log-dir", str(tmp_path / "logs")])

    assert exit_code == 0
    printed = json.loads(capsys.readouterr().out)
    assert printed["games"] == 2
    assert [result["seed"] for result in printed["results"]] == [7, 8]
    assert sum(printed["winners"].values()) == 2
    assert json.loads(output.read_text(encoding="utf-8")) == printed
    assert len(list((tmp_path / "logs").glob("*.jsonl"))) == 2


def test_cli_loads_categories_from_a_file(tmp_path, capsys) -> None:
    bank = tmp_path / "bank.json"
    bank.write_text(
        json.dumps([{"category": "Only", "difficulty": "Hard", "answers": ["Shell", "Egg", "Nut"]}]),
        encoding="utf-8",
    )

    main(["--difficulty", "Hard", "--rounds", "3", "--categories", str(bank)])

    printed = json.loads(capsys.readouterr().out)
    assert printed["termination_reasons"] == {"categories_exhausted": 1}
    assert printed["results"][0]["stats"]["categories"] == ["Only"]
