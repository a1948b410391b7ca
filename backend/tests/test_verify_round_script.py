"""verify_round command-line tests."""
import json

from scripts.verify_round import main


def vector_args(vector) -> list[str]:
    return [
        "--server-seed", vector["server_seed"],
        "--client-seed", vector["client_seed"],
        "--nonce", vector["nonce"],
        "--drop-column", str(vector["drop_column"]),
    ]


def test_prints_recomputed_values(vector, capsys):
    assert main(vector_args(vector)) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["commitHex"] == vector["commit_hash"]
    assert report["combinedSeed"] == vector["combined_seed"]
    assert report["binIndex"] == vector["bin_index"]
    assert report["isValid"] is True
    assert "path" not in report


def test_show_path(vector, capsys):
    assert main(vector_args(vector) + ["--show-path"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert len(report["path"]) == 12
    assert report["path"][0]["row"] == 0


def test_matching_expectations_pass(vector, capsys):
    args = vector_args(vector) + [
        "--expect-commit", vector["commit_hash"],
        "--expect-bin", str(vector["bin_index"]),
    ]
    assert main(args) == 0


def test_mismatch_exits_1(vector, capsys):
    args = vector_args(vector) + ["--expect-bin", "0"]
    assert main(args) == 1
    captured = capsys.readouterr()
    assert json.loads(captured.out)["isValid"] is False
    assert "binIndex" in captured.err


def test_bad_drop_column_exits_2(vector, capsys):
    args = vector_args(vector)[:-1] + ["13"]
    assert main(args) == 2
    assert "out of range" in capsys.readouterr().err
