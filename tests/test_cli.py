"""
End-to-end tests for the quip command line
"""

import pytest

import quip_cli
from quip_cli import main

CAT_WORDS = ["the", "cat", "sat", "dog", "hat", "mat", "bat", "tea", "eat"]


@pytest.fixture
def words_file(tmp_path):
    path = tmp_path / "words"
    path.write_text("\n".join(CAT_WORDS + ["no", "on", "to"]) + "\n", encoding="utf-8")
    return path


def test_word_block_default(words_file, capsys):
    code = main(["qwz mbq kbq", "-kq=t", "-km=c", "-kk=s", "-f", str(words_file)])
    out = capsys.readouterr().out
    assert code == 0
    assert out.count("Solution:") == 1
    assert "us] Solution: the cat sat" in out
    assert "frequency attack:" not in out


def test_frequency_attack_prints_rankings(words_file, capsys):
    code = main(["qwz mbq kbq", "-kq=t", "-k", "m=c", "-kk=s", f"-f{words_file}", "-F"])
    out = capsys.readouterr().out
    assert code == 0
    assert "frequency attack:" in out
    assert "w : eh" in out
    assert "z : ae" in out
    assert "Solution: the cat sat" in out


def test_both_attacks(words_file, capsys):
    code = main(["ab ba", "-f", str(words_file), "-F", "-W"])
    out = capsys.readouterr().out
    assert code == 0
    assert out.count("Solution:") == 2
    assert "Solution: on no" in out
    assert "Solution: no on" in out


def test_lenient_prints_partial_hits(words_file, capsys):
    code = main(["ab ba", "-f", str(words_file), "-F", "--lenient"])
    out = capsys.readouterr().out
    assert code == 0
    assert "[1/2]: 'ot to'" in out
    assert "[1/2]: 'to ot'" in out


def test_html_output(words_file, capsys):
    code = main(["qwz mbq kbq", "-kq=t", "-km=c", "-kk=s", "-f", str(words_file), "-H"])
    out = capsys.readouterr().out
    assert code == 0
    assert "the cat sat<BR>" in out


def test_no_solution(words_file, capsys):
    code = main(["xyyx", "-f", str(words_file)])
    out = capsys.readouterr().out
    assert code == 1
    assert "*** No solutions to this could be found! ***" in out


def test_zero_time_limit(words_file, capsys):
    code = main(["qwz mbq kbq", "-f", str(words_file), "-T", "0"])
    captured = capsys.readouterr()
    assert code == 1
    assert "No solutions" in captured.out
    assert "*** Error ***" in captured.err
    assert "ran out of time" in captured.err


def test_show_counts(words_file, capsys):
    main(["ab ba", "-f", str(words_file), "--show-counts"])
    out = capsys.readouterr().out
    assert out.startswith("   a  b  c")


def test_input_errors(words_file, tmp_path, capsys):
    assert main(["abc 123", "-f", str(words_file)]) == 2
    assert "*** Error ***" in capsys.readouterr().err

    assert main(["qwz", "-ka=b", "-ka=c", "-f", str(words_file)]) == 2
    assert "*** Error ***" in capsys.readouterr().err

    assert main(["qwz", "-f", str(tmp_path / "missing")]) == 2
    assert "*** Error ***" in capsys.readouterr().err

    empty = tmp_path / "empty"
    empty.write_text("\n123\n", encoding="utf-8")
    assert main(["qwz", "-f", str(empty)]) == 2
    assert "word list is empty" in capsys.readouterr().err


def test_bad_arguments():
    with pytest.raises(SystemExit) as exc:
        main(["qwz", "-k", "ab"])
    assert exc.value.code == 2

    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 2


def test_run_log(words_file, tmp_path, capsys):
    log = tmp_path / "quip.log"
    main(["ab ba", "-f", str(words_file), "--log", str(log)])
    lines = log.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert "starting: quip='ab ba' time=20" in lines[0]
    assert "terminating: quip='ab ba'" in lines[1]


def test_run_log_failure_only_warns(words_file, tmp_path, capsys):
    log = tmp_path / "missing" / "quip.log"
    with pytest.warns(UserWarning, match="could not write run log"):
        code = main(["ab ba", "-f", str(words_file), "--log", str(log)])
    assert code == 0


def test_encode(capsys):
    assert main(["-e", "the cat sat", "--seed", "5"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 2
    assert len(lines[0]) == len("the cat sat")
    assert lines[0].count(" ") == 2
    assert lines[1].startswith(" ") and lines[1][2] == "="


def test_encode_command_line_and_legend(capsys):
    assert main(["the cat sat", "-c", "-l", "--seed", "5"]) == 0
    out = capsys.readouterr().out
    lines = out.splitlines()
    assert lines[0] == "Generated encryption legend:"
    assert sum(1 for line in lines if line.startswith("   ") and " = " in line) == 26
    assert lines[-1].startswith("quip '")
    assert " -k" in lines[-1]


def test_encode_then_decode(words_file, capsys):
    main(["-e", "the cat sat", "-c", "--seed", "9"])
    command = capsys.readouterr().out.strip()
    ciphertext = command.split("'")[1]
    hint = command.rsplit(" ", 1)[1]

    code = main([ciphertext, hint, "-f", str(words_file)])
    out = capsys.readouterr().out
    assert code == 0
    assert "Solution: the cat sat" in out


def test_frequency_flag_alone_skips_word_block(words_file, capsys, monkeypatch):
    """-F without -W runs only the frequency attack"""
    def boom(*args, **kwargs):
        raise AssertionError("word-block attack ran")

    monkeypatch.setattr(quip_cli, "word_block_attack", boom)
    code = main(["ab ba", "-f", str(words_file), "-F"])
    out = capsys.readouterr().out
    assert code == 0
    assert "Solution: on no" in out
    assert " us] " not in out


def test_frequency_timeout_stops_word_block(words_file, capsys, monkeypatch):
    def boom(*args, **kwargs):
        raise AssertionError("word-block attack ran")

    monkeypatch.setattr(quip_cli, "word_block_attack", boom)
    code = main(["ab ba", "-f", str(words_file), "-F", "-W", "-T", "0"])
    captured = capsys.readouterr()
    assert code == 1
    assert "ran out of time" in captured.err


def test_html_errors_end_with_break(words_file, capsys):
    assert main(["abc 123", "-f", str(words_file), "-H"]) == 2
    assert capsys.readouterr().err.rstrip().endswith("<BR>")

    assert main(["qwz mbq kbq", "-f", str(words_file), "-T", "0", "-H"]) == 1
    captured = capsys.readouterr()
    assert captured.out.rstrip().endswith("<BR>")
    assert captured.err.rstrip().endswith("<BR>")
