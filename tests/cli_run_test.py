import os
import subprocess
import sys

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
PROGRAMS = os.path.join(ROOT, "tests", "programs")


def run_cli(*args, inp: str = "") -> subprocess.CompletedProcess:
    cli = os.path.join(ROOT, "cli.py")
    return subprocess.run(
        [sys.executable, cli, *args],
        input=inp,
        text=True,
        capture_output=True,
        cwd=ROOT,
        timeout=10,
    )


def program(name: str) -> str:
    return os.path.join(PROGRAMS, name)


def test_run_prints_compare_result():
    proc = run_cli("run", program("compare.evs"))
    if proc.returncode != 0:
        raise AssertionError(f"exit code {proc.returncode}\nSTDOUT:\n{proc.stdout}\nSTDERR:\n{proc.stderr}")
    assert proc.stdout == "1\n"


def test_run_reads_stdin_and_uses_exit_status():
    proc = run_cli("run", program("countdown.evs"), inp="3\n")
    assert proc.stdout == "3\n2\n1\n"
    assert proc.returncode == 7


def test_assembly_errors_are_reported_together():
    proc = run_cli("run", program("broken.evs"))
    assert proc.returncode == 2
    assert proc.stdout == ""
    assert "Assembly failed (3 error(s))" in proc.stderr
    assert "ArityError" in proc.stderr
    assert "UndefinedLabel" in proc.stderr
    assert "UnknownMnemonic" in proc.stderr


def test_runtime_error_names_kind_and_ip():
    proc = run_cli("run", program("underflow.evs"))
    assert proc.returncode == 3
    assert proc.stdout == "1\n"
    assert "StackUnderflow" in proc.stderr
    assert "ip=0002 (line 3)" in proc.stderr


def test_build_prints_listing():
    proc = run_cli("build", program("compare.evs"))
    assert proc.returncode == 0
    assert "LABELS:" in proc.stdout
    assert "big: 0006" in proc.stdout
    assert "0003  jgt -> 0006" in proc.stdout


def test_tokens_dumps_lexer_output():
    proc = run_cli("tokens", program("compare.evs"))
    assert proc.returncode == 0
    assert "MNEMONIC('jgt') LABEL_REF('big')" in proc.stdout


def test_trace_goes_to_stderr():
    proc = run_cli("run", "--trace", program("compare.evs"))
    assert proc.returncode == 0
    assert proc.stdout == "1\n"
    assert "TRACE ip=0000 push 5 stack=0" in proc.stderr


def test_max_steps_stops_infinite_loop(tmp_path):
    src = tmp_path / "spin.evs"
    src.write_text("top:\njmp @top\n", encoding="utf-8")
    proc = run_cli("run", "--max-steps", "50", str(src))
    assert proc.returncode == 3
    assert "StepLimitExceeded" in proc.stderr


def test_missing_file_and_bad_usage():
    proc = run_cli("run", program("does_not_exist.evs"))
    assert proc.returncode == 1
    proc = run_cli("explode")
    assert proc.returncode == 1
    assert "Usage:" in proc.stdout


if __name__ == "__main__":
    test_run_prints_compare_result()
    test_run_reads_stdin_and_uses_exit_status()
    test_assembly_errors_are_reported_together()
    test_runtime_error_names_kind_and_ip()
    print("ok")
