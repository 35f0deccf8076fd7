from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import adl  # type: ignore


def run_cli(args, cwd):
    env = dict(os.environ, PYTHONPATH=str(SRC))
    p = subprocess.run(
        [sys.executable, "-m", "adl", *args], cwd=cwd, env=env, capture_output=True, text=True
    )
    return p.returncode, p.stdout, p.stderr


def readme_body(path: Path) -> list[str]:
    return [line for line in path.read_text(encoding="utf-8").splitlines() if "GMT" not in line]


@pytest.fixture
def project(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_regen_creates_core_files(project):
    assert adl.main(["regen"]) == 0
    adr = project / "adr"
    assert (adr / "assets").is_dir()
    assert (adr / "templates").is_dir()
    text = (adr / "README.md").read_text(encoding="utf-8")
    assert "{{timestamp}}" not in text and "{{contents}}" not in text
    assert text.count("GMT") == 1


def test_create_numbers_from_existing_count(project):
    assert adl.main(["create", "Use", "Postgres"]) == 0
    assert adl.main(["create", "Second"]) == 0
    adr = project / "adr"
    assert sorted(adl.list_adr_entries(adr)) == ["00000-UsePostgres.md", "00001-Second.md"]
    assert "# 00001 - Second" in (adr / "00001-Second.md").read_text(encoding="utf-8")
    readme = (adr / "README.md").read_text(encoding="utf-8")
    assert " - [00000-UsePostgres.md](./00000-UsePostgres.md)\n - [00001-Second.md](./00001-Second.md)" in readme


def test_create_sanitizes_filename(project):
    assert adl.main(["create", "A/B:C"]) == 0
    created = project / "adr" / "00000-A B C.md"
    assert created.is_file()
    assert "00000 - A/B:C" in created.read_text(encoding="utf-8")


@pytest.mark.parametrize("argv", [["create"], ["create", ""], ["create", "", ""]])
def test_create_without_name_touches_nothing(project, capsys, argv):
    assert adl.main(argv) == 1
    assert "No name supplied for the ADR." in capsys.readouterr().err
    assert list(project.iterdir()) == []


def test_reserved_names_never_counted(project):
    adl.main(["regen"])
    adr = project / "adr"
    (adr / "assets" / "extra.md").write_text("x", encoding="utf-8")
    (adr / "templates" / "extra.md").write_text("x", encoding="utf-8")
    assert adl.main(["create", "Only"]) == 0
    assert (adr / "00000-Only.md").is_file()
    readme = (adr / "README.md").read_text(encoding="utf-8")
    assert "assets" not in readme.split("## Records")[-1]
    assert "[README.md]" not in readme


def test_override_template_is_used(project):
    adl.main(["regen"])
    (project / "adr" / "templates" / "template_adr.md").write_text(
        "Title: {{name}}\nOwned by the platform team.\n", encoding="utf-8"
    )
    assert adl.main(["create", "Cache"]) == 0
    assert (project / "adr" / "00000-Cache.md").read_text(encoding="utf-8") == (
        "Title: 00000 - Cache\nOwned by the platform team.\n"
    )


def test_regen_is_idempotent(project):
    adl.main(["create", "One"])
    adl.main(["create", "Two"])
    adl.main(["regen"])
    readme = project / "adr" / "README.md"
    files_before = sorted(p.name for p in (project / "adr").iterdir())
    body_before = readme_body(readme)
    adl.main(["regen"])
    assert sorted(p.name for p in (project / "adr").iterdir()) == files_before
    assert readme_body(readme) == body_before


def test_list_outputs_entries(project, capsys):
    assert adl.main(["list"]) == 0
    assert json.loads(capsys.readouterr().out) == []

    adl.main(["create", "Beta"])
    adl.main(["create", "Alpha"])
    capsys.readouterr()
    assert adl.main(["list"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert [d["file"] for d in data] == ["00000-Beta.md", "00001-Alpha.md"]
    assert data[1] == {"number": "00001", "title": "Alpha", "file": "00001-Alpha.md"}


def test_unknown_command_prints_help(project, capsys):
    assert adl.main(["foo"]) == 1
    err = capsys.readouterr().err
    assert "Unknown command 'foo'." in err
    assert "adl create" in err
    assert not (project / "adr").exists()


def test_missing_command_is_unknown(project, capsys):
    assert adl.main([]) == 1
    assert "Unknown command ''." in capsys.readouterr().err


def test_filesystem_errors_exit_nonzero(project, capsys):
    (project / "adr").write_text("not a directory", encoding="utf-8")
    assert adl.main(["regen"]) == 1
    assert "Error:" in capsys.readouterr().err


def test_cli_contract_streams_and_exit_codes(tmp_path):
    rc, out, err = run_cli(["foo"], tmp_path)
    assert rc == 1
    assert "Unknown command 'foo'." in err
    assert out == ""
    assert not (tmp_path / "adr").exists()

    rc, out, err = run_cli(["create"], tmp_path)
    assert rc == 1
    assert "No name supplied" in err
    assert not (tmp_path / "adr").exists()

    rc, out, err = run_cli(["create", "Record", "decisions"], tmp_path)
    assert rc == 0
    assert out == ""
    assert (tmp_path / "adr" / "00000-Recorddecisions.md").is_file()

    rc, out, err = run_cli(["regen"], tmp_path)
    assert rc == 0
    assert "00000-Recorddecisions.md" in (tmp_path / "adr" / "README.md").read_text(encoding="utf-8")


@pytest.mark.parametrize(
    "words, filename",
    [
        (["Drop", "--trace", "support"], "00000-Drop--tracesupport.md"),
        (["-x"], "00000--x.md"),
        (["Use", "-h"], "00000-Use-h.md"),
        (["--"], "00000---.md"),
    ],
)
def test_create_keeps_dash_words_in_name(project, words, filename):
    assert adl.main(["create", *words]) == 0
    assert (project / "adr" / filename).is_file()
    assert f"00000 - {''.join(words)}" in (project / "adr" / filename).read_text(encoding="utf-8")


def test_list_table_defaults_to_number_and_title(project, capsys):
    adl.main(["create", "Use", "Postgres"])
    capsys.readouterr()
    assert adl.main(["list", "--table", "--no-color"]) == 0
    header = capsys.readouterr().out.splitlines()[0]
    assert "number" in header and "title" in header
    assert "file" not in header


def test_concurrent_creates_get_distinct_numbers(tmp_path):
    env = dict(os.environ, PYTHONPATH=str(SRC))
    count = 6
    procs = [
        subprocess.Popen(
            [sys.executable, "-m", "adl", "create", f"Decision{i}"],
            cwd=tmp_path,
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
        for i in range(count)
    ]
    for p in procs:
        _, err = p.communicate(timeout=60)
        assert p.returncode == 0, err

    entries = sorted(adl.list_adr_entries(tmp_path / "adr"))
    assert [e[:5] for e in entries] == [f"{n:05d}" for n in range(count)]
    assert sorted(e[6:] for e in entries) == sorted(f"Decision{i}.md" for i in range(count))

    rc, _, err = run_cli(["regen"], tmp_path)
    assert rc == 0, err
    readme = (tmp_path / "adr" / "README.md").read_text(encoding="utf-8")
    assert all(f"(./{e})" in readme for e in entries)
