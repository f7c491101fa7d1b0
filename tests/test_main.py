"""
Command-line entry point tests
"""

import json

import pytest

import main as cli


@pytest.fixture
def run(tmp_path, monkeypatch, capsys):
    """Invoke the CLI against the temporary project root; returns (exit code, stdout, stderr)"""
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)

    def _run(*args):
        code = cli.main(["--root", str(tmp_path), *args])
        captured = capsys.readouterr()
        return code, captured.out, captured.err

    return _run


@pytest.fixture
def initialized(run):
    code, _, _ = run("init", "이별의 온도", "--genre", "멜로")
    assert code == 0
    return run


class TestInit:
    def test_init_outputs_document(self, run, tmp_path):
        code, out, _ = run("init", "이별의 온도", "--genre", "멜로")
        assert code == 0
        assert json.loads(out)["project"]["name"] == "이별의 온도"
        assert (tmp_path / ".writer-memory" / "memory.json").is_file()

    def test_commands_before_init(self, run):
        code, _, err = run("stats")
        assert code == 1
        assert "❌" in err


class TestCharacterCommands:
    def test_add_and_list(self, initialized):
        code, out, _ = initialized("char", "add", "서연", "--fields", '{"tone": "담백", "speechLevel": "존댓말"}')
        assert code == 0
        assert json.loads(out)["speechLevel"] == "formal"

        code, out, _ = initialized("char", "list")
        assert code == 0
        assert [c["name"] for c in json.loads(out)] == ["서연"]

    def test_duplicate_is_failure(self, initialized):
        initialized("char", "add", "서연")
        code, _, err = initialized("char", "add", "서연")
        assert code == 1
        assert err

    def test_invalid_fields(self, initialized):
        code, _, err = initialized("char", "add", "서연", "--fields", '{"favoriteColor": "blue"}')
        assert code == 2
        assert "Invalid fields" in err

        code, _, _ = initialized("char", "add", "서연", "--fields", "{not json")
        assert code == 2

    def test_profile_is_markdown(self, initialized):
        initialized("char", "add", "서연")
        initialized("char", "emotion", "서연", "체념", "--intensity", "4")
        code, out, _ = initialized("char", "show", "서연")
        assert code == 0
        assert out.startswith("# 서연")
        assert "강도: 4/5" in out

    def test_bad_intensity(self, initialized):
        initialized("char", "add", "서연")
        code, _, _ = initialized("char", "emotion", "서연", "체념", "--intensity", "9")
        assert code == 1

    def test_dialogue_check(self, initialized):
        initialized("char", "add", "서연", "--fields", '{"speechLevel": "반말"}')
        code, out, _ = initialized("char", "check", "서연", "정말 괜찮아요.")
        assert code == 0
        assert json.loads(out)["status"] == "WARN"


class TestOtherCommands:
    def test_relationship_and_validate(self, initialized):
        initialized("char", "add", "서연")
        code, _, _ = initialized("rel", "add", "서연", "준호", "romantic")
        assert code == 0

        code, out, _ = initialized("validate")
        assert code == 1
        report = json.loads(out)
        assert report["valid"] is False
        assert "준호" in report["errors"][0]

        initialized("char", "add", "준호")
        code, out, _ = initialized("validate")
        assert code == 0

    def test_scene_flow(self, initialized):
        code, out, _ = initialized("scene", "add", "첫 만남", "--fields", '{"emotionTags": ["설렘"]}')
        scene_id = json.loads(out)["id"]
        initialized("scene", "cut-add", scene_id, "dialogue", "안녕", "--character", "서연")

        code, out, _ = initialized("scene", "flow")
        assert code == 0
        flow = json.loads(out)
        assert flow[0]["primaryEmotion"] == "설렘"
        assert flow[0]["cutCount"] == 1

    def test_synopsis_generate(self, initialized):
        code, out, _ = initialized("synopsis", "generate", "--format", "full")
        assert code == 0
        assert "시놉시스: 이별의 온도" in out

    def test_search_and_backups(self, initialized):
        initialized("theme", "add", "상실", "--fields", '{"description": "잃은 것과 화해하기"}')
        code, out, _ = initialized("search", "화해")
        assert code == 0
        assert json.loads(out)[0]["type"] == "theme"

        code, out, _ = initialized("backup", "list")
        assert code == 0
        assert len(json.loads(out)) == 1

    def test_argparse_rejects_unknown_type(self, initialized):
        with pytest.raises(SystemExit) as exc_info:
            initialized("rel", "add", "서연", "준호", "nemesis")
        assert exc_info.value.code == 2
