"""
Dialogue consistency check tests
"""

import pytest

from models.character import Character, SpeechLevel
from services.dialogue import (
    CHARACTER_NOT_FOUND,
    SpeechLevelClassifier,
    SuffixPatternClassifier,
    check_dialogue,
    is_plain_tone,
    status_for,
)


def _character(**kwargs):
    return Character(id="char_1", name="서연", created="t", updated="t", **kwargs)


class TestSuffixPatternClassifier:
    """Speech level detection from sentence endings"""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("괜찮아요.", SpeechLevel.FORMAL),
            ("감사합니다. 다음에 뵙겠습니다.", SpeechLevel.FORMAL),
            ("밥 먹었어?", SpeechLevel.INFORMAL),
            ("그냥 가자고 했는데", SpeechLevel.INFORMAL),
            ("ㅋㅋ 진짜 웃김", SpeechLevel.CASUAL),
            ("", SpeechLevel.MIXED),
            ("...", SpeechLevel.MIXED),
        ],
    )
    def test_classify(self, text, expected):
        assert SuffixPatternClassifier().classify(text) is expected

    def test_tie_is_mixed(self):
        """One formal and one informal sentence is undecided"""
        assert SuffixPatternClassifier().classify("안녕하세요. 밥 먹었어.") is SpeechLevel.MIXED

    def test_count_matches(self):
        counts = SuffixPatternClassifier().count_matches("고마워요. 미안해요! 알았어.")
        assert counts[SpeechLevel.FORMAL] == 2
        assert counts[SpeechLevel.INFORMAL] == 1


class TestCheckDialogue:
    """check_dialogue outcomes"""

    def test_pass(self):
        character = _character(tone="담백", speech_level=SpeechLevel.INFORMAL, keywords=["괜찮아"])
        result = check_dialogue(character, "괜찮아. 진짜 괜찮아.")

        assert result.status == "PASS"
        assert result.failed_count == 0
        assert result.character == "서연"
        assert set(result.checks) == {"toneMatch", "speechLevelMatch", "keywordConsistency"}

    def test_warn_on_one_failure(self):
        character = _character(tone="담백", speech_level=SpeechLevel.INFORMAL)
        result = check_dialogue(character, "정말 괜찮아요.")

        assert result.status == "WARN"
        assert not result.checks["speechLevelMatch"].passed
        assert "반말" in result.checks["speechLevelMatch"].detail
        assert "반말로 말투 수정" in result.suggestion

    def test_fail_on_multiple_failures(self):
        character = _character(tone="담백하고 절제된", speech_level=SpeechLevel.INFORMAL, keywords=["괜찮아"])
        result = check_dialogue(character, "정말요! 최고예요! 감사합니다!")

        assert result.status == "FAIL"
        assert result.failed_count == 3
        assert "느낌표 3개" in result.checks["toneMatch"].detail

    def test_single_exclamation_keeps_plain_tone(self):
        character = _character(tone="담백")
        result = check_dialogue(character, "가자!")
        assert result.checks["toneMatch"].passed

    def test_mixed_detection_never_fails(self):
        character = _character(speech_level=SpeechLevel.FORMAL)
        result = check_dialogue(character, "...")
        assert result.checks["speechLevelMatch"].passed
        assert result.status == "PASS"

    def test_no_keywords_skips_check(self):
        result = check_dialogue(_character(), "밥 먹었어.")
        assert result.checks["keywordConsistency"].passed

    def test_unknown_character(self):
        result = check_dialogue(None, "안녕", requested_name="유령")

        assert result.status == "FAIL"
        assert result.character == "유령"
        assert all(check.detail == CHARACTER_NOT_FOUND for check in result.checks.values())

    def test_custom_classifier(self):
        class AlwaysFormal(SpeechLevelClassifier):
            def classify(self, text):
                return SpeechLevel.FORMAL

        character = _character(speech_level=SpeechLevel.FORMAL)
        result = check_dialogue(character, "밥 먹었어.", AlwaysFormal())
        assert result.checks["speechLevelMatch"].passed

    def test_to_dict(self):
        data = check_dialogue(_character(), "밥 먹었어.").to_dict()
        assert data["status"] == "PASS"
        assert data["checks"]["toneMatch"] == {"passed": True, "detail": "톤 일치"}


class TestHelpers:
    @pytest.mark.parametrize("failed, status", [(0, "PASS"), (1, "WARN"), (2, "FAIL"), (3, "FAIL")])
    def test_status_for(self, failed, status):
        assert status_for(failed) == status

    def test_is_plain_tone(self):
        assert is_plain_tone("담백함")
        assert is_plain_tone("Plain and quiet")
        assert not is_plain_tone("격정적")
        assert not is_plain_tone("")
