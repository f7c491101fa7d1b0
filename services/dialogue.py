"""
Dialogue consistency checks

A line of dialogue is compared with a character's stored profile on three
axes: tone, speech level and characteristic keywords. Speech level detection
is a pluggable classifier so a stronger analyzer can replace the default
suffix heuristic.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from models.character import Character, SpeechLevel

PLAIN_TONE_MARKERS = ("담백", "절제", "plain", "restrained")

CHARACTER_NOT_FOUND = "캐릭터를 찾을 수 없음"


class SpeechLevelClassifier(ABC):
    """Buckets a line of dialogue into a speech level"""

    @abstractmethod
    def classify(self, text: str) -> SpeechLevel:
        """Return the detected level; MIXED when undecided"""


class SuffixPatternClassifier(SpeechLevelClassifier):
    """Counts sentence-final suffix matches per speech level; the strict maximum wins."""

    PATTERNS = {
        SpeechLevel.FORMAL: re.compile(r"(요|습니다|세요|십시오)$"),
        SpeechLevel.INFORMAL: re.compile(r"(야|아|어|지|는데)$"),
        SpeechLevel.CASUAL: re.compile(r"(임|음|ㅎ)$|ㅋ"),
    }
    SENTENCE_BREAK = re.compile(r"[.!?]")

    def count_matches(self, text: str) -> dict[SpeechLevel, int]:
        counts = {level: 0 for level in self.PATTERNS}
        for sentence in self.SENTENCE_BREAK.split(text):
            sentence = sentence.strip()
            if not sentence:
                continue
            for level, pattern in self.PATTERNS.items():
                if pattern.search(sentence):
                    counts[level] += 1
        return counts

    def classify(self, text: str) -> SpeechLevel:
        counts = self.count_matches(text)
        best = max(counts.values())
        if best == 0:
            return SpeechLevel.MIXED

        winners = [level for level, count in counts.items() if count == best]
        return winners[0] if len(winners) == 1 else SpeechLevel.MIXED


@dataclass
class CheckResult:
    passed: bool
    detail: str

    def to_dict(self) -> dict[str, Any]:
        return {"passed": self.passed, "detail": self.detail}


@dataclass
class DialogueCheck:
    """Outcome of checking one line against a character"""

    status: str  # PASS | WARN | FAIL
    character: str
    checks: dict[str, CheckResult] = field(default_factory=dict)
    suggestion: str = ""

    @property
    def failed_count(self) -> int:
        return sum(1 for check in self.checks.values() if not check.passed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "character": self.character,
            "checks": {name: check.to_dict() for name, check in self.checks.items()},
            "suggestion": self.suggestion,
        }


def status_for(failed: int) -> str:
    if failed == 0:
        return "PASS"
    return "WARN" if failed == 1 else "FAIL"


def is_plain_tone(tone: str) -> bool:
    tone = (tone or "").lower()
    return any(marker in tone for marker in PLAIN_TONE_MARKERS)


def check_dialogue(
    character: Character | None,
    dialogue: str,
    classifier: SpeechLevelClassifier | None = None,
    requested_name: str = "",
) -> DialogueCheck:
    """
    Run the tone, speech-level and keyword checks

    Args:
        character: resolved character, or None when the lookup failed
        dialogue: the line to check
        classifier: speech level classifier; SuffixPatternClassifier by default
        requested_name: the name the caller asked for, reported when unresolved

    Returns:
        DialogueCheck: PASS with no failed checks, WARN with one, FAIL otherwise
    """
    if character is None:
        return DialogueCheck(
            status="FAIL",
            character=requested_name,
            checks={
                "toneMatch": CheckResult(False, CHARACTER_NOT_FOUND),
                "speechLevelMatch": CheckResult(False, CHARACTER_NOT_FOUND),
                "keywordConsistency": CheckResult(False, CHARACTER_NOT_FOUND),
            },
            suggestion=f'"{requested_name}" 캐릭터가 메모리에 없습니다.',
        )

    classifier = classifier or SuffixPatternClassifier()

    exclamations = dialogue.count("!")
    tone = CheckResult(True, "톤 일치")
    if is_plain_tone(character.tone) and exclamations > 1:
        tone = CheckResult(False, f"담백한 톤에 느낌표 {exclamations}개는 과함")

    detected = classifier.classify(dialogue)
    expected = character.speech_level
    if detected == expected:
        speech = CheckResult(True, "말투 일치")
    else:
        # an undecided line never counts against the character
        speech = CheckResult(detected == SpeechLevel.MIXED, f"기대: {expected.label}, 감지: {detected.label}")

    keywords = CheckResult(True, "키워드 없음 (검사 생략)")
    if character.keywords:
        found = any(keyword in dialogue for keyword in character.keywords)
        detail = "특징 키워드 포함" if found else f"키워드 미포함: {', '.join(character.keywords[:2])}"
        keywords = CheckResult(found, detail)

    suggestions = []
    if not tone.passed:
        suggestions.append("톤 조정 필요")
    if not speech.passed:
        suggestions.append(f"{expected.label}로 말투 수정")
    if not keywords.passed:
        suggestions.append("특징 키워드 사용 고려")

    result = DialogueCheck(
        status="PASS",
        character=character.name,
        checks={"toneMatch": tone, "speechLevelMatch": speech, "keywordConsistency": keywords},
        suggestion=". ".join(suggestions) if suggestions else "대사가 캐릭터와 잘 어울립니다.",
    )
    result.status = status_for(result.failed_count)
    return result
