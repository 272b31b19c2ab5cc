"""User-facing strings for the supported languages."""

from __future__ import annotations

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "popupMessageDefault": "Time's up! Take a moment to look back.",
        "sessionFinished": "Session finished",
        "pleaseEvaluate": "How did it go?",
        "notePrompt": "What did you do",
        "ratingPrompt": "Rating (1-5)",
        "logSaved": "Session saved to the log.",
        "work": "Work",
        "break": "Break",
        "idle": "Idle",
        "running": "Running",
        "paused": "Paused",
    },
    "ko": {
        "popupMessageDefault": "시간이 다 되었습니다! 잠시 돌아보세요.",
        "sessionFinished": "세션이 종료되었습니다",
        "pleaseEvaluate": "이번 세션을 평가해 주세요.",
        "notePrompt": "무엇을 했나요",
        "ratingPrompt": "점수 (1-5)",
        "logSaved": "로그에 저장되었습니다.",
        "work": "작업",
        "break": "휴식",
        "idle": "대기",
        "running": "진행 중",
        "paused": "일시정지",
    },
}


def t(key: str, language: str = "en") -> str:
    """Translate *key*; unknown keys are returned as-is so custom text passes through."""
    table = MESSAGES.get(language, MESSAGES["en"])
    return table.get(key, MESSAGES["en"].get(key, key))
