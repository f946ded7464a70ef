"""
Spoken and displayed texts of the guided session.

Keyed by language (the primary subtag of the TTS language code), then by
cue. Korean is the product's home language; English is used for any other
language code.
"""

from typing import Dict, Optional

PHRASES: Dict[str, Dict[str, str]] = {
    "ko": {
        "loading_name": "로딩 중...",
        "loading_description": "포즈 설명을 불러오는 중입니다...",
        "no_name": "운동 이름 없음",
        "no_description": "포즈 설명 없음",
        "correct": "정답입니다",
        "incorrect": "자세를 다시 한 번 확인해 주세요",
        "not_recognized": "자세를 인식하지 못했어요. 카메라에 전신이 보이도록 서 주세요.",
        "missing_exercise": "운동 정보를 찾을 수 없어요. 잠시 후 다시 시도할게요.",
        "network_error": "네트워크 오류가 발생했어요. 잠시 후 다시 확인할게요.",
        "routine_complete": "모든 운동을 마쳤어요! 수고하셨습니다.",
    },
    "en": {
        "loading_name": "Loading...",
        "loading_description": "Loading the pose description...",
        "no_name": "No exercise name",
        "no_description": "No pose description",
        "correct": "That's correct!",
        "incorrect": "Please check your pose once more.",
        "not_recognized": "I couldn't see your pose. Make sure your whole body is in view.",
        "missing_exercise": "I couldn't find the exercise details. I'll try again shortly.",
        "network_error": "There was a network problem. I'll check again in a moment.",
        "routine_complete": "You finished the whole routine. Great work!",
    },
}

DEFAULT_LANGUAGE = "en"


class PhraseBook:
    """
    Looks up cue texts for one language.

    Usage:
        phrases = PhraseBook("ko-KR")
        phrases.get("network_error")
        phrases.feedback(match=False, feedback_text=None)  # "자세를 다시 한 번 ..."
    """

    def __init__(self, language_code: str = "ko-KR"):
        self.language_code = language_code
        language = (language_code or "").split("-")[0].lower()
        self.language = language if language in PHRASES else DEFAULT_LANGUAGE
        self._phrases = PHRASES[self.language]

    def get(self, cue: str) -> str:
        return self._phrases[cue]

    def feedback(self, match: bool, feedback_text: Optional[str]) -> str:
        """Service feedback if it sent any, otherwise the default verdict text."""
        if feedback_text:
            return feedback_text
        return self.get("correct") if match else self.get("incorrect")
