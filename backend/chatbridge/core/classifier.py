"""
Intent Classifier

Decides whether a chat message asks for an image or a text reply.
Keyword matching in English and Korean; a single hit is enough.
"""
from enum import Enum
from typing import Iterable, Protocol


class Intent(str, Enum):
    TEXT = "text"
    IMAGE = "image"


class IntentClassifier(Protocol):
    def classify(self, text: str) -> Intent:
        ...


WORD_KEYWORDS = [
    # Actions
    "draw", "create", "generate", "make", "design", "produce",
    "paint", "sketch", "render", "visualize", "show me", "depict",
    # Subjects
    "image", "picture", "photo", "illustration", "artwork", "graphic",
    # Styles
    "photorealistic", "abstract", "typography", "poster", "greeting card",
    "comic", "detailed", "high resolution", "2k", "fine detail",
    "painting", "digital art", "concept art", "portrait", "landscape",
    "still life", "character design", "logo", "banner",
    # Korean style terms, matched with the same word rules
    "페인팅", "스케치", "렌더링", "시각화", "묘사",
    "풍경", "인물", "캐릭터", "로고", "포스터",
]

KOREAN_KEYWORDS = [
    # Generation verbs
    "그려", "그려줘", "그려주세요", "만들어", "만들어줘", "만들어주세요",
    "생성", "생성해", "생성해줘", "생성해주세요", "제작", "디자인",
    # Image nouns
    "이미지", "사진", "그림", "삽화", "일러스트", "작품", "그래픽",
    "그림을", "사진을", "이미지를", "작품을", "일러스트를",
    # Imperatives
    "보여줘", "보여주세요", "그려봐", "만들어봐",
]

FOLLOWING_WORDS = ("a", "an", "me", "some")


class KeywordClassifier:
    """Permissive keyword gate. Favours IMAGE on any match."""

    def __init__(
        self,
        keywords: Iterable[str] = WORD_KEYWORDS,
        substring_keywords: Iterable[str] = KOREAN_KEYWORDS,
    ):
        self.keywords = [k.lower() for k in keywords]
        self.substring_keywords = list(substring_keywords)

    def _matches(self, keyword: str, lowered: str, trimmed: str) -> bool:
        if " " in keyword:
            return keyword in lowered
        if any(f"{keyword} {word} " in lowered for word in FOLLOWING_WORDS):
            return True
        return trimmed.startswith(keyword) or f" {keyword} " in lowered

    def classify(self, text: str) -> Intent:
        if not text:
            return Intent.TEXT
        lowered = text.lower()
        trimmed = lowered.strip()
        if any(self._matches(k, lowered, trimmed) for k in self.keywords):
            return Intent.IMAGE
        if any(k in text for k in self.substring_keywords):
            return Intent.IMAGE
        return Intent.TEXT


default_classifier = KeywordClassifier()


def classify(text: str) -> Intent:
    return default_classifier.classify(text)


def suggest_aspect_ratio(prompt: str) -> str:
    """Pick an aspect ratio that suits the subject of the prompt."""
    lowered = prompt.lower()
    if any(k in lowered for k in ("portrait", "person", "face", "character")):
        return "3:4"
    if any(k in lowered for k in ("landscape", "scenery", "panorama", "horizon")):
        return "16:9"
    if any(k in lowered for k in ("mobile", "story", "vertical")):
        return "9:16"
    if any(k in lowered for k in ("logo", "icon", "social media", "profile")):
        return "1:1"
    return "4:3"
