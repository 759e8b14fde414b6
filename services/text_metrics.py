# services/text_metrics.py

from __future__ import annotations

import re
from typing import List

from services.numeric import round_half_up

_WORD_RE = re.compile(r"[a-zA-Z']+")
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")
_VOWEL_GROUP_RE = re.compile(r"[aeiouy]+")

# お役所系サイトによく出る硬い言い回し・専門用語
JARGON_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\bhereby\b", r"\bwherein\b", r"\bthereof\b", r"\bpursuant\b",
        r"\bnotwithstanding\b", r"\baforementioned\b", r"\bheretofore\b",
        r"\bin accordance with\b", r"\bwith respect to\b", r"\bfor the purpose of\b",
        r"\bin lieu of\b", r"\bin the event that\b", r"\bsubject to\b",
        r"\bshall be\b", r"\bmay be\b", r"\bis deemed\b",
        r"\butilize\b", r"\bfacilitate\b", r"\bcommence\b",
        r"\bterminate\b", r"\bimplement\b", r"\bascertain\b",
        r"\bendeavour\b", r"\bendeavor\b", r"\bremuneration\b",
    )
]


def count_syllables(word: str) -> int:
    """英単語の音節数を簡易ヒューリスティックで数える。"""
    word = re.sub(r"[^a-z]", "", word.lower())
    if len(word) <= 2:
        return 1

    # 末尾の黙字 e を落とす
    word = re.sub(r"e$", "", word)

    groups = _VOWEL_GROUP_RE.findall(word)
    return max(1, len(groups) if groups else 1)


def get_words(text: str) -> List[str]:
    return _WORD_RE.findall(text)


def split_sentences(text: str) -> List[str]:
    if not text.strip():
        return []
    return [s.strip() for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()]


def total_syllables(text: str) -> int:
    return sum(count_syllables(w) for w in get_words(text))


def flesch_kincaid_reading_ease(text: str) -> float:
    """
    Flesch-Kincaid Reading Ease。高いほど読みやすい（0〜100 に収める）。
    206.835 - 1.015 * (words / sentences) - 84.6 * (syllables / words)
    """
    sentences = split_sentences(text)
    words = get_words(text)
    if not sentences or not words:
        return 0

    avg_words_per_sentence = len(words) / len(sentences)
    avg_syllables_per_word = total_syllables(text) / len(words)

    score = 206.835 - 1.015 * avg_words_per_sentence - 84.6 * avg_syllables_per_word
    return max(0, min(100, round_half_up(score, 1)))


def flesch_kincaid_grade_level(text: str) -> float:
    """Flesch-Kincaid Grade Level。低いほど読みやすい。"""
    sentences = split_sentences(text)
    words = get_words(text)
    if not sentences or not words:
        return 0

    avg_words_per_sentence = len(words) / len(sentences)
    avg_syllables_per_word = total_syllables(text) / len(words)

    grade = 0.39 * avg_words_per_sentence + 11.8 * avg_syllables_per_word - 15.59
    return max(0, round_half_up(grade, 1))


def jargon_density(text: str) -> float:
    """100語あたりの硬い言い回しの出現数（小数2桁）。"""
    words = get_words(text)
    if not words:
        return 0

    jargon_count = sum(len(p.findall(text)) for p in JARGON_PATTERNS)
    return round_half_up(jargon_count / len(words) * 100, 2)


def average_sentence_length(text: str) -> float:
    """1文あたりの平均語数（小数1桁）。"""
    sentences = split_sentences(text)
    if not sentences:
        return 0
    return round_half_up(len(get_words(text)) / len(sentences), 1)
