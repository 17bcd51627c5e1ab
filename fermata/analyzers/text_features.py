"""
Text feature helpers shared by the reference analyzers.
"""

import re
from typing import List

VOWELS = frozenset("aeiouy")
PLOSIVES = frozenset("bdgkpt")
RARE_LETTERS = frozenset("jkqvxz")

HARSH_CLUSTERS = frozenset({
    'kg', 'gk', 'dk', 'kd', 'bp', 'pb', 'kp', 'pk',
    'tg', 'gt', 'dt', 'td', 'xb', 'bx', 'xc', 'cx',
})

PLEASANT_ENDINGS = ('a', 'e', 'i', 'o', 'y', 'ly', 'er', 'le', 'ia', 'io', 'us', 'um', 'is', 'on')

COMMON_WORDS = frozenset({
    'the', 'a', 'an', 'of', 'and', 'in', 'on', 'to', 'my', 'your', 'our', 'we', 'you',
    'love', 'baby', 'girl', 'boy', 'night', 'day', 'time', 'heart', 'life', 'world',
    'band', 'song', 'music', 'blue', 'red', 'black', 'white', 'new', 'old', 'good',
    'bad', 'big', 'little', 'man', 'woman', 'home', 'road', 'light', 'dark', 'fire',
})

_WORD_RE = re.compile(r"[a-z0-9']+")


def words(name: str) -> List[str]:
    """Lower-cased words of a name, punctuation dropped."""
    return _WORD_RE.findall(name.lower())


def letters(name: str) -> str:
    """Only the alphabetic characters of a name, lower-cased."""
    return "".join(ch for ch in name.lower() if ch.isalpha())


def syllable_count(word: str) -> int:
    """Rough syllable estimate from vowel groups."""
    word = letters(word)
    if not word:
        return 0
    count = 0
    previous_vowel = False
    for ch in word:
        is_vowel = ch in VOWELS
        if is_vowel and not previous_vowel:
            count += 1
        previous_vowel = is_vowel
    if word.endswith('e') and count > 1 and not word.endswith('le'):
        count -= 1
    return max(count, 1)


def longest_consonant_run(text: str) -> int:
    longest = current = 0
    for ch in letters(text):
        if ch in VOWELS:
            current = 0
        else:
            current += 1
            longest = max(longest, current)
    return longest


def alternation_ratio(text: str) -> float:
    """Share of adjacent letter pairs that switch between vowel and consonant."""
    text = letters(text)
    if len(text) < 2:
        return 0.0
    switches = sum(
        1 for a, b in zip(text, text[1:])
        if (a in VOWELS) != (b in VOWELS)
    )
    return switches / (len(text) - 1)


def harsh_cluster_count(text: str) -> int:
    text = letters(text)
    return sum(1 for cluster in HARSH_CLUSTERS if cluster in text)


def is_alliterative(name: str) -> bool:
    initials = [word[0] for word in words(name) if word and word not in ('the', 'a', 'an')]
    return len(initials) >= 2 and len(set(initials)) == 1


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))
