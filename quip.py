"""
---
version: 0.1.0
created: 2026-10-18
updated: 2026-10-18
---

quip.py — Shared module for cryptoquip (simple substitution) solving.

A cryptoquip is a monoalphabetic substitution cipher given with one or more
known letters. Any quip may have several valid legends (substitution sets);
this module finds the ones under which every cipherword decodes to a word
from a reference word list.

Nine sections:
  1. Constants and errors
  2. Cipherwords — pattern matching and candidate filtering
  3. Legend — partial one-to-one substitution map
  4. Character frequency analysis (cross-match counts)
  5. Result collection and the solving session
  6. Frequency attack
  7. Word-block attack
  8. Word list, toy encryptor and run log
  9. Output utils (formatting, plots)
"""

from __future__ import annotations

import getpass
import html
import re
import string
import time
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Iterator, Sequence

import numpy as np

# ============================================================================
# 1. CONSTANTS AND ERRORS
# ============================================================================

# Legend slots, indexed by cipher letter.
ALPHABET: str = string.ascii_lowercase

# Rendered for a cipher letter the legend does not map yet.
UNKNOWN: str = "?"

DEFAULT_WORDS_FILE: Path = Path("words")
DEFAULT_LOG_FILE: Path = Path("/tmp/quip.log")

# Search budget in seconds, and the most a caller may ask for.
DEFAULT_TIME_LIMIT: int = 20
MAX_TIME_LIMIT: int = 300

# Only this much of a word-list line is looked at.
MAX_DICTIONARY_LINE: int = 2048

# Random swaps used to scramble an encrypting legend.
ENCRYPT_SHUFFLES: int = 500

NO_SOLUTION_MESSAGE: str = "*** No solutions to this could be found! ***"

# A cipherword starts with a letter and runs over letters and apostrophes.
_TOKEN_RE = re.compile(r"[A-Za-z][A-Za-z']*")
# A word-list entry may also carry hyphens ("co-op").
_DICT_WORD_RE = re.compile(r"[A-Za-z][A-Za-z'\-]*")
_LEGAL_CHARS = frozenset(string.ascii_letters + string.whitespace + string.punctuation)

Clock = Callable[[], float]


class QuipError(Exception):
    """Base class for solver errors."""


class InputError(QuipError, ValueError):
    """The ciphertext, word list or hints cannot be used."""


class SearchTimeout(QuipError):
    """Raised inside a search once its deadline has passed."""


def _is_letter(c: str) -> bool:
    return len(c) == 1 and c in string.ascii_letters


def _slot(c: str) -> int:
    return ord(c.lower()) - ord("a")


def clamp_time_limit(seconds: int) -> int:
    """Clamp a requested budget to MAX_TIME_LIMIT; negatives collapse to -1."""
    if seconds < 0:
        return -1
    return min(seconds, MAX_TIME_LIMIT)


def _check_deadline(deadline: float | None, clock: Clock) -> None:
    if deadline is not None and clock() >= deadline:
        raise SearchTimeout("search deadline passed")


# ============================================================================
# 2. CIPHERWORDS — Pattern matching and candidate filtering
# ============================================================================

def word_pattern(word: str) -> tuple[int, ...]:
    """
    Return the repetition signature of a word: each character is replaced
    by the order in which it was first seen (case-insensitive).

    "dad" -> (0, 1, 0), "kaak" -> (0, 1, 1, 0).
    """
    seen: dict[str, int] = {}
    return tuple(seen.setdefault(c, len(seen)) for c in word.lower())


def patterns_match(cipher_token: str | None, candidate: str | None) -> bool:
    """
    True when two strings have the same shape of letter repetition.

    For every pair of positions i < j, one string repeats a character at
    i and j exactly when the other one does. This is the structural
    condition for one string to be a substitution of the other.

    Args:
        cipher_token: A cipherword.
        candidate: A word-list entry.

    Returns:
        False for unequal lengths or when either side is None.
    """
    if cipher_token is None or candidate is None:
        return False
    if len(cipher_token) != len(candidate):
        return False
    cipher = [c.lower() for c in cipher_token]
    plain = [c.lower() for c in candidate]
    n = len(cipher)
    for i in range(n):
        for j in range(i + 1, n):
            if (cipher[j] == cipher[i]) != (plain[j] == plain[i]):
                return False
    return True


@dataclass
class Cipherword:
    """
    One token of the ciphertext and the word-list entries that could be
    its plaintext, in word-list order. Duplicates are kept.
    """

    text: str
    candidates: list[str] = field(default_factory=list)

    @property
    def length(self) -> int:
        return len(self.text)

    def offer(self, word: str) -> bool:
        """Keep `word` as a candidate if its pattern matches."""
        if not patterns_match(self.text, word):
            return False
        self.candidates.append(word)
        return True

    def possible_for_legend(self, legend: Legend, must_be_complete: bool = False) -> str | None:
        """First candidate the legend can produce from this cipherword, if any."""
        for candidate in self.candidates:
            if can_map_text(self.text, legend, candidate, must_be_complete):
                return candidate
        return None

    def is_decrypted_by(self, legend: Legend) -> bool:
        """True if the legend fully decodes this cipherword to a candidate."""
        return self.possible_for_legend(legend, must_be_complete=True) is not None


def validate_ciphertext(text: str | None) -> None:
    """Raise InputError unless text holds only letters, whitespace and punctuation."""
    if text is None or not text.strip():
        raise InputError("there is no ciphertext to solve")
    illegal = sorted({c for c in text if c not in _LEGAL_CHARS})
    if illegal:
        raise InputError(
            f"the ciphertext may only hold letters, spaces and punctuation, "
            f"found {''.join(illegal)!r}"
        )


def tokenize_ciphertext(text: str | None) -> list[str]:
    """
    Split a ciphertext into cipherword tokens.

    Tokens start with a letter and continue over letters and apostrophes,
    so "don't" stays whole while "well-known" gives two tokens.

    Raises:
        InputError: On illegal characters or when no token is found.
    """
    validate_ciphertext(text)
    tokens = _TOKEN_RE.findall(text)
    if not tokens:
        raise InputError("no cipherwords were found in the ciphertext")
    return tokens


def filter_candidates(cipherwords: Sequence[Cipherword], words: Iterable[str]) -> int:
    """
    Offer every word-list entry to every cipherword, in one pass.

    Returns:
        Number of word-list entries scanned.
    """
    scanned = 0
    for word in words:
        scanned += 1
        for cipherword in cipherwords:
            cipherword.offer(word)
    return scanned


# ============================================================================
# 3. LEGEND — Partial one-to-one substitution map
# ============================================================================

class Legend:
    """
    Cipher letter -> plain letter map over the 26 lowercase letters.

    A slot is either None (unassigned) or one plain letter, and no plain
    letter is held by two slots. Lookups are case-insensitive and keep the
    case of the input; characters that are not letters pass through.
    """

    __slots__ = ("_map",)

    def __init__(self) -> None:
        self._map: list[str | None] = [None] * len(ALPHABET)

    @classmethod
    def create(cls, cipher_char: str, plain_char: str) -> Legend:
        """Legend holding a single known pair."""
        legend = cls()
        legend.assign(cipher_char, plain_char)
        return legend

    @classmethod
    def from_hints(cls, hints: Iterable[tuple[str, str]]) -> Legend:
        """
        Legend built from (cipher, plain) pairs.

        Raises:
            InputError: If a pair is not two letters or contradicts another.
        """
        legend = cls()
        for cipher_char, plain_char in hints:
            legend.assign(cipher_char, plain_char)
        return legend

    @classmethod
    def from_mapping(cls, mapping: dict[str, str]) -> Legend:
        return cls.from_hints(mapping.items())

    @classmethod
    def from_slots(cls, slots: Sequence[str | None]) -> Legend:
        """Legend from one plain letter (or None) per cipher letter, a to z. Not checked."""
        legend = cls()
        legend._map = list(slots)
        return legend

    def assign(self, cipher_char: str, plain_char: str) -> None:
        """Set one pair, refusing anything that breaks the one-to-one rule."""
        if not (_is_letter(cipher_char) and _is_letter(plain_char)):
            raise InputError(
                f"a legend pair must be two letters, got {cipher_char!r}={plain_char!r}"
            )
        c, p = cipher_char.lower(), plain_char.lower()
        current = self._map[_slot(c)]
        if current is not None and current != p:
            raise InputError(f"'{c}' is already '{current}', it cannot also be '{p}'")
        owner = self._owner_of(p)
        if owner is not None and owner != c:
            raise InputError(f"'{p}' is already the plain letter for '{owner}', not '{c}'")
        self._map[_slot(c)] = p

    def _owner_of(self, plain_char: str) -> str | None:
        p = plain_char.lower()
        for i, value in enumerate(self._map):
            if value == p:
                return ALPHABET[i]
        return None

    def copy(self) -> Legend:
        """Independent duplicate; changes to it never reach this legend."""
        dup = Legend()
        dup._map = list(self._map)
        return dup

    __copy__ = copy

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Legend):
            return NotImplemented
        return self._map == other._map

    __hash__ = None  # mutable

    def __getitem__(self, cipher_char: str) -> str | None:
        return self._map[_slot(cipher_char)]

    def __len__(self) -> int:
        return sum(value is not None for value in self._map)

    def __repr__(self) -> str:
        return f"Legend({self.assigned()!r})"

    def assigned(self) -> dict[str, str]:
        """The assigned pairs, in cipher-letter order."""
        return {ALPHABET[i]: v for i, v in enumerate(self._map) if v is not None}

    def is_injective(self) -> bool:
        used = [v for v in self._map if v is not None]
        return len(used) == len(set(used))

    def cipher_to_plain_char(self, c: str) -> str:
        if not _is_letter(c):
            return c
        plain = self._map[_slot(c)]
        if plain is None:
            return UNKNOWN
        return plain.upper() if c.isupper() else plain

    def plain_to_cipher_char(self, c: str) -> str:
        # Reverse lookup: first slot holding this plain letter.
        if not _is_letter(c):
            return c
        owner = self._owner_of(c)
        if owner is None:
            return UNKNOWN
        return owner.upper() if c.isupper() else owner

    def cipher_to_plain(self, cipher_text: str) -> str:
        return "".join(self.cipher_to_plain_char(c) for c in cipher_text)

    def plain_to_cipher(self, plain_text: str) -> str:
        return "".join(self.plain_to_cipher_char(c) for c in plain_text)

    def incorporate(self, cipher_text: str, plain_text: str) -> bool:
        """
        Extend this legend in place with every pair of two aligned strings.

        Non-letters must line up with non-letters and are skipped. A letter
        already mapped must agree with the new plain letter, and an unmapped
        one may not take a plain letter owned by another slot.

        Returns:
            False on the first conflict. The legend may then hold some of
            the new pairs, so callers throw it away rather than reuse it.
        """
        if len(cipher_text) != len(plain_text):
            return False
        for cc, pc in zip(cipher_text, plain_text):
            if _is_letter(cc) != _is_letter(pc):
                return False
            if not _is_letter(cc):
                continue
            cc, pc = cc.lower(), pc.lower()
            current = self._map[_slot(cc)]
            if current is not None:
                if current != pc:
                    return False
            elif pc in self._map:
                return False
            self._map[_slot(cc)] = pc
        return True

    def format(self) -> str:
        plain = "".join(v if v is not None else " " for v in self._map)
        return f"cypher: {ALPHABET}\nplain:  {plain}"


def can_map_text(
    cipher_text: str | None,
    legend: Legend | None,
    plain_text: str | None,
    must_be_complete: bool,
) -> bool:
    """
    Can `legend` turn `cipher_text` into `plain_text`?

    Every letter the legend maps must give the plain letter at the same
    position (case-insensitive). An unmapped letter fails the test when
    `must_be_complete` is set; otherwise it is a hole that counts in favour
    of the match. Non-letters must appear unchanged in the plaintext.
    """
    if cipher_text is None or legend is None or plain_text is None:
        return False
    if len(cipher_text) != len(plain_text):
        return False
    for cc, pc in zip(cipher_text, plain_text):
        if not _is_letter(cc):
            if cc != pc:
                return False
            continue
        mapped = legend[cc]
        if mapped is None:
            if must_be_complete:
                return False
            continue
        if mapped != pc.lower():
            return False
    return True


# ============================================================================
# 4. CHARACTER FREQUENCY ANALYSIS
# ============================================================================

@dataclass
class CharacterFrequencyData:
    """
    Tallies over every (cipherword, candidate) pairing still alive.

    cross_match[i, j] counts how often cipher letter i lined up with plain
    letter j; `ciphertext` and `plaintext` are the per-letter totals.
    """

    cross_match: np.ndarray = field(
        default_factory=lambda: np.zeros((len(ALPHABET), len(ALPHABET)), dtype=np.int64)
    )
    plaintext: np.ndarray = field(default_factory=lambda: np.zeros(len(ALPHABET), dtype=np.int64))
    ciphertext: np.ndarray = field(default_factory=lambda: np.zeros(len(ALPHABET), dtype=np.int64))

    def substitutes(self, cipher_char: str) -> dict[str, int]:
        """Nonzero cross-match counts for one cipher letter."""
        row = self.cross_match[_slot(cipher_char)]
        return {ALPHABET[j]: int(n) for j, n in enumerate(row) if n > 0}


def _contradicts(cipher_text: str, legend: Legend, plain_text: str) -> bool:
    for cc, pc in zip(cipher_text, plain_text):
        mapped = legend.cipher_to_plain_char(cc)
        if mapped != UNKNOWN and mapped.lower() != pc.lower():
            return True
    return False


def analyze(
    cipherwords: Sequence[Cipherword],
    legend: Legend | None = None,
) -> CharacterFrequencyData:
    """
    Count cipher/plain letter alignments across all candidates.

    With a legend, a candidate is only counted when no mapped letter
    contradicts it (unmapped letters are holes). Only positions where both
    characters are letters are tallied.

    Args:
        cipherwords: Cipherwords with their candidate lists filled in.
        legend: Optional known pairs that candidates must agree with.

    Returns:
        Fresh CharacterFrequencyData.

    Raises:
        InputError: If there are no cipherwords.
    """
    if not cipherwords:
        raise InputError("there are no cipherwords to analyze")
    rows: list[int] = []
    cols: list[int] = []
    for cipherword in cipherwords:
        for candidate in cipherword.candidates:
            if legend is not None and _contradicts(cipherword.text, legend, candidate):
                continue
            for cc, pc in zip(cipherword.text, candidate):
                if _is_letter(cc) and _is_letter(pc):
                    rows.append(_slot(cc))
                    cols.append(_slot(pc))

    data = CharacterFrequencyData()
    if rows:
        np.add.at(data.cross_match, (np.array(rows), np.array(cols)), 1)
    data.ciphertext[:] = data.cross_match.sum(axis=1)
    data.plaintext[:] = data.cross_match.sum(axis=0)
    return data


def rank_substitutes(data: CharacterFrequencyData) -> list[list[str]]:
    """
    For each cipher letter, the plain letters seen against it, most
    cross-matches first (ties in alphabetical order). An empty list means
    the letter has no candidates at all.
    """
    rankings: list[list[str]] = []
    for row in data.cross_match:
        order = np.argsort(-row, kind="stable")
        rankings.append([ALPHABET[j] for j in order if row[j] > 0])
    return rankings


# ============================================================================
# 5. RESULT COLLECTION AND SESSION
# ============================================================================

class ResultCollector:
    """Decoded texts in discovery order, each kept once."""

    def __init__(self) -> None:
        self._texts: list[str] = []
        self._seen: set[str] = set()

    def add(self, text: str) -> bool:
        """Append `text` unless it is already present. True if it was new."""
        if text in self._seen:
            return False
        self._seen.add(text)
        self._texts.append(text)
        return True

    def __contains__(self, text: object) -> bool:
        return text in self._seen

    def __iter__(self) -> Iterator[str]:
        return iter(self._texts)

    def __len__(self) -> int:
        return len(self._texts)

    def __bool__(self) -> bool:
        return bool(self._texts)

    def __repr__(self) -> str:
        return f"ResultCollector({self._texts!r})"

    def as_list(self) -> list[str]:
        return list(self._texts)


@dataclass
class QuipSession:
    """
    Everything one solve works on: the ciphertext, its cipherwords and the
    solutions found so far. Both attacks take the session explicitly.
    """

    ciphertext: str
    cipherwords: list[Cipherword]
    results: ResultCollector = field(default_factory=ResultCollector)
    timed_out: bool = False
    rankings: list[list[str]] | None = None
    # Lenient frequency attack: decoded text -> cipherwords it decoded.
    partial_hits: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_ciphertext(cls, text: str) -> QuipSession:
        return cls(text, [Cipherword(token) for token in tokenize_ciphertext(text)])

    @property
    def word_count(self) -> int:
        return len(self.cipherwords)

    def load_dictionary(self, words: Iterable[str]) -> int:
        """
        Fill the cipherwords' candidate lists from a word list.

        Raises:
            InputError: If the word list yields no words.
        """
        scanned = filter_candidates(self.cipherwords, words)
        if scanned == 0:
            raise InputError("the word list is empty")
        return scanned

    def decode(self, legend: Legend) -> str:
        return legend.cipher_to_plain(self.ciphertext)

    def record(self, legend: Legend) -> bool:
        """Decode the whole ciphertext and keep it if it is new."""
        return self.results.add(self.decode(legend))


# ============================================================================
# 6. FREQUENCY ATTACK
# ============================================================================

def frequency_attack(
    session: QuipSession,
    legend: Legend | None = None,
    time_limit: float | None = None,
    lenient: bool = False,
    clock: Clock = time.monotonic,
) -> bool:
    """
    Enumerate legends built from the cross-match rankings.

    Each cipher letter only tries the plain letters that some live
    candidate lines up with it, most frequent first, and skips any plain
    letter an earlier cipher letter already took. Every completed legend
    is tested against all cipherwords.

    Args:
        session: Session with candidate lists loaded. Rankings are stored
            on `session.rankings`, solutions in `session.results`.
        legend: Known pairs. Copied, never modified.
        time_limit: Seconds allowed, or None to always run to completion.
        lenient: Also accept a legend that decodes at least one cipherword
            when others miss (recorded in `session.partial_hits`). By default
            every cipherword must decode.
        clock: Monotonic time source.

    Returns:
        True if the enumeration finished, False if it ran out of time.
    """
    data = analyze(session.cipherwords, legend)
    rankings = rank_substitutes(data)
    session.rankings = rankings

    deadline = None
    if time_limit is not None:
        if time_limit <= 0:
            session.timed_out = True
            return False
        deadline = clock() + time_limit

    # Working slots, one plain letter (or None) per cipher letter.
    slots: list[str | None] = [None if legend is None else legend[c] for c in ALPHABET]
    # Known letters that never occur in a candidate keep their plain letter.
    reserved: set[str] = {
        plain for plain, choices in zip(slots, rankings)
        if plain is not None and not choices
    }
    try:
        _build_frequency_legend(session, rankings, reserved, 0, slots, lenient, deadline, clock)
    except SearchTimeout:
        session.timed_out = True
        return False
    return True


def _build_frequency_legend(
    session: QuipSession,
    rankings: list[list[str]],
    reserved: set[str],
    index: int,
    slots: list[str | None],
    lenient: bool,
    deadline: float | None,
    clock: Clock,
) -> None:
    _check_deadline(deadline, clock)
    last = index == len(ALPHABET) - 1
    choices = rankings[index]

    if not choices:
        if last:
            _test_frequency_legend(session, Legend.from_slots(slots), lenient)
        else:
            _build_frequency_legend(
                session, rankings, reserved, index + 1, slots, lenient, deadline, clock
            )
        return

    for plain in choices:
        # Only earlier letters are decided on this path.
        if plain in reserved or plain in slots[:index]:
            continue
        slots[index] = plain
        if last:
            _check_deadline(deadline, clock)
            _test_frequency_legend(session, Legend.from_slots(slots), lenient)
        else:
            _build_frequency_legend(
                session, rankings, reserved, index + 1, slots, lenient, deadline, clock
            )


def _test_frequency_legend(session: QuipSession, legend: Legend, lenient: bool) -> None:
    if not lenient:
        if all(word.is_decrypted_by(legend) for word in session.cipherwords):
            session.record(legend)
        return

    hits = sum(1 for word in session.cipherwords if word.is_decrypted_by(legend))
    missed = hits < session.word_count
    if hits > 0 or not missed:
        text = session.decode(legend)
        if session.results.add(text) and missed:
            session.partial_hits[text] = hits


# ============================================================================
# 7. WORD-BLOCK ATTACK
# ============================================================================

def word_block_attack(
    session: QuipSession,
    legend: Legend | None = None,
    time_limit: float = DEFAULT_TIME_LIMIT,
    clock: Clock = time.monotonic,
) -> bool:
    """
    Depth-first search over cipherwords, one candidate word at a time.

    At each cipherword, every candidate the current legend allows (holes
    permitted) is folded into a copy of the legend; the search then moves
    on to the next cipherword with that copy. A candidate that completes
    the last cipherword gives a solution. Branches whose pairs conflict
    are dropped as soon as the conflict appears.

    Args:
        session: Session with candidate lists loaded.
        legend: Known pairs. Never modified.
        time_limit: Seconds allowed. Non-positive fails straight away.
        clock: Monotonic time source.

    Returns:
        True if the whole search space was covered, False on timeout.
        Solutions found before a timeout stay in `session.results`.
    """
    if time_limit is None or time_limit <= 0:
        session.timed_out = True
        return False
    start = Legend() if legend is None else legend
    deadline = clock() + time_limit
    try:
        _word_block_search(session, 0, start, deadline, clock)
    except SearchTimeout:
        session.timed_out = True
        return False
    return True


def _word_block_search(
    session: QuipSession,
    index: int,
    legend: Legend,
    deadline: float,
    clock: Clock,
) -> None:
    word = session.cipherwords[index]
    last = index == session.word_count - 1

    for candidate in word.candidates:
        if can_map_text(word.text, legend, candidate, False):
            if last:
                extended = legend.copy()
                if extended.incorporate(word.text, candidate):
                    session.record(extended)
            else:
                _check_deadline(deadline, clock)
                extended = legend.copy()
                if extended.incorporate(word.text, candidate):
                    _word_block_search(session, index + 1, extended, deadline, clock)
        _check_deadline(deadline, clock)


# ============================================================================
# 8. WORD LIST, TOY ENCRYPTOR AND RUN LOG
# ============================================================================

def iter_dictionary_words(lines: Iterable[str]) -> Iterator[str]:
    """
    Yield one word per word-list line.

    Leading non-letters are skipped; the word is the following run of
    letters, apostrophes and hyphens. Lines without a letter are ignored.
    """
    for line in lines:
        match = _DICT_WORD_RE.search(line[:MAX_DICTIONARY_LINE])
        if match:
            yield match.group(0)


def load_word_list(filepath: str | Path = DEFAULT_WORDS_FILE) -> list[str]:
    """Read a one-word-per-line word list."""
    path = Path(filepath)
    with open(path, encoding="utf-8", errors="replace") as f:
        return list(iter_dictionary_words(f))


def make_encrypting_legend(rng: np.random.Generator | None = None) -> Legend:
    """
    A full legend with no letter standing for itself.

    Starts from the identity, applies ENCRYPT_SHUFFLES random swaps and
    then swaps away any fixed points.
    """
    if rng is None:
        rng = np.random.default_rng()
    n = len(ALPHABET)
    slots = list(ALPHABET)
    for _ in range(ENCRYPT_SHUFFLES):
        ia = int(rng.integers(0, n))
        ib = (ia + int(rng.integers(0, n))) % n
        slots[ia], slots[ib] = slots[ib], slots[ia]
    for i in range(n):
        while slots[i] == ALPHABET[i]:
            ib = (i + int(rng.integers(0, n))) % n
            if ib == i:
                ib = (i + 1) % n
            slots[i], slots[ib] = slots[ib], slots[i]
    return Legend.from_mapping(dict(zip(ALPHABET, slots)))


def encrypt_plaintext(text: str, rng: np.random.Generator | None = None) -> dict:
    """
    Turn a plaintext into a puzzle.

    Returns dict with:
        ciphertext: the encrypted text (case and punctuation kept)
        legend: the cipher -> plain legend that solves it
        hint: (cipher_char, plain_char) for one letter of the text

    Raises:
        InputError: If the text has no letters.
    """
    if rng is None:
        rng = np.random.default_rng()
    positions = [i for i, c in enumerate(text) if _is_letter(c)]
    if not positions:
        raise InputError("there are no letters to encrypt")
    legend = make_encrypting_legend(rng)
    plain = text[int(rng.choice(positions))].lower()
    return {
        "ciphertext": legend.plain_to_cipher(text),
        "legend": legend,
        "hint": (legend.plain_to_cipher_char(plain), plain),
    }


def log_run(message: str, filepath: str | Path = DEFAULT_LOG_FILE) -> None:
    """Append a timestamped line, tagged with the login name, to the run log."""
    try:
        user = getpass.getuser()
    except (KeyError, OSError):
        user = "unknown"
    with open(Path(filepath), "a", encoding="utf-8") as f:
        f.write(f"{time.ctime()} ({user}) {message}\n")


# ============================================================================
# 9. OUTPUT UTILS — Formatting, plots
# ============================================================================

def format_solutions(
    results: Iterable[str],
    html_output: bool = False,
    runtime_us: int | None = None,
) -> str:
    """
    Render solutions one per line, or the no-solution message.

    Plain lines read "[<runtime> us] Solution: <text>"; HTML lines are the
    escaped text followed by <BR>.
    """
    texts = list(results)
    if not texts:
        return NO_SOLUTION_MESSAGE + ("<BR>" if html_output else "")
    if html_output:
        return "\n".join(f"{html.escape(t, quote=False)}<BR>" for t in texts)
    prefix = f"[{runtime_us} us] " if runtime_us is not None else ""
    return "\n".join(f"{prefix}Solution: {t}" for t in texts)


def format_rankings(rankings: Sequence[Sequence[str]]) -> str:
    """One "c : xyz" line per cipher letter that has candidates."""
    return "\n".join(
        f"{ALPHABET[i]} : {''.join(ranked)}" for i, ranked in enumerate(rankings) if ranked
    )


def format_cross_match(data: CharacterFrequencyData) -> str:
    """
    Cross-match table: plain letters across the top, cipher letters down
    the side. Fits in 80 columns.
    """
    lines = ["   " + "  ".join(ALPHABET)]
    for i, row in enumerate(data.cross_match):
        lines.append(f"{ALPHABET[i]} " + "".join(f"{int(n):2d} " for n in row).rstrip())
    return "\n".join(lines)


def plot_cross_match(
    data: CharacterFrequencyData,
    save_path: str | Path | None = None,
) -> None:
    """
    Heatmap of the cross-match matrix.

    Requires matplotlib (optional dependency).
    """
    try:
        import matplotlib.pyplot as plt
    except ImportError:
        warnings.warn("matplotlib not available; skipping plot")
        return

    fig, ax = plt.subplots(figsize=(7, 6))
    im = ax.imshow(data.cross_match, cmap="viridis")
    ax.set_xticks(range(len(ALPHABET)))
    ax.set_xticklabels(list(ALPHABET), fontsize=7)
    ax.set_yticks(range(len(ALPHABET)))
    ax.set_yticklabels(list(ALPHABET), fontsize=7)
    ax.set_xlabel("Plain letter")
    ax.set_ylabel("Cipher letter")
    ax.set_title("Cipher/plain cross-matches")
    fig.colorbar(im, ax=ax, label="Count")

    plt.tight_layout()
    if save_path:
        plt.savefig(str(save_path), dpi=150, bbox_inches="tight")
        plt.close(fig)
    else:
        plt.show()


# ============================================================================
# SELF-TEST — Run when executed directly
# ============================================================================

def _self_test() -> None:
    """Encrypt a sentence, then solve it back with both attacks."""
    print("=== quip.py self-test ===\n")

    plaintext = "the quick brown fox jumps over the lazy dog"
    rng = np.random.default_rng(42)
    puzzle = encrypt_plaintext(plaintext, rng)
    cipher_char, plain_char = puzzle["hint"]
    print(f"Plaintext:  {plaintext}")
    print(f"Ciphertext: {puzzle['ciphertext']}")
    print(f"Hint:       {cipher_char}={plain_char}\n")
    print(puzzle["legend"].format())
    assert puzzle["legend"].cipher_to_plain(puzzle["ciphertext"]) == plaintext, "round-trip FAILED"
    print("\nRound-trip: PASS")

    words = plaintext.split() + ["cat", "dad", "noon", "quirk", "brawn", "lucky"]

    session = QuipSession.from_ciphertext(puzzle["ciphertext"])
    session.load_dictionary(words)
    for cw in session.cipherwords:
        print(f"  {cw.text:<8} {len(cw.candidates):>3} candidates")

    hints = Legend.create(cipher_char, plain_char)
    finished = word_block_attack(session, hints, time_limit=5)
    print(f"\nWord-block attack finished={finished}, {len(session.results)} solution(s)")
    assert plaintext in session.results, "word-block attack missed the plaintext"

    session = QuipSession.from_ciphertext(puzzle["ciphertext"])
    session.load_dictionary(words)
    finished = frequency_attack(session, hints, time_limit=5)
    print(f"Frequency attack finished={finished}, {len(session.results)} solution(s)")
    print(format_rankings(session.rankings))
    if finished:
        assert plaintext in session.results, "frequency attack missed the plaintext"

    print("\n=== Self-test complete ===")


if __name__ == "__main__":
    _self_test()
