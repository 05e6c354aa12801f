"""
---
version: 0.1.0
created: 2026-10-18
updated: 2026-10-18
---

quip_cli.py — Command line for the cryptoquip solver.

Decode mode splits the ciphertext into cipherwords, filters a word list
against them and runs the word-block attack, the frequency attack, or both.
Encode mode scrambles a plaintext into a new puzzle.

Sections:
  1. Decode — load words, apply hints, run the attacks, print solutions
  2. Encode — random legend, ciphertext and one hint

Usage:
    python3 quip_cli.py 'Fict O ncc bivteclnbklzn O lcpji' -kb=t      # word-block
    python3 quip_cli.py 'Fict O ncc bivteclnbklzn O lcpji' -kb=t -F   # frequency
    python3 quip_cli.py 'xyyx' -k x=a -f /usr/share/dict/words -T 60
    python3 quip_cli.py -e 'the cat sat on the mat' -c -l             # make a puzzle
"""

from __future__ import annotations

import argparse
import shlex
import sys
import time
import warnings
from pathlib import Path
from typing import Sequence

import numpy as np

from quip import (
    DEFAULT_LOG_FILE,
    DEFAULT_TIME_LIMIT,
    DEFAULT_WORDS_FILE,
    InputError,
    Legend,
    QuipSession,
    analyze,
    clamp_time_limit,
    encrypt_plaintext,
    format_cross_match,
    format_rankings,
    format_solutions,
    frequency_attack,
    load_word_list,
    log_run,
    plot_cross_match,
    word_block_attack,
)


def parse_hint(value: str) -> tuple[str, str]:
    """argparse type for "-k a=b": cipher letter a stands for plain letter b."""
    cipher_char, sep, plain_char = value.partition("=")
    if not sep or len(cipher_char) != 1 or len(plain_char) != 1:
        raise argparse.ArgumentTypeError(f"expected a hint like a=b, got {value!r}")
    return cipher_char, plain_char


def _error(message: str, html_output: bool = False) -> None:
    suffix = "<BR>" if html_output else ""
    print(f"*** Error *** {message}{suffix}", file=sys.stderr)


def _log(filepath: Path | None, message: str) -> None:
    if filepath is None:
        return
    try:
        log_run(message, filepath)
    except OSError as e:
        warnings.warn(f"could not write run log {filepath}: {e}")


# ============================================================================
# 1. DECODE
# ============================================================================

def run_decode(args: argparse.Namespace) -> int:
    time_limit = clamp_time_limit(args.time_limit)
    _log(args.log, f"starting: quip='{args.text}' time={time_limit}")

    try:
        legend = Legend.from_hints(args.known)
        session = QuipSession.from_ciphertext(args.text)
        session.load_dictionary(load_word_list(args.words))
    except (InputError, OSError) as e:
        _error(str(e), args.html)
        return 2

    if args.show_counts or args.plot:
        data = analyze(session.cipherwords, legend)
        if args.show_counts:
            print(format_cross_match(data))
            print()
        if args.plot:
            plot_cross_match(data, save_path=args.plot)

    runtime_us = None
    if args.frequency:
        frequency_attack(session, legend, time_limit=time_limit, lenient=args.lenient)
        print("frequency attack:")
        print(format_rankings(session.rankings))
        for text, hits in session.partial_hits.items():
            print(f"[{hits}/{session.word_count}]: '{text}'")

    # A frequency attack that ran out of time ends the search.
    if (args.word_block or not args.frequency) and not session.timed_out:
        t0 = time.perf_counter()
        word_block_attack(session, legend, time_limit=time_limit)
        runtime_us = int((time.perf_counter() - t0) * 1e6)

    print(format_solutions(session.results, html_output=args.html, runtime_us=runtime_us))
    if session.timed_out:
        _error(f"the search ran out of time ({time_limit} s) before it could finish", args.html)

    _log(args.log, f"terminating: quip='{args.text}'")
    return 0 if session.results else 1


# ============================================================================
# 2. ENCODE
# ============================================================================

def run_encode(args: argparse.Namespace) -> int:
    rng = np.random.default_rng(args.seed)
    try:
        puzzle = encrypt_plaintext(args.text, rng)
    except InputError as e:
        _error(str(e))
        return 2

    if args.show_legend:
        print("Generated encryption legend:")
        for cipher_char, plain_char in puzzle["legend"].assigned().items():
            print(f"   {cipher_char} = {plain_char}")
        print()

    cipher_char, plain_char = puzzle["hint"]
    if args.command_line:
        print(f"quip {shlex.quote(puzzle['ciphertext'])} -k{cipher_char}={plain_char}")
    else:
        print(puzzle["ciphertext"])
        print(f" {cipher_char}={plain_char}")
    return 0


# ============================================================================
# MAIN
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quip",
        description="Solve (or make) cryptoquip substitution puzzles",
    )
    parser.add_argument("text", nargs="?",
                        help="Ciphertext to solve, or plaintext with -e")
    parser.add_argument("-k", "--known", type=parse_hint, action="append", default=[],
                        metavar="C=P", help="Known letter: cipher C is plain P (repeatable)")
    parser.add_argument("-f", "--words", type=Path, default=DEFAULT_WORDS_FILE,
                        help=f"Word list, one word per line (default: {DEFAULT_WORDS_FILE})")
    parser.add_argument("-T", "--time-limit", type=int, default=DEFAULT_TIME_LIMIT,
                        help=f"Search budget in seconds (default: {DEFAULT_TIME_LIMIT})")
    parser.add_argument("-F", "--frequency", action="store_true",
                        help="Run the frequency attack")
    parser.add_argument("-W", "--word-block", action="store_true",
                        help="Run the word-block attack (default when -F is not given)")
    parser.add_argument("--lenient", action="store_true",
                        help="Frequency attack also keeps legends that decode only some words")
    parser.add_argument("-H", "--html", action="store_true",
                        help="Print solutions as HTML lines")
    parser.add_argument("--show-counts", action="store_true",
                        help="Print the cipher/plain cross-match table")
    parser.add_argument("--plot", type=Path, default=None,
                        help="Save a cross-match heatmap to this file (needs matplotlib)")
    parser.add_argument("--log", type=Path, nargs="?", const=DEFAULT_LOG_FILE, default=None,
                        help=f"Append start/end lines to a run log (default: {DEFAULT_LOG_FILE})")
    parser.add_argument("-e", "--encode", action="store_true",
                        help="Encrypt TEXT into a new puzzle")
    parser.add_argument("-c", "--command-line", action="store_true",
                        help="Encode: print the puzzle as a quip command (implies -e)")
    parser.add_argument("-l", "--show-legend", action="store_true",
                        help="Encode: print the generated legend (implies -e)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Encode: random seed")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.text is None:
        parser.error("no text given")

    if args.encode or args.command_line or args.show_legend:
        return run_encode(args)
    return run_decode(args)


if __name__ == "__main__":
    sys.exit(main())
