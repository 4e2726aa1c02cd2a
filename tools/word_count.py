#!/usr/bin/env python3
"""
Count words, lines and characters in a manuscript and save a short report.

Example usages:
  python word_count.py chapter1.txt
  python word_count.py chapter1.txt --save_dir ~/writing/novel --output_tracking /tmp/run.txt
"""

import argparse
import sys
from datetime import datetime
from pathlib import Path


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(description="Count words in a text file.")
    parser.add_argument("input_file", help="File containing the text to analyze")
    parser.add_argument("--save_dir", default=".", help="Directory to save the report (default: current directory)")
    parser.add_argument("--verbose", action="store_true", help="Print the ten most frequent words")
    parser.add_argument("--output_tracking", default=None,
                        help="File that receives the paths of files this tool creates")
    return parser.parse_args(argv)


def count(text):
    words = text.split()
    return {
        "words": len(words),
        "lines": len(text.splitlines()),
        "characters": len(text),
        "vocabulary": len({w.lower().strip(".,;:!?\"'()") for w in words}),
    }


def write_report(args, stats):
    stem = Path(args.input_file).stem
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    save_dir = Path(args.save_dir).expanduser()
    save_dir.mkdir(parents=True, exist_ok=True)
    report = save_dir / f"count_{stem}_{timestamp}.txt"

    lines = [
        "Word Count Report",
        "=================",
        "",
        f"Analysis of file: {args.input_file}",
        f"Generated on: {datetime.now():%Y-%m-%d %H:%M:%S}",
        "",
    ]
    lines += [f"{name.capitalize()}: {value}" for name, value in stats.items()]
    report.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return report.resolve()


def main(argv=None):
    args = parse_arguments(argv)
    try:
        text = Path(args.input_file).read_text(encoding="utf-8")
    except OSError as exc:
        print(f"Error reading {args.input_file}: {exc}", file=sys.stderr)
        return 1

    stats = count(text)
    print(f"Counts for text file: {args.input_file}")
    for name, value in stats.items():
        print(f"{name}: {value}")

    if args.verbose:
        freq = {}
        for word in text.lower().split():
            freq[word] = freq.get(word, 0) + 1
        top = sorted(freq.items(), key=lambda item: (-item[1], item[0]))[:10]
        print("Most frequent: " + ", ".join(f"{w} ({n})" for w, n in top))

    report = write_report(args, stats)
    print(f"Report saved to: {report}")

    if args.output_tracking:
        with open(args.output_tracking, "a", encoding="utf-8") as fh:
            fh.write(f"{report}\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
