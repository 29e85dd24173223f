#!/usr/bin/env python3
"""Summarize a replay run: solve rate, refocus count and mastery per attempt."""

import json
from pathlib import Path


def analyze_results(path: str = "data/results.json"):
    results_path = Path(path)

    if not results_path.exists():
        print("No results found. Run python -m mathtutor.main first.")
        return

    results = json.loads(results_path.read_text())
    if not results:
        print("No attempts recorded yet.")
        return

    print(f"\n{'='*60}")
    print(f"REPLAY RESULTS ({len(results)} attempts)")
    print(f"{'='*60}\n")

    print(f"{'ID':<12} {'Type':<14} {'Grade':<8} {'Tries':<6} {'Hints':<6} {'Mastery':<8}")
    print("-" * 60)

    solved = 0
    refocused = 0
    for result in results:
        levels = result.get("mastery", {}).values()
        level = min(levels) if levels else "-"
        if result["solved"]:
            solved += 1
            status = f"\033[92m{level}\033[0m"  # Green
        else:
            status = f"\033[91m{level}\033[0m"  # Red
        if "refocus" in result.get("modes", []):
            refocused += 1

        print(
            f"{result['id'][:12]:<12} {result['problem_type']:<14} {result['grade']:<8} "
            f"{result['attempts']:<6} {result['hints_used']:<6} {status}"
        )

    print("-" * 60)
    print("\nStatistics:")
    print(f"  Solved:     {solved}/{len(results)}")
    print(f"  Refocused:  {refocused}")
    print(f"  Avg tries:  {sum(r['attempts'] for r in results) / len(results):.2f}")
    print(f"\n{'='*60}\n")


if __name__ == "__main__":
    analyze_results()
