#!/usr/bin/env python3
"""Replay intake scenarios through the IntakeEngine in-process.

Runs every scenario from ``tests/scenarios.py`` (or one picked with ``-s``)
against the SDK directly, printing each question, the raw answer, the
canonical answer and the matching tier, then the decision.

Usage::

    # All scenarios, summary table only
    python scripts/simulate_intake.py

    # One scenario with the full transcript
    python scripts/simulate_intake.py -s "Xeljanz" -v

    # List scenarios
    python scripts/simulate_intake.py --list
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

# ---------------------------------------------------------------------------
# Ensure project root is on sys.path so we can import both the SDK and the
# shared scenarios.
# ---------------------------------------------------------------------------
_SCRIPT_DIR = Path(__file__).resolve().parent
_REPO_ROOT = _SCRIPT_DIR.parent
sys.path.insert(0, str(_REPO_ROOT / "tests"))
sys.path.insert(0, str(_REPO_ROOT / "src"))

from scenarios import SCENARIOS  # noqa: E402

from priorauth_rulesets.engine import IntakeEngine  # noqa: E402
from priorauth_rulesets.models.session import (  # noqa: E402
    ClarificationStep,
    DecisionStep,
    QuestionStep,
)
from priorauth_rulesets.ruleset import RulesetStore  # noqa: E402

console = Console()

_OUTCOME_STYLE = {
    "approve": "green",
    "deny": "red",
    "documentation_required": "yellow",
}


async def run_scenario(engine: IntakeEngine, scenario: dict, verbose: bool) -> tuple[str | None, int]:
    """Drive one scenario; return (outcome or None, answers submitted)."""
    summary = await engine.create_session()
    sid = summary.session_id

    step = await engine.submit_intake_field(sid, "drug_name", scenario["drug"])
    if not isinstance(step, QuestionStep):
        console.print(f"  [red]Drug not resolved:[/] {scenario['drug']!r} ({step.type})")
        return None, 0

    submitted = 0
    for answer in scenario["answers"]:
        question = step.question
        step = await engine.submit_answer(sid, answer)
        submitted += 1
        if verbose:
            console.print(f"  [dim]Q:[/] {question.question} ({question.qid}) [{question.question_type}]")
            console.print(f"  [dim]A:[/] {answer}")
        if isinstance(step, ClarificationStep):
            console.print(f"  [yellow]Clarification ({step.reason}):[/] {step.message}")
            return None, submitted
        if isinstance(step, DecisionStep):
            break

    if verbose:
        for record in (await engine.get_session_summary(sid)).history:
            console.print(
                f"    [dim]{record.qid}:[/] {record.canonical_answer!r} "
                f"[dim]({record.tier})[/]"
            )

    if not isinstance(step, DecisionStep):
        console.print(f"  [red]Ran out of answers at[/] {step.question.qid}")
        return None, submitted

    decision = step.decision
    if verbose:
        style = _OUTCOME_STYLE.get(decision.outcome, "white")
        console.print(f"  → [{style}]{decision.outcome}[/]: {decision.reason}")
        console.print(f"    {decision.message}")
    return decision.outcome, submitted


async def run(selected: list[dict], verbose: bool) -> int:
    store = RulesetStore()
    store.load()
    engine = IntakeEngine(store)

    table = Table(title="Intake Scenarios", show_lines=False)
    table.add_column("#", style="dim", width=4)
    table.add_column("Scenario", min_width=36)
    table.add_column("Answers", width=8)
    table.add_column("Expected", width=24)
    table.add_column("Actual", width=24)
    table.add_column("Result", width=6)

    failures = 0
    for i, scenario in enumerate(selected, 1):
        if verbose:
            console.rule(f"[bold cyan]{scenario['name']}")
        outcome, submitted = await run_scenario(engine, scenario, verbose)
        ok = outcome == scenario["expected"]
        failures += not ok
        table.add_row(
            str(i),
            scenario["name"],
            str(submitted),
            scenario["expected"],
            outcome or "-",
            "[green]OK[/]" if ok else "[red]FAIL[/]",
        )

    console.print()
    console.print(table)
    console.print(f"\n  {len(selected) - failures}/{len(selected)} scenarios passed\n")
    return 1 if failures else 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Replay intake scenarios through the IntakeEngine in-process.",
    )
    parser.add_argument(
        "-s", "--scenario",
        help="Only run scenarios whose name contains this text (case-insensitive)",
    )
    parser.add_argument("--list", action="store_true", help="List scenarios and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print full transcripts")
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s [%(name)s] %(message)s")

    if args.list:
        for i, s in enumerate(SCENARIOS, 1):
            print(f"  {i:2d}. {s['name']}")
        sys.exit(0)

    selected = SCENARIOS
    if args.scenario:
        needle = args.scenario.lower()
        selected = [s for s in SCENARIOS if needle in s["name"].lower()]
        if not selected:
            print(f"No scenario matches {args.scenario!r}")
            sys.exit(2)

    sys.exit(asyncio.run(run(selected, args.verbose)))


if __name__ == "__main__":
    main()
