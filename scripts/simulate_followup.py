#!/usr/bin/env python3
"""Simulate patients walking a follow-up catalog end-to-end.

Unlocks an interview through the passcode gate (with a mock verifier),
answers every question with random valid options, submits the summary to
a mock submission service, and prints what happened with rich.

Usage::

    # One verbose walk through the treatment follow-up
    python scripts/simulate_followup.py

    # Adverse-event catalog, fixed seed
    python scripts/simulate_followup.py -c adverse_event --seed 7

    # 200 quiet walks with a results table
    python scripts/simulate_followup.py -n 200 -q

    # Undo the last two answers of each walk and re-answer them
    python scripts/simulate_followup.py --undo 2

    # List available catalogs
    python scripts/simulate_followup.py --list-catalogs
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import random
import sys
from collections import Counter
from dataclasses import dataclass
from pathlib import Path

# ---------------------------------------------------------------------------
# Ensure the SDK is importable when running from a source checkout.
# ---------------------------------------------------------------------------
_SCRIPT_DIR = Path(__file__).resolve().parent
_REPO_ROOT = _SCRIPT_DIR.parent
sys.path.insert(0, str(_REPO_ROOT / "src"))

from rich.console import Console  # noqa: E402
from rich.table import Table  # noqa: E402

from followup_rules.catalog import CatalogStore  # noqa: E402
from followup_rules.gate import FollowUpGate  # noqa: E402
from followup_rules.interfaces import SubmissionService, VerificationService  # noqa: E402
from followup_rules.interview import InterviewController  # noqa: E402
from followup_rules.models.question import Catalog  # noqa: E402
from followup_rules.models.response import CaseContext  # noqa: E402
from followup_rules.models.session import (  # noqa: E402
    SubmissionAck,
    VerificationFailure,
    VerificationResult,
)
from followup_rules.models.summary import FollowUpSummary  # noqa: E402
from followup_rules.render import SummaryRenderer  # noqa: E402

_DEFAULT_CATALOG = "treatment_followup"
_PASSCODE = "4821"

# Pool of free-text notes for random walks.
_RANDOM_NOTES_POOL = [
    "",
    "Started feeling better after the third day.",
    "Mild headache in the mornings.",
    "Could not afford the second pack.",
    "Please call in the evening.",
]


# ---------------------------------------------------------------------------
# Mock collaborators
# ---------------------------------------------------------------------------

class MockVerifier(VerificationService):
    """Accepts exactly one passcode."""

    async def verify(self, code: str) -> VerificationResult:
        if code == _PASSCODE:
            return VerificationResult.success()
        return VerificationResult.failed(VerificationFailure.INVALID_CODE)


class MockSubmission(SubmissionService):
    """Keeps every submitted summary; escalates urgent cases."""

    def __init__(self) -> None:
        self.received: list[FollowUpSummary] = []

    async def submit(self, summary: FollowUpSummary, consent: bool) -> SubmissionAck:
        self.received.append(summary)
        return SubmissionAck(
            case_id=summary.case_id or f"SIM-{len(self.received)}",
            escalated=summary.is_urgent,
        )


# ---------------------------------------------------------------------------
# Walk
# ---------------------------------------------------------------------------

@dataclass
class WalkResult:
    run: int
    path: list[str]
    complete: bool
    urgent: bool
    escalated: bool


class RichPrinter:
    """Verbosity-aware console output using rich."""

    def __init__(self, quiet: bool) -> None:
        self.console = Console()
        self.quiet = quiet

    def header(self, text: str) -> None:
        if not self.quiet:
            self.console.rule(f"[bold]{text}")

    def qa(self, ctl: InterviewController, qid: str) -> None:
        if self.quiet:
            return
        question = ctl.catalog.get(qid)
        raw = ctl.responses[qid].selected
        flag = " [red]![/]" if any(
            r.qid == qid for r in ctl.urgent_reasons()
        ) else ""
        self.console.print(f"  [dim]Q:[/] {question.prompt} ({qid}, {question.kind})")
        self.console.print(f"  [dim]A:[/] {raw}{flag}")

    def undo(self, qid: str | None) -> None:
        if not self.quiet:
            self.console.print(f"  [yellow]↶[/] undo {qid}")

    def text(self, rendered: str) -> None:
        if not self.quiet:
            self.console.print(rendered, markup=False)


def _answer_current(ctl: InterviewController, rng: random.Random, printer: RichPrinter) -> str:
    question = ctl.current_question()
    if question.is_multi:
        for opt in rng.sample(question.options, rng.randint(1, min(3, len(question.options)))):
            ctl.answer(question.id, opt.value)
    else:
        ctl.answer(question.id, rng.choice(question.options).value)
    if question.text_prompt and rng.random() < 0.3:
        ctl.set_notes(question.id, rng.choice(_RANDOM_NOTES_POOL[1:]))
    printer.qa(ctl, question.id)
    return question.id


async def run_walk(
    catalog: Catalog,
    run: int,
    rng: random.Random,
    printer: RichPrinter,
    submission: MockSubmission,
    renderer: SummaryRenderer,
    undo: int,
) -> WalkResult:
    context = CaseContext(
        case_id=f"SIM-{run:04d}",
        condition=rng.choice([None, "hypertension", "asthma"]),
    )
    gate = FollowUpGate(catalog, MockVerifier(), context=context)
    gate.capture.paste_at(0, _PASSCODE)
    ctl = await gate.verify_pending()
    assert ctl is not None, "mock passcode was refused"

    printer.header(f"Run {run}: {catalog.name} (condition={context.condition})")
    path: list[str] = []
    while ctl.current_question() is not None:
        path.append(_answer_current(ctl, rng, printer))

    for _ in range(undo):
        qid = ctl.undo_last()
        printer.undo(qid)
        if qid is None:
            break
        path.remove(qid)
    while ctl.current_question() is not None:
        path.append(_answer_current(ctl, rng, printer))
    for question in ctl.optional_questions():
        if rng.random() < 0.5:
            ctl.answer(question.id, rng.choice(question.options).value)
            printer.qa(ctl, question.id)
            path.append(question.id)

    ctl.set_additional_notes(rng.choice(_RANDOM_NOTES_POOL))
    ctl.set_consent(True)
    complete = ctl.is_complete()
    summary = ctl.build_summary()
    ack = await ctl.submit(submission) if complete else None
    printer.text(renderer.render_summary(summary))

    return WalkResult(
        run=run,
        path=path,
        complete=complete,
        urgent=summary.is_urgent,
        escalated=bool(ack and ack.escalated),
    )


def print_results(console: Console, results: list[WalkResult]) -> None:
    """Print a table of all walks plus path-length statistics."""
    console.print()
    console.rule("[bold]Walk Summary")

    table = Table(show_lines=False)
    table.add_column("#", style="dim", width=5)
    table.add_column("Steps", width=6)
    table.add_column("Complete", width=9)
    table.add_column("Urgent", width=7)
    table.add_column("Path", min_width=40)
    for r in results:
        table.add_row(
            str(r.run),
            str(len(r.path)),
            "[green]yes[/]" if r.complete else "[red]no[/]",
            "[red]yes[/]" if r.urgent else "no",
            " > ".join(r.path),
        )
    console.print(table)

    lengths = Counter(len(r.path) for r in results)
    console.print(f"  Total:      {len(results)}")
    console.print(f"  Incomplete: {sum(1 for r in results if not r.complete)}")
    console.print(f"  Urgent:     {sum(1 for r in results if r.urgent)}")
    console.print(f"  Path lengths: {dict(sorted(lengths.items()))}")


async def run_simulation(args: argparse.Namespace) -> int:
    store = CatalogStore()
    store.load()
    catalog = store.get(args.catalog)

    rng = random.Random(args.seed)
    printer = RichPrinter(quiet=args.quiet)
    submission = MockSubmission()
    renderer = SummaryRenderer()

    results = [
        await run_walk(catalog, run, rng, printer, submission, renderer, args.undo)
        for run in range(1, args.runs + 1)
    ]
    print_results(printer.console, results)
    return 0 if all(r.complete for r in results) else 1


def list_catalogs() -> None:
    """Print all shipped catalogs and exit."""
    store = CatalogStore()
    store.load()
    print("Available catalogs:")
    print()
    for i, catalog in enumerate(store.catalogs.values(), 1):
        print(f"  {i:2d}. {catalog.name:<22s} v{catalog.version} ({len(catalog.questions)} questions)")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Simulate patients walking a follow-up catalog end-to-end.",
    )
    parser.add_argument(
        "-c", "--catalog",
        default=_DEFAULT_CATALOG,
        help=f"Catalog to walk (default: {_DEFAULT_CATALOG})",
    )
    parser.add_argument(
        "--list-catalogs",
        action="store_true",
        help="List all shipped catalogs and exit",
    )
    parser.add_argument(
        "-n", "--runs",
        type=int,
        default=1,
        help="Number of random walks (default: 1)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducible walks",
    )
    parser.add_argument(
        "--undo",
        type=int,
        default=0,
        help="Undo this many answers at the end of each walk and re-answer",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only print the results table",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Python logging level for SDK loggers (default: WARNING)",
    )
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING))

    if args.list_catalogs:
        list_catalogs()
        sys.exit(0)

    sys.exit(asyncio.run(run_simulation(args)))


if __name__ == "__main__":
    main()
