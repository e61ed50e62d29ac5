"""
Text rendering of BANK profiles for the calibration harness.

Plain formatting only; nothing here affects inference.
"""

from typing import List, Mapping

from game.bank.core import (
    ARCHETYPES,
    CorkUnlock,
    EventKind,
    FeatureContribution,
    InferenceResult,
    LevelEnd,
    PourAttempt,
)
from game.bank.telemetry import Run, run_level


def format_percent(x: float) -> str:
    return f"{round(x * 100)}%"


def top_two(probabilities: Mapping[str, float]) -> str:
    """'Blueprint 40% / Action 30%' - the two likeliest archetypes."""
    ranked = sorted(ARCHETYPES, key=lambda k: probabilities.get(k, 0.0), reverse=True)
    return " / ".join(
        f"{k} {format_percent(probabilities.get(k, 0.0))}" for k in ranked[:2]
    )


def format_probabilities(probabilities: Mapping[str, float]) -> str:
    """'B:25%  A:25%  N:25%  K:25%'"""
    return "  ".join(
        f"{k[0]}:{format_percent(probabilities.get(k, 0.0))}" for k in ARCHETYPES
    )


def format_evidence(evidence: List[FeatureContribution]) -> str:
    if not evidence:
        return "-"
    return " | ".join(f"{e.feature_id} ({e.note})" for e in evidence)


def run_header(index: int, run: Run) -> str:
    """One-line summary of a run: level, moves, outcome, unlock method."""
    level = run_level(run)
    level_end = next((e for e in run if isinstance(e, LevelEnd)), None)
    unlock = next((e for e in run if isinstance(e, CorkUnlock)), None)

    moves = level_end.moves if level_end is not None and level_end.moves is not None else "-"
    result = level_end.result if level_end is not None and level_end.result else "-"
    line = f"Run {index + 1}  level:{level if level is not None else '?'}  moves:{moves}  end:{result}"
    if unlock is not None and unlock.method:
        line += f"  unlock:{unlock.method}"
    return line


def run_signals(run: Run) -> str:
    """Raw signal counts for a run, independent of the engine's scaling."""
    reveals = sum(1 for e in run if e.kind is EventKind.UNKNOWN_REVEAL)
    warnings = sum(1 for e in run if e.kind is EventKind.INSTABILITY_WARNING)
    attempts = [e for e in run if isinstance(e, PourAttempt)]
    illegal = sum(1 for e in attempts if e.legal is False)
    rate = illegal / len(attempts) if attempts else 0.0
    return f"Signals: reveals={reveals}, warnings={warnings}, illegalRate={format_percent(rate)}"


def render_profile(result: InferenceResult, include_diagnostics: bool = True) -> str:
    """
    Multi-line summary of a profile.

    Args:
        result: Profile to render
        include_diagnostics: Append the diagnostics block

    Returns:
        Formatted string for console display
    """
    output = []
    output.append(
        f"Top: {top_two(result.probabilities)}   "
        f"confidence: {format_percent(result.confidence)}"
    )
    output.append(format_probabilities(result.probabilities))
    output.append(f"Evidence: {format_evidence(result.evidence)}")

    if include_diagnostics and result.diagnostics is not None:
        d = result.diagnostics
        output.append("Diagnostics:")
        output.append(f"  meaningful events: {d.meaningful_events}")
        output.append(
            f"  pour attempts: {d.total_pour_attempts} "
            f"({d.illegal_pour_attempts} illegal, {format_percent(d.illegal_rate)})"
        )
        opp = d.opportunities
        output.append(
            f"  opportunities: unknowns={opp.sealed_unknown_count}, "
            f"corked={opp.corked_count}, instability={'on' if opp.instability_enabled else 'off'}"
        )
        output.append(f"  level band: {d.level_band}")

    return "\n".join(output)
