"""
VIBELOG — Daily Well-Being Scoring Engine

Turns short free-text journal notes into a per-day score and a smoothed
trend. Deterministic and stateless; notes are read, never stored.

Architecture:
    config      — Score parameters, note range, report window (single source of truth)
    models      — Note, Category, ValuedNote, DayAggregate, DayScore
    classifier  — Text → (category, value): keyword rules, model adapter
    scoring     — Sigmoid day aggregation and EMA smoothing
    dates       — Local calendar-day keys, trailing windows, day buckets
    pipeline    — Orchestration: load → valuate → group → score → smooth → report

Public API:
    analyze(filepath)        → CLI mode
    analyze_data(records)    → UI / backend mode
    generate_report(result)  → formatted report
"""

from vibelog.pipeline import analyze, analyze_data, analyze_notes_async, generate_report

__version__ = "0.1.0"

__all__ = ["analyze", "analyze_data", "analyze_notes_async", "generate_report"]
