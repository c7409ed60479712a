#!/usr/bin/env python
"""
Score a CSV of scanned answer sheets and report item statistics.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from exam_engine.analysis.config import DEFAULT_MIN_SAMPLE_SIZE, AnalysisConfig
from exam_engine.analysis.data_models import AnalysisResult
from exam_engine.analysis.engine import analyze, analyze_by_variant
from exam_engine.core.data import load_answer_sheets, load_questions
from exam_engine.core.exceptions import InvalidConfigurationError
from exam_engine.integrity.analyzer import analyze_integrity
from exam_engine.integrity.config import (
    DEFAULT_SIGNIFICANCE_LEVEL,
    IntegrityConfig,
)
from exam_engine.integrity.data_models import IntegrityReport
from exam_engine.reporting.export import (
    analysis_to_frame,
    student_scores_to_frame,
    write_csv,
)
from exam_engine.reporting.percentile import (
    PercentileRange,
    student_scores_from_responses,
    summarize_students,
)
from exam_engine.scoring.normalizer import score_submissions
from exam_engine.variants.serialization import variant_from_json

PROJECT_DIR = Path(__file__).parent.parent.absolute()
DEFAULT_OUTPUT_DIR = PROJECT_DIR / "reports" / "analysis"

console = Console(force_terminal=True, legacy_windows=True)
app = typer.Typer()


def _fmt(value: float | None, digits: int = 3) -> str:
    return f"{value:.{digits}f}" if value is not None else "-"


def print_items_table(result: AnalysisResult, title: str) -> None:
    table = Table(title=title)
    table.add_column("Question", style="bold")
    table.add_column("n", justify="right")
    table.add_column("Difficulty", justify="right")
    table.add_column("Discrimination", justify="right")
    table.add_column("Point-biserial", justify="right")
    table.add_column("Flags")

    for item in result.items:
        table.add_row(
            item.question_id,
            str(item.total_count),
            _fmt(item.difficulty_index),
            _fmt(item.discrimination_index),
            _fmt(item.point_biserial_correlation),
            ", ".join(flag.value for flag in item.flags),
        )
    console.print(table)


def print_summary(result: AnalysisResult) -> None:
    summary = result.summary
    distribution = summary.score_distribution
    console.print(
        Panel(
            f"Students: [cyan]{summary.sample_size}[/cyan]\n"
            f"Mean difficulty: [cyan]{_fmt(summary.mean_difficulty)}[/cyan]\n"
            f"Mean discrimination: "
            f"[cyan]{_fmt(summary.mean_discrimination)}[/cyan]\n"
            f"Cronbach's alpha: "
            f"[cyan]{_fmt(summary.reliability.cronbach_alpha)}[/cyan]\n"
            f"Score mean / std: [cyan]{_fmt(distribution.mean, 2)}[/cyan] / "
            f"[cyan]{_fmt(distribution.std, 2)}[/cyan]",
            title="Summary",
        )
    )


def print_integrity(report: IntegrityReport) -> None:
    if not report.flagged_pairs:
        console.print(
            f"[green]No pairs flagged ({report.pairs_tested} tested).[/green]"
        )
    else:
        table = Table(title="Flagged Pairs (for review)")
        table.add_column("Student A", style="bold")
        table.add_column("Student B", style="bold")
        table.add_column("Identical wrong", justify="right")
        table.add_column("Expected", justify="right")
        table.add_column("q-value", justify="right")
        for pair in report.flagged_pairs:
            table.add_row(
                pair.student_a,
                pair.student_b,
                str(pair.identical_incorrect),
                _fmt(pair.expected_identical_incorrect, 2),
                f"{pair.q_value:.2e}",
            )
        console.print(table)

    if report.cross_variant_grades:
        table = Table(title="Sheets Matching Another Variant's Key")
        table.add_column("Student", style="bold")
        table.add_column("Sat", justify="center")
        table.add_column("Key", justify="center")
        table.add_column("Own %", justify="right")
        table.add_column("Other %", justify="right")
        table.add_column("Closest sheet")
        for grade in report.cross_variant_grades:
            table.add_row(
                grade.student_id,
                grade.variant_code,
                grade.graded_variant_code,
                _fmt(grade.own_key_percentage, 1),
                _fmt(grade.cross_key_percentage, 1),
                grade.closest_student_id or "-",
            )
        console.print(table)
    for note in report.notes:
        console.print(f"[yellow]{note}[/yellow]")


@app.command()
def main(
    questions_path: Path = typer.Argument(
        ...,
        help="Path to JSON file with a list of questions",
    ),
    variants_dir: Path = typer.Argument(
        ...,
        help="Directory of variant JSON files",
    ),
    sheets_path: Path = typer.Argument(
        ...,
        help="CSV with student_id, variant_code, answer_string",
    ),
    by_variant: bool = typer.Option(
        False,
        help="Also analyze each variant separately",
    ),
    integrity: bool = typer.Option(
        False,
        help="Screen for improbable response similarity",
    ),
    min_sample_size: int = typer.Option(
        DEFAULT_MIN_SAMPLE_SIZE,
        help="Respondents needed for a reliable statistic",
    ),
    significance_level: float = typer.Option(
        DEFAULT_SIGNIFICANCE_LEVEL,
        help="False discovery rate for integrity flags",
    ),
    percentile_from: float | None = typer.Option(
        None,
        help="Lower percentile bound for the student report",
    ),
    percentile_to: float | None = typer.Option(
        None,
        help="Upper percentile bound for the student report",
    ),
    output_dir: Path = typer.Option(
        DEFAULT_OUTPUT_DIR,
        help="Directory for CSV output",
    ),
) -> None:
    """Score answer sheets, analyze items and write CSV reports."""
    for path in (questions_path, variants_dir, sheets_path):
        if not path.exists():
            console.print(f"[red]Not found: {path}[/red]")
            raise typer.Exit(1)

    questions = load_questions(questions_path)
    variants = sorted(
        (
            variant_from_json(p.read_text(), questions)
            for p in variants_dir.glob("*.json")
        ),
        key=lambda v: v.variant_number,
    )
    submissions = load_answer_sheets(sheets_path, variants)
    students = score_submissions(variants, questions, submissions)

    console.print(
        Panel(
            f"Questions: [cyan]{len(questions)}[/cyan]\n"
            f"Variants: [cyan]{len(variants)}[/cyan]\n"
            f"Students scored: [cyan]{len(students)}[/cyan]",
            title="Configuration",
        )
    )

    try:
        config = AnalysisConfig(min_sample_size=min_sample_size)
        percentile_range = (
            PercentileRange(
                lower=percentile_from if percentile_from is not None else 0.0,
                upper=percentile_to if percentile_to is not None else 100.0,
            )
            if percentile_from is not None or percentile_to is not None
            else None
        )
        integrity_config = IntegrityConfig(
            significance_level=significance_level
        )
    except InvalidConfigurationError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(1) from e

    result = analyze(variants, questions, students, config)
    print_items_table(result, "Item Statistics")
    print_summary(result)
    write_csv(analysis_to_frame(result), output_dir / "items.csv")

    if by_variant:
        for code, variant_result in analyze_by_variant(
            variants, questions, students, config
        ).items():
            print_items_table(variant_result, f"Item Statistics ({code})")
            write_csv(
                analysis_to_frame(variant_result),
                output_dir / f"items_{code}.csv",
            )

    summary = summarize_students(
        student_scores_from_responses(students), percentile_range
    )
    write_csv(
        student_scores_to_frame(summary.students), output_dir / "students.csv"
    )
    console.print(
        f"Students in report: [cyan]{summary.count}[/cyan] "
        f"(mean {_fmt(summary.mean_percentage, 1)}%)"
    )

    if integrity:
        print_integrity(
            analyze_integrity(variants, questions, students, integrity_config)
        )

    console.print(f"Reports saved to [cyan]{output_dir}[/cyan]")


if __name__ == "__main__":
    app()
