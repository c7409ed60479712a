#!/usr/bin/env python
"""
Generate exam variants from a JSON question file and save them as JSON.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from exam_engine.core.constants import MAX_VARIANTS
from exam_engine.core.data import load_questions
from exam_engine.core.data_models import GenerationConfig
from exam_engine.core.exceptions import InvalidConfigurationError
from exam_engine.variants.generator import (
    VariantGenerationResult,
    generate_variants,
)
from exam_engine.variants.serialization import variant_to_json

PROJECT_DIR = Path(__file__).parent.parent.absolute()
DEFAULT_OUTPUT_DIR = PROJECT_DIR / "reports" / "variants"

console = Console(force_terminal=True, legacy_windows=True)
app = typer.Typer()


def print_answer_keys(result: VariantGenerationResult) -> None:
    """One column per variant, one row per printed question number."""
    table = Table(title="Answer Keys")
    table.add_column("#", justify="right", style="bold")
    for variant in result.variants:
        table.add_column(variant.variant_code, justify="center")

    n_questions = max((len(v.answer_key) for v in result.variants), default=0)
    for position in range(n_questions):
        row = [str(position + 1)]
        for variant in result.variants:
            entry = variant.answer_key[position]
            row.append(f"{entry.correct_answer} ({entry.question_id})")
        table.add_row(*row)

    console.print(table)


def save_variants(output_dir: Path, result: VariantGenerationResult) -> list[Path]:
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = []
    for variant in result.variants:
        path = output_dir / f"{variant.variant_code}.json"
        path.write_text(variant_to_json(variant))
        paths.append(path)
    return paths


@app.command()
def main(
    questions_path: Path = typer.Argument(
        ...,
        help="Path to JSON file with a list of questions",
    ),
    seed: str = typer.Option(
        ...,
        help="Seed string, usually the generation id",
    ),
    number_of_variants: int = typer.Option(
        4,
        "--variants",
        "-n",
        help=f"Number of variants to generate (1-{MAX_VARIANTS})",
    ),
    shuffle_questions: bool = typer.Option(
        True,
        help="Randomize question order",
    ),
    shuffle_options: bool = typer.Option(
        True,
        help="Randomize multiple choice option order",
    ),
    shuffle_true_false: bool = typer.Option(
        False,
        help="Randomize true/false option order",
    ),
    output_dir: Path = typer.Option(
        DEFAULT_OUTPUT_DIR,
        help="Directory for variant JSON files",
    ),
) -> None:
    """Generate variants and print their answer keys."""
    if not questions_path.exists():
        console.print(f"[red]File not found: {questions_path}[/red]")
        raise typer.Exit(1)

    try:
        questions = load_questions(questions_path)
        config = GenerationConfig(
            number_of_variants=number_of_variants,
            seed=seed,
            randomize_question_order=shuffle_questions,
            randomize_option_order=shuffle_options,
            randomize_true_false_options=shuffle_true_false,
        )
        result = generate_variants(questions, config)
    except InvalidConfigurationError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(1) from e

    console.print(
        Panel(
            f"Questions: [cyan]{len(questions)}[/cyan]\n"
            f"Variants: [cyan]{result.total_generated}[/cyan]\n"
            f"Distinct renderings possible: "
            f"[cyan]{result.estimated_distinct_variants}[/cyan]\n"
            f"Unique question orders: [cyan]{result.unique_question_orders}[/cyan]\n"
            f"Duplicate pairs: [cyan]{len(result.duplicate_pairs)}[/cyan]",
            title="Generation",
        )
    )
    for warning in result.warnings:
        console.print(f"[yellow]{warning}[/yellow]")

    print_answer_keys(result)

    paths = save_variants(output_dir, result)
    console.print(f"Saved {len(paths)} variants to [cyan]{output_dir}[/cyan]")


if __name__ == "__main__":
    app()
