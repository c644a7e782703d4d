from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from ..core.errors import SynthLabelError
from ..core.exporter import ExportFormat
from ..examples.synthetic import generate_scenario
from ..sdk.run import generate_from_config

app = typer.Typer(help="Synthetic labelled-image dataset generator")
scene_app = typer.Typer(help="Scenario file helpers")
app.add_typer(scene_app, name="scene")


def _configure_logging(level: str) -> None:
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric, format="[%(levelname)s] %(message)s")
    logging.getLogger("synthlabel").setLevel(numeric)


def _execute_generate(
    config: Path,
    output_override: Optional[Path],
    seed_override: Optional[int],
    samples_override: Optional[int],
    format_override: Optional[str],
    log_level: str,
) -> None:
    _configure_logging(log_level)
    if output_override is not None and output_override.suffix.lower() != ".zip":
        raise typer.BadParameter(f"Unsupported output extension '{output_override.suffix}'", param_hint="--output")
    if samples_override is not None and samples_override < 1:
        raise typer.BadParameter("samples must be at least 1.", param_hint="--samples")
    if format_override is not None:
        allowed = [f.value for f in ExportFormat]
        if format_override.lower() not in allowed:
            raise typer.BadParameter(f"format must be one of {allowed}.", param_hint="--format")
        format_override = format_override.lower()

    try:
        result = generate_from_config(
            config,
            output=output_override,
            seed=seed_override,
            samples=samples_override,
            output_format=format_override,
        )
    except SynthLabelError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)

    stats = result.stats
    typer.echo(
        f"Captured {stats['images']} images with {stats['annotations']} annotations "
        f"({stats['skipped']} skipped) → {result.output_path}"
    )


@app.command("generate")
def generate(
    config: Path = typer.Argument(..., exists=True, readable=True, help="Path to YAML scenario file."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Override archive path (.zip)."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Override random seed."),
    samples: Optional[int] = typer.Option(None, "--samples", help="Override number of randomised samples."),
    fmt: Optional[str] = typer.Option(None, "--format", help="Annotation format: coco, pascal_voc or yolo."),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level (e.g. INFO, DEBUG)."),
) -> None:
    """Generate a labelled dataset archive from a YAML scenario."""

    _execute_generate(config, output, seed, samples, fmt, log_level)


@app.command("run")
def run(
    config: Path = typer.Argument(..., exists=True, readable=True, help="Path to YAML scenario file."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Override archive path (.zip)."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Override random seed."),
    samples: Optional[int] = typer.Option(None, "--samples", help="Override number of randomised samples."),
    fmt: Optional[str] = typer.Option(None, "--format", help="Annotation format: coco, pascal_voc or yolo."),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level (e.g. INFO, DEBUG)."),
) -> None:
    """Alias for `generate`"""

    _execute_generate(config, output, seed, samples, fmt, log_level)


@scene_app.command("generate")
def scene_generate(
    output: Path = typer.Argument(..., help="Output scenario path (.yaml)."),
    preset: str = typer.Option("demo", "--preset", help="Scenario preset (demo, single)."),
    samples: int = typer.Option(10, "--samples", help="Number of randomised samples."),
) -> None:
    """Write a demo scenario YAML ready for `synthlabel generate`."""

    out = output.resolve()
    try:
        generate_scenario(preset=preset, path=out, samples=samples)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--preset")
    typer.echo(f"Wrote scenario to {out}")


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
