from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List, Mapping

import typer
import yaml

from .alignment import align as align_texts
from .config import DiagnosticsConfig, load_config
from .error_causes import analyze_errors, analyze_mistakes, rank_causes
from .feedback import extract_top_events, summarize_operations
from .pipeline import score_session

app = typer.Typer(help="Listening diagnostics CLI.", no_args_is_help=True)


@app.callback()
def configure(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log pipeline details to stderr."
    ),
) -> None:
    """Score typed answers against spoken reference phrases."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


@app.command()
def align(
    reference: str = typer.Option(..., "--reference", "-r", help="Reference transcript."),
    hypothesis: str = typer.Option(
        ..., "--hypothesis", "-H", help="What the listener typed."
    ),
    config: Path | None = typer.Option(None, "--config", "-c"),
    max_events: int | None = typer.Option(
        None, "--max-events", "-n", help="Override default_max_events."
    ),
) -> None:
    """Align one answer against its reference and emit a JSON report."""
    cfg = _load_cli_config(config)
    result = align_texts(reference, hypothesis, cfg)
    events = extract_top_events(result, max_events, cfg)
    operations = summarize_operations(result.operations, cfg)
    payload = result.to_dict()
    payload["accuracy_percent"] = result.accuracy_percent
    payload["dominant_operation"] = operations.dominant
    payload["top_events"] = [event.to_dict() for event in events]
    payload["error_causes"] = [
        {"cause": cause.value, "count": count}
        for cause, count in rank_causes(analyze_errors(result.operations))
    ]
    payload["mistakes"] = [mistake.to_dict() for mistake in analyze_mistakes(result.operations)]
    typer.echo(json.dumps(payload, indent=2))


@app.command()
def diagnose(
    input_path: Path = typer.Option(
        ..., exists=True, readable=True, dir_okay=False, file_okay=True
    ),
    config: Path | None = typer.Option(None, "--config", "-c"),
) -> None:
    """Score a file of attempts and print the session report as JSON."""
    cfg = _load_cli_config(config)
    attempts = _load_attempts(input_path)
    try:
        report = score_session(attempts, cfg)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--input-path") from exc
    typer.echo(json.dumps(report.to_dict(), indent=2))


@app.command("print-config")
def print_config() -> None:
    """Print the default configuration as YAML."""
    cfg = DiagnosticsConfig()
    typer.echo(yaml.safe_dump(cfg.to_dict(), sort_keys=False))


def main() -> None:
    app()


def _load_cli_config(path: Path | None) -> DiagnosticsConfig:
    """Load the config file, reporting invalid values as a CLI parameter error."""
    try:
        return load_config(path)
    except (OSError, ValueError, TypeError, yaml.YAMLError) as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc


def _load_attempts(path: Path) -> List[Mapping[str, Any]]:
    """Read attempts from YAML or JSON: a list, or a mapping with an ``attempts`` key."""
    text = path.read_text(encoding="utf-8")
    try:
        # YAML is a superset of JSON so one loader covers both formats.
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise typer.BadParameter(str(exc), param_hint="--input-path") from exc
    if isinstance(data, Mapping):
        data = data.get("attempts")
    if not isinstance(data, list) or not all(isinstance(item, Mapping) for item in data):
        raise typer.BadParameter(
            "Expected a list of attempts with reference and hypothesis fields.",
            param_hint="--input-path",
        )
    return data


if __name__ == "__main__":
    main()
