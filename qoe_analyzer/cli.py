#!/usr/bin/env python3
"""
Interface en ligne de commande pour l'analyseur QoE
"""

import json
import sys
from datetime import datetime
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .__version__ import __version__
from .analyzers.qoe_score import calculate_scores
from .config import Config, get_config
from .exporters.csv_export import CSVExporter
from .exporters.json_export import JSONExporter
from .samples import MetricsSnapshot, parse_sample
from .scores import CATEGORIES, ScoreNode, ScoreTree, format_coverage, format_score, rate_score
from .session import QoESession
from .storage import JSONStateStore
from .utils.logging_config import setup_logging
from .utils.stats import calculate_stats

console = Console()

RATING_STYLES = {
    "excellent": "bold green",
    "good": "green",
    "fair": "yellow",
    "poor": "red",
    "bad": "bold red",
    "unknown": "dim",
}


def _open_session(ctx: click.Context) -> QoESession:
    """Session backed by the store of the selected data directory."""
    cfg: Config = ctx.obj["config"]
    store = JSONStateStore(ctx.obj["data_dir"])
    return QoESession(store=store, config=cfg)


def _score_row(table: Table, label: str, node: ScoreNode, total_weight: float) -> None:
    rating = rate_score(node.score)
    table.add_row(
        label,
        format_score(node.score),
        format_coverage(node.applied_weight, total_weight),
        f"[{RATING_STYLES[rating]}]{rating}[/{RATING_STYLES[rating]}]",
    )


def _print_score_tree(scores: ScoreTree, cfg: Config, details: bool = False) -> None:
    """Affiche l'arbre de scores sous forme de tableau"""
    table = Table(title="📊 Scores QoE", show_header=True, header_style="bold cyan")
    table.add_column("Niveau", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Couverture", justify="right")
    table.add_column("Qualité")

    _score_row(table, "[bold]Overall[/bold]", scores.overall, 1.0)
    table.add_section()
    _score_row(table, "Voice", scores.voice, cfg.category("voice").total_metric_weight)
    _score_row(table, "Data", scores.data, 1.0)
    table.add_section()
    for name, category in scores.categories().items():
        if name == "voice":
            continue
        _score_row(table, f"  {name}", category, cfg.category(name).total_metric_weight)

    console.print(table)

    if not details:
        return

    for name, category in scores.categories().items():
        detail = Table(title=f"Détails: {name}", show_header=True, header_style="bold magenta")
        detail.add_column("Métrique", style="cyan")
        detail.add_column("Valeur", justify="right")
        detail.add_column("Score", justify="right")
        for metric_name, value in category.metrics.items():
            detail.add_row(
                metric_name,
                "--" if value is None else f"{value:.4g}",
                format_score(category.metric_scores.get(metric_name)),
            )
        console.print(detail)


@click.group()
@click.version_option(version=__version__, prog_name="QoE Analyzer")
@click.option("--data-dir", type=click.Path(file_okay=False), help="Répertoire des données de session")
@click.option("-c", "--config", type=click.Path(exists=True), help="Fichier de configuration personnalisé")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Niveau de log",
)
@click.pass_context
def cli(ctx, data_dir, config, log_level):
    """Calcul du score de qualité d'expérience (QoE) voix et données"""
    setup_logging(log_level=log_level)
    try:
        cfg = get_config(config)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]❌ Configuration invalide: {e}[/red]")
        sys.exit(1)

    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg
    ctx.obj["data_dir"] = data_dir or cfg.storage_config.get("data_dir", "qoe_data")


@cli.command()
@click.argument("snapshot_file", required=False, type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Sortie JSON brute de l'arbre de scores")
@click.option("--details", is_flag=True, help="Afficher les métriques de chaque catégorie")
@click.pass_context
def score(ctx, snapshot_file, as_json, details):
    """
    Calcule les scores d'un snapshot (fichier JSON ou session enregistrée)

    Example:
        qoe_analyzer score snapshot.json --details
        qoe_analyzer --data-dir qoe_data score --json
    """
    cfg: Config = ctx.obj["config"]

    if snapshot_file:
        try:
            with open(snapshot_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            console.print(f"[red]❌ Snapshot illisible: {e}[/red]")
            sys.exit(1)
        if not isinstance(data, dict):
            console.print("[red]❌ Le snapshot doit être un objet JSON[/red]")
            sys.exit(1)
        scores = calculate_scores(MetricsSnapshot.from_dict(data), cfg)
    else:
        with _open_session(ctx) as session:
            scores = session.scores

    if as_json:
        click.echo(json.dumps(scores.to_dict(), indent=2))
        return

    _print_score_tree(scores, cfg, details)


@cli.command()
@click.argument("events_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def ingest(ctx, events_file):
    """
    Rejoue des événements (JSON lines) dans la session enregistrée

    Chaque ligne est un objet avec une clé "type" (voice, http, browsing,
    streaming, social) et les champs de l'échantillon.

    Example:
        qoe_analyzer ingest events.jsonl
    """
    count = 0
    with _open_session(ctx) as session:
        with open(events_file, "r", encoding="utf-8") as f:
            for line_number, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    sample = parse_sample(json.loads(line))
                except (json.JSONDecodeError, ValueError) as e:
                    console.print(f"[red]❌ Ligne {line_number}: {e}[/red]")
                    sys.exit(1)
                session.add_sample(sample)
                count += 1
        scores = session.scores

    console.print(f"[green]✓ {count} événements ingérés[/green]")
    console.print(f"[bold]Overall QoE:[/bold] {format_score(scores.overall.score)}")


@cli.group()
def history():
    """Gestion de l'historique des sessions"""
    pass


@history.command("save")
@click.pass_context
def history_save(ctx):
    """Enregistre l'état courant dans l'historique"""
    with _open_session(ctx) as session:
        entry = session.save_history_entry()
        size = len(session.history)
    console.print(
        f"[green]✓ Entrée enregistrée (overall {format_score(entry.scores.overall.score)}, "
        f"{size} entrées)[/green]"
    )


@history.command("list")
@click.option("-n", "--limit", type=int, default=20, show_default=True, help="Nombre max d'entrées à afficher")
@click.pass_context
def history_list(ctx, limit):
    """Liste l'historique (plus récent en premier)"""
    with _open_session(ctx) as session:
        entries = session.history

    if not entries:
        console.print("[yellow]Historique vide[/yellow]")
        return

    table = Table(title=f"Historique ({len(entries)} entrées)", show_header=True, header_style="bold cyan")
    table.add_column("Date", style="cyan")
    table.add_column("Overall", justify="right")
    table.add_column("Voice", justify="right")
    table.add_column("Data", justify="right")
    for entry in entries[:limit]:
        table.add_row(
            datetime.fromtimestamp(entry.timestamp / 1000).strftime("%Y-%m-%d %H:%M:%S"),
            format_score(entry.scores.overall.score),
            format_score(entry.scores.voice.score),
            format_score(entry.scores.data.score),
        )
    console.print(table)


@history.command("clear")
@click.confirmation_option(prompt="Supprimer tout l'historique ?")
@click.pass_context
def history_clear(ctx):
    """Vide l'historique"""
    with _open_session(ctx) as session:
        session.clear_history()
    console.print("[green]✓ Historique vidé[/green]")


@cli.command()
@click.confirmation_option(prompt="Réinitialiser les métriques de la session ?")
@click.pass_context
def reset(ctx):
    """Réinitialise les métriques de la session (l'historique est conservé)"""
    with _open_session(ctx) as session:
        session.reset()
    console.print("[green]✓ Métriques réinitialisées[/green]")


@cli.command()
@click.option(
    "--format", "export_format", type=click.Choice(["json", "csv"]), default="json", show_default=True,
    help="Format d'export",
)
@click.option("-o", "--output", type=click.Path(), help="Fichier JSON ou répertoire CSV de sortie")
@click.pass_context
def export(ctx, export_format, output):
    """
    Exporte l'état courant et l'historique

    Example:
        qoe_analyzer export --format json -o qoe-export.json
        qoe_analyzer export --format csv -o exports/
    """
    cfg: Config = ctx.obj["config"]
    output_dir = cfg.get("exports.output_dir", "exports")

    with _open_session(ctx) as session:
        metrics, scores, history_entries = session.metrics, session.scores, session.history

    try:
        if export_format == "json":
            path = JSONExporter().export(metrics, scores, history_entries, output or Path(output_dir) / "qoe-export.json")
            console.print(f"[green]✓ Export JSON: {path}[/green]")
        else:
            csv_dir = output or output_dir
            CSVExporter().export_all(metrics, scores, history_entries, csv_dir, cfg)
            console.print(f"[green]✓ Fichiers CSV: {csv_dir}/[/green]")
    except OSError as e:
        console.print(f"[red]❌ Export impossible: {e}[/red]")
        sys.exit(1)


@cli.command()
@click.pass_context
def stats(ctx):
    """Statistiques descriptives des séries de la session"""
    with _open_session(ctx) as session:
        metrics = session.metrics

    series = {
        "voice.setup_times (ms)": metrics.voice.setup_times,
        "voice.mos_samples": metrics.voice.mos_samples,
        "http.dl.throughputs (Mbps)": metrics.data.http.dl.throughputs,
        "http.ul.throughputs (Mbps)": metrics.data.http.ul.throughputs,
        "browsing.durations (ms)": metrics.data.browsing.durations,
        "browsing.dns_resolution_times (ms)": metrics.data.browsing.dns_resolution_times,
        "streaming.mos_samples": metrics.data.streaming.mos_samples,
        "streaming.setup_times (ms)": metrics.data.streaming.setup_times,
        "social.durations (ms)": metrics.data.social.durations,
    }

    table = Table(title="Statistiques des séries", show_header=True, header_style="bold cyan")
    table.add_column("Série", style="cyan")
    for column in ("N", "Min", "Moyenne", "P10", "P50", "P90", "Max"):
        table.add_column(column, justify="right")

    for name, values in series.items():
        summary = calculate_stats(values)
        if not summary:
            table.add_row(name, "0", *(["--"] * 6))
            continue
        table.add_row(
            name,
            str(summary["count"]),
            *(f"{summary[key]:.2f}" for key in ("min", "mean", "p10", "p50", "p90", "max")),
        )

    console.print(table)


@cli.command("show-config")
@click.pass_context
def show_config(ctx):
    """Affiche les seuils et pondérations de la configuration"""
    cfg: Config = ctx.obj["config"]

    table = Table(title="Configuration actuelle")
    table.add_column("Métrique", style="cyan")
    table.add_column("Poids", justify="right")
    table.add_column("Bon", justify="right")
    table.add_column("Mauvais", justify="right")
    table.add_column("Sens")

    for name in CATEGORIES:
        spec = cfg.category(name)
        table.add_section()
        table.add_row(f"[bold]{name.upper()}[/bold]", f"[bold]{spec.weight:g}[/bold]", "", "", "")
        for metric in spec.metrics:
            threshold = metric.threshold
            table.add_row(
                f"  {metric.name}",
                f"{metric.weight:g}",
                f"{threshold.good:g}",
                f"{threshold.bad:g}",
                "↑" if threshold.higher_is_better else "↓",
            )

    console.print(table)

    weights = Table(title="Pondérations")
    weights.add_column("Niveau", style="cyan")
    weights.add_column("Poids", justify="right")
    for name, weight in cfg.data_weights.items():
        weights.add_row(f"data.{name}", f"{weight:g}")
    weights.add_section()
    for name, weight in cfg.overall_weights.items():
        weights.add_row(f"overall.{name}", f"{weight:g}")
    console.print(weights)

    session_config = cfg.session_config
    console.print(
        Panel.fit(
            f"max_history: {session_config['max_history']}\n"
            f"max_reasons: {session_config['max_reasons']}\n"
            f"max_samples_per_series: {session_config['max_samples_per_series']}",
            title="Session",
        )
    )


def main():
    """Point d'entrée principal"""
    cli()


if __name__ == "__main__":
    main()
