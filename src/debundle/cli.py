"""Command line interface: ``debundle bundle`` and ``debundle info``."""

from __future__ import annotations

__all__ = ["cli"]

import logging
from contextlib import ExitStack

import click

from debundle import __version__
from debundle.bundling import (
    BundleConfig,
    compute_compatibility,
    debundle,
    partition_edges,
)
from debundle.bundling.constants import COMPATIBILITY_THRESHOLD
from debundle.errors import DebundleError
from debundle.graph import dump_graph, load_graph, read_graph


class _ConsoleProgress:
    """Progress observer that shows one click progress bar per phase."""

    def __init__(self) -> None:
        self._stack = ExitStack()
        self._bar = None
        self._phase: str | None = None
        self._done = 0

    def __call__(self, phase: str, completed: int, total: int) -> None:
        if phase != self._phase:
            self.close()
            self._bar = self._stack.enter_context(
                click.progressbar(
                    length=total,
                    label=phase.capitalize(),
                    file=click.get_text_stream("stderr"),
                )
            )
            self._phase = phase
            self._done = 0
        if completed > self._done:
            self._bar.update(completed - self._done)
            self._done = completed

    def close(self) -> None:
        self._stack.close()
        self._stack = ExitStack()
        self._bar = None
        self._phase = None


@click.group()
@click.version_option(__version__)
@click.option("-v", "--verbose", is_flag=True, help="Log pass details to stderr.")
def cli(verbose: bool) -> None:
    """Divided edge bundling for directed graphs."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "-o",
    "--output",
    required=True,
    type=click.Path(dir_okay=False, writable=True),
    help="Where to write the bundled node-link JSON.",
)
@click.option("--passes", type=int, default=None, help="Relaxation passes.")
@click.option(
    "--subdivisions", type=int, default=None, help="Initial points per half-edge."
)
@click.option(
    "--step-size",
    type=float,
    default=None,
    help="Step size as a fraction of mean edge length.",
)
@click.option(
    "--threshold", type=float, default=None, help="Compatibility threshold."
)
@click.option(
    "--max-neighbors", type=int, default=None, help="Neighbour cap per edge."
)
@click.option("--quiet", is_flag=True, help="Hide progress bars.")
def bundle(
    input_file: str,
    output: str,
    passes: int | None,
    subdivisions: int | None,
    step_size: float | None,
    threshold: float | None,
    max_neighbors: int | None,
    quiet: bool,
) -> None:
    """Bundle the edges of INPUT_FILE (node-link JSON)."""
    options = {
        "passes": passes,
        "initial_subdivisions": subdivisions,
        "step_size": step_size,
        "compatibility_threshold": threshold,
        "max_neighbors": max_neighbors,
    }
    options = {name: value for name, value in options.items() if value is not None}

    progress = None if quiet else _ConsoleProgress()
    try:
        config = BundleConfig.from_options(**options)
        graph = load_graph(input_file)
        bundled = debundle(graph, config, progress=progress)
    except DebundleError as exc:
        raise click.ClickException(str(exc)) from exc
    finally:
        if progress is not None:
            progress.close()

    dump_graph(bundled, output)
    click.echo(f"Bundled {bundled.number_of_edges()} edges -> {output}")


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--threshold",
    type=click.FloatRange(0.0, 1.0),
    default=COMPATIBILITY_THRESHOLD,
    show_default=True,
    help="Compatibility threshold used to count pairs.",
)
def info(input_file: str, threshold: float) -> None:
    """Summarise INPUT_FILE: sizes, degenerate edges and compatible pairs."""
    try:
        graph = load_graph(input_file)
        data = read_graph(graph)
    except DebundleError as exc:
        raise click.ClickException(str(exc)) from exc

    bundled, degenerate = partition_edges(data)
    sources = [data.position(e.source) for e in bundled]
    targets = [data.position(e.target) for e in bundled]
    table = compute_compatibility(sources, targets, threshold)

    click.echo(f"Nodes: {graph.number_of_nodes()}")
    click.echo(f"Edges: {len(data.edges)}")
    click.echo(f"Degenerate edges: {len(degenerate)}")
    click.echo(f"Compatible pairs (> {threshold:g}): {table.pair_count}")
