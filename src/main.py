"""
Command line entry point:
1) Load a tree file (JSON or SQLite) and report dropped records.
2) Audit it for data-quality problems.
3) Compute or reset the layered layout and save the positions.
4) Render it with Graphviz or matplotlib.
5) List the relatives around one person.
"""

from pathlib import Path

import typer

from errors import TreeFileError
from graph import ancestors, build_graph, descendants, get_ego_subgraph
from layout import apply_layout, compute_layout, reset_layout
from logs import configure_logging
from plotting import plot_layout, write_graph
from treefile import load_tree, save_tree
from validation import audit_tree

app = typer.Typer(
    name="famgraph",
    help="Family tree graph editor core: layout, validation and rendering.",
    add_completion=False,
)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output")):
    configure_logging("DEBUG" if verbose else "WARNING")


def _load(path: Path):
    try:
        return load_tree(path)
    except TreeFileError as exc:
        typer.echo(f"Could not load {path}: {exc}", err=True)
        raise typer.Exit(code=1) from exc


@app.command()
def info(tree_file: Path):
    """Show counts and generation tiers."""
    result = _load(tree_file)
    store = result.store
    typer.echo(f"Persons:   {len(store.persons)}")
    typer.echo(f"Edges:     {len(store.edges)}")
    typer.echo(f"Spouses:   {len(store.spouses)}")
    typer.echo(f"Families:  {len(store.families)}")
    typer.echo(f"Events:    {len(store.events)}")

    computed = compute_layout(store)
    tiers: dict[int, int] = {}
    for gen in computed.generations.values():
        tiers[gen] = tiers.get(gen, 0) + 1
    for gen in sorted(tiers):
        typer.echo(f"  generation {gen}: {tiers[gen]} person(s)")
    if computed.is_degraded:
        typer.echo(f"Layout degraded: {len(computed.degraded)} person(s) in cyclic ancestry")


@app.command()
def check(tree_file: Path):
    """Report dropped records and data-quality warnings."""
    result = _load(tree_file)
    report = result.report
    if report.total:
        typer.echo(
            f"Dropped {report.total} record(s): {report.dropped_edges} edge(s), "
            f"{report.dropped_spouses} spouse pair(s), {report.dropped_members} membership(s), "
            f"{report.dropped_links} event link(s)"
        )

    warnings = audit_tree(result.store)
    if warnings:
        typer.echo(f"Found {len(warnings)} validation warnings:")
        for w in warnings[:10]:
            typer.echo(f"  - {w}")
        if len(warnings) > 10:
            typer.echo(f"  ... and {len(warnings) - 10} more")
    else:
        typer.echo("No validation issues found")


@app.command()
def layout(
    tree_file: Path,
    out: Path | None = typer.Option(None, "--out", "-o", help="Write here instead of overwriting"),
    reset: bool = typer.Option(False, "--reset", help="Discard manual positions first"),
):
    """Lay out the tree and save the computed positions."""
    result = _load(tree_file)
    store = result.store
    # Loaded positions are pinned, so without --reset only new data moves
    layout_result = reset_layout(store) if reset else apply_layout(store)
    if layout_result.is_degraded:
        typer.echo(f"Layout degraded: {len(layout_result.degraded)} person(s) placed at generation 0")

    target = out or tree_file
    try:
        save_tree(store, target)
    except TreeFileError as exc:
        typer.echo(f"Could not save {target}: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"Saved layout of {len(store.persons)} person(s) to {target}")


@app.command()
def render(tree_file: Path, output: Path):
    """Render to .dot/.gv (Graphviz source) or an image via matplotlib."""
    result = _load(tree_file)
    if output.suffix.lower() in (".dot", ".gv"):
        write_graph(result.store, output)
    else:
        plot_layout(result.store, output)
    typer.echo(f"Graph saved to {output}")


@app.command()
def relatives(
    tree_file: Path,
    person_id: str,
    radius: int = typer.Option(2, "--radius", "-r", help="Hops for the nearby-relatives list"),
):
    """List a person's ancestors, descendants and nearby relatives."""
    result = _load(tree_file)
    store = result.store
    if person_id not in store.persons:
        typer.echo(f"Person ID {person_id} not found", err=True)
        raise typer.Exit(code=1)

    def names(ids):
        return ", ".join(sorted(store.persons[pid].name for pid in ids)) or "-"

    nearby = set(get_ego_subgraph(build_graph(store), person_id, radius=radius)) - {person_id}
    typer.echo(store.persons[person_id].name)
    typer.echo(f"  Ancestors:   {names(ancestors(store, person_id))}")
    typer.echo(f"  Descendants: {names(descendants(store, person_id))}")
    typer.echo(f"  Within {radius}:    {names(nearby)}")


if __name__ == "__main__":
    app()
