"""Command-line interface for FusionForge.

This module provides the main entry point for the fusionforge CLI tool.
It uses Click to define commands.

Commands:
    predict: Predict gene fusions from chimeric junctions
    genes: Query the annotation index for genes overlapping a region

Example:
    $ fusionforge --help
    $ fusionforge predict -a genes.gtf -j Chimeric.out.junction -o results/sample
    $ fusionforge genes -a genes.gtf chr12:6,534,000-6,538,000
"""

from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from fusionforge import __version__

# Initialize rich console for pretty output
console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="fusionforge")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output.")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-error output.")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    help="Write debug-level log messages to this file.",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, quiet: bool, log_file: Optional[Path]) -> None:
    """FusionForge: Predict gene fusions from RNA-seq chimeric alignments.

    FusionForge maps chimeric split reads and spanning read pairs onto
    annotated exon boundaries, aggregates read support per gene pair and
    breakpoint, and ranks the resulting fusion candidates.
    """
    from fusionforge.utils.logging import setup_logging

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    verbosity = 0 if quiet else (2 if verbose else 1)
    setup_logging(verbosity=verbosity, log_file=log_file)


# =============================================================================
# predict command
# =============================================================================


@main.command()
@click.option(
    "--annotation",
    "-a",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Reference annotation (GFF3 or GTF, optionally gzipped).",
)
@click.option(
    "--junctions",
    "-j",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Chimeric junction file from the aligner (optionally gzipped).",
)
@click.option(
    "-o",
    "--output-prefix",
    type=click.Path(path_type=Path),
    required=True,
    help="Prefix for output tables.",
)
@click.option(
    "--annotation-format",
    type=click.Choice(["gff3", "gtf"]),
    help="Annotation format. Detected from the file name if omitted.",
)
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    help="TOML configuration file.",
)
@click.option(
    "--min-novel-junction-support",
    type=int,
    default=None,
    help="Minimum split reads for a breakpoint off annotated exon boundaries. [default: 3]",
)
@click.option(
    "--min-span-only-support",
    type=int,
    default=None,
    help="Minimum spanning fragments for a fusion without split reads. [default: 5]",
)
@click.pass_context
def predict(
    ctx: click.Context,
    annotation: Path,
    junctions: Path,
    output_prefix: Path,
    annotation_format: Optional[str],
    config_path: Optional[Path],
    min_novel_junction_support: Optional[int],
    min_span_only_support: Optional[int],
) -> None:
    """Predict gene fusions from chimeric junctions.

    \b
    Outputs (PREFIX = --output-prefix):
    - PREFIX.fusion_candidates.tsv: ranked fusion candidates
    - PREFIX.junction_genes.tsv: genes matched for every input record
    - PREFIX.junction_reads.tsv: (fusion, read) pairs for split reads
    - PREFIX.spanning_reads.tsv: (fusion, fragment) pairs for spanning pairs

    \b
    Examples:
        $ fusionforge predict -a genes.gtf -j Chimeric.out.junction -o results/sample

        # Stricter novel junction filter
        $ fusionforge predict -a genes.gtf.gz -j Chimeric.out.junction.gz -o sample \\
            --min-novel-junction-support 5
    """
    from fusionforge.config import Config
    from fusionforge.core.scoring import SpliceType, summarize_candidates
    from fusionforge.io.gff import read_annotation
    from fusionforge.pipeline import run_prediction

    verbose = ctx.obj.get("verbose", False)
    quiet = ctx.obj.get("quiet", False)

    try:
        config = Config.load(config_path)
        if min_novel_junction_support is not None:
            config.scoring.min_novel_junction_support = min_novel_junction_support
        if min_span_only_support is not None:
            config.scoring.min_span_only_support = min_span_only_support

        if not quiet:
            console.print(f"[blue]Annotation:[/blue] {annotation}")
            console.print(f"[blue]Junctions:[/blue] {junctions}")
            console.print(f"[blue]Output prefix:[/blue] {output_prefix}")
            console.print("[dim]Loading annotation...[/dim]")

        genes = read_annotation(annotation, format=annotation_format)
        if not quiet:
            console.print(f"[dim]Loaded {len(genes):,} genes[/dim]")

        result = run_prediction(genes, junctions, output_prefix, config=config)

        if not quiet:
            stats = summarize_candidates(result.candidates)
            console.print("")
            console.print("[bold]Fusion Summary:[/bold]")
            console.print(f"  Records processed:   {result.stats.records:,}")
            console.print(f"  Self-fusions:        {result.stats.self_fusions:,}")
            console.print(f"  Fusion identities:   {result.n_identities:,}")
            console.print(f"  Candidates:          {stats['n_candidates']:,}")
            for splice_type in SpliceType:
                console.print(f"    {splice_type.value:<30} {stats[splice_type.value]:,}")
            console.print("")
            console.print(f"[green]Wrote candidates:[/green] {result.candidates_path}")
            console.print(f"[green]Wrote diagnostics:[/green] {result.diagnostic_path}")

    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        if verbose:
            import traceback
            traceback.print_exc()
        raise SystemExit(1)


# =============================================================================
# genes command
# =============================================================================


@main.command("genes")
@click.option(
    "--annotation",
    "-a",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Reference annotation (GFF3 or GTF, optionally gzipped).",
)
@click.option(
    "--annotation-format",
    type=click.Choice(["gff3", "gtf"]),
    help="Annotation format. Detected from the file name if omitted.",
)
@click.argument("region")
@click.pass_context
def genes_in_region(
    ctx: click.Context,
    annotation: Path,
    annotation_format: Optional[str],
    region: str,
) -> None:
    """List annotated genes whose extent overlaps REGION.

    REGION is 1-based and inclusive, e.g. chr1:1000-2000, and must span
    at least two bases.
    """
    from fusionforge.core.index import build_feature_index
    from fusionforge.io.gff import read_annotation
    from fusionforge.utils.regions import parse_region

    verbose = ctx.obj.get("verbose", False)

    try:
        parsed = parse_region(region)
        if parsed.length < 2:
            raise ValueError(
                f"Region {parsed} covers a single base; gene queries need at least two bases"
            )
        index = build_feature_index(read_annotation(annotation, format=annotation_format))
        hits = sorted(index.query(parsed.seqid, parsed.start, parsed.end))

        table = Table(title=f"Genes overlapping {parsed}")
        table.add_column("Gene")
        table.add_column("Gene ID")
        table.add_column("Strand")
        table.add_column("Extent")
        table.add_column("Transcripts", justify="right")

        for gene_key in hits:
            gene = index.get_gene(parsed.seqid, gene_key)
            extent = gene.extent
            table.add_row(
                gene.gene_name,
                gene.gene_id,
                gene.strand,
                f"{gene.chromosome}:{extent.start}-{extent.end}",
                str(len(gene.transcripts)),
            )

        console.print(table)
        if not hits:
            console.print("[yellow]No genes found[/yellow]")

    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        if verbose:
            import traceback
            traceback.print_exc()
        raise SystemExit(1)


if __name__ == "__main__":
    main()
