"""Plain-language Markdown summary of a citation network."""

import logging
from collections import Counter

from discovery.network.models import CitationNetwork

logger = logging.getLogger(__name__)


def generate_network_summary(network: CitationNetwork) -> str:
    """Draft a short paragraph describing how the network was built and what it holds."""
    config = network.config
    quality = network.quality
    metrics = network.metrics

    algorithms = ", ".join(a.replace("_", " ") for a in config.algorithms)
    summary = (
        f"The network was built from {len(network.seed_paper_ids)} seed paper(s) "
        f"using {algorithms} at depth {config.depth}, keeping papers published "
        f"{config.year_range.start}-{config.year_range.end} with at least "
        f"{config.min_citations} citations"
    )
    if config.only_open_access:
        summary += " and open-access full text"
    summary += ". "

    dropped = len(network.seed_paper_ids) - len(network.resolved_seed_ids)
    if dropped > 0:
        summary += f"{dropped} seed(s) could not be found and were left out. "

    if quality.is_empty:
        summary += "No papers matched these settings."
        return summary

    edge_types = Counter(e.type for e in network.edges)
    breakdown = ", ".join(f"{n} {t.replace('_', ' ')}" for t, n in edge_types.most_common())
    summary += (
        f"It contains {quality.node_count} papers and {quality.edge_count} links"
        f"{f' ({breakdown})' if breakdown else ''}, "
        f"grouped into {len(network.clusters)} cluster(s). "
        f"Density is {metrics.density:.3f} with an average degree of "
        f"{metrics.avg_degree:.2f} across {metrics.components} connected component(s)."
    )
    if quality.is_sparse:
        summary += " The network is sparse."
    if network.partial:
        summary += " The build stopped at its deadline, so results are partial."
    return summary


def export_summary_md(network: CitationNetwork, output_path: str) -> None:
    """Write the network summary and improvement suggestions to Markdown."""
    summary = generate_network_summary(network)
    with open(output_path, "w") as f:
        f.write(f"# {network.name}\n\n")
        f.write(summary)
        f.write("\n")
        if network.quality.suggestions:
            f.write("\n## Suggestions\n\n")
            for suggestion in network.quality.suggestions:
                f.write(f"- {suggestion}\n")
        if network.warnings:
            f.write("\n## Warnings\n\n")
            for warning in network.warnings:
                f.write(f"- {warning}\n")

    logger.info("Network summary exported to %s", output_path)
