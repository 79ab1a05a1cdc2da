"""Export convenience function."""

import logging
from pathlib import Path

from discovery.exporters.network_json import export_network_json
from discovery.exporters.network_summary import export_summary_md
from discovery.exporters.network_table import (
    export_edges_csv,
    export_network_excel,
    export_nodes_csv,
)
from discovery.network.models import CitationNetwork

logger = logging.getLogger(__name__)


def export_all(network: CitationNetwork, output_dir: str) -> dict:
    """Run all exports and return dict of file paths created."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    paths = {}

    json_path = str(out / "network.json")
    export_network_json(network, json_path)
    paths["network_json"] = json_path

    nodes_path = str(out / "nodes.csv")
    export_nodes_csv(network, nodes_path)
    paths["nodes_csv"] = nodes_path

    edges_path = str(out / "edges.csv")
    export_edges_csv(network, edges_path)
    paths["edges_csv"] = edges_path

    xlsx_path = str(out / "network.xlsx")
    export_network_excel(network, xlsx_path)
    paths["network_xlsx"] = xlsx_path

    summary_path = str(out / "summary.md")
    export_summary_md(network, summary_path)
    paths["summary_md"] = summary_path

    logger.info("All exports written to %s", output_dir)
    return paths
