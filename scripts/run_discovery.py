#!/usr/bin/env python3
"""Literature discovery runner: networks, connections, common ground."""

import argparse
import json
import logging
import sys
import time
from pathlib import Path

# Ensure project root is on sys.path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from discovery.connect.pathfinder import (
    explain_connection,
    find_multi_paper_connections,
    find_paths,
)
from discovery.core.deadline import Deadline
from discovery.core.errors import DiscoveryError
from discovery.core.network_config import NetworkConfig, load_network_config
from discovery.exporters import export_all
from discovery.exporters.network_json import export_connection_json, export_network_json
from discovery.network.builder import build_network, build_network_page
from discovery.search.registry import PROVIDERS, get_provider
from discovery.search.retrieval import PaperRetriever

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("discovery")

DEFAULT_OUTPUT = PROJECT_ROOT / "data" / "exports"


# ── Commands ─────────────────────────────────────────────────────────


def run_network(args, retriever: PaperRetriever, deadline: Deadline | None) -> None:
    """Build a citation network around the seeds and export it."""
    config = load_network_config(args.config) if args.config else NetworkConfig()
    logger.info("Config: %s", json.dumps(config.model_dump(mode="json")))

    out = Path(args.output)
    if args.page:
        result = build_network_page(
            retriever,
            args.seeds,
            config,
            page=args.page,
            page_size=args.page_size,
            deadline=deadline,
        )
        out.mkdir(parents=True, exist_ok=True)
        path = out / f"network_page_{args.page}.json"
        export_network_json(result, str(path))
        info = result.pagination
        logger.info(
            "Page %d/%d (%d papers total)", info.current_page, info.total_pages, info.total_items
        )
        network = result.network
    else:
        network = build_network(retriever, args.seeds, config, deadline=deadline)
        paths = export_all(network, str(out))
        logger.info("Exports: %s", json.dumps(paths, indent=2))

    logger.info(
        "Network %s: %d nodes, %d edges, %d clusters",
        network.id,
        len(network.nodes),
        len(network.edges),
        len(network.clusters),
    )
    if network.quality.is_empty or network.quality.is_sparse:
        for suggestion in network.quality.suggestions:
            logger.info("Suggestion: %s", suggestion)


def run_connect(args, retriever: PaperRetriever, deadline: Deadline | None) -> None:
    """Find and explain paths between two papers."""
    connection = find_paths(
        retriever, args.source, args.target, args.max_depth, deadline=deadline
    )

    for path in connection.paths:
        logger.info(
            "%s [%s]: %s (weight %.2f)",
            path.id,
            path.type,
            " -> ".join(path.papers),
            path.total_weight,
        )
    print(explain_connection(retriever, connection.shortest_path))

    out = Path(args.output)
    out.mkdir(parents=True, exist_ok=True)
    export_connection_json(connection, str(out / "connection.json"))


def run_common(args, retriever: PaperRetriever, deadline: Deadline | None) -> None:
    """Report common ground across several papers."""
    result = find_multi_paper_connections(retriever, args.papers, deadline=deadline)
    common = result.common_ground

    logger.info(
        "Shared references: %d | shared topics: %s | shared authors: %s",
        len(common.shared_citations),
        ", ".join(common.shared_topics) or "-",
        ", ".join(common.shared_authors) or "-",
    )
    for rel in result.relationships:
        logger.info(
            "%s ~ %s: %s (%.2f) %s",
            rel.paper1_id,
            rel.paper2_id,
            rel.relationship_type,
            rel.strength,
            rel.description,
        )
    for idea in result.synthesis_opportunities:
        print(f"- {idea}")

    out = Path(args.output)
    out.mkdir(parents=True, exist_ok=True)
    export_connection_json(result, str(out / "common_ground.json"))


COMMANDS = {"network": run_network, "connect": run_connect, "common": run_common}


# ── CLI ──────────────────────────────────────────────────────────────


def main():
    parser = argparse.ArgumentParser(description="Explore the literature around seed papers")
    parser.add_argument(
        "--provider",
        choices=PROVIDERS,
        default="openalex",
        help="Literature data source (default: openalex)",
    )
    parser.add_argument("--corpus", default=None, help="YAML corpus for the memory provider")
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds before returning partial results",
    )
    parser.add_argument(
        "--output", default=str(DEFAULT_OUTPUT), help="Directory for exported files"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_net = sub.add_parser("network", help="Build a citation network from seed papers")
    p_net.add_argument("seeds", nargs="+", help="Seed paper ids")
    p_net.add_argument("--config", default=None, help="Path to network config YAML")
    p_net.add_argument("--page", type=int, default=None, help="Return only this page")
    p_net.add_argument("--page-size", type=int, default=100)

    p_con = sub.add_parser("connect", help="Find paths between two papers")
    p_con.add_argument("source")
    p_con.add_argument("target")
    p_con.add_argument("--max-depth", type=int, default=3)

    p_com = sub.add_parser("common", help="Find common ground across papers")
    p_com.add_argument("papers", nargs="+", help="Two or more paper ids")

    args = parser.parse_args()

    kwargs = {"corpus": args.corpus} if args.provider == "memory" else {}
    retriever = PaperRetriever(get_provider(args.provider, **kwargs))
    deadline = Deadline(args.timeout) if args.timeout else None

    t_start = time.time()
    try:
        COMMANDS[args.command](args, retriever, deadline)
    except DiscoveryError as exc:
        logger.error("%s failed: %s", args.command, exc)
        sys.exit(1)
    finally:
        logger.info("Done in %.1fs | cache: %s", time.time() - t_start, retriever.cache_stats())


if __name__ == "__main__":
    main()
