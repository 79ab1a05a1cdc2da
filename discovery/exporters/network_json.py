"""JSON exports for networks and connections."""

import json
import logging

from pydantic import BaseModel

logger = logging.getLogger(__name__)


def export_network_json(network: BaseModel, output_path: str) -> None:
    """Write a network (or paginated network) as indented JSON."""
    with open(output_path, "w") as f:
        json.dump(network.model_dump(mode="json"), f, indent=2)
    logger.info("Network JSON exported to %s", output_path)


def export_connection_json(connection: BaseModel, output_path: str) -> None:
    """Write a LiteratureConnection or MultiPaperConnection as JSON."""
    with open(output_path, "w") as f:
        json.dump(connection.model_dump(mode="json"), f, indent=2)
    logger.info("Connection JSON exported to %s", output_path)
