"""Action outputs for an operation result."""

import json
import uuid
from pathlib import Path
from typing import Mapping, Optional

from .core.types import OperationResult


def build_outputs(result: OperationResult) -> dict[str, str]:
    """Map a result to output names and string values.

    ``scan-result`` is only present when a scan ran, ``namespaces`` only for
    a namespace list and ``image-digest`` only when one was reported.
    """
    outputs = {"operation-status": result.status.value}
    if result.image_digest:
        outputs["image-digest"] = result.image_digest
    if result.namespaces is not None:
        outputs["namespaces"] = json.dumps(list(result.namespaces))
    if result.scan_outcome is not None:
        outputs["scan-result"] = json.dumps(result.scan_outcome.detail)
    return outputs


def format_outputs(outputs: Mapping[str, str]) -> str:
    """Render outputs as ``name=value`` lines.

    Multi-line values use the ``name<<delimiter`` form understood by
    GitHub Actions output files.
    """
    lines = []
    for name, value in outputs.items():
        if "\n" in value:
            delimiter = f"ghadelimiter_{uuid.uuid4()}"
            lines.extend([f"{name}<<{delimiter}", value, delimiter])
        else:
            lines.append(f"{name}={value}")
    return "\n".join(lines) + "\n"


def write_outputs(result: OperationResult, output_file: Optional[str]) -> str:
    """Append the outputs of ``result`` to ``output_file`` when given.

    Returns:
        The rendered outputs
    """
    rendered = format_outputs(build_outputs(result))
    if output_file:
        with Path(output_file).open("a", encoding="utf-8") as f:
            f.write(rendered)
    return rendered
