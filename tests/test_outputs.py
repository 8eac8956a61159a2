"""Tests for action outputs."""

import json

from icr_registry_actions.core.types import OperationResult, ScanOutcome, ScanStatus
from icr_registry_actions.exceptions import VulnerabilitiesFound
from icr_registry_actions.outputs import build_outputs, format_outputs, write_outputs
from tests.helpers import DIGEST


def test_outputs_for_push_with_scan():
    """Test digest, scan result and status are all reported."""
    detail = {"status": "WARN", "vulnerability_count": 2}
    result = OperationResult.succeeded(
        "push",
        image_digest=DIGEST,
        scan_outcome=ScanOutcome(ScanStatus.WARN, detail=detail, attempts=1),
    )

    outputs = build_outputs(result)

    assert outputs == {
        "operation-status": "success",
        "image-digest": DIGEST,
        "scan-result": json.dumps(detail),
    }


def test_outputs_for_failed_scan_keep_digest():
    """Test a failed scan still reports the digest."""
    result = OperationResult.failed(
        "push",
        VulnerabilitiesFound("FAIL"),
        image_digest=DIGEST,
        scan_outcome=ScanOutcome(ScanStatus.FAIL, detail={"status": "FAIL"}),
    )

    outputs = build_outputs(result)

    assert outputs["operation-status"] == "failure"
    assert outputs["image-digest"] == DIGEST
    assert json.loads(outputs["scan-result"]) == {"status": "FAIL"}


def test_outputs_for_namespace_list():
    """Test namespaces are a JSON array in registry order."""
    result = OperationResult.succeeded("namespace", namespaces=["b", "a"])

    outputs = build_outputs(result)

    assert outputs == {"operation-status": "success", "namespaces": '["b", "a"]'}


def test_outputs_without_scan_or_digest():
    """Test optional outputs are absent when not produced."""
    outputs = build_outputs(OperationResult.succeeded("tag"))
    assert outputs == {"operation-status": "success"}


def test_format_outputs_single_line():
    """Test plain name=value lines."""
    assert format_outputs({"a": "1", "b": "two"}) == "a=1\nb=two\n"


def test_format_outputs_multi_line():
    """Test multi-line values use a delimiter block."""
    rendered = format_outputs({"report": "line1\nline2"})

    lines = rendered.splitlines()
    assert lines[0].startswith("report<<ghadelimiter_")
    delimiter = lines[0].split("<<", 1)[1]
    assert lines[1:] == ["line1", "line2", delimiter]


def test_write_outputs_appends_to_file(tmp_path):
    """Test outputs are appended to an existing output file."""
    output_file = tmp_path / "github_output"
    output_file.write_text("previous=1\n")

    rendered = write_outputs(OperationResult.succeeded("tag"), str(output_file))

    assert rendered == "operation-status=success\n"
    assert output_file.read_text() == "previous=1\noperation-status=success\n"


def test_write_outputs_without_file():
    """Test rendering without an output file."""
    rendered = write_outputs(OperationResult.succeeded("delete"), None)
    assert rendered == "operation-status=success\n"
