"""Schema-hint presets for the structured responses callers request.

Vendor integrations pass one of these to the decoder instead of
carrying their own copy of the repair logic.
"""

from __future__ import annotations

from resilient_json.models.hints import SchemaHints

# Editorial review: ``analysis`` and ``issues`` come first, the long
# ``fixes`` list (full replacement paragraphs) comes last and is the
# part an output-token ceiling cuts.  A fix entry is complete once its
# ``reason`` or ``fixedText`` has been written.
EDITORIAL_REVIEW_HINTS = SchemaHints(
    tail_arrays=("fixes",),
    anchor_arrays=("issues",),
    terminal_fields=("reason", "fixedText"),
    default_objects={
        "readiness": {
            "isReadyForRelease": False,
            "blockingIssues": [],
            "suggestedImprovements": [],
        }
    },
    isolated_fields=("analysis",),
)
