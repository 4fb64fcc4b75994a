"""Classification and context-slimming of tool results.

Tools mark the artifacts they produce with a marker key, checked in the
order image, chart, video. The marker decides both how the chat layer
materializes the result (generated image, chart, video card) and what is
echoed back to the model. Raw artifacts can carry megabytes of base64 data;
the model only needs to know that one was produced, so artifact results are
replaced by a small summary before being sent back.
"""

from typing import Any, Callable, Dict, Optional

from models.chat import ToolResultKind

CHART_MARKER = "_chartType"
IMAGE_MARKER = "_imageType"
VIDEO_MARKER = "_videoType"

_MARKERS = (
    (IMAGE_MARKER, ToolResultKind.IMAGE),
    (CHART_MARKER, ToolResultKind.CHART),
    (VIDEO_MARKER, ToolResultKind.VIDEO_CARD),
)


def classify_tool_result(result: Any) -> ToolResultKind:
    """Decide the kind of a raw tool result from its marker key."""
    if isinstance(result, dict):
        for marker, kind in _MARKERS:
            if result.get(marker):
                return kind
    return ToolResultKind.DATA


def _image_summary(result: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "success": True,
        "imageGenerated": True,
        "prompt": result.get("prompt"),
        "mimeType": result.get("mimeType"),
    }


def _chart_summary(result: Dict[str, Any]) -> Dict[str, Any]:
    data = result.get("data")
    return {
        "success": True,
        "chartGenerated": True,
        "chartType": result.get(CHART_MARKER),
        "dataPoints": len(data) if isinstance(data, (list, tuple)) else 0,
    }


def _video_summary(result: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "success": True,
        "videoFound": True,
        "title": result.get("title"),
        "url": result.get("url"),
    }


_SANITIZERS: Dict[ToolResultKind, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    ToolResultKind.IMAGE: _image_summary,
    ToolResultKind.CHART: _chart_summary,
    ToolResultKind.VIDEO_CARD: _video_summary,
}


def sanitize_for_model(result: Any, kind: Optional[ToolResultKind] = None) -> Any:
    """Return the payload the model sees in place of ``result``.

    Plain data passes through unchanged.
    """
    if kind is None:
        kind = classify_tool_result(result)
    sanitizer = _SANITIZERS.get(kind)
    return sanitizer(result) if sanitizer else result
