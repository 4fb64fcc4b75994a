"""Function-calling tools over a loaded list of channel videos.

Each tool returns a JSON-serializable dict. Charts carry ``_chartType``,
generated images ``_imageType`` and video cards ``_videoType``; anything else
(statistics, errors) is plain data the model reads directly.
"""

import logging
import math
import re
import statistics
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from models.channel import watch_url
from services.image_generation_service import ImageGenerationService

logger = logging.getLogger(__name__)

NUMERIC_FIELDS = ("view_count", "like_count", "comment_count")
CHART_TYPES = ("timeseries_bar", "timeseries_line", "ranking", "scatter", "histogram")
DEFAULT_RANKING_LIMIT = 15
RANKING_LABEL_MAX_CHARS = 38

JSON_TOOL_DECLARATIONS: List[Dict[str, Any]] = [
    {
        "name": "compute_stats_json",
        "description": (
            "Compute descriptive statistics (mean, median, std, min, max, count) for a "
            "numeric field of the loaded channel videos. Numeric fields: view_count, "
            "like_count, comment_count. Call this for any question about averages, "
            "medians, spread, ranges or a summary of a metric."
        ),
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "field": {
                    "type": "STRING",
                    "description": 'Numeric field to analyze, e.g. "view_count".',
                },
            },
            "required": ["field"],
        },
    },
    {
        "name": "plot_metric_vs_time",
        "description": (
            "Chart a numeric metric of the loaded channel videos. The chart is rendered "
            "by the app. Call this whenever the user asks to plot, chart, graph, "
            "visualize, rank or compare videos, or asks how a metric changed.\n"
            'chart_type: "timeseries_bar" (metric by release date, few videos), '
            '"timeseries_line" (long-term trend), "ranking" (top-N sorted bars), '
            '"scatter" (metric against y_metric), "histogram" (value distribution).'
        ),
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "metric": {
                    "type": "STRING",
                    "description": '"view_count", "like_count" or "comment_count".',
                },
                "chart_type": {
                    "type": "STRING",
                    "description": 'One of the chart types above. Default "timeseries_bar".',
                },
                "y_metric": {
                    "type": "STRING",
                    "description": "Scatter only: the Y-axis metric. X uses metric.",
                },
                "limit": {
                    "type": "NUMBER",
                    "description": "Max videos to include (default: all; 15 for ranking).",
                },
            },
            "required": ["metric"],
        },
    },
    {
        "name": "play_video",
        "description": (
            "Show one of the loaded videos as a clickable card. Find it by title "
            "substring (query), 1-based position (ordinal) or named criteria such as "
            '"most viewed", "most liked", "most commented", "least viewed", "latest" or '
            '"oldest". Call this when the user wants to play, open, watch or see a video.'
        ),
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "query": {
                    "type": "STRING",
                    "description": "Title substring to search for.",
                },
                "ordinal": {
                    "type": "NUMBER",
                    "description": "1-based position of the video in the dataset.",
                },
                "criteria": {
                    "type": "STRING",
                    "description": 'Selection rule, e.g. "most viewed" or "latest".',
                },
            },
            "required": [],
        },
    },
    {
        "name": "generateImage",
        "description": (
            "Generate an image from a text prompt, anchored to any reference images the "
            "user attached. Call this when the user asks to generate, create, draw or "
            "design an image, thumbnail, banner or illustration."
        ),
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "prompt": {
                    "type": "STRING",
                    "description": "Detailed description of the image to generate.",
                },
                "style": {
                    "type": "STRING",
                    "description": 'Optional style hint, e.g. "photorealistic".',
                },
            },
            "required": ["prompt"],
        },
    },
]

JSON_TOOL_NAMES = [declaration["name"] for declaration in JSON_TOOL_DECLARATIONS]

# Without generateImage: the lightweight chat model rarely calls it correctly
JSON_DATA_TOOL_DECLARATIONS = [
    declaration
    for declaration in JSON_TOOL_DECLARATIONS
    if declaration["name"] != "generateImage"
]


def _to_number(value: Any) -> Optional[float]:
    """Coerce a field value to a finite float, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _date_key(value: Any) -> datetime:
    try:
        return datetime.fromisoformat(str(value)[:10])
    except ValueError:
        return datetime.min


def _format_bin_value(value: float) -> str:
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.0f}K"
    return str(round(value))


def format_bin_label(low: float, high: float) -> str:
    """Human label for a histogram bin, e.g. ``1.2M-2.4M``."""
    return f"{_format_bin_value(low)}-{_format_bin_value(high)}"


def histogram_bin_count(n: int) -> int:
    """sqrt(n) bins, kept between 5 and 10."""
    return min(10, max(5, math.ceil(math.sqrt(n))))


def compute_stats(values: Sequence[float]) -> Dict[str, Any]:
    """Descriptive statistics with population standard deviation.

    Args:
        values: Non-empty list of numbers

    Returns:
        Dict with count, mean, median, std (rounded to 4 decimals), min and max
    """
    return {
        "count": len(values),
        "mean": round(statistics.fmean(values), 4),
        "median": round(statistics.median(values), 4),
        "std": round(statistics.pstdev(values), 4),
        "min": min(values),
        "max": max(values),
    }


def _limit(value: Any) -> Optional[int]:
    number = _to_number(value)
    if not number or number < 1:
        return None
    return int(number)


class ChannelToolExecutor:
    """Executes channel tools against one conversation's video list."""

    def __init__(
        self,
        videos: Sequence[Dict[str, Any]],
        image_service: Optional[ImageGenerationService] = None,
        anchor_images: Sequence[Dict[str, str]] = (),
    ):
        self.videos = list(videos or [])
        self.image_service = image_service
        self.anchor_images = list(anchor_images)

    async def execute(self, name: str, args: Dict[str, Any]) -> Any:
        """Run one tool call. Unknown tools and empty data give an error dict."""
        args = args or {}
        if name == "generateImage":
            return await self.generate_image(args.get("prompt", ""), args.get("style"))
        if not self.videos:
            return {"error": "No JSON data loaded."}
        if name == "compute_stats_json":
            return self.compute_stats_json(args.get("field", ""))
        if name == "plot_metric_vs_time":
            return self.plot_metric_vs_time(
                metric=args.get("metric", ""),
                chart_type=args.get("chart_type"),
                y_metric=args.get("y_metric"),
                limit=args.get("limit"),
            )
        if name == "play_video":
            return self.play_video(
                query=args.get("query"),
                ordinal=args.get("ordinal"),
                criteria=args.get("criteria"),
            )
        return {"error": f"Unknown JSON tool: {name}"}

    def _numeric_values(self, field: str) -> List[float]:
        values = (_to_number(video.get(field)) for video in self.videos)
        return [v for v in values if v is not None]

    def compute_stats_json(self, field: str) -> Dict[str, Any]:
        values = self._numeric_values(field)
        if not values:
            available = ", ".join(self.videos[0].keys())
            return {
                "error": f'No numeric values found for field "{field}". '
                f"Available fields: {available}"
            }
        return {"field": field, **compute_stats(values)}

    def plot_metric_vs_time(
        self,
        metric: str,
        chart_type: Optional[str] = None,
        y_metric: Optional[str] = None,
        limit: Any = None,
    ) -> Dict[str, Any]:
        """Build chart data for the requested chart type."""
        chart_type = chart_type or "timeseries_bar"
        limit = _limit(limit)

        if chart_type == "scatter":
            return self._scatter(metric, y_metric, limit)
        if chart_type == "histogram":
            return self._histogram(metric)
        if chart_type == "ranking":
            return self._ranking(metric, limit)
        return self._timeseries(metric, limit, line=chart_type == "timeseries_line")

    def _scatter(self, metric: str, y_metric: Optional[str], limit: Optional[int]) -> Dict[str, Any]:
        y_field = y_metric or ("like_count" if metric == "view_count" else "view_count")
        points = [
            {
                "x": _to_number(video.get(metric)),
                "y": _to_number(video.get(y_field)),
                "label": video.get("title") or "",
            }
            for video in self.videos
        ]
        points = [p for p in points if p["x"] is not None and p["y"] is not None]
        if not points:
            return {"error": f'No videos with both "{metric}" and "{y_field}".'}
        return {
            "_chartType": "scatter",
            "data": points[:limit] if limit else points,
            "metric": metric,
            "yMetric": y_field,
        }

    def _histogram(self, metric: str) -> Dict[str, Any]:
        values = self._numeric_values(metric)
        if not values:
            return {"error": f'No numeric values for "{metric}".'}

        low, high = min(values), max(values)
        bin_count = histogram_bin_count(len(values))
        bin_size = (high - low) / bin_count or 1
        counts = [0] * bin_count
        for value in values:
            counts[min(int((value - low) // bin_size), bin_count - 1)] += 1

        bins = []
        for i, count in enumerate(counts):
            bin_low = low + i * bin_size
            bin_high = low + (i + 1) * bin_size
            bins.append(
                {
                    "bin": format_bin_label(bin_low, bin_high),
                    "count": count,
                    "lo": bin_low,
                    "hi": bin_high,
                }
            )
        return {"_chartType": "histogram", "data": bins, "metric": metric}

    def _ranking(self, metric: str, limit: Optional[int]) -> Dict[str, Any]:
        ranked = []
        for video in self.videos:
            value = _to_number(video.get(metric))
            if value is not None:
                ranked.append((value, video))
        if not ranked:
            return {"error": f'No videos with "{metric}" data.'}
        ranked.sort(key=lambda item: item[0], reverse=True)

        data = []
        for value, video in ranked[: limit or DEFAULT_RANKING_LIMIT]:
            title = video.get("title") or ""
            label = title[:RANKING_LABEL_MAX_CHARS]
            if len(title) > RANKING_LABEL_MAX_CHARS:
                label += "…"
            data.append({"label": label, "value": value, "fullTitle": title})
        return {"_chartType": "ranking", "data": data, "metric": metric}

    def _timeseries(self, metric: str, limit: Optional[int], line: bool) -> Dict[str, Any]:
        dated = [
            video
            for video in self.videos
            if _to_number(video.get(metric)) is not None and video.get("release_date")
        ]
        dated.sort(key=lambda video: _date_key(video["release_date"]))
        if limit:
            dated = dated[:limit]
        if not dated:
            hint = "" if line else " Try a different metric."
            return {"error": f'No videos with both "{metric}" and "release_date".{hint}'}
        return {
            "_chartType": "timeseries_line" if line else "timeseries",
            "data": [
                {
                    "date": video["release_date"],
                    "value": _to_number(video.get(metric)),
                    "title": video.get("title") or "",
                }
                for video in dated
            ],
            "metric": metric,
        }

    def _pick_by_criteria(self, criteria: str) -> Dict[str, Any]:
        c = criteria.lower()

        def by(field: str, most: bool) -> Dict[str, Any]:
            return sorted(
                self.videos,
                key=lambda video: _to_number(video.get(field)) or 0,
                reverse=most,
            )[0]

        if re.search(r"most.?(view|play|watch|popular)", c):
            return by("view_count", most=True)
        if re.search(r"most.?lik", c):
            return by("like_count", most=True)
        if re.search(r"most.?comment", c):
            return by("comment_count", most=True)
        if re.search(r"least.?(view|play)", c):
            return by("view_count", most=False)
        if re.search(r"least.?lik", c):
            return by("like_count", most=False)
        if re.search(r"least.?comment", c):
            return by("comment_count", most=False)
        if re.search(r"latest|newest|recent", c):
            return max(self.videos, key=lambda video: _date_key(video.get("release_date")))
        if re.search(r"oldest|earliest", c):
            return min(self.videos, key=lambda video: _date_key(video.get("release_date")))
        return self.videos[0]

    def play_video(
        self,
        query: Optional[str] = None,
        ordinal: Any = None,
        criteria: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Select one video and return it as a video card."""
        if criteria:
            video = self._pick_by_criteria(criteria)
        elif ordinal is not None:
            index = max(0, int(_to_number(ordinal) or 1) - 1)
            video = self.videos[index] if index < len(self.videos) else self.videos[0]
        elif query:
            needle = query.lower()
            video = next(
                (v for v in self.videos if needle in (v.get("title") or "").lower()),
                self.videos[0],
            )
        else:
            video = self.videos[0]

        video_id = video.get("video_id") or ""
        return {
            "_videoType": "youtube",
            "videoId": video_id,
            "title": video.get("title") or "",
            "thumbnail": video.get("thumbnail") or "",
            "url": video.get("video_url") or watch_url(video_id),
            "duration": video.get("duration") or "",
            "view_count": video.get("view_count") or None,
            "like_count": video.get("like_count") or None,
        }

    async def generate_image(self, prompt: str, style: Optional[str] = None) -> Dict[str, Any]:
        """Generate an image through the image service.

        Raises:
            ImageGenerationServiceError: Propagated so the chat turn fails visibly.
        """
        if self.image_service is None:
            return {"error": "Image generation is not available."}
        if style:
            prompt = f"{prompt} Style: {style}"
        return await self.image_service.generate(prompt, self.anchor_images)
