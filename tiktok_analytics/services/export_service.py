"""
Export Service
Per-video table rendering as CSV
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

from tiktok_analytics.app.config import get_config
from tiktok_analytics.domain.models import VideoMetric

logger = logging.getLogger(__name__)

CSV_HEADER = [
    "id",
    "url",
    "date",
    "time",
    "views",
    "likes",
    "comments",
    "shares",
    "newFollowers",
    "avgWatchTime",
]


def _format_number(value: Union[int, float]) -> str:
    # 21.0 -> "21", 21.5 -> "21.5"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def filter_videos(videos: Iterable[VideoMetric], query: Optional[str]) -> List[VideoMetric]:
    """Case-insensitive substring match on the video ID"""
    if not query:
        return list(videos)
    needle = query.lower()
    return [video for video in videos if needle in video.id.lower()]


def export_csv(videos: Iterable[VideoMetric]) -> str:
    """
    Render the per-video table

    Fields are comma-joined without quoting, one row per video, rows
    separated by a bare newline. No trailing newline.

    Args:
        videos: Videos in display order

    Returns:
        CSV text
    """
    rows = [",".join(CSV_HEADER)]
    for video in videos:
        rows.append(
            ",".join(
                [
                    video.id,
                    video.video_url,
                    video.post_date,
                    video.post_time,
                    _format_number(video.views),
                    _format_number(video.likes),
                    _format_number(video.comments),
                    _format_number(video.shares),
                    _format_number(video.new_followers),
                    _format_number(video.avg_watch_time),
                ]
            )
        )
    return "\n".join(rows)


def write_csv(
    videos: Iterable[VideoMetric], path: Optional[Union[str, Path]] = None
) -> Path:
    """
    Write the CSV export to disk (UTF-8)

    Args:
        videos: Videos to export
        path: Target file (defaults to the configured export directory);
            parent directories are created

    Returns:
        Path written
    """
    if path is None:
        config = get_config()
        path = config.get_export_dir() / config.storage.csv_filename

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)

    videos = list(videos)
    target.write_text(export_csv(videos), encoding="utf-8")
    logger.info(f"💾 Exported {len(videos)} videos to {target}")
    return target
