# tests/unit/test_export_service.py
"""
Unit Tests for CSV export
"""

from datetime import datetime

from tiktok_analytics.app.config import get_config
from tiktok_analytics.services.export_service import (
    CSV_HEADER,
    export_csv,
    filter_videos,
    write_csv,
)


class TestExportCSV:
    """Test CSV rendering"""

    def test_header_only_for_no_videos(self):
        assert export_csv([]) == (
            "id,url,date,time,views,likes,comments,shares,newFollowers,avgWatchTime"
        )

    def test_row_layout(self, video_factory):
        video = video_factory(
            "7300000000000000001",
            views=12000,
            likes=900,
            comments=45,
            shares=30,
            new_followers=9,
            avg_watch_time=21.0,
            published_at=datetime(2024, 1, 5, 7, 3),
        )

        lines = export_csv([video]).split("\n")

        assert lines[0].split(",") == CSV_HEADER
        assert lines[1] == (
            "7300000000000000001,"
            "https://www.tiktok.com/@demo/video/7300000000000000001,"
            "2024-01-05,07:03,12000,900,45,30,9,21"
        )

    def test_fractional_watch_time_kept(self, video_factory):
        row = export_csv([video_factory(avg_watch_time=18.5)]).split("\n")[1]

        assert row.endswith(",18.5")

    def test_no_quoting_and_no_trailing_newline(self, video_factory):
        videos = [video_factory("a"), video_factory("b"), video_factory("c")]

        text = export_csv(videos)

        assert '"' not in text
        assert not text.endswith("\n")
        assert len(text.split("\n")) == 4

    def test_order_preserved(self, video_factory):
        videos = [video_factory("z"), video_factory("a"), video_factory("m")]

        ids = [line.split(",")[0] for line in export_csv(videos).split("\n")[1:]]

        assert ids == ["z", "a", "m"]

    def test_write_csv(self, video_factory, tmp_path):
        target = tmp_path / "exports" / "tiktok_data.csv"

        written = write_csv([video_factory("a")], target)

        assert written == target
        assert target.read_text(encoding="utf-8").startswith("id,url,")

    def test_write_csv_default_location(self, video_factory):
        config = get_config()

        written = write_csv([video_factory("a")])

        assert written.parent == config.get_export_dir()
        assert written.name == config.storage.csv_filename


class TestFilterVideos:
    def test_case_insensitive_id_match(self, video_factory):
        videos = [video_factory("mock_video_20240101"), video_factory("Other")]

        assert [v.id for v in filter_videos(videos, "VIDEO")] == ["mock_video_20240101"]
        assert len(filter_videos(videos, None)) == 2

