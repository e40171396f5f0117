"""Tests for typed result records."""

import pytest

from aria2rpc import (
    Aria2Error,
    DownloadState,
    DownloadStatus,
    ErrorKind,
    GlobalStat,
    VersionInfo,
)
from aria2rpc.protocol.errors import MALFORMED_RESULT
from aria2rpc.records import BitTorrentInfo, parse_status_list


def assert_malformed(func, *args, **kwargs):
    with pytest.raises(Aria2Error) as exc_info:
        func(*args, **kwargs)
    assert exc_info.value.kind is ErrorKind.PROTOCOL_FAULT
    assert exc_info.value.code == MALFORMED_RESULT
    return exc_info.value


class TestDownloadStatus:
    """Tests for DownloadStatus parsing."""

    def test_full_status(self, status_payload):
        status = DownloadStatus.from_dict(status_payload)

        assert status.gid == "2089b05ecca3d829"
        assert status.status is DownloadState.ACTIVE
        assert status.total_length == 34896138
        assert status.download_speed == 1024
        assert status.connections == 1
        assert status.dir == "/downloads"
        assert status.raw is status_payload
        assert status.progress == 1.0
        assert not status.is_finished

        (file,) = status.files
        assert file.index == 1
        assert file.selected is True
        assert file.progress == 1.0
        assert [uri.status for uri in file.uris] == ["used", "waiting"]

    def test_missing_required_field(self, status_payload):
        del status_payload["dir"]
        error = assert_malformed(DownloadStatus.from_dict, status_payload)
        assert "dir" in error.message

    def test_partial_status(self):
        status = DownloadStatus.from_dict(
            {"gid": "2089b05ecca3d829", "status": "complete"}, partial=True
        )
        assert status.status is DownloadState.COMPLETE
        assert status.total_length is None
        assert status.files == []
        assert status.is_finished

    def test_unknown_status_value(self, status_payload):
        status_payload["status"] = "sleeping"
        assert_malformed(DownloadStatus.from_dict, status_payload)

    def test_non_numeric_length(self, status_payload):
        status_payload["totalLength"] = "lots"
        assert_malformed(DownloadStatus.from_dict, status_payload)

    def test_not_a_mapping(self):
        assert_malformed(DownloadStatus.from_dict, ["gid"])

    def test_zero_length_progress(self, status_payload):
        status_payload["totalLength"] = "0"
        status_payload["completedLength"] = "0"
        assert DownloadStatus.from_dict(status_payload).progress is None

    def test_bittorrent(self, status_payload):
        status_payload["infoHash"] = "abcdef"
        status_payload["bittorrent"] = {
            "announceList": [["udp://tracker/announce"]],
            "creationDate": 1700000000,
            "mode": "single",
            "info": {"name": "file.zip"},
        }
        status = DownloadStatus.from_dict(status_payload)
        assert status.info_hash == "abcdef"
        assert status.bittorrent == BitTorrentInfo(
            announce_list=[["udp://tracker/announce"]],
            creation_date=1700000000,
            mode="single",
            name="file.zip",
        )


class TestStatusList:
    def test_parses_each_entry(self, status_payload):
        statuses = parse_status_list([status_payload, status_payload])
        assert len(statuses) == 2

    def test_reports_bad_index(self, status_payload):
        error = assert_malformed(parse_status_list, [status_payload, {"gid": 1}])
        assert "index 1" in error.message

    def test_not_a_list(self):
        assert_malformed(parse_status_list, {"gid": "x"})


class TestGlobalStat:
    def test_parse(self):
        stat = GlobalStat.from_dict(
            {
                "downloadSpeed": "2048",
                "uploadSpeed": "0",
                "numActive": "1",
                "numWaiting": "2",
                "numStopped": "3",
                "numStoppedTotal": "4",
            }
        )
        assert stat.download_speed == 2048
        assert stat.num_stopped_total == 4

    def test_missing_field(self):
        assert_malformed(GlobalStat.from_dict, {"downloadSpeed": "1"})


class TestVersionInfo:
    def test_parse(self):
        info = VersionInfo.from_dict(
            {"version": "1.37.0", "enabledFeatures": ["BitTorrent", "Metalink"]}
        )
        assert info.version == "1.37.0"
        assert info.supports("BitTorrent")
        assert not info.supports("SFTP")

    def test_missing_version(self):
        assert_malformed(VersionInfo.from_dict, {"enabledFeatures": []})
