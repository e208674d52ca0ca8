"""Tests for the Torrent record."""

import dataclasses

import pytest

from torrent_lifecycle.models import TORRENT_FIELDS, Torrent


class TestDerivedState:
    """downloaded / seeding flags come from the backend state."""

    @pytest.mark.parametrize('state', [
        'downloading', 'stalledDL', 'queuedDL', 'pausedDL', 'stoppedDL', 'checkingDL',
    ])
    def test_downloading_states_are_not_downloaded(self, make_torrent, state):
        assert make_torrent(state=state).downloaded is False

    def test_stalled_download(self, make_torrent):
        torrent = make_torrent(state='stalledDL')
        assert torrent.downloaded is False
        assert torrent.seeding is False

    def test_uploading_is_seeding_and_downloaded(self, make_torrent):
        torrent = make_torrent(state='uploading')
        assert torrent.seeding is True
        assert torrent.downloaded is True

    def test_stalled_upload_is_seeding(self, make_torrent):
        assert make_torrent(state='stalledUP').seeding is True

    def test_paused_upload_is_downloaded_not_seeding(self, make_torrent):
        torrent = make_torrent(state='pausedUP')
        assert torrent.downloaded is True
        assert torrent.seeding is False

    def test_state_comparison_ignores_case(self, make_torrent):
        assert make_torrent(state='STALLEDDL').downloaded is False
        assert make_torrent(state='Uploading').seeding is True


class TestDurations:
    """Hours and days are views over the same seconds."""

    def test_added_views(self, make_torrent):
        torrent = make_torrent(added_seconds=2 * 86400 + 3600 * 12)
        assert torrent.added_hours == pytest.approx(60.0)
        assert torrent.added_days == pytest.approx(2.5)

    def test_seeding_views(self, make_torrent):
        torrent = make_torrent(seeding_seconds=5400)
        assert torrent.seeding_hours == pytest.approx(1.5)
        assert torrent.seeding_days == pytest.approx(1.5 / 24)


class TestFreeSpaceView:
    """free_space_gb reads the owning client's estimate at access time."""

    def test_default_is_zero(self, make_torrent):
        torrent = make_torrent()
        assert torrent.free_space_gb == 0.0
        assert torrent.free_space_set is False

    def test_reads_live_value(self, make_torrent):
        estimate = {'gb': 10.0}
        torrent = make_torrent(free_space=lambda: estimate['gb'], free_space_set=True)

        assert torrent.free_space_gb == 10.0
        estimate['gb'] = 12.5
        assert torrent.free_space_gb == 12.5


class TestImmutability:

    def test_record_is_frozen(self, make_torrent):
        torrent = make_torrent()
        with pytest.raises(dataclasses.FrozenInstanceError):
            torrent.ratio = 10.0

    def test_as_dict_exposes_rule_fields(self, make_torrent):
        data = make_torrent().as_dict()
        assert set(data) == set(TORRENT_FIELDS)
        assert 'free_space' not in data
        assert data['seeding'] is True
        assert data['tracker_name'] == 'tracker.example'

    def test_minimal_record(self):
        torrent = Torrent(hash='h', name='n')
        assert torrent.files == ()
        assert torrent.tracker_name == ''
        assert torrent.tracker_status == ''
