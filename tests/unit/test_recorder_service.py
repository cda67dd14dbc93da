"""Unit tests for RecorderService."""

from pathlib import Path

import pytest
from pubsub import pub

from conftest import FakePlayer, chunk_with_amplitude, wait_for, write_wav
from wavetrace.config import WaveTraceConfig
from wavetrace.exceptions import PlayerError
from wavetrace.models.playback import PlaybackState
from wavetrace.playback.playback_pub import PLAYBACK_PROGRESS_TOPIC
from wavetrace.services.recorder_service import RecorderService
from wavetrace.storage.waveform_store import sidecar_path_for


@pytest.fixture
def config(config_file):
    return WaveTraceConfig(config_file)


@pytest.fixture
def service(config, fake_player, capture_factory):
    service = RecorderService(config, player=fake_player, capture_factory=capture_factory)
    yield service
    service.shutdown()


def record(service, capture_factory, amplitudes):
    assert service.start_recording()["success"] is True
    capture = capture_factory.built[-1]
    for amplitude in amplitudes:
        capture.emit(chunk_with_amplitude(amplitude))
    return service.stop_recording()


@pytest.mark.unit
class TestRecorderService:
    """Test cases for RecorderService."""

    def test_uses_configured_data_directory(self, service, temp_data_dir):
        expected = Path(temp_data_dir) / "data"
        assert Path(service.file_manager.data_dir) == expected.absolute()
        assert service.playback_sync.poll_interval == pytest.approx(0.01)

    def test_record_adds_recording_and_cache_entry(self, service, capture_factory):
        result = record(service, capture_factory, [0.1, 0.4, 0.2])

        assert result.success is True
        assert [r.path for r in service.recordings] == [result.recording.path]
        cached = service.waveform_store.cache_lookup(result.recording.path)
        assert cached == pytest.approx([0.1, 0.4, 0.2], abs=1e-4)
        assert service.current_waveform() == result.waveform
        assert service.is_recording is False

    def test_start_recording_twice(self, service):
        assert service.start_recording()["success"] is True

        result = service.start_recording()

        assert result["success"] is False
        assert "Already recording" in result["error"]

    def test_stop_recording_when_idle(self, service):
        result = service.stop_recording()

        assert result.success is False
        assert result.error == "Not recording"

    def test_live_waveform_while_recording(self, service, capture_factory):
        service.start_recording()
        capture_factory.built[0].emit(chunk_with_amplitude(0.5))

        assert wait_for(lambda: len(service.current_waveform()) == 1)
        assert service.current_waveform()[0] == pytest.approx(0.5, abs=1e-4)

    def test_start_recording_failure(self, config, fake_player):
        def factory(callback, output_path):
            raise OSError("no input device")

        service = RecorderService(config, player=fake_player, capture_factory=factory)

        result = service.start_recording()

        assert result["success"] is False
        assert "no input device" in result["error"]
        assert service.is_recording is False

    def test_load_recordings_reads_sidecars(self, service):
        recordings_dir = service.file_manager.recordings_dir
        good = write_wav(recordings_dir / "recording_1000.wav")
        bad = write_wav(recordings_dir / "recording_2000.wav")
        bare = write_wav(recordings_dir / "recording_3000.wav")
        Path(sidecar_path_for(good)).write_text("[0.25, 0.5]", encoding="utf-8")
        Path(sidecar_path_for(bad)).write_text("not json", encoding="utf-8")

        recordings = service.load_recordings()

        assert len(recordings) == 3
        assert service.waveform_store.cache_lookup(good) == (0.25, 0.5)
        assert service.waveform_store.cache_lookup(bad) == ()
        assert service.waveform_store.cache_lookup(bare) == ()

    def test_find_recording(self, service, capture_factory):
        result = record(service, capture_factory, [0.1])
        name = result.recording.name

        assert service.find_recording(name).path == result.recording.path
        assert service.find_recording(Path(name).stem).path == result.recording.path
        assert service.find_recording("missing") is None


@pytest.mark.unit
class TestRecorderServicePlayback:
    """Playback through the service."""

    def test_play_shows_cached_waveform_until_done(self, service, capture_factory, fake_player):
        recording = record(service, capture_factory, [0.1, 0.4]).recording

        result = service.play(recording.path)

        assert result["success"] is True
        assert result["state"] == "playing"
        assert fake_player.handles[0].path == recording.path
        assert service.current_waveform() == pytest.approx([0.1, 0.4], abs=1e-4)
        assert wait_for(lambda: service.playback_status().state is PlaybackState.IDLE)
        assert fake_player.handles[0].released

    def test_progress_is_published(self, service, capture_factory):
        recording = record(service, capture_factory, [0.1]).recording
        received = []

        def listener(status):
            received.append(status)

        pub.subscribe(listener, PLAYBACK_PROGRESS_TOPIC)
        try:
            service.play(recording.path)
            assert wait_for(lambda: received and received[-1].state is PlaybackState.IDLE)
        finally:
            pub.unsubscribe(listener, PLAYBACK_PROGRESS_TOPIC)

        progresses = [s.progress for s in received if s.is_active]
        assert progresses[0] == 0.0
        assert 1.0 in progresses
        assert progresses == sorted(progresses)

    def test_play_refused_while_recording(self, service, capture_factory):
        recording = record(service, capture_factory, [0.1]).recording
        service.start_recording()

        result = service.play(recording.path)

        assert result["success"] is False
        assert "Recording in progress" in result["error"]

    def test_play_load_error(self, service, fake_player):
        fake_player.load_error = PlayerError("cannot open")

        result = service.play("/nowhere.wav")

        assert result["success"] is False
        assert "cannot open" in result["error"]
        assert service.playback_status().state is PlaybackState.IDLE

    def test_recording_stops_playback(self, config, capture_factory):
        player = FakePlayer(times=[1.0], duration=10.0, finish_at_end=False)
        service = RecorderService(config, player=player, capture_factory=capture_factory)
        recording = record(service, capture_factory, [0.1]).recording
        service.play(recording.path)

        service.start_recording()

        assert service.playback_status().state is PlaybackState.IDLE
        assert player.handles[0].released
        assert service.current_waveform() == ()
        service.shutdown()

    def test_toggle_pause(self, config, capture_factory):
        player = FakePlayer(times=[1.0], duration=10.0, finish_at_end=False)
        service = RecorderService(config, player=player, capture_factory=capture_factory)
        recording = record(service, capture_factory, [0.1]).recording

        assert service.toggle_pause()["success"] is False

        service.play(recording.path)
        assert service.toggle_pause()["state"] == "paused"
        assert service.toggle_pause()["state"] == "playing"

        service.stop_playback()
        assert service.playback_status().state is PlaybackState.IDLE
        service.shutdown()


@pytest.mark.unit
class TestRecorderServiceLibrary:
    """Rename and delete through the service."""

    def test_rename_moves_audio_and_sidecar(self, service, capture_factory):
        recording = record(service, capture_factory, [0.3, 0.6]).recording

        result = service.rename_recording(recording.path, "standup")

        assert result["success"] is True
        assert result["warnings"] == []
        new_path = result["path"]
        assert Path(new_path).name == "standup.wav"
        assert not Path(recording.path).exists()
        assert not Path(sidecar_path_for(recording.path)).exists()
        assert Path(sidecar_path_for(new_path)).exists()
        assert service.waveform_store.cache_lookup(new_path) == pytest.approx([0.3, 0.6], abs=1e-4)
        assert [r.name for r in service.recordings] == ["standup.wav"]

    def test_rename_refuses_existing_target(self, service, capture_factory):
        first = record(service, capture_factory, [0.1]).recording
        second = record(service, capture_factory, [0.2]).recording
        service.rename_recording(first.path, "taken")

        result = service.rename_recording(second.path, "taken")

        assert result["success"] is False
        assert "already exists" in result["error"]
        assert Path(second.path).exists()

    @pytest.mark.parametrize("name", ["", "a/b"])
    def test_rename_rejects_bad_names(self, service, capture_factory, name):
        recording = record(service, capture_factory, [0.1]).recording

        result = service.rename_recording(recording.path, name)

        assert result["success"] is False
        assert Path(recording.path).exists()

    def test_rename_stops_playing_recording(self, config, capture_factory):
        player = FakePlayer(times=[1.0], duration=10.0, finish_at_end=False)
        service = RecorderService(config, player=player, capture_factory=capture_factory)
        recording = record(service, capture_factory, [0.1]).recording
        service.play(recording.path)

        result = service.rename_recording(recording.path, "renamed")

        assert result["success"] is True
        assert service.playback_status().state is PlaybackState.IDLE
        assert player.handles[0].released
        service.shutdown()

    def test_delete_removes_audio_and_sidecar(self, service, capture_factory):
        recording = record(service, capture_factory, [0.1]).recording

        result = service.delete_recording(recording.path)

        assert result["success"] is True
        assert not Path(recording.path).exists()
        assert not Path(sidecar_path_for(recording.path)).exists()
        assert service.waveform_store.cache_lookup(recording.path) == ()
        assert recording.path not in service.waveform_store.cached_ids()
        assert service.recordings == []

    def test_delete_twice_succeeds(self, service, capture_factory):
        recording = record(service, capture_factory, [0.1]).recording

        service.delete_recording(recording.path)
        result = service.delete_recording(recording.path)

        assert result["success"] is True

    def test_delete_playing_recording_stops_playback(self, config, capture_factory):
        player = FakePlayer(times=[1.0], duration=10.0, finish_at_end=False)
        service = RecorderService(config, player=player, capture_factory=capture_factory)
        recording = record(service, capture_factory, [0.1]).recording
        service.play(recording.path)

        service.delete_recording(recording.path)

        assert service.playback_status().state is PlaybackState.IDLE
        assert service.current_waveform() == ()
        assert player.handles[0].released
        service.shutdown()

    def test_storage_stats(self, service, capture_factory):
        record(service, capture_factory, [0.1])

        stats = service.get_storage_stats()

        assert stats["audio_files"] == 1
        assert stats["sidecar_files"] == 1
