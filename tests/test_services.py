import gc
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

import requests

from appium_snapshot.services import (
    Audio,
    FontLoader,
    OfflineAudio,
    Reachability,
    ServiceRegistry,
)


class StaticReachability:
    def __init__(self, reachable: bool):
        self.reachable = reachable

    def is_reachable(self) -> bool:
        return self.reachable


class TestServiceRegistry(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.audio_dir = Path(self.tmp.name) / "audio"

    def tearDown(self):
        self.tmp.cleanup()

    def registry(self, reachable=True) -> ServiceRegistry:
        return ServiceRegistry(
            reachability=StaticReachability(reachable),
            offline_audio_dir=self.audio_dir,
        )

    def test_audio_services_are_constructed(self):
        services = self.registry()
        self.assertIsInstance(services.offline_audio, OfflineAudio)
        self.assertIsInstance(services.audio, Audio)
        self.assertIs(services.offline_audio.services, services)
        self.assertIs(services.audio.services, services)
        self.assertIsNone(services.client)
        self.assertIsNone(services.local_caching_client)

    def test_audio_services_are_read_only(self):
        services = self.registry()
        with self.assertRaises(AttributeError):
            services.audio = None

    def test_back_reference_does_not_own_registry(self):
        services = self.registry()
        audio = services.audio
        del services
        gc.collect()
        with self.assertRaises(ReferenceError):
            audio.services

    def test_play_prefers_offline_file(self):
        services = self.registry()
        player = MagicMock()
        services.audio.player = player
        path = services.offline_audio.save(42, b"mp3")

        source = services.audio.play(42, ["https://cdn.example.com/42.mp3"])

        self.assertEqual(source, str(path))
        player.assert_called_once_with(str(path))

    def test_play_streams_when_reachable(self):
        services = self.registry(reachable=True)
        self.assertEqual(
            services.audio.play(7, ["https://cdn.example.com/7.mp3"]),
            "https://cdn.example.com/7.mp3",
        )

    def test_play_fails_offline(self):
        services = self.registry(reachable=False)
        self.assertIsNone(services.audio.play(7, ["https://cdn.example.com/7.mp3"]))

    def test_offline_audio_listing(self):
        offline = self.registry().offline_audio
        self.assertEqual(offline.available_subject_ids(), [])
        offline.save(3, b"a")
        offline.save(1, b"b")
        (self.audio_dir / "notes.mp3").write_bytes(b"")
        self.assertEqual(offline.available_subject_ids(), [1, 3])
        offline.delete_all()
        self.assertFalse(offline.is_available(1))


class TestFontLoader(unittest.TestCase):
    def test_load_fonts(self):
        with tempfile.TemporaryDirectory() as tmp:
            for name in ("NotoSansJP.otf", "Klee.ttc", "README.txt"):
                (Path(tmp) / name).write_bytes(b"")
            loader = FontLoader()
            self.assertEqual(loader.load(Path(tmp)), ["Klee", "NotoSansJP"])
            self.assertEqual(loader.load(Path(tmp)), [])
            self.assertTrue(loader.is_loaded("Klee"))
            self.assertEqual(loader.loaded_fonts, ["Klee", "NotoSansJP"])

    def test_missing_directory(self):
        self.assertEqual(FontLoader().load(Path("/nonexistent/fonts")), [])


class TestReachability(unittest.TestCase):
    def test_reachable(self):
        with patch("appium_snapshot.services.requests.head") as mock_head:
            mock_head.return_value.status_code = 200
            self.assertTrue(Reachability.for_internet_connection().is_reachable())

    def test_unreachable(self):
        with patch(
            "appium_snapshot.services.requests.head",
            side_effect=requests.ConnectionError("offline"),
        ):
            self.assertFalse(Reachability().is_reachable())


if __name__ == "__main__":
    unittest.main()
