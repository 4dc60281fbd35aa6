import base64
import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from click.testing import CliRunner

from appium_snapshot.robot import ElementRect, ScreenElement
from cli import cli

PNG_1X1 = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAIAAACQd1PeAAAAD0lEQVR4nGNgYAAAAAMAAWgmWQ0AAAAASUVORK5CYII="
)


class TestCli(unittest.TestCase):
    def setUp(self):
        self.runner = CliRunner()
        self.tmp = tempfile.TemporaryDirectory()
        self.home = Path(self.tmp.name)
        self.env = {"SIMULATOR_HOST_HOME": str(self.home)}

    def tearDown(self):
        self.tmp.cleanup()

    def test_tokenize_json(self):
        result = self.runner.invoke(cli, ["--json", "tokenize", 'foo "bar baz" qux'])
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(json.loads(result.output), ["foo", '"bar baz"', "qux"])

    def test_cache_dir(self):
        with patch.dict("os.environ", self.env):
            result = self.runner.invoke(cli, ["cache-dir", "--platform", "simulator"])
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(
            result.output.strip(), str(self.home / "Library/Caches/tools.fastlane")
        )

    def test_cache_dir_on_device_fails(self):
        result = self.runner.invoke(cli, ["cache-dir", "--platform", "device"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("physical device", result.output)

    def test_launch_args(self):
        cache_dir = self.home / "Library/Caches/tools.fastlane"
        cache_dir.mkdir(parents=True)
        (cache_dir / "language.txt").write_text("ja\n", encoding="utf-8")
        (cache_dir / "locale.txt").write_text("ja_JP\n", encoding="utf-8")
        (cache_dir / "snapshot-launch_arguments.txt").write_text("-demo", encoding="utf-8")

        with patch.dict("os.environ", self.env):
            result = self.runner.invoke(cli, ["--json", "launch-args", "--platform", "simulator"])

        self.assertEqual(result.exit_code, 0)
        data = json.loads(result.output)
        self.assertEqual(data["language"], "ja")
        self.assertEqual(data["locale"], "ja_JP")
        self.assertEqual(data["launch_arguments"][:2], ["-AppleLanguages", "(ja)"])
        self.assertEqual(data["launch_arguments"][-3:], ["YES", "-ui_testing", "-demo"])

    def fake_app(self):
        app = MagicMock()
        app.launch_arguments = []
        app.get_screenshot.return_value = PNG_1X1
        app.get_elements_on_screen.return_value = ScreenElement(
            type="XCUIElementTypeOther", rect=ElementRect(0, 0, 390, 844)
        )
        return app

    def run_snapshot(self, app, *extra, env=None):
        if env is None:
            env = dict(self.env, SIMULATOR_DEVICE_NAME="iPhone 15", USER="kim")
        args = ["snapshot", "01Home", "--bundle-id", "com.example.app",
                "--timeout", "0", "--no-wait-animations", *extra]
        with patch.dict("os.environ", env, clear=True), \
                patch("cli.AppiumApplication", return_value=app), \
                patch("appium_snapshot.platforms._platform.system", return_value="Darwin"):
            return self.runner.invoke(cli, args)

    def test_snapshot_ios_saves_simulator_screenshot(self):
        app = self.fake_app()

        result = self.run_snapshot(app)

        self.assertEqual(result.exit_code, 0)
        app.launch.assert_called_once()
        app.terminate.assert_called_once()
        app.type_key.assert_not_called()
        path = self.home / "Library/Caches/tools.fastlane/screenshots/iPhone 15-01Home.png"
        self.assertEqual(path.read_bytes(), PNG_1X1)
        self.assertIn("-FASTLANE_SNAPSHOT", app.launch_arguments)

    def test_snapshot_ios_on_mac_host_does_not_use_desktop(self):
        app = self.fake_app()

        result = self.run_snapshot(app, env={"USER": "kim"})

        self.assertEqual(result.exit_code, 0)
        app.type_key.assert_not_called()
        app.get_screenshot.assert_called_once()

    def test_snapshot_platform_override(self):
        app = self.fake_app()

        result = self.run_snapshot(app, "--platform", "device")

        self.assertEqual(result.exit_code, 0)
        app.get_screenshot.assert_called_once()
        self.assertEqual(app.launch_arguments, [])
        self.assertFalse((self.home / "Library").exists())


if __name__ == "__main__":
    unittest.main()
