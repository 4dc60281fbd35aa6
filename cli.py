import json
import os
import sys
from typing import List, Sequence

import click

from appium_snapshot.appium_app import AppiumApplication
from appium_snapshot.config import IDLE_TIMEOUT, SnapshotConfigBuilder
from appium_snapshot.launch_arguments import tokenize_launch_arguments
from appium_snapshot.paths import SnapshotError, resolve_cache_directory
from appium_snapshot.platforms import Platform, detect_platform
from appium_snapshot.robot import ActionableError, ScreenElement
from appium_snapshot.snapshot import prepare, snapshot

JSON_ENV = os.environ.get("SNAPSHOT_JSON", "0").lower() in ("1", "true")

PLATFORM_CHOICE = click.Choice([p.value for p in Platform], case_sensitive=False)


def output_result(result, json_output: bool):
    if json_output:
        if not isinstance(result, (dict, list)):
            result = {"result": result}
        click.echo(json.dumps(result, ensure_ascii=False))
    else:
        if isinstance(result, (dict, list)):
            click.echo(json.dumps(result, ensure_ascii=False, indent=2))
        else:
            click.echo(result)


class ArgumentsOnlyApp:
    """실행 인자만 모으는 앱. 캡처 기능은 지원하지 않습니다."""

    def __init__(self):
        self.launch_arguments: List[str] = []

    def get_screenshot(self) -> bytes:
        raise ActionableError("실행 인자 확인용 앱은 스크린샷을 지원하지 않습니다")

    def get_elements_on_screen(self) -> ScreenElement:
        raise ActionableError("실행 인자 확인용 앱은 UI 트리를 지원하지 않습니다")

    def type_key(self, key: str, modifiers: Sequence[str] = ()) -> None:
        raise ActionableError("실행 인자 확인용 앱은 키 입력을 지원하지 않습니다")


def _platform(value):
    if value:
        return Platform(value.lower())
    return detect_platform(os.environ)


@click.group()
@click.option("--json", "json_output", is_flag=True, help="Return output in JSON format")
@click.pass_context
def cli(ctx, json_output):
    """fastlane snapshot helper for Appium UI tests."""
    ctx.obj = {"json": json_output or JSON_ENV}


@cli.command(name="cache-dir")
@click.option("--platform", "platform_name", type=PLATFORM_CHOICE, default=None,
              help="Target platform (detected from the environment by default)")
@click.pass_obj
def cache_dir_cmd(obj, platform_name):
    """Print the fastlane cache directory."""
    try:
        path = resolve_cache_directory(os.environ, _platform(platform_name))
    except SnapshotError as e:
        click.echo(str(e), err=True)
        sys.exit(1)
    output_result(str(path), obj["json"])


@cli.command()
@click.argument("text")
@click.pass_obj
def tokenize(obj, text):
    """Split a launch arguments string into tokens."""
    output_result(tokenize_launch_arguments(text), obj["json"])


@cli.command(name="launch-args")
@click.option("--platform", "platform_name", type=PLATFORM_CHOICE, default=None,
              help="Target platform (detected from the environment by default)")
@click.pass_obj
def launch_args_cmd(obj, platform_name):
    """Show the launch arguments setup would pass to the app."""
    app = ArgumentsOnlyApp()
    config = prepare(
        SnapshotConfigBuilder().app(app).platform(_platform(platform_name)).build()
    )
    output_result({
        "cache_directory": str(config.cache_directory) if config.cache_directory else None,
        "language": config.device_language,
        "locale": config.locale,
        "launch_arguments": app.launch_arguments,
    }, obj["json"])


@cli.command(name="snapshot")
@click.argument("name")
@click.option("--bundle-id", required=True, help="Bundle identifier of the app under test")
@click.option("--platform-name", default="iOS", help="Appium platformName (iOS, tvOS, mac)")
@click.option("--udid", default="", help="Simulator UDID")
@click.option("--timeout", default=IDLE_TIMEOUT, type=float,
              help="Seconds to wait for the network loading indicator")
@click.option("--no-wait-animations", is_flag=True, help="Skip the animation delay")
@click.option("--platform", "target", type=PLATFORM_CHOICE, default=None,
              help="Target platform (desktop for mac, simulator otherwise)")
@click.pass_obj
def snapshot_cmd(obj, name, bundle_id, platform_name, udid, timeout, no_wait_animations, target):
    """Launch the app through Appium and capture one screenshot."""
    capabilities = {"appium:udid": udid} if udid else {}
    app = AppiumApplication(bundle_id, platform_name=platform_name, capabilities=capabilities)
    builder = (
        SnapshotConfigBuilder()
        .app(app)
        .wait_for_animations(not no_wait_animations)
        .tv(platform_name.lower() == "tvos")
    )
    if target:
        builder.platform(Platform(target.lower()))
    elif platform_name.lower() == "mac":
        builder.platform(Platform.DESKTOP)
    else:
        builder.platform(Platform.SIMULATOR)
    config = prepare(builder.build())

    try:
        app.launch()
        path = snapshot(config, name, time_waiting_for_idle=timeout)
    finally:
        app.terminate()

    output_result({"name": name, "path": str(path) if path else None}, obj["json"])


if __name__ == "__main__":
    cli()
