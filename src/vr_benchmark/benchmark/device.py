"""
Quest Device Control.

Drives the headset over adb: builds and installs the app, launches it,
waits until it has focus and collects the raw telemetry text.
"""

import logging
import shutil
import subprocess
import time
from pathlib import Path
from typing import Optional

from vr_benchmark.analysis.frame_timing import SOURCE_TAG
from vr_benchmark.config.settings import settings
from vr_benchmark.errors import DeviceError

logger = logging.getLogger(__name__)


class QuestDevice:
    """Controls a headset connected through adb."""

    METRICS_RECEIVER = "com.oculus.ovrmonitormetricsservice/.SettingsBroadcastReceiver"
    METRICS_ACTION = "com.oculus.ovrmonitormetricsservice.{}_CSV"

    # Counters captured by ovrgpuprofiler (see `ovrgpuprofiler -l`)
    GPU_COUNTERS = "3,4,5,6,7,8,16,17,40,42,43,44,45"

    FOCUSED_MARKER = "State is now FOCUSED"
    POLL_INTERVAL = 0.1  # seconds

    def __init__(
        self,
        package: Optional[str] = None,
        activity: Optional[str] = None,
        apk_path: Optional[Path] = None,
        build_dir: Optional[Path] = None,
        timeout: float = 60.0,
    ):
        """
        Initialize device control.

        Args:
            package: Android package of the app under test.
            activity: Activity to start.
            apk_path: APK to install before launching (skipped if None).
            build_dir: Cargo project to build first (skipped if None).
            timeout: Seconds to wait for the app to start or get focus.
        """
        self.package = package or settings.APP_PACKAGE
        self.activity = activity or settings.APP_ACTIVITY
        self.apk_path = apk_path if apk_path is not None else settings.APK_PATH
        self.build_dir = build_dir if build_dir is not None else settings.BUILD_DIR
        self.timeout = timeout
        self._adb: Optional[str] = None

    @property
    def adb(self) -> str:
        """Path to the adb executable."""
        if self._adb is None:
            self._adb = shutil.which("adb")
            if self._adb is None:
                raise DeviceError("adb executable not found")
        return self._adb

    def _run(self, args: list[str], cwd: Optional[Path] = None, check: bool = True) -> str:
        """
        Run a host command and return its stdout.

        With ``check`` false a non-zero exit is returned as-is; adb shell
        passes the device command's exit status through.
        """
        try:
            completed = subprocess.run(
                args,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=max(self.timeout, 1.0) * 10,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise DeviceError(f"{' '.join(args[:3])} failed: {e}") from e

        if check and completed.returncode != 0:
            raise DeviceError(
                f"{' '.join(args[:3])} exited with {completed.returncode}: {completed.stderr.strip()}"
            )
        return completed.stdout

    def shell(self, command: str, check: bool = True) -> str:
        """Run a command on the device."""
        output = self._run([self.adb, "shell", *command.split()], check=check).rstrip()
        logger.debug("adb shell %s -> %r", command, output[:200])
        return output

    def enable_metrics(self) -> None:
        """Turn on the compositor's metrics service."""
        self.shell(f"am broadcast -n {self.METRICS_RECEIVER} -a {self.METRICS_ACTION.format('ENABLE')}")

    def disable_metrics(self) -> None:
        self.shell(f"am broadcast -n {self.METRICS_RECEIVER} -a {self.METRICS_ACTION.format('DISABLE')}")

    def build(self) -> None:
        """Build a release APK with cargo-apk."""
        if not self.build_dir:
            return
        logger.info("Building %s", self.build_dir)
        output = self._run(["cargo", "apk", "build", "--release"], cwd=self.build_dir)
        logger.debug("Build output: %s", output)

    def install(self) -> None:
        if not self.apk_path:
            return
        logger.info("Installing %s", self.apk_path)
        output = self._run([self.adb, "install", str(self.apk_path)])
        logger.debug("Install output: %s", output)

    def stop(self) -> None:
        """Force-stop the app."""
        logger.info("Stopping %s", self.package)
        self.shell(f"am force-stop {self.package}")

    def launch(self) -> int:
        """
        Restart the app from a fresh build.

        Returns:
            PID of the app on the device.
        """
        self.stop()
        self.build()
        self.install()

        output = self.shell(f"am start {self.package}/{self.activity}")
        logger.debug("Start output: %s", output)
        return self.wait_for_pid()

    def _poll(self, check, what: str):
        """Call check() until it returns something truthy or time runs out."""
        deadline = time.monotonic() + self.timeout
        while True:
            result = check()
            if result:
                return result
            if time.monotonic() >= deadline:
                raise DeviceError(f"Timed out after {self.timeout:.0f}s waiting for {what}")
            time.sleep(self.POLL_INTERVAL)

    def wait_for_pid(self) -> int:
        """Wait until the app process exists and return its PID."""
        # pidof exits 1 with no output until the process exists
        output = self._poll(
            lambda: self.shell(f"pidof {self.package}", check=False),
            f"{self.package} to start",
        )
        try:
            # pidof may list several processes; the first is the app
            return int(output.split()[0])
        except ValueError:
            raise DeviceError(f"Unexpected pidof output: {output!r}") from None

    def wait_for_focused(self, pid: int) -> None:
        """Wait until the app reports it has input focus."""
        self._poll(
            lambda: self.FOCUSED_MARKER in self.shell(f"logcat -d --pid {pid}"),
            f"{self.package} to get focus",
        )
        logger.info("App is now focused")

    def capture_gpu_counters(self, duration: float) -> str:
        """
        Run ovrgpuprofiler for a fixed window.

        Returns:
            Everything the profiler printed.
        """
        command = f'ovrgpuprofiler -r"{self.GPU_COUNTERS}"'
        try:
            process = subprocess.Popen(
                [self.adb, "shell", "-tt", command],
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
            )
        except OSError as e:
            raise DeviceError(f"Could not start ovrgpuprofiler: {e}") from e

        time.sleep(duration)
        process.kill()
        output, _ = process.communicate()
        return output or ""

    def capture_frame_timing(self, pid: int, lines: int = 5) -> str:
        """Last ``lines`` compositor stats lines of the app (one per second)."""
        return self.shell(f"logcat -s {SOURCE_TAG} --pid={pid} -t {lines} -v epoch")
