"""
supervisor.py

Responsibility: Watch mode for `boson run --watch`.

Lifecycle:
1) Subscribe to filesystem changes (`FileWatcher`)
2) Build and launch the application once
3) On every coalesced change: stop the running child (SIGTERM, wait, kill fallback,
   settle delay), rebuild, launch a new child
4) On SIGINT/SIGTERM: stop the child and return

Only one child is ever alive. All access to it goes through `_lock`, shared by the
restart loop (main thread) and the interrupt listener thread. A build is never
cancelled; a launch requested after shutdown has started is refused.
"""

from __future__ import annotations

import enum
import logging
import signal
import subprocess
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from boson_cli.config import BuildOptions, RunOptions, WatchTimings
from boson_cli.project import ProjectError, app_args, build_project, launch
from boson_cli.watcher import FileWatcher

logger = logging.getLogger(__name__)

# How often the restart loop wakes up to check for shutdown while idle.
POLL_INTERVAL = 0.25

BuildFn = Callable[[Path], Any]
LaunchFn = Callable[[Path, list[str]], subprocess.Popen]


class State(str, enum.Enum):
    IDLE = "idle"
    BUILDING = "building"
    RUNNING = "running"
    STOPPING = "stopping"
    TERMINATING = "terminating"


@dataclass
class ChildProcess:
    process: subprocess.Popen
    started_at: float = field(default_factory=time.monotonic)

    @property
    def pid(self) -> int:
        return self.process.pid

    def is_alive(self) -> bool:
        return self.process.poll() is None


class WatchSupervisor:
    def __init__(
        self,
        project_dir: str | Path,
        executable: str | Path,
        *,
        run_options: RunOptions | None = None,
        build_options: BuildOptions | None = None,
        timings: WatchTimings | None = None,
        build: BuildFn | None = None,
        launcher: LaunchFn | None = None,
        watcher_factory: Callable[..., FileWatcher] = FileWatcher,
    ) -> None:
        self.project_dir = Path(project_dir).resolve()
        self.executable = Path(executable)
        self.run_options = run_options or RunOptions(watch=True)
        self.timings = timings or WatchTimings()

        build_opts = build_options or BuildOptions()
        self._build = build or (lambda d: build_project(d, build_opts))
        self._launcher = launcher or (lambda exe, args: launch(exe, args, cwd=self.project_dir))
        self._watcher_factory = watcher_factory

        self._lock = threading.Lock()
        self._child: ChildProcess | None = None
        self._state = State.IDLE
        self._terminating = False
        self._shutdown = threading.Event()

    @property
    def state(self) -> State:
        return self._state

    @property
    def child(self) -> ChildProcess | None:
        return self._child

    @property
    def watch_dirs(self) -> tuple[str, ...]:
        return self.run_options.watch_dirs

    # ------------------------------------------------------------------
    # Child process control
    # ------------------------------------------------------------------

    def _kill(self, child: ChildProcess) -> None:
        try:
            child.process.kill()
        except OSError as e:
            logger.error("Could not kill process %d: %s", child.pid, e)

    def _stop_locked(self) -> bool:
        """
        Stop and forget the current child. Caller holds `_lock`.

        Returns True if a live process was stopped.
        """
        child, self._child = self._child, None
        if child is None or not child.is_alive():
            return False

        self._state = State.STOPPING
        logger.info("Stopping application (pid %d)...", child.pid)
        try:
            child.process.terminate()
        except OSError as e:
            logger.warning("Could not send SIGTERM: %s", e)
            self._kill(child)

        try:
            child.process.wait(timeout=self.timings.stop_timeout)
        except subprocess.TimeoutExpired:
            logger.warning("Process didn't terminate in time, forcing kill...")
            self._kill(child)
            try:
                child.process.wait(timeout=self.timings.stop_timeout)
            except subprocess.TimeoutExpired:
                logger.error("Process %d did not exit after kill", child.pid)

        # Give the OS time to release the port and open files.
        time.sleep(self.timings.settle_delay)
        return True

    def stop_child(self) -> bool:
        with self._lock:
            stopped = self._stop_locked()
            if not self._terminating:
                self._state = State.IDLE
            return stopped

    def _launch_locked(self) -> bool:
        args = app_args(self.run_options.port, self.run_options.host)
        try:
            proc = self._launcher(self.executable, args)
        except OSError as e:
            logger.error("Failed to start application: %s", e)
            self._state = State.IDLE
            return False
        self._child = ChildProcess(proc)
        self._state = State.RUNNING
        logger.info(
            "Application running at http://%s:%d (pid %d)",
            self.run_options.host,
            self.run_options.port,
            proc.pid,
        )
        return True

    def _shutting_down(self) -> bool:
        return self._terminating or self._shutdown.is_set()

    def _build_failed(self, error: object) -> bool:
        logger.error("Build failed: %s", error)
        with self._lock:
            if not self._terminating:
                self._state = State.IDLE
        return False

    def restart(self, *, initial: bool = False) -> bool:
        """
        Run one stop -> build -> launch cycle. Returns True if a new child was started.
        """
        with self._lock:
            if self._shutting_down():
                return False
            self._stop_locked()
            self._state = State.BUILDING

        if initial:
            logger.info("Building application...")
        else:
            logger.info("Rebuilding application due to file change...")
        started = time.monotonic()
        try:
            result = self._build(self.project_dir)
        except ProjectError as e:
            return self._build_failed(e)
        if result is False:
            return self._build_failed("build step reported failure")
        logger.info("Build finished (%.2fs)", time.monotonic() - started)

        with self._lock:
            if self._shutting_down():
                logger.info("Shutdown requested, not starting application")
                return False
            return self._launch_locked()

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    def request_shutdown(self) -> None:
        self._shutdown.set()

    def terminate(self) -> None:
        """
        Terminal stop: no child is launched after this returns. Safe to call repeatedly.
        """
        with self._lock:
            self._terminating = True
            self._stop_locked()
            self._state = State.TERMINATING

    def _handle_signal(self, signum: int, _frame: object) -> None:
        self.request_shutdown()

    def _listen_for_interrupt(self) -> None:
        self._shutdown.wait()
        logger.info("Terminating watch mode...")
        self.terminate()

    def _install_signal_handlers(self) -> dict[int, Any]:
        if threading.current_thread() is not threading.main_thread():
            return {}
        previous: dict[int, Any] = {}
        for sig in (signal.SIGINT, signal.SIGTERM):
            previous[sig] = signal.signal(sig, self._handle_signal)
        return previous

    @staticmethod
    def _restore_signal_handlers(previous: dict[int, Any]) -> None:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(self) -> int:
        """
        Watch, rebuild and restart until interrupted. Returns the process exit status.

        Raises WatchError if the filesystem subscription cannot be set up; in that
        case nothing has been built or launched.
        """
        watcher = self._watcher_factory(self.project_dir, self.watch_dirs, debounce=self.timings.debounce)
        listener = threading.Thread(target=self._listen_for_interrupt, name="boson-interrupt", daemon=True)
        previous = self._install_signal_handlers()
        listener.start()
        try:
            self.restart(initial=True)
            while not self._shutdown.is_set():
                if not watcher.wait_for_change(timeout=POLL_INTERVAL):
                    continue
                if self._shutdown.is_set():
                    break
                self.restart()
        finally:
            self._shutdown.set()
            listener.join()
            watcher.close()
            self._restore_signal_handlers(previous)
        return 0


def watch_and_reload(
    project_dir: str | Path,
    executable: str | Path,
    *,
    run_options: RunOptions,
    build_options: BuildOptions | None = None,
    timings: WatchTimings | None = None,
) -> int:
    """
    Entry point for `boson run --watch`. Blocks until SIGINT/SIGTERM.
    """
    supervisor = WatchSupervisor(
        project_dir,
        executable,
        run_options=run_options,
        build_options=build_options,
        timings=timings,
    )
    return supervisor.run()
