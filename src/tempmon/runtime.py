import logging
import signal
import time
from enum import Enum
from typing import Callable, Iterable, List, Sequence
from tempmon.config import PinConfig, RuntimeSettings
from tempmon.controller import OutcomeKind, PinController, TickOutcome
from tempmon.gpioio import GpioOutputs, MockOutputs, OutputSink, gpio_init
from tempmon.sensors import FileTemperatureSource, MockTemperatureSource, TemperatureSource

SHUTDOWN_SIGNALS = ('SIGHUP', 'SIGINT', 'SIGQUIT', 'SIGTERM', 'SIGXFSZ')

class LoopState(Enum):
    RUNNING = 'running'
    DRAINING = 'draining'
    STOPPED = 'stopped'

class ShutdownFlag:
    """Set from a signal handler, polled by the loop. A single attribute store."""
    def __init__(self): self._set = False
    def set(self, *_): self._set = True
    def is_set(self) -> bool: return self._set

def install_signal_handlers(flag: ShutdownFlag, names: Iterable[str] = SHUTDOWN_SIGNALS) -> List[int]:
    installed = []
    for name in names:
        sig = getattr(signal, name, None)  # SIGHUP/SIGQUIT/SIGXFSZ are POSIX only
        if sig is None: continue
        signal.signal(sig, flag.set); installed.append(sig)
    return installed

class ControlLoop:
    """
    Ticks every PinController, sleeps poll_interval_s in sleep_slice_s steps,
    and once the shutdown flag is seen runs one last tick with
    shutting_down=True before stopping.
    """
    def __init__(self, controllers: Sequence[PinController], source: TemperatureSource, sink: OutputSink,
                 settings: RuntimeSettings | None = None, flag: ShutdownFlag | None = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.controllers = list(controllers); self.source = source; self.sink = sink
        self.settings = settings or RuntimeSettings(); self.flag = flag or ShutdownFlag()
        self.state = LoopState.RUNNING; self.ticks = 0; self._sleep = sleep
        self._log = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def initialize_pins(self) -> None:
        for pin in sorted({c.cfg.pin_id for c in self.controllers}):
            self.sink.initialize(pin)

    def tick(self, shutting_down: bool = False) -> List[TickOutcome]:
        outcomes = [c.tick(self.source, self.sink, shutting_down) for c in self.controllers]
        for o in outcomes: self.report(o)
        self.ticks += 1
        return outcomes

    def report(self, o: TickOutcome) -> None:
        if o.kind is OutcomeKind.CHANGED:
            self._log.info("%s %s %s :: wPi pin %d = %d%s", o.reading, o.condition, o.threshold_c, o.pin_id,
                           int(o.level), " :: TERMINATION TRIGGERED" if o.terminate else "")
        elif o.kind is OutcomeKind.READ_FAILED:
            self._log.error("Cannot read current temperature for wPi pin %d %s", o.pin_id, o.source_id)
        elif o.kind is OutcomeKind.UNSUPPORTED_OPERATOR:
            self._log.error("Not supported comparison operation for wPi pin %d %s", o.pin_id, o.condition)
        elif o.kind is OutcomeKind.IO_ERROR:
            self._log.error("Output error on wPi pin %d: %s", o.pin_id, o.error)
        else:
            self._log.debug("wPi pin %d %s reading=%s", o.pin_id, o.kind.value, o.reading)

    def wait(self) -> None:
        remaining = self.settings.poll_interval_s
        while remaining > 1e-9:
            if self.flag.is_set(): return
            s = min(self.settings.sleep_slice_s, remaining)
            self._sleep(s); remaining -= s

    def step(self) -> LoopState:
        """Advance the state machine by one tick."""
        if self.state is LoopState.RUNNING:
            if self.flag.is_set():
                self.state = LoopState.DRAINING
            else:
                self.tick(); self.wait()
                return self.state
        if self.state is LoopState.DRAINING:
            self._log.debug("Shutdown requested, final pass over %d pins", len(self.controllers))
            self.tick(shutting_down=True)
            self.state = LoopState.STOPPED
        return self.state

    def run(self) -> None:
        while self.step() is not LoopState.STOPPED:
            pass

def build_runtime(pins: Sequence[PinConfig], settings: RuntimeSettings, flag: ShutdownFlag | None = None) -> ControlLoop:
    if settings.mock_temp_c is not None:
        source: TemperatureSource = MockTemperatureSource({p.source_id: settings.mock_temp_c for p in pins})
    else:
        source = FileTemperatureSource()
    if settings.dry_run:
        sink: OutputSink = MockOutputs()
    else:
        gpio_init(); sink = GpioOutputs(settings.pin_numbering)
    loop = ControlLoop([PinController(p) for p in pins], source, sink, settings, flag)
    loop.initialize_pins()
    return loop
