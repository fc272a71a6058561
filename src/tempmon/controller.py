import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from tempmon.conditions import Operator, evaluate, parse_operator
from tempmon.config import PinConfig
from tempmon.gpioio import OutputSink
from tempmon.sensors import FAILED_READ, Reading, TemperatureSource, is_failed

# reference start value; a first genuine reading of 0.0 looks unchanged
INITIAL_READING = 0.0

class OutcomeKind(Enum):
    IDLE = 'idle'                    # nothing to do this tick
    HELD = 'held'                    # condition matched, pin already at the level
    CHANGED = 'changed'
    READ_FAILED = 'read_failed'
    UNSUPPORTED_OPERATOR = 'unsupported_operator'
    IO_ERROR = 'io_error'

@dataclass(frozen=True)
class TickOutcome:
    kind: OutcomeKind
    pin_id: int
    reading: Reading
    condition: str
    threshold_c: float
    source_id: str
    level: Optional[bool] = None
    terminate: bool = False
    error: Optional[str] = None

@dataclass
class PinState:
    last_reading: Reading = INITIAL_READING
    ticks: int = 0
    writes: int = 0

class PinController:
    """
    Drives one output pin from one temperature source.

    The output is only reconsidered when the reading moved since the last
    tick (or on the shutdown tick for match_on_terminate pins), and is only
    written when the sink reports a different level. Errors are returned as
    outcomes, never raised.
    """
    def __init__(self, cfg: PinConfig):
        self.cfg = cfg; self.s = PinState()
        self.op: Optional[Operator] = parse_operator(cfg.condition)
        self._log = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def _outcome(self, kind: OutcomeKind, reading: Reading, **kw) -> TickOutcome:
        return TickOutcome(kind, self.cfg.pin_id, reading, self.cfg.condition,
                           self.cfg.threshold_c, self.cfg.source_id, **kw)

    def tick(self, source: TemperatureSource, sink: OutputSink, shutting_down: bool = False) -> TickOutcome:
        try:
            reading = source.read(self.cfg.source_id)
        except Exception as e:
            self._log.debug("source %s raised %s", self.cfg.source_id, e)
            reading = FAILED_READ
        try:
            return self._decide(reading, sink, shutting_down)
        except Exception as e:
            return self._outcome(OutcomeKind.IO_ERROR, reading, error=f"{e.__class__.__name__}: {e}")
        finally:
            self.s.last_reading = reading; self.s.ticks += 1

    def _decide(self, reading: Reading, sink: OutputSink, shutting_down: bool) -> TickOutcome:
        changed = reading != self.s.last_reading
        if is_failed(reading) and changed:
            return self._outcome(OutcomeKind.READ_FAILED, reading)
        if self.op is None:
            return self._outcome(OutcomeKind.UNSUPPORTED_OPERATOR, reading)
        terminate = self.cfg.match_on_terminate and shutting_down
        matched = changed and evaluate(self.op, reading, self.cfg.threshold_c)
        if not (terminate or matched):
            return self._outcome(OutcomeKind.IDLE, reading)
        level = self.cfg.output_val
        sink.initialize(self.cfg.pin_id)
        if sink.read_level(self.cfg.pin_id) == level:
            return self._outcome(OutcomeKind.HELD, reading, level=level, terminate=terminate)
        sink.set_level(self.cfg.pin_id, level); self.s.writes += 1
        return self._outcome(OutcomeKind.CHANGED, reading, level=level, terminate=terminate)
