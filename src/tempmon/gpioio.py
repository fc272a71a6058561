import logging
from typing import Dict

# wiringPi pin number -> BCM GPIO number (Raspberry Pi rev 2 and later)
WPI_TO_BCM: Dict[int, int] = {
    0: 17, 1: 18, 2: 27, 3: 22, 4: 23, 5: 24, 6: 25, 7: 4,
    8: 2, 9: 3, 10: 8, 11: 7, 12: 10, 13: 9, 14: 11, 15: 14,
    16: 15, 17: 28, 18: 29, 19: 30, 20: 31, 21: 5, 22: 6, 23: 13,
    24: 19, 25: 26, 26: 12, 27: 16, 28: 20, 29: 21, 30: 0, 31: 1,
}

def wpi_to_bcm(pin: int) -> int:
    try: return WPI_TO_BCM[pin]
    except KeyError: raise ValueError(f"no BCM mapping for wiringPi pin {pin}") from None

class OutputSink:
    def initialize(self, pin: int) -> None: raise NotImplementedError
    def set_level(self, pin: int, level: bool) -> None: raise NotImplementedError
    def read_level(self, pin: int) -> bool: raise NotImplementedError

class MockOutputs(OutputSink):
    """In-memory pins, used for dry runs. Records every write."""
    def __init__(self, levels: Dict[int, bool] | None = None):
        self.levels: Dict[int, bool] = dict(levels or {})
        self.initialized: list[int] = []
        self.writes: list[tuple[int, bool]] = []
    def initialize(self, pin: int) -> None:
        self.initialized.append(pin); self.levels.setdefault(pin, False)
    def set_level(self, pin: int, level: bool) -> None:
        self.writes.append((pin, bool(level))); self.levels[pin] = bool(level)
    def read_level(self, pin: int) -> bool:
        return self.levels.get(pin, False)

def _gpio():
    import RPi.GPIO as GPIO
    return GPIO

def gpio_init():
    GPIO = _gpio(); GPIO.setmode(GPIO.BCM); GPIO.setwarnings(False)

class GpioOutputs(OutputSink):
    """
    Digital outputs through RPi.GPIO. Pin ids are wiringPi numbers unless
    numbering='bcm'. Pins are never cleaned up so the last level survives exit.
    """
    def __init__(self, numbering: str = 'wpi'):
        if numbering not in ('wpi', 'bcm'): raise ValueError(f"unknown pin numbering {numbering!r}")
        self.numbering = numbering; self.GPIO = _gpio()
        self._log = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
    def _channel(self, pin: int) -> int:
        return wpi_to_bcm(pin) if self.numbering == 'wpi' else pin
    def initialize(self, pin: int) -> None:
        ch = self._channel(pin)
        self._log.debug("pin %d -> BCM %d output", pin, ch)
        # no initial= so re-claiming a pin leaves its level alone
        self.GPIO.setup(ch, self.GPIO.OUT)
    def set_level(self, pin: int, level: bool) -> None:
        self.GPIO.output(self._channel(pin), self.GPIO.HIGH if level else self.GPIO.LOW)
    def read_level(self, pin: int) -> bool:
        return bool(self.GPIO.input(self._channel(pin)))
