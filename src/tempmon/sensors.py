import logging
from pathlib import Path
from typing import Dict, Iterable, Union

class FailedRead:
    """Marker for a temperature source that could not be read this tick."""
    _instance = None
    def __new__(cls):
        if cls._instance is None: cls._instance = super().__new__(cls)
        return cls._instance
    def __repr__(self) -> str: return 'FAILED_READ'

FAILED_READ = FailedRead()
Reading = Union[float, FailedRead]

def is_failed(reading) -> bool:
    return reading is FAILED_READ

class TemperatureSource:
    def read(self, source_id: str) -> Reading: raise NotImplementedError

class FileTemperatureSource(TemperatureSource):
    """
    Reads millidegree values from sysfs-style files, e.g.
    /sys/class/thermal/thermal_zone0/temp or a 1-Wire w1_slave file
    (the 't=' field of its second line). Relative ids resolve against root.
    """
    def __init__(self, root: str | None = None, scale: float = 1000.0):
        self.root = Path(root) if root else None; self.scale = scale
        self._log = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def resolve(self, source_id: str) -> Path:
        p = Path(source_id)
        return self.root / p if (self.root and not p.is_absolute()) else p

    def read(self, source_id: str) -> Reading:
        path = self.resolve(source_id)
        try:
            text = path.read_text()
        except OSError as e:
            self._log.debug("read %s failed: %s", path, e)
            return FAILED_READ
        try:
            return self.parse(text)
        except ValueError as e:
            self._log.debug("unparsable value in %s: %s", path, e)
            return FAILED_READ

    def parse(self, text: str) -> float:
        lines = [l for l in text.splitlines() if l.strip()]
        if not lines: raise ValueError("empty")
        if any('t=' in l for l in lines):
            if 'YES' not in lines[0]: raise ValueError("w1 CRC check failed")
            raw = [l for l in lines if 't=' in l][-1].split('t=')[-1]
        else:
            raw = lines[0].split()[0]
        return int(raw.strip()) / self.scale

class MockTemperatureSource(TemperatureSource):
    """Serves fixed values or scripted sequences per source id; unknown ids fail."""
    def __init__(self, values: Dict[str, Union[Reading, Iterable[Reading]]] | None = None):
        self._fixed: Dict[str, Reading] = {}
        self._scripts: Dict[str, list] = {}
        for k, v in (values or {}).items(): self.set(k, v)
        self.calls: list[str] = []

    def set(self, source_id: str, value) -> None:
        if isinstance(value, (int, float, FailedRead)):
            self._fixed[source_id] = value; self._scripts.pop(source_id, None)
        else:
            self._scripts[source_id] = list(value)

    def read(self, source_id: str) -> Reading:
        self.calls.append(source_id)
        script = self._scripts.get(source_id)
        if script:
            v = script.pop(0)
            if not script: self._fixed[source_id] = v
            return v
        return self._fixed.get(source_id, FAILED_READ)
