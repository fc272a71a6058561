import logging
import signal
import pytest
from tempmon.config import PinConfig, RuntimeSettings
from tempmon.controller import OutcomeKind, PinController
from tempmon.gpioio import MockOutputs
from tempmon.runtime import ControlLoop, LoopState, ShutdownFlag, build_runtime, install_signal_handlers
from tempmon.sensors import FileTemperatureSource, MockTemperatureSource

def pin(**kw) -> PinConfig:
    d = dict(wpi_pin=7, output_val=True, condition='>', temperature_degC=50.0, temperature_src='A')
    d.update(kw)
    return PinConfig.model_validate(d)

class StopAfter:
    """Fake sleep that raises the shutdown flag after n slices."""
    def __init__(self, flag, n):
        self.flag = flag; self.n = n; self.slices = []
    def __call__(self, s):
        self.slices.append(s)
        if len(self.slices) >= self.n: self.flag.set()

def build(pins, src, sink, stop_after=3, **settings):
    flag = ShutdownFlag()
    sleep = StopAfter(flag, stop_after)
    loop = ControlLoop([PinController(p) for p in pins], src, sink, RuntimeSettings(**settings), flag, sleep=sleep)
    return loop, sleep

def test_scenario_one_change_logged(caplog):
    sink = MockOutputs({7: False})
    loop, _ = build([pin()], MockTemperatureSource({'A': 55.0}), sink)
    with caplog.at_level(logging.INFO, logger='tempmon'):
        loop.run()
    assert sink.writes == [(7, True)]
    changes = [r.getMessage() for r in caplog.records if ':: wPi pin' in r.getMessage()]
    assert changes == ["55.0 > 50.0 :: wPi pin 7 = 1"]

def test_drains_with_one_termination_tick(caplog):
    p = pin(output_val=False, condition='<', temperature_degC=10.0, match_on_terminate=True)
    sink = MockOutputs({7: True})
    loop, sleep = build([p], MockTemperatureSource({'A': 30.0}), sink, stop_after=12)
    with caplog.at_level(logging.INFO, logger='tempmon'):
        loop.run()
    assert loop.state is LoopState.STOPPED
    assert loop.ticks == 3  # two running ticks, one draining tick
    assert sink.writes == [(7, False)]
    assert any(r.getMessage().endswith(":: TERMINATION TRIGGERED") for r in caplog.records)

def test_wait_is_sliced_and_interrupted():
    loop, sleep = build([pin()], MockTemperatureSource({'A': 40.0}), MockOutputs(), stop_after=3,
                        poll_interval_s=2.0, sleep_slice_s=0.2)
    loop.tick(); loop.wait()
    assert sleep.slices == [0.2, 0.2, 0.2]
    loop.flag._set = False; sleep.n = 100; sleep.slices.clear()
    loop.wait()
    assert len(sleep.slices) == 10

def test_flag_set_before_start_still_runs_final_tick():
    sink = MockOutputs({7: False})
    loop, sleep = build([pin(match_on_terminate=True)], MockTemperatureSource({'A': 0.0}), sink)
    loop.flag.set()
    loop.run()
    assert loop.ticks == 1 and sleep.slices == []
    assert sink.writes == [(7, True)]

def test_step_transitions():
    loop, _ = build([pin()], MockTemperatureSource({'A': 40.0}), MockOutputs(), stop_after=1)
    assert loop.step() is LoopState.RUNNING
    assert loop.flag.is_set()
    assert loop.step() is LoopState.STOPPED
    assert loop.step() is LoopState.STOPPED and loop.ticks == 2

def test_one_bad_pin_does_not_stop_others(caplog):
    pins = [pin(wpi_pin=1, condition='!='), pin(wpi_pin=2, temperature_src='missing'), pin(wpi_pin=3)]
    sink = MockOutputs()
    loop, _ = build(pins, MockTemperatureSource({'A': 60.0}), sink)
    with caplog.at_level(logging.ERROR, logger='tempmon'):
        outcomes = loop.tick()
    assert [o.kind for o in outcomes] == [OutcomeKind.UNSUPPORTED_OPERATOR, OutcomeKind.READ_FAILED, OutcomeKind.CHANGED]
    assert sink.writes == [(3, True)]
    msgs = [r.getMessage() for r in caplog.records]
    assert "Not supported comparison operation for wPi pin 1 !=" in msgs
    assert "Cannot read current temperature for wPi pin 2 missing" in msgs

def test_initialize_pins_once_each():
    sink = MockOutputs()
    loop, _ = build([pin(wpi_pin=4), pin(wpi_pin=4, output_val=False), pin(wpi_pin=2)], MockTemperatureSource(), sink)
    loop.initialize_pins()
    assert sink.initialized == [2, 4]

def test_install_signal_handlers(monkeypatch):
    seen = {}
    monkeypatch.setattr(signal, 'signal', lambda sig, fn: seen.setdefault(sig, fn))
    flag = ShutdownFlag()
    installed = install_signal_handlers(flag)
    assert signal.SIGINT in installed and signal.SIGTERM in installed
    seen[signal.SIGTERM](signal.SIGTERM, None)
    assert flag.is_set()

def test_build_runtime_dry_run():
    loop = build_runtime([pin(wpi_pin=5)], RuntimeSettings(dry_run=True, mock_temp_c=70.0))
    assert isinstance(loop.sink, MockOutputs) and loop.sink.initialized == [5]
    assert loop.source.read('A') == 70.0
    loop = build_runtime([pin()], RuntimeSettings(dry_run=True))
    assert isinstance(loop.source, FileTemperatureSource)

def test_wait_covers_uneven_interval():
    loop, sleep = build([pin()], MockTemperatureSource(), MockOutputs(), stop_after=100,
                        poll_interval_s=0.3, sleep_slice_s=0.2)
    loop.wait()
    assert sleep.slices == [0.2, pytest.approx(0.1)]
    sleep.slices.clear(); loop.settings = RuntimeSettings(poll_interval_s=0.1)
    loop.wait()
    assert sleep.slices == [0.1]
