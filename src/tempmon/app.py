import argparse, logging, os, sys
from tempmon.config import DEFAULT_CONFIG_PATH, ConfigError, RuntimeSettings, load_pins
from tempmon.logging_config import resolve_logging, setup_logging
from tempmon.runtime import ShutdownFlag, build_runtime, install_signal_handlers

log = logging.getLogger("tempmon.app")

def _positive(v: str) -> float:
    f = float(v)
    if f <= 0: raise argparse.ArgumentTypeError(f"must be > 0, got {v}")
    return f

def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog='tempmon', description="Set or clear GPIO outputs on temperature conditions.")
    p.add_argument('config', nargs='?', default=DEFAULT_CONFIG_PATH, help="pin descriptor file (default %(default)s)")
    p.add_argument('--interval', type=_positive, default=2.0, help="seconds between ticks")
    p.add_argument('--dry-run', action='store_true', help="keep outputs in memory, do not touch GPIO")
    p.add_argument('--mock-temp', type=float, default=None, metavar='DEGC', help="report this temperature for every source")
    p.add_argument('--bcm', action='store_true', help="pin ids are BCM numbers instead of wiringPi numbers")
    p.add_argument('--log-level', default=None); p.add_argument('--log-file', default=None)
    return p.parse_args(argv)

def main(argv=None) -> int:
    a = parse_args(argv)
    enabled, level, log_file = resolve_logging(a.log_level, a.log_file)
    setup_logging(enabled, level, log_file)
    prog = os.path.basename(sys.argv[0]) or 'tempmon'
    log.info("Started %s config file %s", prog, a.config)

    numbering = 'bcm' if a.bcm else 'wpi'
    try:
        pins = load_pins(a.config, numbering)
    except ConfigError as e:
        # ERROR records go to stderr; print directly when logging is off
        log.error("%s", e)
        if not enabled: print(e, file=sys.stderr)
        return e.exit_code

    settings = RuntimeSettings(poll_interval_s=a.interval, dry_run=a.dry_run, mock_temp_c=a.mock_temp,
                               pin_numbering=numbering)
    flag = ShutdownFlag()
    loop = build_runtime(pins, settings, flag)
    install_signal_handlers(flag)
    log.info("Watching %d pin condition(s), tick every %.1fs%s", len(pins), settings.poll_interval_s,
             " (dry run)" if settings.dry_run else "")
    loop.run()
    log.info("Stopped %s", prog)
    return 0

if __name__ == "__main__":
    sys.exit(main())
