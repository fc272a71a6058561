import json
from typing import List, Literal, Optional
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from tempmon.gpioio import WPI_TO_BCM

class ConfigError(Exception):
    exit_code = 3
    def __init__(self, path, msg: str):
        super().__init__(f"{msg} '{path}'"); self.path = path

class ConfigNotFound(ConfigError): exit_code = 1
class EmptyConfig(ConfigError): exit_code = 2
class InvalidConfig(ConfigError): exit_code = 3

class PinConfig(BaseModel):
    """One pin descriptor. Field aliases are the keys used in config.json."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra='ignore')
    pin_id: int = Field(alias='wpi_pin', ge=0)
    output_val: bool
    condition: str  # checked per tick; unknown symbols make the pin inert, not the config invalid
    threshold_c: float = Field(alias='temperature_degC')
    source_id: str = Field(alias='temperature_src')
    match_on_terminate: bool = False

    @field_validator('output_val', 'match_on_terminate', mode='before')
    @classmethod
    def _strict_bool(cls, v):
        if not isinstance(v, bool): raise ValueError("must be true or false")
        return v

class RuntimeSettings(BaseModel):
    poll_interval_s: float = Field(default=2.0, gt=0)
    sleep_slice_s: float = Field(default=0.2, gt=0)
    dry_run: bool = False
    mock_temp_c: Optional[float] = None  # every source reports this value
    pin_numbering: Literal['wpi', 'bcm'] = 'wpi'

DEFAULT_CONFIG_PATH = './config.json'

YAML_SUFFIXES = ('.yaml', '.yml')

def _read(path: str):
    with open(path, 'r', encoding='utf-8') as f:
        if str(path).lower().endswith(YAML_SUFFIXES):
            return yaml.safe_load(f)
        return json.load(f)

def load_pins(path: str = DEFAULT_CONFIG_PATH, numbering: str = 'wpi') -> List[PinConfig]:
    """Load pin descriptors from a JSON file (YAML when the name ends in .yaml/.yml)."""
    try:
        data = _read(path)
    except UnicodeDecodeError as e:
        raise InvalidConfig(path, f"Configuration is not UTF-8 (byte {e.start}) in") from e
    except OSError:
        raise ConfigNotFound(path, "Cannot open configuration file") from None
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise InvalidConfig(path, f"Malformed configuration ({e.__class__.__name__}) in") from e
    if data is None or data == []:
        raise EmptyConfig(path, "No conditions supplied in")
    if not isinstance(data, list):
        raise InvalidConfig(path, "Expected a list of pin descriptors in")
    pins = []
    for i, item in enumerate(data):
        try:
            pins.append(PinConfig.model_validate(item))
        except ValidationError as e:
            err = e.errors()[0]; loc = ".".join(str(x) for x in err["loc"])
            raise InvalidConfig(path, f"Invalid pin descriptor #{i} ({loc}: {err['msg']}) in") from e
        if numbering == 'wpi' and pins[-1].pin_id not in WPI_TO_BCM:
            raise InvalidConfig(path, f"Invalid pin descriptor #{i} (wpi_pin {pins[-1].pin_id} has no GPIO) in")
    return pins
