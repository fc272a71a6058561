import math
from enum import Enum
from typing import Optional

class Operator(Enum):
    EQ = '='
    LT = '<'
    GT = '>'
    LE = '<='
    GE = '>='

def parse_operator(symbol: str) -> Optional[Operator]:
    """Map a configured condition symbol to an Operator, None if unsupported."""
    try:
        return Operator(str(symbol).strip())
    except ValueError:
        return None

def _is_number(v) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool) and not math.isnan(v)

def evaluate(op: Operator, current, threshold) -> bool:
    # failed reads behave like NaN: never true, not even for '='
    if not (_is_number(current) and _is_number(threshold)):
        return False
    if op is Operator.EQ: return current == threshold
    if op is Operator.LT: return current < threshold
    if op is Operator.GT: return current > threshold
    if op is Operator.LE: return current <= threshold
    if op is Operator.GE: return current >= threshold
    return False
