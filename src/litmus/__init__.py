"""Adaptive statistical benchmarking for Python callables."""

from .benchmark import (
    Benchmark as Benchmark,
)
from .benchmark import (
    BenchmarkResult as BenchmarkResult,
)
from .benchmark import (
    Times as Times,
)
from .calibration import (
    Calibration as Calibration,
)
from .compare import (
    compare as compare,
)
from .compare import (
    fastest as fastest,
)
from .compare import (
    slowest as slowest,
)
from .config import (
    BenchmarkConfig as BenchmarkConfig,
)
from .context import (
    BenchmarkContext as BenchmarkContext,
)
from .context import (
    get_context as get_context,
)
from .context import (
    set_context as set_context,
)
from .errors import (
    ConfigError as ConfigError,
)
from .errors import (
    LitmusError as LitmusError,
)
from .errors import (
    PayloadError as PayloadError,
)
from .errors import (
    UnclockableError as UnclockableError,
)
from .events import (
    EventEmitter as EventEmitter,
)
from .events import (
    EventType as EventType,
)
from .executor import (
    CycleResult as CycleResult,
)
from .executor import (
    Strategy as Strategy,
)
from .reporting import (
    decode_results as decode_results,
)
from .reporting import (
    encode_results as encode_results,
)
from .reporting import (
    format_number as format_number,
)
from .scheduler import (
    invoke as invoke,
)
from .stats import (
    SampleStatistics as SampleStatistics,
)
from .suite import (
    Suite as Suite,
)
from .time import (
    Clock as Clock,
)
