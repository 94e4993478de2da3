__version__ = "0.1.0"

from .exceptions import (
    FixDataError as FixDataError,
    UnexpectedRootError as UnexpectedRootError,
    ConfigError as ConfigError,
    ModelError as ModelError,
)

from .models import (
    ErrorLogger as ErrorLogger,
    RefKind as RefKind,
    LexEntryRefType as LexEntryRefType,
    PassContext as PassContext,
    FixLogEntry as FixLogEntry,
    FixResult as FixResult,
    CircularRefResult as CircularRefResult,
)

from .config import (
    FixerConfig as FixerConfig,
    load_config as load_config,
)

from .fixer import DataFixer as DataFixer
from .fixlog import FixLog as FixLog
from .progress import Progress as Progress, LoggingProgress as LoggingProgress
from .lexmodel import LexModel as LexModel
from .circular_refs import CircularRefBreakerService as CircularRefBreakerService
